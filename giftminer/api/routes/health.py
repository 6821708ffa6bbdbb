from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from giftminer.core.config import get_settings

router = APIRouter()
settings = get_settings()


@router.get("/", response_class=PlainTextResponse)
def root():
    return "Gift Miner backend is running"


@router.get("/health")
def health():
    return {
        "status": "ok",
        "botTokenConfigured": bool(settings.bot_token),
        "environment": settings.ENVIRONMENT,
    }
