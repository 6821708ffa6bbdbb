import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from giftminer.api.routes import api_router
from giftminer.core.config import get_settings
from giftminer.core.exceptions import register_exception_handlers
from giftminer.core.logging import setup_logging
from giftminer.db.base import Base
from giftminer.db.session import SessionLocal, dispose_engine, engine
from giftminer.middleware.request_context import RequestContextMiddleware
from giftminer.services.gift_service import ensure_gift_catalog

settings = get_settings()
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
app.include_router(api_router)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_gift_catalog(db)
    finally:
        db.close()


@app.on_event("startup")
async def on_startup():
    if not settings.bot_token:
        logger.warning("BOT_TOKEN is not set; Telegram authentication will be refused")
    init_db()


@app.on_event("shutdown")
async def on_shutdown():
    dispose_engine()
