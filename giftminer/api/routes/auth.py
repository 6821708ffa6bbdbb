from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from giftminer.db.session import get_db
from giftminer.schemas.auth import AuthResponse, TelegramAuthRequest
from giftminer.services import auth_service

router = APIRouter()


@router.post("/telegram", response_model=AuthResponse)
def auth_telegram(payload: TelegramAuthRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate_telegram(db, payload.initDataRaw, payload.ref)
    return AuthResponse(ok=True, user=user)
