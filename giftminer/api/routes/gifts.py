from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from giftminer.db.session import get_db
from giftminer.schemas.gifts import ClaimResult, GiftClaimRequest, GiftSyncRequest, UserGiftItem
from giftminer.services import gift_service

router = APIRouter()


@router.post("/sync")
def gifts_sync(payload: GiftSyncRequest, db: Session = Depends(get_db)):
    gift_service.sync_user_gifts(db, payload.userId)
    return {"ok": True}


@router.get("", response_model=list[UserGiftItem])
def gifts_list(userId: str = Query(min_length=1), db: Session = Depends(get_db)):
    return gift_service.list_user_gifts(db, userId)


@router.post("/claim", response_model=ClaimResult)
def gifts_claim(payload: GiftClaimRequest, db: Session = Depends(get_db)):
    return gift_service.claim_gift(db, payload.userId, payload.giftTypeId)
