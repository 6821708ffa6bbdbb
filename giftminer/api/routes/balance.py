from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from giftminer.db.session import get_db
from giftminer.schemas.gifts import BalanceResponse
from giftminer.services.balance_service import get_balance

router = APIRouter()


@router.get("/balance", response_model=BalanceResponse)
def balance(userId: str = Query(min_length=1), db: Session = Depends(get_db)):
    return get_balance(db, userId)
