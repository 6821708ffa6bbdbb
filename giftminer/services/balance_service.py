from sqlalchemy.orm import Session

from giftminer.core.exceptions import NotFoundError
from giftminer.db.models import User


def get_balance(db: Session, user_id: str) -> dict:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    # Withdrawals are not offered.
    return {"balanceCents": int(user.balance_cents or 0), "withdrawEnabled": False}
