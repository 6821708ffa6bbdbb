from giftminer.db.models.gift import GiftType, UserGift
from giftminer.db.models.referral import Referral
from giftminer.db.models.txn import Txn
from giftminer.db.models.user import User

__all__ = [
    "GiftType",
    "Referral",
    "Txn",
    "User",
    "UserGift",
]
