import json
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from giftminer.core import accrual
from giftminer.core.config import get_settings
from giftminer.core.exceptions import ClaimConflictError, ConflictError, NotFoundError
from giftminer.db.models import GiftType, User, UserGift, Txn

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_MAX_STREAK = 14

# Stand-in for a real gift provider.
MOCK_GIFT_CATALOG = [
    {"code": "plush_pepe", "title": "Plush Pepe", "iconUrl": "", "quantity": 3, "baseIncomeCents": 540},
    {"code": "gold_coin", "title": "Gold Coin", "iconUrl": "", "quantity": 1, "baseIncomeCents": 1200},
]


def _require_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def upsert_gift_type(db: Session, entry: dict) -> GiftType:
    gift_type = db.query(GiftType).filter(GiftType.code == entry["code"]).first()
    if not gift_type:
        gift_type = GiftType(
            code=entry["code"],
            max_streak=int(entry.get("maxStreak", DEFAULT_MAX_STREAK)),
        )
        db.add(gift_type)
    gift_type.title = entry["title"]
    gift_type.icon_url = entry.get("iconUrl") or ""
    gift_type.base_income_cents = int(entry["baseIncomeCents"])
    db.flush()
    return gift_type


def ensure_gift_catalog(db: Session, catalog: list[dict] | None = None) -> None:
    for entry in catalog or MOCK_GIFT_CATALOG:
        upsert_gift_type(db, entry)
    db.commit()


def _sync_once(db: Session, user_id: str, entries: list[dict]) -> None:
    for entry in entries:
        gift_type = upsert_gift_type(db, entry)
        holding = (
            db.query(UserGift)
            .filter(UserGift.user_id == user_id, UserGift.gift_type_id == gift_type.id)
            .populate_existing()
            .first()
        )
        if not holding:
            holding = UserGift(user_id=user_id, gift_type_id=gift_type.id)
            db.add(holding)
        holding.quantity = int(entry["quantity"])
    db.commit()


def sync_user_gifts(db: Session, user_id: str, catalog: list[dict] | None = None) -> None:
    """Upsert the catalog and overwrite the user's holdings with its quantities.

    Last write wins: a sync that lost a race with another sync or a claim
    re-reads the holdings and writes its quantities again.
    """
    _require_user(db, user_id)
    entries = catalog or MOCK_GIFT_CATALOG
    for attempt in range(1, settings.CLAIM_MAX_RETRIES + 1):
        try:
            _sync_once(db, user_id, entries)
        except (StaleDataError, IntegrityError):
            db.rollback()
            logger.warning("Sync conflict user=%s attempt=%d", user_id, attempt)
            continue
        logger.info("Synced %d gift types for user=%s", len(entries), user_id)
        return
    raise ConflictError("Gift sync is contended, retry later")


def list_user_gifts(db: Session, user_id: str, now: datetime | None = None) -> list[dict]:
    _require_user(db, user_id)
    now = now or accrual.utcnow()
    rows = (
        db.query(UserGift)
        .options(joinedload(UserGift.gift_type))
        .filter(UserGift.user_id == user_id)
        .order_by(UserGift.id)
        .all()
    )
    items = []
    for row in rows:
        _, claimable = accrual.project(
            now,
            row.last_claim_at,
            row.quantity,
            row.gift_type.base_income_cents,
            row.gift_type.max_streak,
        )
        items.append(
            {
                "userGiftId": row.id,
                "giftTypeId": row.gift_type_id,
                "title": row.gift_type.title,
                "quantity": row.quantity,
                "claimableCents": claimable,
            }
        )
    return items


def _claim_once(db: Session, user_id: str, gift_type_id: str, now: datetime) -> dict:
    holding = (
        db.query(UserGift)
        .options(joinedload(UserGift.gift_type, innerjoin=True))
        .filter(UserGift.user_id == user_id, UserGift.gift_type_id == gift_type_id)
        .with_for_update(of=UserGift)
        .populate_existing()
        .first()
    )
    if not holding:
        raise NotFoundError("Gift holding not found")

    bins, gained = accrual.project(
        now,
        holding.last_claim_at,
        holding.quantity,
        holding.gift_type.base_income_cents,
        holding.gift_type.max_streak,
    )
    if bins <= 0:
        db.rollback()
        return {"ok": False, "gained": 0}

    holding.last_claim_at = accrual.advance_claim_clock(holding.last_claim_at, bins, now)
    # Conditional on the version read above; raises StaleDataError if another claim won.
    db.flush()

    db.query(User).filter(User.id == user_id).update(
        {User.balance_cents: User.balance_cents + gained},
        synchronize_session=False,
    )
    db.add(
        Txn(
            user_id=user_id,
            amount_cents=gained,
            type="claim",
            meta_json=json.dumps({"giftTypeId": gift_type_id, "bins": bins}),
        )
    )
    db.commit()
    logger.info("Claimed user=%s gift_type=%s bins=%d gained=%d", user_id, gift_type_id, bins, gained)
    return {"ok": True, "gained": gained}


def claim_gift(db: Session, user_id: str, gift_type_id: str, now: datetime | None = None) -> dict:
    """Realize a holding's accrued buckets into the user's balance atomically."""
    for attempt in range(1, settings.CLAIM_MAX_RETRIES + 1):
        try:
            return _claim_once(db, user_id, gift_type_id, now or accrual.utcnow())
        except StaleDataError:
            db.rollback()
            logger.warning(
                "Claim conflict user=%s gift_type=%s attempt=%d", user_id, gift_type_id, attempt
            )
    raise ClaimConflictError()
