import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giftminer.core.config import get_settings
from giftminer.core.exceptions import AuthError
from giftminer.core.telegram import verify_init_data
from giftminer.db.models import Referral, User
from giftminer.schemas.auth import AuthUser, TelegramUser

settings = get_settings()
logger = logging.getLogger(__name__)


def serialize_user(user: User) -> AuthUser:
    return AuthUser(
        id=user.id,
        tgId=user.tg_id,
        username=user.username,
        firstName=user.first_name,
        lastName=user.last_name,
        languageCode=user.language_code,
        balanceCents=int(user.balance_cents or 0),
        createdAt=user.created_at.isoformat() if user.created_at else None,
    )


def upsert_telegram_user(db: Session, tg_user: TelegramUser) -> User:
    """Return the user for this Telegram id, creating it on first login.

    Existing rows are left untouched; a concurrent first login losing the
    unique race re-reads the winner's row.
    """
    user = db.query(User).filter(User.tg_id == tg_user.id).first()
    if user:
        return user

    user = User(
        tg_id=tg_user.id,
        username=tg_user.username,
        first_name=tg_user.first_name,
        last_name=tg_user.last_name,
        language_code=tg_user.language_code,
        balance_cents=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        user = db.query(User).filter(User.tg_id == tg_user.id).first()
        if not user:
            raise
        return user
    db.refresh(user)
    logger.info("Created user id=%s tg_id=%s", user.id, user.tg_id)
    return user


def record_referral(db: Session, invitee: User, inviter_id: str | None) -> Referral | None:
    if not inviter_id or inviter_id == invitee.id:
        return None

    inviter = db.query(User).filter(User.id == inviter_id).first()
    if not inviter:
        logger.info("Ignoring referral from unknown inviter=%s invitee=%s", inviter_id, invitee.id)
        return None

    referral = Referral(inviter_id=inviter.id, invitee_id=invitee.id)
    db.add(referral)
    try:
        db.commit()
    except IntegrityError:
        # Invitee already has an inviter.
        db.rollback()
        return None
    db.refresh(referral)
    logger.info("Recorded referral inviter=%s invitee=%s", inviter.id, invitee.id)
    return referral


def authenticate_telegram(db: Session, init_data_raw: str | None, ref: str | None = None) -> AuthUser:
    try:
        tg_user = verify_init_data(
            init_data_raw,
            settings.bot_token,
            max_age_seconds=settings.INIT_DATA_MAX_AGE_SECONDS,
        )
    except AuthError as exc:
        logger.warning("Rejected Telegram init data: %s", exc.code)
        raise

    user = upsert_telegram_user(db, tg_user)
    record_referral(db, user, ref)
    return serialize_user(user)
