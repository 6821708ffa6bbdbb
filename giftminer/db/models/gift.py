import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from giftminer.core.accrual import utcnow
from giftminer.db.base import Base


class GiftType(Base):
    __tablename__ = "gift_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    icon_url: Mapped[str] = mapped_column(String(512), default="")
    # Income per 12h bucket, in cents.
    base_income_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class UserGift(Base):
    __tablename__ = "user_gifts"
    __table_args__ = (UniqueConstraint("user_id", "gift_type_id", name="uq_user_gifts_user_gift_type"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    gift_type_id: Mapped[str] = mapped_column(String(36), ForeignKey("gift_types.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_claim_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    user = relationship("User", back_populates="gifts")
    gift_type = relationship("GiftType")

    __mapper_args__ = {"version_id_col": version}
