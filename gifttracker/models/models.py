from datetime import datetime, timezone
from enum import Enum as StrEnumBase
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gifttracker.db.session import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GiftStatusEnum(str, StrEnumBase):
    AVAILABLE = "available"
    CLAIMED = "claimed"
    SANTA = "santa"


class GiftTypeEnum(str, StrEnumBase):
    ITEM = "item"
    CASH = "cash"
    GIFT_CARD = "gift_card"


class ReturnStatusEnum(str, StrEnumBase):
    NONE = "NONE"
    TO_RETURN = "TO_RETURN"
    RETURNED = "RETURNED"


class TransactionTypeEnum(str, StrEnumBase):
    IOU = "iou"
    CASH = "cash"
    CHECK = "check"
    BANK_TRANSFER = "bank_transfer"
    TRADE = "trade"


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)


class Gift(Base):
    __tablename__ = "gifts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    gift_type: Mapped[str] = mapped_column(String(20), default=GiftTypeEnum.ITEM.value)
    is_santa: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(20), default=GiftStatusEnum.AVAILABLE.value, index=True)
    purchaser_id: Mapped[str | None] = mapped_column(ForeignKey("profiles.id"), nullable=True, index=True)
    claimed_by_id: Mapped[str | None] = mapped_column(ForeignKey("profiles.id"), nullable=True, index=True)
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    return_status: Mapped[str] = mapped_column(String(20), default=ReturnStatusEnum.NONE.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_now,
        onupdate=_now,
    )

    recipient_links: Mapped[list["GiftRecipient"]] = relationship(
        back_populates="gift",
        cascade="all, delete-orphan",
    )
    tags: Mapped[list["GiftTag"]] = relationship(
        back_populates="gift",
        cascade="all, delete-orphan",
        order_by="GiftTag.id",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_gifts_price_non_negative"),
    )

    @property
    def recipient_ids(self) -> list[str]:
        return [link.profile_id for link in self.recipient_links]

    @property
    def tag_names(self) -> list[str]:
        return [tag.tag for tag in self.tags]


class GiftRecipient(Base):
    __tablename__ = "gift_recipients"

    gift_id: Mapped[str] = mapped_column(ForeignKey("gifts.id", ondelete="CASCADE"), primary_key=True)
    profile_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True, index=True)

    gift: Mapped[Gift] = relationship(back_populates="recipient_links")
    profile: Mapped[Profile] = relationship()


class GiftTag(Base):
    __tablename__ = "gift_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gift_id: Mapped[str] = mapped_column(ForeignKey("gifts.id", ondelete="CASCADE"), index=True)
    tag: Mapped[str] = mapped_column(String(120), nullable=False)

    gift: Mapped[Gift] = relationship(back_populates="tags")


class Budget(Base):
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    gifter_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    recipient_id: Mapped[str] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), index=True)
    limit_amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        CheckConstraint("limit_amount >= 0", name="ck_budgets_limit_non_negative"),
    )


class Reconciliation(Base):
    """Append-only payment log. Profile ids are kept without foreign keys so entries outlive profiles."""

    __tablename__ = "reconciliations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    gifter_id: Mapped[str] = mapped_column(String(36), index=True)
    recipient_id: Mapped[str] = mapped_column(String(36), index=True)
    purchaser_id: Mapped[str] = mapped_column(String(36), index=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(20), default=TransactionTypeEnum.IOU.value)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_reconciliations_amount_non_negative"),
    )
