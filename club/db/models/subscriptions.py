# club/db/models/subscriptions.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, DateTime, ForeignKey, Identity, Index, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from club.db.models.base import Base


SCHEMA = Base.metadata.schema or "club"


SubscriptionStatusDb = ENUM(
    "pending_payment",
    "active",
    "frozen",
    "cancelled",
    "expired",
    name="subscription_status",
    schema=SCHEMA,
    create_type=False,
)

DiscountTypeDb = ENUM(
    "flat",
    "percentage",
    name="discount_type",
    schema=SCHEMA,
    create_type=False,
)


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        # one active subscription per member; concurrent enrollments race on this index
        Index(
            "uq_subscriptions_one_active_per_member",
            "member_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    member_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey(f"{SCHEMA}.members.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    plan_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey(f"{SCHEMA}.membership_plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    contract_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey(f"{SCHEMA}.membership_contracts.id", ondelete="SET NULL"),
        nullable=True,
    )

    status: Mapped[str] = mapped_column(SubscriptionStatusDb, nullable=False, server_default=text("'pending_payment'"), index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'SAR'"))
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # --- Discount snapshot (voucher or staff discount) ---
    discount_type: Mapped[str | None] = mapped_column(DiscountTypeDb, nullable=True)
    discount_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    discount_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    voucher_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    final_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    staff_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    referred_by_member_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey(f"{SCHEMA}.members.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
