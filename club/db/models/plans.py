# club/db/models/plans.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, DateTime, Identity, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import ENUM, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from club.db.models.base import Base


SCHEMA = Base.metadata.schema or "club"


# NOTE:
#  - Postgres ENUM types are created by Alembic migrations.
#  - We bind to existing types with create_type=False.
BillingPeriodDb = ENUM(
    "daily",
    "weekly",
    "biweekly",
    "monthly",
    "quarterly",
    "semi_annual",
    "yearly",
    "one_time",
    name="billing_period",
    schema=SCHEMA,
    create_type=False,
)

ContractTypeDb = ENUM(
    "month_to_month",
    "fixed_term",
    name="contract_type",
    schema=SCHEMA,
    create_type=False,
)

TerminationFeeTypeDb = ENUM(
    "none",
    "flat",
    "remaining_months",
    "percentage",
    name="termination_fee_type",
    schema=SCHEMA,
    create_type=False,
)


class MembershipPlan(Base):
    """Plan catalogue: pricing terms (three taxable fees) + contract policy.

    All three fees share the plan currency.
    """

    __tablename__ = "membership_plans"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"), index=True)

    available_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    available_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    minimum_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    maximum_age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Pricing ---
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'SAR'"))
    membership_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default=text("0.00"))
    membership_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default=text("15.00"))
    admin_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default=text("0.00"))
    admin_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default=text("15.00"))
    admin_fee_waived: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    join_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default=text("0.00"))
    join_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default=text("15.00"))

    billing_period: Mapped[str] = mapped_column(BillingPeriodDb, nullable=False, server_default=text("'monthly'"))
    duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # --- Contract policy ---
    contract_type: Mapped[str] = mapped_column(ContractTypeDb, nullable=False, server_default=text("'month_to_month'"))
    # list of contract_term values, e.g. ["monthly", "annual"]
    supported_terms: Mapped[list] = mapped_column(JSONB, nullable=False, server_default=text("'[\"monthly\"]'::jsonb"))
    commitment_months: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    notice_period_days: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("30"))
    cooling_off_days: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("7"))
    early_termination_fee_type: Mapped[str] = mapped_column(
        TerminationFeeTypeDb, nullable=False, server_default=text("'none'")
    )
    early_termination_fee_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
