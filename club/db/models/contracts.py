# club/db/models/contracts.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Identity, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from club.db.models.base import Base
from club.db.models.plans import ContractTypeDb, TerminationFeeTypeDb


SCHEMA = Base.metadata.schema or "club"


ContractTermDb = ENUM(
    "monthly",
    "quarterly",
    "semi_annual",
    "annual",
    name="contract_term",
    schema=SCHEMA,
    create_type=False,
)

ContractStatusDb = ENUM(
    "pending_signature",
    "active",
    "in_notice_period",
    "cancelled",
    "voided",
    "expired",
    name="contract_status",
    schema=SCHEMA,
    create_type=False,
)


class MembershipContract(Base):
    """Contract terms snapshot taken at enrollment (fees locked at that moment)."""

    __tablename__ = "membership_contracts"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    contract_no: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

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
    )

    status: Mapped[str] = mapped_column(ContractStatusDb, nullable=False, server_default=text("'pending_signature'"))

    contract_type: Mapped[str] = mapped_column(ContractTypeDb, nullable=False)
    contract_term: Mapped[str] = mapped_column(ContractTermDb, nullable=False)
    commitment_months: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    notice_period_days: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("30"))

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    commitment_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cooling_off_days: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("7"))
    cooling_off_end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # --- Locked pricing (net amounts + tax rates, plan currency) ---
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'SAR'"))
    locked_membership_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    locked_membership_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    locked_admin_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default=text("0.00"))
    locked_admin_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default=text("0.00"))
    locked_join_fee_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, server_default=text("0.00"))
    locked_join_fee_tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default=text("0.00"))

    early_termination_fee_type: Mapped[str] = mapped_column(TerminationFeeTypeDb, nullable=False, server_default=text("'none'"))
    early_termination_fee_value: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
