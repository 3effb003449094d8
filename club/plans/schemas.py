from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PlanIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    description: Optional[str] = None
    is_active: bool = True
    available_from: Optional[date] = None
    available_until: Optional[date] = None
    minimum_age: Optional[int] = None
    maximum_age: Optional[int] = None

    currency: str = Field(default="SAR", min_length=3, max_length=3)
    membership_fee_amount: Decimal
    membership_fee_tax_rate: Decimal
    admin_fee_amount: Decimal = Decimal("0.00")
    admin_fee_tax_rate: Decimal = Decimal("0.00")
    admin_fee_waived: bool = False
    join_fee_amount: Decimal = Decimal("0.00")
    join_fee_tax_rate: Decimal = Decimal("0.00")
    billing_period: str = Field(default="monthly", description="daily|weekly|biweekly|monthly|quarterly|semi_annual|yearly|one_time")
    duration_days: Optional[int] = None

    contract_type: str = Field(default="month_to_month", description="month_to_month|fixed_term")
    supported_terms: list[str] = Field(default_factory=lambda: ["monthly"])
    commitment_months: int = 0
    notice_period_days: int = 30
    cooling_off_days: int = 7
    early_termination_fee_type: str = Field(default="none", description="none|flat|remaining_months|percentage")
    early_termination_fee_value: Optional[Decimal] = None


class PlanOut(PlanIn):
    id: int
    created_at: datetime
    updated_at: datetime
