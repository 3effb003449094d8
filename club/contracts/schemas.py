from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ContractOut(BaseModel):
    id: int
    contract_no: str
    member_id: int
    plan_id: int
    status: str
    contract_type: str
    contract_term: str
    commitment_months: int
    notice_period_days: int
    start_date: date
    commitment_end_date: Optional[date] = None
    cooling_off_days: int
    cooling_off_end_date: date
    currency: str
    locked_membership_fee_amount: Decimal
    locked_membership_fee_tax_rate: Decimal
    locked_admin_fee_amount: Decimal
    locked_admin_fee_tax_rate: Decimal
    locked_join_fee_amount: Decimal
    locked_join_fee_tax_rate: Decimal
    early_termination_fee_type: str
    early_termination_fee_value: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime


class CancellationPreviewOut(BaseModel):
    contract_id: int
    currency: str
    within_cooling_off: bool
    within_commitment: bool
    remaining_commitment_months: int
    notice_period_days: int
    effective_date: date
    early_termination_fee: Decimal
    refund_amount: Decimal
