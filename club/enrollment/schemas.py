from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class DiscountIn(BaseModel):
    type: str = Field(..., description="flat|percentage")
    value: Decimal = Field(..., ge=0)
    reason: Optional[str] = Field(default=None, max_length=255)


class EnrollmentPreviewIn(BaseModel):
    plan_id: int = Field(..., ge=1)
    contract_term: str = Field(..., description="monthly|quarterly|semi_annual|annual")
    voucher_code: Optional[str] = Field(default=None, max_length=64)
    discount: Optional[DiscountIn] = None
    existing_member_id: Optional[int] = Field(default=None, ge=1)


class FeeLineOut(BaseModel):
    code: str
    label: str
    net: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    gross: Decimal
    applicable: bool


class EnrollmentPreviewOut(BaseModel):
    plan_id: int
    plan_name: str
    currency: str
    contract_term: str
    contract_type: str
    billing_period: str
    duration_days: Optional[int] = None
    is_first_subscription: bool

    fee_lines: list[FeeLineOut]
    subtotal: Decimal
    vat_total: Decimal
    discount_amount: Decimal
    discount_type: Optional[str] = None
    discount_source: Optional[str] = None
    voucher_code: Optional[str] = None
    discount_clamped: bool
    grand_total: Decimal

    commitment_months: int
    cooling_off_days: int
    notice_period_days: int
    early_termination_fee_type: str
    early_termination_fee_value: Optional[Decimal] = None


class NewMemberIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=80)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(default=None, description="male|female")
    national_id: Optional[str] = Field(default=None, max_length=32)


class PaymentIn(BaseModel):
    amount: Decimal = Field(..., ge=0)
    method: str = Field(default="cash", description="cash|card|bank_transfer|online")
    reference: Optional[str] = Field(default=None, max_length=128)


class EnrollmentIn(EnrollmentPreviewIn):
    new_member: Optional[NewMemberIn] = None
    start_date: Optional[date] = None
    auto_renew: bool = False
    create_contract: bool = True
    create_invoice: bool = True
    payment: Optional[PaymentIn] = None
    staff_notes: Optional[str] = None
    referred_by_member_id: Optional[int] = Field(default=None, ge=1)


class EnrollmentOut(BaseModel):
    member_id: int
    member_created: bool
    subscription_id: int
    subscription_status: str
    start_date: date
    end_date: date
    contract_id: Optional[int] = None
    contract_no: Optional[str] = None
    invoice_id: Optional[int] = None
    invoice_no: Optional[str] = None
    invoice_status: Optional[str] = None
    warnings: list[str] = []
    preview: EnrollmentPreviewOut
