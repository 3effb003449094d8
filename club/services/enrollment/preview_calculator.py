from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from club.domains.plans.enums import BillingPeriod, ContractType, TerminationFeeType
from club.domains.vouchers.enums import DiscountType
from club.services.billing.taxable_fee import HUNDRED, ZERO, DecimalLike, TaxableFee, q2, to_decimal
from club.shared.errors import ValidationError


MEMBERSHIP_FEE = "membership_fee"
ADMIN_FEE = "admin_fee"
JOIN_FEE = "join_fee"

_LABELS = {
    MEMBERSHIP_FEE: "Membership fee",
    ADMIN_FEE: "Administration fee",
    JOIN_FEE: "Join fee",
}


@dataclass(frozen=True)
class PlanPricing:
    membership_fee: TaxableFee
    admin_fee: TaxableFee
    join_fee: TaxableFee
    billing_period: BillingPeriod
    duration_days: Optional[int] = None
    admin_fee_waived: bool = False

    @property
    def currency(self) -> str:
        return self.membership_fee.currency

    @classmethod
    def from_plan(cls, plan: Any) -> "PlanPricing":
        currency = plan.currency
        return cls(
            membership_fee=TaxableFee.of(plan.membership_fee_amount, currency, plan.membership_fee_tax_rate),
            admin_fee=TaxableFee.of(plan.admin_fee_amount, currency, plan.admin_fee_tax_rate),
            join_fee=TaxableFee.of(plan.join_fee_amount, currency, plan.join_fee_tax_rate),
            billing_period=BillingPeriod(plan.billing_period),
            duration_days=plan.duration_days,
            admin_fee_waived=bool(plan.admin_fee_waived),
        )

    def validate(self) -> None:
        currencies = {self.membership_fee.currency, self.admin_fee.currency, self.join_fee.currency}
        if len(currencies) != 1:
            raise ValidationError(
                message="All plan fees must use the same currency.",
                code="currency_mismatch",
                details={"currencies": sorted(currencies)},
            )
        for fee in (self.membership_fee, self.admin_fee, self.join_fee):
            fee.validate()


@dataclass(frozen=True)
class ContractTerms:
    contract_type: ContractType
    commitment_months: int
    notice_period_days: int
    cooling_off_days: int
    early_termination_fee_type: TerminationFeeType = TerminationFeeType.NONE
    early_termination_fee_value: Optional[Decimal] = None

    @classmethod
    def from_plan(cls, plan: Any) -> "ContractTerms":
        return cls(
            contract_type=ContractType(plan.contract_type),
            commitment_months=int(plan.commitment_months or 0),
            notice_period_days=int(plan.notice_period_days or 0),
            cooling_off_days=int(plan.cooling_off_days or 0),
            early_termination_fee_type=TerminationFeeType(plan.early_termination_fee_type),
            early_termination_fee_value=plan.early_termination_fee_value,
        )


@dataclass(frozen=True)
class DiscountSpec:
    """Discount to apply against the subtotal; source is "voucher" or "manual"."""

    type: DiscountType
    value: Decimal
    source: str = "manual"
    reason: Optional[str] = None
    voucher_code: Optional[str] = None

    @classmethod
    def of(
        cls,
        discount_type: str,
        value: DecimalLike,
        *,
        source: str = "manual",
        reason: Optional[str] = None,
        voucher_code: Optional[str] = None,
    ) -> "DiscountSpec":
        try:
            dtype = DiscountType(discount_type)
        except ValueError as e:
            raise ValidationError(message=f"Unknown discount type {discount_type!r}.", details={"type": discount_type}) from e
        spec = cls(
            type=dtype,
            value=to_decimal(value, field="discount_value"),
            source=source,
            reason=reason,
            voucher_code=voucher_code,
        )
        spec.validate()
        return spec

    def validate(self) -> None:
        if self.value < 0:
            raise ValidationError(message="Discount value must be 0 or greater.", details={"value": str(self.value)})
        if self.type == DiscountType.PERCENTAGE and self.value > HUNDRED:
            raise ValidationError(
                message="Percentage discount must be within 0..100.",
                details={"value": str(self.value)},
            )


@dataclass(frozen=True)
class FeeLine:
    code: str
    label: str
    net: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    gross: Decimal
    applicable: bool


@dataclass(frozen=True)
class PreviewComputation:
    currency: str
    fee_lines: tuple[FeeLine, ...]
    subtotal: Decimal
    vat_total: Decimal
    discount: Optional[DiscountSpec]
    discount_amount: Decimal
    discount_clamped: bool
    grand_total: Decimal

    @property
    def total_before_discount(self) -> Decimal:
        return q2(self.subtotal + self.vat_total)

    def line(self, code: str) -> FeeLine:
        for fl in self.fee_lines:
            if fl.code == code:
                return fl
        raise KeyError(code)


def build_fee_line(code: str, fee: TaxableFee, *, applicable: bool) -> FeeLine:
    # zero fees are never applicable; non-applicable lines are all zeros
    if not applicable or fee.is_zero():
        return FeeLine(
            code=code,
            label=_LABELS.get(code, code),
            net=ZERO,
            tax_rate=ZERO,
            tax_amount=ZERO,
            gross=ZERO,
            applicable=False,
        )
    b = fee.breakdown()
    return FeeLine(
        code=code,
        label=_LABELS.get(code, code),
        net=b.net,
        tax_rate=b.tax_rate,
        tax_amount=b.tax_amount,
        gross=b.gross,
        applicable=True,
    )


def resolve_discount_amount(discount: DiscountSpec, *, subtotal: Decimal) -> Decimal:
    if discount.type == DiscountType.PERCENTAGE:
        return q2(subtotal * discount.value / HUNDRED)
    return q2(discount.value)


def compute_preview(
    pricing: PlanPricing,
    *,
    is_first_subscription: bool,
    discount: Optional[DiscountSpec] = None,
) -> PreviewComputation:
    """Pure pricing: fee lines -> subtotal / vat -> discount -> grand total.

    grand_total = subtotal + vat_total - discount_amount, never below zero.
    """
    pricing.validate()
    if discount is not None:
        discount.validate()

    lines = (
        build_fee_line(MEMBERSHIP_FEE, pricing.membership_fee, applicable=True),
        build_fee_line(ADMIN_FEE, pricing.admin_fee, applicable=not pricing.admin_fee_waived),
        build_fee_line(JOIN_FEE, pricing.join_fee, applicable=is_first_subscription),
    )

    subtotal = q2(sum((fl.net for fl in lines if fl.applicable), ZERO))
    vat_total = q2(sum((fl.tax_amount for fl in lines if fl.applicable), ZERO))
    before_discount = q2(subtotal + vat_total)

    discount_amount = ZERO
    clamped = False
    if discount is not None:
        discount_amount = resolve_discount_amount(discount, subtotal=subtotal)
        if discount_amount > before_discount:
            discount_amount = before_discount
            clamped = True

    return PreviewComputation(
        currency=pricing.currency,
        fee_lines=lines,
        subtotal=subtotal,
        vat_total=vat_total,
        discount=discount,
        discount_amount=discount_amount,
        discount_clamped=clamped,
        grand_total=max(q2(before_discount - discount_amount), ZERO),
    )
