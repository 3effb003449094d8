from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from club.shared.errors import ValidationError


DecimalLike = Union[Decimal, int, str]

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def q2(amount: Decimal) -> Decimal:
    """Rounding policy for every monetary value: half-up to 2 decimal places.

    Fixed here so totals are reproducible across clients (e.g. 1.515 -> 1.52).
    """
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_decimal(value: DecimalLike, *, field: str) -> Decimal:
    # floats are rejected on purpose: Decimal(0.1) is not 0.1
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            message=f"{field} must be a decimal value, got {type(value).__name__}.",
            details={"field": field},
        )
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(message=f"{field} is not a valid decimal: {value!r}.", details={"field": field}) from e
    if not d.is_finite():
        raise ValidationError(message=f"{field} must be finite.", details={"field": field})
    return d


def validate_amount_and_rate(amount: Decimal, tax_rate: Decimal) -> None:
    if amount < 0:
        raise ValidationError(
            message="Amount must be 0 or greater.",
            details={"amount": str(amount)},
        )
    # currency precision: at most 2 decimals, so net == amount
    if amount != q2(amount):
        raise ValidationError(
            message="Amount must have at most 2 decimal places.",
            details={"amount": str(amount)},
        )
    if tax_rate < 0 or tax_rate > HUNDRED:
        raise ValidationError(
            message="Tax rate must be within 0..100.",
            details={"tax_rate": str(tax_rate)},
        )


def normalize_currency(currency: str) -> str:
    c = (currency or "").strip().upper()
    if len(c) != 3 or not c.isalpha():
        raise ValidationError(message=f"Currency must be a 3-letter code, got {currency!r}.", details={"currency": currency})
    return c


@dataclass(frozen=True)
class TaxBreakdown:
    net: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    gross: Decimal


def compute_tax(amount: DecimalLike, tax_rate: DecimalLike) -> TaxBreakdown:
    """tax = round_half_up(amount * rate / 100, 2); gross = amount + tax."""
    a = to_decimal(amount, field="amount")
    r = to_decimal(tax_rate, field="tax_rate")
    validate_amount_and_rate(a, r)

    tax = q2(a * r / HUNDRED)
    return TaxBreakdown(net=q2(a), tax_rate=r, tax_amount=tax, gross=q2(a + tax))


@dataclass(frozen=True)
class TaxableFee:
    amount: Decimal
    currency: str
    tax_rate: Decimal

    @classmethod
    def of(cls, amount: DecimalLike, currency: str, tax_rate: DecimalLike) -> "TaxableFee":
        fee = cls(
            amount=to_decimal(amount, field="amount"),
            currency=normalize_currency(currency),
            tax_rate=to_decimal(tax_rate, field="tax_rate"),
        )
        fee.validate()
        return fee

    @classmethod
    def zero(cls, currency: str, tax_rate: DecimalLike = ZERO) -> "TaxableFee":
        return cls.of(ZERO, currency, tax_rate)

    def validate(self) -> None:
        validate_amount_and_rate(self.amount, self.tax_rate)

    def is_zero(self) -> bool:
        return self.amount == 0

    def breakdown(self) -> TaxBreakdown:
        return compute_tax(self.amount, self.tax_rate)

    def tax_amount(self) -> Decimal:
        return self.breakdown().tax_amount

    def gross_amount(self) -> Decimal:
        return self.breakdown().gross
