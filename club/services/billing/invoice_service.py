from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from club.db.models.invoices import Invoice
from club.domains.billing.enums import InvoiceLineType, InvoiceStatus, PaymentMethod
from club.domains.billing.repositories import InvoiceRepository
from club.services.billing.taxable_fee import ZERO, q2
from club.services.enrollment.preview_calculator import PreviewComputation
from club.shared.errors import ValidationError


INVOICE_DUE_DAYS = 7


@dataclass(frozen=True)
class PaymentInput:
    amount: Decimal
    method: str = PaymentMethod.CASH.value
    reference: Optional[str] = None


def format_invoice_no(prefix: str, year: int, seq: int) -> str:
    return f"{prefix}-{year}-{seq:06d}"


def invoice_status_for(grand_total: Decimal, paid: Decimal) -> InvoiceStatus:
    if paid <= 0:
        return InvoiceStatus.ISSUED
    if paid >= grand_total:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


def validate_payment(payment: PaymentInput, *, grand_total: Decimal) -> None:
    if payment.amount < 0:
        raise ValidationError(message="Payment amount must be 0 or greater.", details={"amount": str(payment.amount)})
    if payment.amount > grand_total:
        raise ValidationError(
            message="Payment amount exceeds the amount due.",
            code="payment_exceeds_total",
            details={"amount": str(payment.amount), "grand_total": str(grand_total)},
        )
    try:
        PaymentMethod(payment.method)
    except ValueError as e:
        raise ValidationError(message=f"Unknown payment method {payment.method!r}.", details={"method": payment.method}) from e


class InvoiceService:
    """Issues the enrollment invoice from a priced preview (one line per applicable fee + discount)."""

    def __init__(self, db: Session, *, repo: InvoiceRepository | None = None) -> None:
        self._db = db
        self._repo = repo or InvoiceRepository(db)

    def issue_for_enrollment(
        self,
        *,
        member_id: int,
        subscription_id: Optional[int],
        computation: PreviewComputation,
        issue_date: date,
        prefix: str,
        payment: Optional[PaymentInput] = None,
        notes: Optional[str] = None,
    ) -> Invoice:
        paid = q2(payment.amount) if payment is not None else ZERO
        status = invoice_status_for(computation.grand_total, paid)

        invoice = self._repo.create(
            invoice_no=format_invoice_no(prefix, issue_date.year, self._repo.next_sequence_value()),
            member_id=member_id,
            subscription_id=subscription_id,
            status=status.value,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=INVOICE_DUE_DAYS),
            currency=computation.currency,
            subtotal=computation.subtotal,
            vat_total=computation.vat_total,
            discount_amount=computation.discount_amount,
            grand_total=computation.grand_total,
            paid_amount=paid,
            notes=notes,
        )

        position = 0
        for fl in computation.fee_lines:
            if not fl.applicable:
                continue
            position += 1
            self._repo.add_line(
                invoice_id=invoice.id,
                position=position,
                line_type=InvoiceLineType(fl.code).value,
                description=fl.label,
                amount_net=fl.net,
                tax_rate=fl.tax_rate,
                tax_amount=fl.tax_amount,
                amount_gross=fl.gross,
            )

        if computation.discount_amount > 0:
            position += 1
            d = computation.discount
            self._repo.add_line(
                invoice_id=invoice.id,
                position=position,
                line_type=InvoiceLineType.DISCOUNT.value,
                description=f"Discount ({d.voucher_code or d.reason or d.source})" if d else "Discount",
                amount_net=-computation.discount_amount,
                tax_rate=ZERO,
                tax_amount=ZERO,
                amount_gross=-computation.discount_amount,
            )

        if payment is not None and paid > 0:
            self._repo.add_payment(
                invoice_id=invoice.id,
                amount=paid,
                method=PaymentMethod(payment.method).value,
                reference=payment.reference,
            )

        return invoice
