from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from club.db.models.base import Base
from club.db.models.invoices import Invoice, InvoiceLine, InvoicePayment


SCHEMA = Base.metadata.schema or "club"


class InvoiceRepoError(RuntimeError):
    pass


class InvoiceRepository:
    """Repo for invoices + lines + payments."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get(self, invoice_id: int) -> Invoice | None:
        return self._db.get(Invoice, invoice_id)

    def list_lines(self, invoice_id: int) -> list[InvoiceLine]:
        stmt = sa.select(InvoiceLine).where(InvoiceLine.invoice_id == invoice_id).order_by(InvoiceLine.position.asc())
        return list(self._db.execute(stmt).scalars().all())

    def next_sequence_value(self) -> int:
        return int(self._db.execute(sa.text(f"SELECT nextval('{SCHEMA}.invoice_no_seq')")).scalar_one())

    def create(
        self,
        *,
        invoice_no: str,
        member_id: int,
        subscription_id: Optional[int],
        status: str,
        issue_date: date,
        due_date: date,
        currency: str,
        subtotal: Decimal,
        vat_total: Decimal,
        discount_amount: Decimal,
        grand_total: Decimal,
        paid_amount: Decimal,
        notes: Optional[str] = None,
    ) -> Invoice:
        obj = Invoice(
            invoice_no=invoice_no,
            member_id=member_id,
            subscription_id=subscription_id,
            status=status,
            issue_date=issue_date,
            due_date=due_date,
            currency=currency,
            subtotal=subtotal,
            vat_total=vat_total,
            discount_amount=discount_amount,
            grand_total=grand_total,
            paid_amount=paid_amount,
            notes=notes,
        )
        self._db.add(obj)
        try:
            self._db.flush()
        except IntegrityError as e:
            raise InvoiceRepoError(f"Invoice create failed: {e}") from e
        return obj

    def add_line(
        self,
        *,
        invoice_id: int,
        position: int,
        line_type: str,
        description: str,
        amount_net: Decimal,
        tax_rate: Decimal,
        tax_amount: Decimal,
        amount_gross: Decimal,
    ) -> InvoiceLine:
        line = InvoiceLine(
            invoice_id=invoice_id,
            position=position,
            line_type=line_type,
            description=description,
            amount_net=amount_net,
            tax_rate=tax_rate,
            tax_amount=tax_amount,
            amount_gross=amount_gross,
        )
        self._db.add(line)
        self._db.flush()
        return line

    def add_payment(
        self,
        *,
        invoice_id: int,
        amount: Decimal,
        method: str,
        reference: Optional[str] = None,
    ) -> InvoicePayment:
        p = InvoicePayment(invoice_id=invoice_id, amount=amount, method=method, reference=reference)
        self._db.add(p)
        self._db.flush()
        return p
