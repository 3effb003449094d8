import unittest
from datetime import date
from decimal import Decimal

from club.services.billing.invoice_service import (
    InvoiceService,
    PaymentInput,
    invoice_status_for,
    validate_payment,
)
from club.services.enrollment.preview_calculator import DiscountSpec, PlanPricing, compute_preview
from club.shared.errors import ValidationError
from tests.fakes import FakeInvoiceRepo, FakeSession, FakeStore, make_plan


class InvoiceStatusTests(unittest.TestCase):
    def test_status_from_paid_amount(self):
        total = Decimal("402.50")
        self.assertEqual(invoice_status_for(total, Decimal("0")), "issued")
        self.assertEqual(invoice_status_for(total, Decimal("100")), "partially_paid")
        self.assertEqual(invoice_status_for(total, total), "paid")

    def test_validate_payment(self):
        total = Decimal("100.00")
        validate_payment(PaymentInput(amount=Decimal("100.00")), grand_total=total)
        with self.assertRaises(ValidationError):
            validate_payment(PaymentInput(amount=Decimal("-1")), grand_total=total)
        with self.assertRaises(ValidationError) as ctx:
            validate_payment(PaymentInput(amount=Decimal("100.01")), grand_total=total)
        self.assertEqual(ctx.exception.code, "payment_exceeds_total")
        with self.assertRaises(ValidationError):
            validate_payment(PaymentInput(amount=Decimal("1"), method="cheque"), grand_total=total)


class IssueForEnrollmentTests(unittest.TestCase):
    def test_lines_discount_and_payment(self):
        comp = compute_preview(
            PlanPricing.from_plan(make_plan()),
            is_first_subscription=True,
            discount=DiscountSpec.of("flat", "50", source="voucher", voucher_code="SPRING"),
        )
        store = FakeStore()
        repo = FakeInvoiceRepo(store)

        invoice = InvoiceService(FakeSession(store), repo=repo).issue_for_enrollment(
            member_id=7,
            subscription_id=201,
            computation=comp,
            issue_date=date(2026, 3, 1),
            prefix="INV",
            payment=PaymentInput(amount=Decimal("352.50"), method="card", reference="TX-1"),
        )

        self.assertEqual(invoice.invoice_no, "INV-2026-000001")
        self.assertEqual(invoice.status, "paid")
        self.assertEqual(invoice.due_date, date(2026, 3, 8))
        self.assertEqual(invoice.grand_total, Decimal("352.50"))
        self.assertEqual([ln.position for ln in repo.lines], [1, 2, 3, 4])
        self.assertEqual(repo.lines[-1].description, "Discount (SPRING)")
        self.assertEqual(repo.lines[-1].amount_net, Decimal("-50.00"))
        self.assertEqual(sum(ln.amount_gross for ln in repo.lines), invoice.grand_total)
        self.assertEqual(repo.payments[0].method, "card")
        self.assertEqual(repo.payments[0].reference, "TX-1")

    def test_zero_payment_records_nothing(self):
        comp = compute_preview(PlanPricing.from_plan(make_plan()), is_first_subscription=False)
        store = FakeStore()
        repo = FakeInvoiceRepo(store)

        invoice = InvoiceService(FakeSession(store), repo=repo).issue_for_enrollment(
            member_id=7,
            subscription_id=None,
            computation=comp,
            issue_date=date(2026, 3, 1),
            prefix="INV",
            payment=PaymentInput(amount=Decimal("0")),
        )

        self.assertEqual(invoice.status, "issued")
        self.assertEqual(repo.payments, [])
        self.assertEqual(len(repo.lines), 2)


if __name__ == "__main__":
    unittest.main()
