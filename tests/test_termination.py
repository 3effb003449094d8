import unittest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from club.services.contracts.termination import preview_cancellation


def _contract(**overrides):
    values = dict(
        id=301,
        currency="SAR",
        start_date=date(2026, 3, 1),
        cooling_off_end_date=date(2026, 3, 8),
        commitment_end_date=date(2027, 3, 1),
        notice_period_days=30,
        locked_membership_fee_amount=Decimal("200.00"),
        locked_membership_fee_tax_rate=Decimal("15.00"),
        locked_join_fee_amount=Decimal("100.00"),
        locked_join_fee_tax_rate=Decimal("15.00"),
        early_termination_fee_type="remaining_months",
        early_termination_fee_value=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class PreviewCancellationTests(unittest.TestCase):
    def test_cooling_off_refunds_join_and_membership(self):
        p = preview_cancellation(_contract(), today=date(2026, 3, 8))

        self.assertTrue(p.within_cooling_off)
        self.assertEqual(p.effective_date, date(2026, 3, 8))
        self.assertEqual(p.early_termination_fee, Decimal("0.00"))
        self.assertEqual(p.refund_amount, Decimal("345.00"))

    def test_remaining_months_fee(self):
        p = preview_cancellation(_contract(), today=date(2026, 6, 1))

        self.assertFalse(p.within_cooling_off)
        self.assertTrue(p.within_commitment)
        self.assertEqual(p.remaining_commitment_months, 9)
        self.assertEqual(p.early_termination_fee, Decimal("2070.00"))
        self.assertEqual(p.refund_amount, Decimal("0.00"))
        self.assertEqual(p.effective_date, date(2026, 6, 1) + timedelta(days=30))

    def test_percentage_fee(self):
        c = _contract(early_termination_fee_type="percentage", early_termination_fee_value=Decimal("50"))
        p = preview_cancellation(c, today=date(2026, 6, 1))
        self.assertEqual(p.early_termination_fee, Decimal("1035.00"))

    def test_flat_fee(self):
        c = _contract(early_termination_fee_type="flat", early_termination_fee_value=Decimal("500"))
        p = preview_cancellation(c, today=date(2026, 6, 1))
        self.assertEqual(p.early_termination_fee, Decimal("500.00"))

    def test_no_fee_type(self):
        c = _contract(early_termination_fee_type="none")
        p = preview_cancellation(c, today=date(2026, 6, 1))
        self.assertEqual(p.early_termination_fee, Decimal("0.00"))

    def test_after_commitment_has_no_fee(self):
        p = preview_cancellation(_contract(), today=date(2027, 3, 1))

        self.assertFalse(p.within_commitment)
        self.assertEqual(p.remaining_commitment_months, 0)
        self.assertEqual(p.early_termination_fee, Decimal("0.00"))
        self.assertEqual(p.effective_date, date(2027, 3, 31))

    def test_month_to_month_contract(self):
        p = preview_cancellation(_contract(commitment_end_date=None), today=date(2026, 6, 1))
        self.assertFalse(p.within_commitment)
        self.assertEqual(p.early_termination_fee, Decimal("0.00"))


if __name__ == "__main__":
    unittest.main()
