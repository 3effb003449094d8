import unittest
from decimal import Decimal

from club.services.billing.taxable_fee import TaxableFee
from club.services.enrollment.preview_calculator import (
    ADMIN_FEE,
    JOIN_FEE,
    MEMBERSHIP_FEE,
    DiscountSpec,
    PlanPricing,
    compute_preview,
)
from club.shared.errors import ValidationError
from tests.fakes import make_plan


def _pricing(**overrides) -> PlanPricing:
    return PlanPricing.from_plan(make_plan(**overrides))


class ComputePreviewTests(unittest.TestCase):
    def test_first_subscription_includes_join_fee(self):
        comp = compute_preview(_pricing(), is_first_subscription=True)

        self.assertEqual([fl.code for fl in comp.fee_lines], [MEMBERSHIP_FEE, ADMIN_FEE, JOIN_FEE])
        self.assertTrue(all(fl.applicable for fl in comp.fee_lines))
        self.assertEqual(comp.line(MEMBERSHIP_FEE).gross, Decimal("230.00"))
        self.assertEqual(comp.line(ADMIN_FEE).gross, Decimal("57.50"))
        self.assertEqual(comp.line(JOIN_FEE).gross, Decimal("115.00"))
        self.assertEqual(comp.subtotal, Decimal("350.00"))
        self.assertEqual(comp.vat_total, Decimal("52.50"))
        self.assertEqual(comp.discount_amount, Decimal("0.00"))
        self.assertEqual(comp.grand_total, Decimal("402.50"))
        self.assertFalse(comp.discount_clamped)
        self.assertEqual(comp.currency, "SAR")

    def test_returning_member_skips_join_fee(self):
        comp = compute_preview(_pricing(), is_first_subscription=False)

        join = comp.line(JOIN_FEE)
        self.assertFalse(join.applicable)
        self.assertEqual(join.label, "Join fee")
        self.assertEqual((join.net, join.tax_rate, join.tax_amount, join.gross), (Decimal("0"),) * 4)
        self.assertEqual(comp.subtotal, Decimal("250.00"))
        self.assertEqual(comp.vat_total, Decimal("37.50"))
        self.assertEqual(comp.grand_total, Decimal("287.50"))

    def test_waived_admin_fee(self):
        comp = compute_preview(_pricing(admin_fee_waived=True), is_first_subscription=True)

        self.assertFalse(comp.line(ADMIN_FEE).applicable)
        self.assertEqual(comp.grand_total, Decimal("345.00"))

    def test_zero_join_fee_is_not_applicable(self):
        comp = compute_preview(_pricing(join_fee_amount=Decimal("0")), is_first_subscription=True)

        self.assertFalse(comp.line(JOIN_FEE).applicable)
        self.assertEqual(comp.grand_total, Decimal("287.50"))

    def test_flat_discount(self):
        d = DiscountSpec.of("flat", "50")
        comp = compute_preview(_pricing(), is_first_subscription=True, discount=d)

        self.assertEqual(comp.discount_amount, Decimal("50.00"))
        self.assertEqual(comp.grand_total, Decimal("352.50"))

    def test_percentage_discount_applies_to_subtotal(self):
        d = DiscountSpec.of("percentage", "10")
        comp = compute_preview(_pricing(), is_first_subscription=True, discount=d)

        self.assertEqual(comp.discount_amount, Decimal("35.00"))
        self.assertEqual(comp.grand_total, Decimal("367.50"))

    def test_discount_is_clamped_to_total(self):
        d = DiscountSpec.of("flat", "1000")
        comp = compute_preview(_pricing(), is_first_subscription=True, discount=d)

        self.assertEqual(comp.discount_amount, Decimal("402.50"))
        self.assertEqual(comp.grand_total, Decimal("0.00"))
        self.assertTrue(comp.discount_clamped)

    def test_identical_inputs_give_identical_output(self):
        d = DiscountSpec.of("percentage", "12.5")
        a = compute_preview(_pricing(), is_first_subscription=True, discount=d)
        b = compute_preview(_pricing(), is_first_subscription=True, discount=d)
        self.assertEqual(a, b)

    def test_currency_mismatch(self):
        pricing = PlanPricing(
            membership_fee=TaxableFee.of("200", "SAR", "15"),
            admin_fee=TaxableFee.of("50", "USD", "15"),
            join_fee=TaxableFee.of("100", "SAR", "15"),
            billing_period=_pricing().billing_period,
        )
        with self.assertRaises(ValidationError) as ctx:
            compute_preview(pricing, is_first_subscription=True)
        self.assertEqual(ctx.exception.code, "currency_mismatch")


class DiscountSpecTests(unittest.TestCase):
    def test_rejects_bad_values(self):
        with self.assertRaises(ValidationError):
            DiscountSpec.of("percentage", "120")
        with self.assertRaises(ValidationError):
            DiscountSpec.of("flat", "-1")
        with self.assertRaises(ValidationError):
            DiscountSpec.of("bogus", "10")

    def test_hundred_percent_is_allowed(self):
        d = DiscountSpec.of("percentage", "100")
        comp = compute_preview(_pricing(), is_first_subscription=False, discount=d)
        self.assertEqual(comp.discount_amount, Decimal("250.00"))
        self.assertEqual(comp.grand_total, Decimal("37.50"))


if __name__ == "__main__":
    unittest.main()
