import unittest
from datetime import date
from decimal import Decimal

from club.services.enrollment.enrollment_preview_service import (
    EnrollmentPreviewInput,
    EnrollmentPreviewService,
    ManualDiscountInput,
)
from club.shared.errors import ConflictError, NotFoundError, ValidationError
from tests.fakes import (
    FakeMemberRepo,
    FakePlanRepo,
    FakeSession,
    FakeStore,
    FakeSubscriptionRepo,
    FakeVoucherRepo,
    make_member,
    make_plan,
    make_voucher,
)


AS_OF = date(2026, 3, 1)


class EnrollmentPreviewServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = FakeStore()
        self.plans = [make_plan(), make_plan(id=2, name="Old", is_active=False)]
        self.members = [make_member(), make_member(id=8, email="new@example.com")]
        self.vouchers = [make_voucher()]
        self.sub_counts = {7: 2}
        self.redeemed = ()

    def _svc(self) -> EnrollmentPreviewService:
        return EnrollmentPreviewService(
            FakeSession(self.store),
            plans=FakePlanRepo(*self.plans),
            members=FakeMemberRepo(self.store, *self.members),
            subscriptions=FakeSubscriptionRepo(self.store, counts=self.sub_counts),
            vouchers=FakeVoucherRepo(self.store, *self.vouchers, redeemed=self.redeemed),
        )

    def _input(self, **overrides) -> EnrollmentPreviewInput:
        values = dict(plan_id=1, contract_term="monthly", as_of=AS_OF)
        values.update(overrides)
        return EnrollmentPreviewInput(**values)

    def test_new_member_is_first_subscription(self):
        p = self._svc().preview(self._input())

        self.assertTrue(p.is_first_subscription)
        self.assertEqual(p.plan_name, "Gold")
        self.assertEqual(p.subtotal, Decimal("350.00"))
        self.assertEqual(p.vat_total, Decimal("52.50"))
        self.assertEqual(p.grand_total, Decimal("402.50"))
        self.assertIsNone(p.discount_source)

    def test_existing_member_without_history_pays_join_fee(self):
        p = self._svc().preview(self._input(existing_member_id=8))
        self.assertTrue(p.is_first_subscription)
        self.assertEqual(p.grand_total, Decimal("402.50"))

    def test_existing_member_with_history_skips_join_fee(self):
        p = self._svc().preview(self._input(existing_member_id=7))
        self.assertFalse(p.is_first_subscription)
        self.assertEqual(p.grand_total, Decimal("287.50"))

    def test_contract_metadata_comes_from_plan(self):
        p = self._svc().preview(self._input(contract_term="annual"))

        self.assertEqual(p.contract_term, "annual")
        self.assertEqual(p.contract_type, "fixed_term")
        self.assertEqual(p.billing_period, "monthly")
        self.assertEqual(p.commitment_months, 12)
        self.assertEqual(p.cooling_off_days, 7)
        self.assertEqual(p.notice_period_days, 30)
        self.assertEqual(p.early_termination_fee_type, "remaining_months")

    def test_unknown_plan(self):
        with self.assertRaises(NotFoundError) as ctx:
            self._svc().preview(self._input(plan_id=99))
        self.assertEqual(ctx.exception.code, "plan_not_found")

    def test_inactive_plan(self):
        with self.assertRaises(NotFoundError) as ctx:
            self._svc().preview(self._input(plan_id=2))
        self.assertEqual(ctx.exception.code, "plan_inactive")

    def test_unknown_member(self):
        with self.assertRaises(NotFoundError) as ctx:
            self._svc().preview(self._input(existing_member_id=404))
        self.assertEqual(ctx.exception.code, "member_not_found")

    def test_contract_term_errors(self):
        with self.assertRaises(ValidationError) as ctx:
            self._svc().preview(self._input(contract_term="weekly"))
        self.assertEqual(ctx.exception.code, "invalid_contract_term")

        with self.assertRaises(ValidationError) as ctx:
            self._svc().preview(self._input(contract_term="quarterly"))
        self.assertEqual(ctx.exception.code, "contract_term_not_supported")

    def test_voucher_applied(self):
        p = self._svc().preview(self._input(voucher_code="welcome20"))

        self.assertEqual(p.discount_source, "voucher")
        self.assertEqual(p.discount_type, "percentage")
        self.assertEqual(p.voucher_code, "WELCOME20")
        self.assertEqual(p.discount_amount, Decimal("70.00"))
        self.assertEqual(p.grand_total, Decimal("332.50"))

    def test_manual_discount(self):
        p = self._svc().preview(self._input(discount=ManualDiscountInput(type="flat", value=Decimal("50"), reason="staff")))

        self.assertEqual(p.discount_source, "manual")
        self.assertEqual(p.grand_total, Decimal("352.50"))

    def test_voucher_and_manual_discount_conflict(self):
        with self.assertRaises(ValidationError) as ctx:
            self._svc().preview(
                self._input(voucher_code="WELCOME20", discount=ManualDiscountInput(type="flat", value=Decimal("5")))
            )
        self.assertEqual(ctx.exception.code, "discount_conflict")

    def test_unknown_voucher(self):
        with self.assertRaises(NotFoundError) as ctx:
            self._svc().preview(self._input(voucher_code="NOPE"))
        self.assertEqual(ctx.exception.code, "voucher_not_found")

    def test_voucher_rejections(self):
        cases = [
            (dict(is_active=False), "voucher_inactive"),
            (dict(valid_from=date(2026, 4, 1)), "voucher_not_yet_valid"),
            (dict(valid_until=date(2026, 2, 28)), "voucher_expired"),
            (dict(max_redemptions=3, redemption_count=3), "voucher_exhausted"),
            (dict(plan_id=2), "voucher_not_applicable"),
        ]
        for overrides, code in cases:
            with self.subTest(code=code):
                self.vouchers = [make_voucher(**overrides)]
                with self.assertRaises(ConflictError) as ctx:
                    self._svc().preview(self._input(voucher_code="WELCOME20"))
                self.assertEqual(ctx.exception.code, code)

    def test_voucher_valid_on_boundary_days(self):
        self.vouchers = [make_voucher(valid_from=AS_OF, valid_until=AS_OF)]
        p = self._svc().preview(self._input(voucher_code="WELCOME20"))
        self.assertEqual(p.discount_amount, Decimal("70.00"))

    def test_voucher_already_used_by_member(self):
        self.redeemed = ((5, 7),)
        with self.assertRaises(ConflictError) as ctx:
            self._svc().preview(self._input(voucher_code="WELCOME20", existing_member_id=7))
        self.assertEqual(ctx.exception.code, "voucher_already_used")

    def test_preview_writes_nothing_and_is_repeatable(self):
        svc = self._svc()
        a = svc.preview(self._input(existing_member_id=7, voucher_code="WELCOME20"))
        b = svc.preview(self._input(existing_member_id=7, voucher_code="WELCOME20"))

        self.assertEqual(a, b)
        self.assertEqual(self.store.pending, [])
        self.assertEqual(self.store.committed, [])


if __name__ == "__main__":
    unittest.main()
