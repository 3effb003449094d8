import unittest
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from club.db.models.vouchers import Voucher, VoucherRedemption
from club.domains.subscriptions.repositories import (
    ActiveSubscriptionExistsError,
    SubscriptionRepoError,
    SubscriptionRepository,
)
from club.domains.vouchers.repositories import VoucherExhaustedError, VoucherRepository


def _voucher(**overrides) -> Voucher:
    values = dict(
        id=5,
        code="WELCOME20",
        discount_type="percentage",
        discount_value=Decimal("20"),
        max_redemptions=3,
        redemption_count=2,
    )
    values.update(overrides)
    return Voucher(**values)


class VoucherRedeemTests(unittest.TestCase):
    def test_redeem_claims_a_slot_with_one_conditional_update(self):
        db = Mock()
        db.execute.return_value.first.return_value = (3,)
        voucher = _voucher()

        r = VoucherRepository(db).redeem(voucher, member_id=7, subscription_id=201, discount_amount=Decimal("70.00"))

        self.assertIsInstance(r, VoucherRedemption)
        self.assertEqual(r.discount_amount, Decimal("70.00"))
        db.add.assert_called_once_with(r)
        self.assertEqual(voucher.redemption_count, 3)

        stmt = db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        self.assertTrue(sql.startswith("UPDATE"), sql)
        self.assertIn("max_redemptions IS NULL", sql)
        self.assertIn("redemption_count < ", sql)
        self.assertIn("RETURNING", sql)

    def test_redeem_without_slot_left_writes_nothing(self):
        db = Mock()
        db.execute.return_value.first.return_value = None

        with self.assertRaises(VoucherExhaustedError):
            VoucherRepository(db).redeem(_voucher(), member_id=7, subscription_id=201, discount_amount=Decimal("70.00"))

        db.add.assert_not_called()
        db.flush.assert_not_called()


def _create(repo: SubscriptionRepository):
    return repo.create(
        member_id=7,
        plan_id=1,
        status="active",
        start_date=date(2026, 3, 1),
        end_date=date(2026, 4, 1),
        currency="SAR",
    )


class SubscriptionCreateTests(unittest.TestCase):
    def test_one_active_index_violation_is_typed(self):
        db = Mock()
        db.flush.side_effect = IntegrityError(
            "INSERT INTO subscriptions ...",
            {},
            Exception('duplicate key value violates unique constraint "uq_subscriptions_one_active_per_member"'),
        )

        with self.assertRaises(ActiveSubscriptionExistsError):
            _create(SubscriptionRepository(db))

    def test_other_integrity_errors_stay_generic(self):
        db = Mock()
        db.flush.side_effect = IntegrityError(
            "INSERT INTO subscriptions ...",
            {},
            Exception('insert or update violates foreign key constraint "fk_subscriptions_plan_id_membership_plans"'),
        )

        with self.assertRaises(SubscriptionRepoError) as ctx:
            _create(SubscriptionRepository(db))
        self.assertNotIsInstance(ctx.exception, ActiveSubscriptionExistsError)


if __name__ == "__main__":
    unittest.main()
