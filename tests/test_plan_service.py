import unittest
from decimal import Decimal
from types import SimpleNamespace

from club.services.plans.plan_service import PlanInput, PlanService, validate_plan_input
from club.shared.errors import ConflictError, NotFoundError, ValidationError


class _PlanRepo:
    def __init__(self):
        self.rows = {}

    def get(self, plan_id):
        return self.rows.get(plan_id)

    def get_by_name(self, name):
        for p in self.rows.values():
            if p.name == name:
                return p
        return None

    def list_all(self, *, include_inactive=False, limit=100, offset=0):
        rows = [p for p in self.rows.values() if include_inactive or p.is_active]
        return rows[offset:offset + limit]

    def create(self, **values):
        plan = SimpleNamespace(id=len(self.rows) + 1, **values)
        self.rows[plan.id] = plan
        return plan

    def update(self, plan, **values):
        for k, v in values.items():
            setattr(plan, k, v)
        return plan


def _input(**overrides) -> PlanInput:
    values = dict(
        name=" Gold ",
        currency="sar",
        membership_fee_amount=Decimal("200.00"),
        membership_fee_tax_rate=Decimal("15.00"),
    )
    values.update(overrides)
    return PlanInput(**values)


class ValidatePlanInputTests(unittest.TestCase):
    def test_normalises_values(self):
        values = validate_plan_input(_input(supported_terms=["monthly", "annual", "monthly"]))

        self.assertEqual(values["name"], "Gold")
        self.assertEqual(values["currency"], "SAR")
        self.assertEqual(values["supported_terms"], ["monthly", "annual"])

    def test_rejections(self):
        cases = [
            dict(name="  "),
            dict(currency="riyal"),
            dict(membership_fee_amount=Decimal("-1")),
            dict(admin_fee_tax_rate=Decimal("101")),
            dict(billing_period="fortnightly"),
            dict(supported_terms=[]),
            dict(supported_terms=["weekly"]),
            dict(billing_period="one_time"),
            dict(duration_days=0),
            dict(minimum_age=30, maximum_age=20),
            dict(notice_period_days=-1),
            dict(early_termination_fee_type="flat"),
            dict(early_termination_fee_type="percentage", early_termination_fee_value=Decimal("150")),
        ]
        for overrides in cases:
            with self.subTest(**{k: str(v) for k, v in overrides.items()}):
                with self.assertRaises(ValidationError):
                    validate_plan_input(_input(**overrides))

    def test_one_time_with_duration_is_valid(self):
        values = validate_plan_input(_input(billing_period="one_time", duration_days=30))
        self.assertEqual(values["duration_days"], 30)


class PlanServiceTests(unittest.TestCase):
    def setUp(self):
        self.repo = _PlanRepo()
        self.svc = PlanService(None, repo=self.repo)

    def test_create_and_get(self):
        plan = self.svc.create_plan(_input())
        self.assertIs(self.svc.get_plan(plan.id), plan)
        self.assertEqual(plan.name, "Gold")

    def test_duplicate_name(self):
        self.svc.create_plan(_input())
        with self.assertRaises(ConflictError) as ctx:
            self.svc.create_plan(_input(name="Gold"))
        self.assertEqual(ctx.exception.code, "plan_name_taken")

    def test_missing_plan(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.svc.get_plan(42)
        self.assertEqual(ctx.exception.code, "plan_not_found")

    def test_update_keeps_own_name(self):
        plan = self.svc.create_plan(_input())
        updated = self.svc.update_plan(plan.id, _input(membership_fee_amount=Decimal("250.00")))
        self.assertEqual(updated.membership_fee_amount, Decimal("250.00"))

    def test_list_hides_inactive_by_default(self):
        self.svc.create_plan(_input())
        self.svc.create_plan(_input(name="Legacy", is_active=False))
        self.assertEqual([p.name for p in self.svc.list_plans()], ["Gold"])
        self.assertEqual(len(self.svc.list_plans(include_inactive=True)), 2)


if __name__ == "__main__":
    unittest.main()
