import unittest
from datetime import date
from decimal import Decimal

from club.domains.plans.enums import ContractTerm
from club.services.contracts.contract_use_cases import (
    CreateEnrollmentContractInput,
    commitment_end_date,
    create_enrollment_contract,
    format_contract_no,
)
from club.services.enrollment.preview_calculator import ContractTerms, PlanPricing, compute_preview
from tests.fakes import FakeContractRepo, FakeSession, FakeStore, make_plan


class ContractUseCaseTests(unittest.TestCase):
    def test_format_contract_no(self):
        self.assertEqual(format_contract_no("CLB", 2026, 42), "CLB-2026-000042")

    def test_commitment_end_date(self):
        self.assertIsNone(commitment_end_date(date(2026, 1, 31), 0))
        self.assertEqual(commitment_end_date(date(2026, 1, 31), 1), date(2026, 2, 28))

    def test_locks_priced_fees(self):
        plan = make_plan(admin_fee_waived=True)
        comp = compute_preview(PlanPricing.from_plan(plan), is_first_subscription=False)
        store = FakeStore()
        repo = FakeContractRepo(store, seq_start=7)

        contract = create_enrollment_contract(
            FakeSession(store),
            data=CreateEnrollmentContractInput(
                member_id=7,
                plan_id=1,
                contract_term=ContractTerm.ANNUAL,
                start_date=date(2026, 3, 1),
                terms=ContractTerms.from_plan(plan),
                computation=comp,
            ),
            prefix="CLB",
            repo=repo,
        )

        self.assertEqual(contract.contract_no, "CLB-2026-000007")
        self.assertEqual(contract.contract_term, "annual")
        self.assertEqual(contract.status, "pending_signature")
        self.assertEqual(contract.locked_membership_fee_amount, Decimal("200.00"))
        self.assertEqual(contract.locked_admin_fee_amount, Decimal("0.00"))
        self.assertEqual(contract.locked_join_fee_amount, Decimal("0.00"))
        self.assertEqual(contract.locked_join_fee_tax_rate, Decimal("0.00"))
        self.assertEqual(contract.locked_admin_fee_tax_rate, Decimal("0.00"))
        self.assertEqual(contract.locked_membership_fee_tax_rate, Decimal("15.00"))
        self.assertEqual(contract.commitment_end_date, date(2027, 3, 1))
        self.assertEqual(contract.cooling_off_end_date, date(2026, 3, 8))
        self.assertEqual(contract.early_termination_fee_type, "remaining_months")


if __name__ == "__main__":
    unittest.main()
