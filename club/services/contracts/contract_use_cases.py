from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from club.db.models.contracts import MembershipContract
from club.domains.contracts.enums import ContractStatus
from club.domains.contracts.repositories import ContractRepository
from club.domains.plans.enums import ContractTerm
from club.services.billing.date_math import add_months
from club.services.enrollment.preview_calculator import (
    ADMIN_FEE,
    JOIN_FEE,
    MEMBERSHIP_FEE,
    ContractTerms,
    PreviewComputation,
)


@dataclass(frozen=True)
class CreateEnrollmentContractInput:
    member_id: int
    plan_id: int
    contract_term: ContractTerm
    start_date: date
    terms: ContractTerms
    # fees are locked from the priced lines, so a waived admin fee locks as 0
    computation: PreviewComputation


def format_contract_no(prefix: str, year: int, seq: int) -> str:
    return f"{prefix}-{year}-{seq:06d}"


def commitment_end_date(start: date, commitment_months: int) -> Optional[date]:
    if commitment_months <= 0:
        return None
    return add_months(start, commitment_months)


def create_enrollment_contract(
    db: Session,
    *,
    data: CreateEnrollmentContractInput,
    prefix: str,
    repo: ContractRepository | None = None,
) -> MembershipContract:
    repo = repo or ContractRepository(db)

    contract_no = format_contract_no(prefix, data.start_date.year, repo.next_sequence_value())
    comp = data.computation
    membership = comp.line(MEMBERSHIP_FEE)
    admin = comp.line(ADMIN_FEE)
    join = comp.line(JOIN_FEE)

    return repo.create(
        contract_no=contract_no,
        member_id=data.member_id,
        plan_id=data.plan_id,
        status=ContractStatus.PENDING_SIGNATURE.value,
        contract_type=data.terms.contract_type.value,
        contract_term=data.contract_term.value,
        commitment_months=data.terms.commitment_months,
        notice_period_days=data.terms.notice_period_days,
        start_date=data.start_date,
        commitment_end_date=commitment_end_date(data.start_date, data.terms.commitment_months),
        cooling_off_days=data.terms.cooling_off_days,
        cooling_off_end_date=data.start_date + timedelta(days=data.terms.cooling_off_days),
        currency=comp.currency,
        locked_membership_fee_amount=membership.net,
        locked_membership_fee_tax_rate=membership.tax_rate,
        locked_admin_fee_amount=admin.net,
        locked_admin_fee_tax_rate=admin.tax_rate,
        locked_join_fee_amount=join.net,
        locked_join_fee_tax_rate=join.tax_rate,
        early_termination_fee_type=data.terms.early_termination_fee_type.value,
        early_termination_fee_value=data.terms.early_termination_fee_value,
    )
