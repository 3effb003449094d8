# club/contracts/api/contracts_routes.py
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from club.contracts.schemas import CancellationPreviewOut, ContractOut
from club.db.models.contracts import MembershipContract
from club.db.session import get_db
from club.domains.contracts.repositories import ContractRepository
from club.services.contracts.termination import preview_cancellation


router = APIRouter(prefix="/contracts", tags=["contracts"])


def _ensure_contract(db: Session, contract_id: int) -> MembershipContract:
    c = ContractRepository(db).get(int(contract_id))
    if not c:
        raise HTTPException(
            status_code=404,
            detail={"code": "contract_not_found", "message": "Contract does not exist.", "details": {"contract_id": int(contract_id)}},
        )
    return c


def _contract_out(c: MembershipContract) -> ContractOut:
    return ContractOut(
        id=int(c.id),
        contract_no=str(c.contract_no),
        member_id=int(c.member_id),
        plan_id=int(c.plan_id),
        status=str(c.status),
        contract_type=str(c.contract_type),
        contract_term=str(c.contract_term),
        commitment_months=int(c.commitment_months or 0),
        notice_period_days=int(c.notice_period_days or 0),
        start_date=c.start_date,
        commitment_end_date=c.commitment_end_date,
        cooling_off_days=int(c.cooling_off_days or 0),
        cooling_off_end_date=c.cooling_off_end_date,
        currency=str(c.currency),
        locked_membership_fee_amount=c.locked_membership_fee_amount,
        locked_membership_fee_tax_rate=c.locked_membership_fee_tax_rate,
        locked_admin_fee_amount=c.locked_admin_fee_amount,
        locked_admin_fee_tax_rate=c.locked_admin_fee_tax_rate,
        locked_join_fee_amount=c.locked_join_fee_amount,
        locked_join_fee_tax_rate=c.locked_join_fee_tax_rate,
        early_termination_fee_type=str(c.early_termination_fee_type),
        early_termination_fee_value=c.early_termination_fee_value,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


@router.get("/{contract_id}", response_model=ContractOut)
def contracts_get(contract_id: int, db: Session = Depends(get_db)):
    return _contract_out(_ensure_contract(db, contract_id))


@router.get("/{contract_id}/cancellation-preview", response_model=CancellationPreviewOut)
def contracts_cancellation_preview(
    contract_id: int,
    on: Optional[date] = Query(default=None, description="Day the cancellation would be requested (default: today)"),
    db: Session = Depends(get_db),
):
    c = _ensure_contract(db, contract_id)
    return CancellationPreviewOut(**asdict(preview_cancellation(c, today=on or date.today())))
