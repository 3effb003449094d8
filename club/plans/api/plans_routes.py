# club/plans/api/plans_routes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from club.db.models.audit import AuditLog
from club.db.models.plans import MembershipPlan
from club.db.session import get_db
from club.domains.plans.repositories import PlanRepoError
from club.plans.schemas import PlanIn, PlanOut
from club.services.plans.plan_service import PlanInput, PlanService
from club.shared.errors import DomainError
from club.shared.http_errors import to_http
from club.shared.request_context import get_request_context


router = APIRouter(prefix="/plans", tags=["plans"])


def _audit(
    *,
    db: Session,
    action: str,
    entity_id: str,
    before: dict | None,
    after: dict | None,
) -> None:
    ctx = get_request_context()
    db.add(
        AuditLog(
            severity="info",
            action=action,
            entity_type="membership_plans",
            entity_id=str(entity_id),
            request_id=ctx.request_id,
            ip=ctx.ip,
            user_agent=ctx.user_agent,
            before=before,
            after=after,
        )
    )


def _plan_out(p: MembershipPlan) -> PlanOut:
    return PlanOut(
        id=int(p.id),
        name=str(p.name),
        description=p.description,
        is_active=bool(p.is_active),
        available_from=p.available_from,
        available_until=p.available_until,
        minimum_age=p.minimum_age,
        maximum_age=p.maximum_age,
        currency=str(p.currency),
        membership_fee_amount=p.membership_fee_amount,
        membership_fee_tax_rate=p.membership_fee_tax_rate,
        admin_fee_amount=p.admin_fee_amount,
        admin_fee_tax_rate=p.admin_fee_tax_rate,
        admin_fee_waived=bool(p.admin_fee_waived),
        join_fee_amount=p.join_fee_amount,
        join_fee_tax_rate=p.join_fee_tax_rate,
        billing_period=str(p.billing_period),
        duration_days=p.duration_days,
        contract_type=str(p.contract_type),
        supported_terms=list(p.supported_terms or []),
        commitment_months=int(p.commitment_months or 0),
        notice_period_days=int(p.notice_period_days or 0),
        cooling_off_days=int(p.cooling_off_days or 0),
        early_termination_fee_type=str(p.early_termination_fee_type),
        early_termination_fee_value=p.early_termination_fee_value,
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


def _snapshot(p: MembershipPlan) -> dict:
    return _plan_out(p).model_dump(mode="json", exclude={"created_at", "updated_at"})


@router.get("", response_model=list[PlanOut])
def plans_list(
    include_inactive: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    rows = PlanService(db).list_plans(include_inactive=include_inactive, limit=limit, offset=offset)
    return [_plan_out(p) for p in rows]


@router.get("/{plan_id}", response_model=PlanOut)
def plans_get(plan_id: int, db: Session = Depends(get_db)):
    try:
        return _plan_out(PlanService(db).get_plan(int(plan_id)))
    except DomainError as e:
        raise to_http(e)


@router.post("", response_model=PlanOut, status_code=201)
def plans_create(payload: PlanIn, db: Session = Depends(get_db)):
    try:
        p = PlanService(db).create_plan(PlanInput(**payload.model_dump()))
    except DomainError as e:
        db.rollback()
        raise to_http(e)
    except PlanRepoError:
        db.rollback()
        raise HTTPException(status_code=409, detail={"code": "plan_conflict", "message": "Plan could not be saved.", "details": None})

    _audit(db=db, action="PLAN_CREATE", entity_id=str(p.id), before=None, after=_snapshot(p))
    db.commit()
    db.refresh(p)
    return _plan_out(p)


@router.put("/{plan_id}", response_model=PlanOut)
def plans_update(plan_id: int, payload: PlanIn, db: Session = Depends(get_db)):
    svc = PlanService(db)
    try:
        before = _snapshot(svc.get_plan(int(plan_id)))
        p = svc.update_plan(int(plan_id), PlanInput(**payload.model_dump()))
    except DomainError as e:
        db.rollback()
        raise to_http(e)
    except PlanRepoError:
        db.rollback()
        raise HTTPException(status_code=409, detail={"code": "plan_conflict", "message": "Plan could not be saved.", "details": None})

    _audit(db=db, action="PLAN_UPDATE", entity_id=str(p.id), before=before, after=_snapshot(p))
    db.commit()
    db.refresh(p)
    return _plan_out(p)
