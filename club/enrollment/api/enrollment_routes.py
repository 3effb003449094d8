# club/enrollment/api/enrollment_routes.py
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from club.adapters.mail.smtp_mailer import get_mailer
from club.app.config import get_settings
from club.db.session import get_db
from club.enrollment.schemas import (
    DiscountIn,
    EnrollmentIn,
    EnrollmentOut,
    EnrollmentPreviewIn,
    EnrollmentPreviewOut,
)
from club.services.billing.invoice_service import PaymentInput
from club.services.enrollment.enrollment_preview_service import (
    EnrollmentPreview,
    EnrollmentPreviewInput,
    EnrollmentPreviewService,
    ManualDiscountInput,
)
from club.services.enrollment.enrollment_service import EnrollmentInput, EnrollmentService, NewMemberInput
from club.services.notifications.enrollment_notifier import EnrollmentNotifier
from club.shared.errors import DomainError
from club.shared.http_errors import to_http


router = APIRouter(prefix="/enrollments", tags=["enrollments"])


def _discount(d: DiscountIn | None) -> ManualDiscountInput | None:
    if d is None:
        return None
    return ManualDiscountInput(type=d.type, value=d.value, reason=d.reason)


def _preview_out(p: EnrollmentPreview) -> EnrollmentPreviewOut:
    data = asdict(p)
    data["fee_lines"] = [asdict(fl) for fl in p.fee_lines]
    return EnrollmentPreviewOut(**data)


@router.post("/preview", response_model=EnrollmentPreviewOut)
def enrollment_preview(
    payload: EnrollmentPreviewIn,
    db: Session = Depends(get_db),
):
    try:
        preview = EnrollmentPreviewService(db).preview(
            EnrollmentPreviewInput(
                plan_id=payload.plan_id,
                contract_term=payload.contract_term,
                voucher_code=payload.voucher_code,
                discount=_discount(payload.discount),
                existing_member_id=payload.existing_member_id,
            )
        )
    except DomainError as e:
        raise to_http(e)
    return _preview_out(preview)


@router.post("", response_model=EnrollmentOut, status_code=201)
def enrollment_commit(
    payload: EnrollmentIn,
    db: Session = Depends(get_db),
):
    settings = get_settings()
    nm = payload.new_member
    svc = EnrollmentService(db, notifier=EnrollmentNotifier(get_mailer(settings)), settings=settings)
    try:
        result = svc.commit(
            EnrollmentInput(
                plan_id=payload.plan_id,
                contract_term=payload.contract_term,
                existing_member_id=payload.existing_member_id,
                new_member=NewMemberInput(**nm.model_dump()) if nm is not None else None,
                voucher_code=payload.voucher_code,
                discount=_discount(payload.discount),
                start_date=payload.start_date,
                auto_renew=payload.auto_renew,
                create_contract=payload.create_contract,
                create_invoice=payload.create_invoice,
                payment=PaymentInput(**payload.payment.model_dump()) if payload.payment is not None else None,
                staff_notes=payload.staff_notes,
                referred_by_member_id=payload.referred_by_member_id,
            )
        )
    except DomainError as e:
        raise to_http(e)

    return EnrollmentOut(
        member_id=result.member_id,
        member_created=result.member_created,
        subscription_id=result.subscription_id,
        subscription_status=result.subscription_status,
        start_date=result.start_date,
        end_date=result.end_date,
        contract_id=result.contract_id,
        contract_no=result.contract_no,
        invoice_id=result.invoice_id,
        invoice_no=result.invoice_no,
        invoice_status=result.invoice_status,
        warnings=list(result.warnings),
        preview=_preview_out(result.preview),
    )
