from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

import structlog
from sqlalchemy.orm import Session

from club.app.config import Settings, get_settings
from club.db.models.audit import AuditLog
from club.domains.billing.repositories import InvoiceRepository
from club.domains.contracts.repositories import ContractRepository
from club.domains.members.enums import Gender, MemberStatus
from club.domains.members.repositories import MemberRepository
from club.domains.plans.repositories import PlanRepository
from club.domains.subscriptions.enums import SubscriptionStatus
from club.domains.subscriptions.repositories import ActiveSubscriptionExistsError, SubscriptionRepository
from club.domains.vouchers.repositories import VoucherExhaustedError, VoucherRepository
from club.services.billing.date_math import subscription_end_date
from club.services.billing.invoice_service import InvoiceService, PaymentInput, validate_payment
from club.services.contracts.contract_use_cases import CreateEnrollmentContractInput, create_enrollment_contract
from club.services.enrollment.enrollment_preview_service import (
    EnrollmentPreview,
    EnrollmentPreviewInput,
    EnrollmentPreviewService,
    ManualDiscountInput,
    ResolvedPreview,
)
from club.services.notifications.enrollment_notifier import EnrollmentNotifier
from club.shared.errors import ConflictError, EnrollmentFailed, ValidationError
from club.shared.request_context import get_request_context


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NewMemberInput:
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    national_id: Optional[str] = None


@dataclass(frozen=True)
class EnrollmentInput:
    plan_id: int
    contract_term: str
    existing_member_id: Optional[int] = None
    new_member: Optional[NewMemberInput] = None
    voucher_code: Optional[str] = None
    discount: Optional[ManualDiscountInput] = None
    start_date: Optional[date] = None
    auto_renew: bool = False
    create_contract: bool = True
    create_invoice: bool = True
    payment: Optional[PaymentInput] = None
    staff_notes: Optional[str] = None
    referred_by_member_id: Optional[int] = None


@dataclass(frozen=True)
class EnrollmentResult:
    member_id: int
    member_created: bool
    subscription_id: int
    subscription_status: str
    start_date: date
    end_date: date
    preview: EnrollmentPreview
    contract_id: Optional[int] = None
    contract_no: Optional[str] = None
    invoice_id: Optional[int] = None
    invoice_no: Optional[str] = None
    invoice_status: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


def age_on(date_of_birth: date, day: date) -> int:
    years = day.year - date_of_birth.year
    if (day.month, day.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def _write_conflict(e: Exception, *, member_id: Optional[int], voucher_code: Optional[str]) -> Optional[ConflictError]:
    # races lost at the database level surface with the same codes as the pre-write checks
    if isinstance(e, ActiveSubscriptionExistsError):
        return ConflictError(
            message="Member already has an active subscription.",
            code="member_has_active_subscription",
            details={"member_id": member_id},
        )
    if isinstance(e, VoucherExhaustedError):
        return ConflictError(
            message="Voucher has no redemptions left.",
            code="voucher_exhausted",
            details={"voucher_code": voucher_code},
        )
    return None


class EnrollmentService:
    """Commits an enrollment: member, subscription, contract and invoice in one transaction.

    The preview is always re-derived here; client totals are never trusted.
    Pre-write checks raise typed domain errors. Once writing starts, any failure
    rolls the whole transaction back and surfaces as EnrollmentFailed, except the
    one-active-subscription and voucher-limit races, which keep their ConflictError codes.
    """

    def __init__(
        self,
        db: Session,
        *,
        previewer: EnrollmentPreviewService | None = None,
        plans: PlanRepository | None = None,
        members: MemberRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
        contracts: ContractRepository | None = None,
        invoices: InvoiceRepository | None = None,
        vouchers: VoucherRepository | None = None,
        notifier: EnrollmentNotifier | None = None,
        settings: Settings | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._db = db
        self._members = members or MemberRepository(db)
        self._subs = subscriptions or SubscriptionRepository(db)
        self._contracts = contracts or ContractRepository(db)
        self._invoices = invoices or InvoiceRepository(db)
        self._vouchers = vouchers or VoucherRepository(db)
        self._previewer = previewer or EnrollmentPreviewService(
            db,
            plans=plans,
            members=self._members,
            subscriptions=self._subs,
            vouchers=self._vouchers,
        )
        self._notifier = notifier
        self._settings = settings or get_settings()
        self._today = today

    def commit(self, data: EnrollmentInput) -> EnrollmentResult:
        today = self._today()
        start = data.start_date or today

        self._validate_input(data, start=start, today=today)
        if data.new_member is not None and data.new_member.email:
            if self._members.get_by_email(data.new_member.email) is not None:
                raise ConflictError(
                    message="A member with this e-mail already exists.",
                    code="member_email_taken",
                    details={"email": data.new_member.email},
                )

        resolved = self._previewer.resolve(
            EnrollmentPreviewInput(
                plan_id=data.plan_id,
                contract_term=data.contract_term,
                voucher_code=data.voucher_code,
                discount=data.discount,
                existing_member_id=data.existing_member_id,
                as_of=today,
            )
        )
        preview = resolved.preview
        comp = resolved.computation

        self._check_plan_available(resolved.plan, start=start)
        if resolved.member is not None and self._subs.exists_active_for_member(int(resolved.member.id)):
            raise ConflictError(
                message="Member already has an active subscription.",
                code="member_has_active_subscription",
                details={"member_id": int(resolved.member.id)},
            )
        dob = resolved.member.date_of_birth if resolved.member is not None else data.new_member.date_of_birth
        self._check_age(resolved.plan, date_of_birth=dob, on=start)
        if data.payment is not None:
            validate_payment(data.payment, grand_total=comp.grand_total)

        end = subscription_end_date(start, billing_period=preview.billing_period, duration_days=preview.duration_days)

        paid = data.payment.amount if data.payment is not None else None
        fully_paid = comp.grand_total == 0 or (paid is not None and paid >= comp.grand_total)
        sub_status = SubscriptionStatus.ACTIVE if fully_paid else SubscriptionStatus.PENDING_PAYMENT

        stage = "member"
        try:
            if resolved.member is not None:
                member = resolved.member
                member_created = False
            else:
                nm = data.new_member
                member = self._members.create(
                    first_name=nm.first_name.strip(),
                    last_name=nm.last_name.strip(),
                    email=nm.email.strip().lower() if nm.email else None,
                    phone=nm.phone,
                    date_of_birth=nm.date_of_birth,
                    gender=nm.gender,
                    national_id=nm.national_id,
                    status=MemberStatus.ACTIVE.value,
                )
                member_created = True

            stage = "subscription"
            d = comp.discount
            subscription = self._subs.create(
                member_id=int(member.id),
                plan_id=preview.plan_id,
                status=sub_status.value,
                start_date=start,
                end_date=end,
                currency=comp.currency,
                auto_renew=data.auto_renew,
                paid_amount=paid,
                discount_type=str(d.type) if d else None,
                discount_value=d.value if d else None,
                discount_reason=d.reason if d else None,
                voucher_code=d.voucher_code if d else None,
                original_price=comp.total_before_discount,
                final_price=comp.grand_total,
                staff_notes=data.staff_notes,
                referred_by_member_id=data.referred_by_member_id,
            )

            contract = None
            if data.create_contract:
                stage = "contract"
                contract = create_enrollment_contract(
                    self._db,
                    data=CreateEnrollmentContractInput(
                        member_id=int(member.id),
                        plan_id=preview.plan_id,
                        contract_term=resolved.contract_term,
                        start_date=start,
                        terms=resolved.terms,
                        computation=comp,
                    ),
                    prefix=self._settings.contract_number_prefix,
                    repo=self._contracts,
                )
                self._subs.attach_contract(subscription, int(contract.id))

            invoice = None
            if data.create_invoice and comp.grand_total > 0:
                stage = "invoice"
                invoice = InvoiceService(self._db, repo=self._invoices).issue_for_enrollment(
                    member_id=int(member.id),
                    subscription_id=int(subscription.id),
                    computation=comp,
                    issue_date=today,
                    prefix=self._settings.invoice_number_prefix,
                    payment=data.payment,
                )

            if resolved.voucher is not None:
                stage = "voucher"
                self._vouchers.redeem(
                    resolved.voucher,
                    member_id=int(member.id),
                    subscription_id=int(subscription.id),
                    discount_amount=comp.discount_amount,
                )

            stage = "audit"
            self._audit(resolved, member_id=int(member.id), member_created=member_created, subscription=subscription, contract=contract, invoice=invoice)

            stage = "commit"
            self._db.commit()
        except Exception as e:
            self._db.rollback()
            conflict = _write_conflict(e, member_id=data.existing_member_id, voucher_code=preview.voucher_code)
            if conflict is not None:
                logger.warning("enrollment.conflict", stage=stage, code=conflict.code, plan_id=preview.plan_id)
                raise conflict from e
            logger.error("enrollment.failed", stage=stage, plan_id=preview.plan_id, error=type(e).__name__, exc_info=True)
            raise EnrollmentFailed.wrap(e, stage=stage) from e

        result = EnrollmentResult(
            member_id=int(member.id),
            member_created=member_created,
            subscription_id=int(subscription.id),
            subscription_status=sub_status.value,
            start_date=start,
            end_date=end,
            preview=preview,
            contract_id=int(contract.id) if contract is not None else None,
            contract_no=contract.contract_no if contract is not None else None,
            invoice_id=int(invoice.id) if invoice is not None else None,
            invoice_no=invoice.invoice_no if invoice is not None else None,
            invoice_status=str(invoice.status) if invoice is not None else None,
        )
        logger.info(
            "enrollment.committed",
            member_id=result.member_id,
            subscription_id=result.subscription_id,
            contract_no=result.contract_no,
            invoice_no=result.invoice_no,
            grand_total=str(preview.grand_total),
        )

        self._notify(result, member=member)
        return result

    # --- checks ---

    def _validate_input(self, data: EnrollmentInput, *, start: date, today: date) -> None:
        if (data.existing_member_id is None) == (data.new_member is None):
            raise ValidationError(
                message="Provide either existing_member_id or new_member.",
                code="member_selection_invalid",
            )
        if data.new_member is not None:
            if not data.new_member.first_name.strip() or not data.new_member.last_name.strip():
                raise ValidationError(message="First and last name are required.", code="member_name_required")
            if data.new_member.gender is not None:
                try:
                    Gender(data.new_member.gender)
                except ValueError as e:
                    raise ValidationError(
                        message=f"Unknown gender {data.new_member.gender!r}.",
                        details={"gender": data.new_member.gender},
                    ) from e
        if start < today:
            raise ValidationError(
                message="Start date cannot be in the past.",
                code="start_date_in_past",
                details={"start_date": start.isoformat(), "today": today.isoformat()},
            )

    def _check_plan_available(self, plan: Any, *, start: date) -> None:
        if (plan.available_from is not None and start < plan.available_from) or (
            plan.available_until is not None and start > plan.available_until
        ):
            raise ConflictError(
                message="Plan is not available for the requested start date.",
                code="plan_not_available",
                details={
                    "plan_id": int(plan.id),
                    "start_date": start.isoformat(),
                    "available_from": plan.available_from.isoformat() if plan.available_from else None,
                    "available_until": plan.available_until.isoformat() if plan.available_until else None,
                },
            )

    def _check_age(self, plan: Any, *, date_of_birth: Optional[date], on: date) -> None:
        if plan.minimum_age is None and plan.maximum_age is None:
            return
        if date_of_birth is None:
            raise ValidationError(
                message="Date of birth is required for this plan.",
                code="date_of_birth_required",
                details={"plan_id": int(plan.id)},
            )
        age = age_on(date_of_birth, on)
        if (plan.minimum_age is not None and age < plan.minimum_age) or (
            plan.maximum_age is not None and age > plan.maximum_age
        ):
            raise ValidationError(
                message="Member's age is outside the plan's age range.",
                code="age_not_eligible",
                details={"age": age, "minimum_age": plan.minimum_age, "maximum_age": plan.maximum_age},
            )

    # --- side effects ---

    def _audit(
        self,
        resolved: ResolvedPreview,
        *,
        member_id: int,
        member_created: bool,
        subscription: Any,
        contract: Any,
        invoice: Any,
    ) -> None:
        ctx = get_request_context()
        p = resolved.preview
        self._db.add(
            AuditLog(
                severity="info",
                action="ENROLLMENT_COMMIT",
                entity_type="subscription",
                entity_id=str(subscription.id),
                request_id=ctx.request_id,
                ip=ctx.ip,
                user_agent=ctx.user_agent,
                before=None,
                after={
                    "member_id": member_id,
                    "member_created": member_created,
                    "subscription_id": int(subscription.id),
                    "contract_id": int(contract.id) if contract is not None else None,
                    "invoice_id": int(invoice.id) if invoice is not None else None,
                    "plan_id": p.plan_id,
                    "subtotal": str(p.subtotal),
                    "vat_total": str(p.vat_total),
                    "discount_amount": str(p.discount_amount),
                    "grand_total": str(p.grand_total),
                },
                meta={"contract_term": p.contract_term, "voucher_code": p.voucher_code},
            )
        )
        self._db.flush()

    def _notify(self, result: EnrollmentResult, *, member: Any) -> None:
        if self._notifier is None:
            return
        p = result.preview
        try:
            self._notifier.enrollment_committed(
                member_id=result.member_id,
                email=getattr(member, "email", None),
                member_name=f"{member.first_name} {member.last_name}".strip(),
                plan_name=p.plan_name,
                start_date=result.start_date,
                end_date=result.end_date,
                grand_total=p.grand_total,
                currency=p.currency,
                contract_no=result.contract_no,
                invoice_no=result.invoice_no,
                cooling_off_days=p.cooling_off_days,
            )
        except Exception:
            # enrollment is already committed; delivery problems must not undo it
            logger.warning("enrollment.notification.failed", member_id=result.member_id, exc_info=True)
            result.warnings.append("notification_failed")
