from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from club.domains.members.repositories import MemberRepository
from club.domains.plans.enums import ContractTerm
from club.domains.plans.repositories import PlanRepository
from club.domains.subscriptions.repositories import SubscriptionRepository
from club.domains.vouchers.repositories import VoucherRepository
from club.services.enrollment.preview_calculator import (
    ContractTerms,
    DiscountSpec,
    FeeLine,
    PlanPricing,
    PreviewComputation,
    compute_preview,
)
from club.shared.errors import ConflictError, NotFoundError, ValidationError


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ManualDiscountInput:
    type: str
    value: Decimal
    reason: Optional[str] = None


@dataclass(frozen=True)
class EnrollmentPreviewInput:
    plan_id: int
    contract_term: str
    voucher_code: Optional[str] = None
    discount: Optional[ManualDiscountInput] = None
    existing_member_id: Optional[int] = None
    # voucher validity is checked against this day (defaults to today)
    as_of: Optional[date] = None


@dataclass(frozen=True)
class EnrollmentPreview:
    plan_id: int
    plan_name: str
    currency: str
    contract_term: str
    contract_type: str
    billing_period: str
    duration_days: Optional[int]
    is_first_subscription: bool

    fee_lines: tuple[FeeLine, ...]
    subtotal: Decimal
    vat_total: Decimal
    discount_amount: Decimal
    discount_type: Optional[str]
    discount_source: Optional[str]
    voucher_code: Optional[str]
    discount_clamped: bool
    grand_total: Decimal

    commitment_months: int
    cooling_off_days: int
    notice_period_days: int
    early_termination_fee_type: str
    early_termination_fee_value: Optional[Decimal]


@dataclass(frozen=True)
class ResolvedPreview:
    """Preview plus the records it was computed from (used by the committer)."""

    preview: EnrollmentPreview
    computation: PreviewComputation
    plan: Any
    pricing: PlanPricing
    terms: ContractTerms
    contract_term: ContractTerm
    voucher: Any = None
    member: Any = None


class EnrollmentPreviewService:
    """Read-only enrollment quote: resolves plan, member history and voucher, then prices.

    Nothing is written; identical inputs give identical output.
    """

    def __init__(
        self,
        db: Session,
        *,
        plans: PlanRepository | None = None,
        members: MemberRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
        vouchers: VoucherRepository | None = None,
    ) -> None:
        self._db = db
        self._plans = plans or PlanRepository(db)
        self._members = members or MemberRepository(db)
        self._subs = subscriptions or SubscriptionRepository(db)
        self._vouchers = vouchers or VoucherRepository(db)

    def preview(self, data: EnrollmentPreviewInput) -> EnrollmentPreview:
        return self.resolve(data).preview

    def resolve(self, data: EnrollmentPreviewInput) -> ResolvedPreview:
        manual = self._validate_input(data)

        plan = self._plans.get(int(data.plan_id))
        if plan is None:
            raise NotFoundError(
                message=f"Plan {data.plan_id} does not exist.",
                code="plan_not_found",
                details={"plan_id": int(data.plan_id)},
            )
        if not plan.is_active:
            raise NotFoundError(
                message=f"Plan {data.plan_id} is not active.",
                code="plan_inactive",
                details={"plan_id": int(data.plan_id)},
            )

        term = self._resolve_term(plan, data.contract_term)
        pricing = PlanPricing.from_plan(plan)
        terms = ContractTerms.from_plan(plan)

        member = None
        is_first = True
        if data.existing_member_id is not None:
            member = self._members.get(int(data.existing_member_id))
            if member is None:
                raise NotFoundError(
                    message=f"Member {data.existing_member_id} does not exist.",
                    code="member_not_found",
                    details={"member_id": int(data.existing_member_id)},
                )
            is_first = self._subs.count_for_member(int(member.id)) == 0

        voucher = None
        discount = manual
        if data.voucher_code:
            voucher = self._resolve_voucher(
                data.voucher_code,
                plan_id=int(plan.id),
                member_id=int(member.id) if member is not None else None,
                as_of=data.as_of or date.today(),
            )
            discount = DiscountSpec.of(
                voucher.discount_type,
                voucher.discount_value,
                source="voucher",
                reason=voucher.description,
                voucher_code=voucher.code,
            )

        comp = compute_preview(pricing, is_first_subscription=is_first, discount=discount)

        preview = EnrollmentPreview(
            plan_id=int(plan.id),
            plan_name=str(plan.name),
            currency=comp.currency,
            contract_term=str(term),
            contract_type=str(terms.contract_type),
            billing_period=str(pricing.billing_period),
            duration_days=pricing.duration_days,
            is_first_subscription=is_first,
            fee_lines=comp.fee_lines,
            subtotal=comp.subtotal,
            vat_total=comp.vat_total,
            discount_amount=comp.discount_amount,
            discount_type=str(discount.type) if discount else None,
            discount_source=discount.source if discount else None,
            voucher_code=discount.voucher_code if discount else None,
            discount_clamped=comp.discount_clamped,
            grand_total=comp.grand_total,
            commitment_months=terms.commitment_months,
            cooling_off_days=terms.cooling_off_days,
            notice_period_days=terms.notice_period_days,
            early_termination_fee_type=str(terms.early_termination_fee_type),
            early_termination_fee_value=terms.early_termination_fee_value,
        )

        logger.info(
            "enrollment.preview.computed",
            plan_id=preview.plan_id,
            contract_term=preview.contract_term,
            is_first_subscription=is_first,
            discount_source=preview.discount_source,
            grand_total=str(preview.grand_total),
        )

        return ResolvedPreview(
            preview=preview,
            computation=comp,
            plan=plan,
            pricing=pricing,
            terms=terms,
            contract_term=term,
            voucher=voucher,
            member=member,
        )

    # --- helpers ---

    def _validate_input(self, data: EnrollmentPreviewInput) -> Optional[DiscountSpec]:
        if data.voucher_code and data.discount is not None:
            raise ValidationError(
                message="A voucher and a manual discount cannot be combined.",
                code="discount_conflict",
                details={"voucher_code": data.voucher_code},
            )
        if data.discount is None:
            return None
        return DiscountSpec.of(
            data.discount.type,
            data.discount.value,
            source="manual",
            reason=data.discount.reason,
        )

    def _resolve_term(self, plan: Any, raw: str) -> ContractTerm:
        try:
            term = ContractTerm(str(raw).strip().lower())
        except ValueError as e:
            raise ValidationError(
                message=f"Unknown contract term {raw!r}.",
                code="invalid_contract_term",
                details={"contract_term": raw},
            ) from e

        supported = [str(t) for t in (plan.supported_terms or [])]
        if str(term) not in supported:
            raise ValidationError(
                message=f"Plan {plan.id} does not offer the {term} contract term.",
                code="contract_term_not_supported",
                details={"contract_term": str(term), "supported_terms": supported},
            )
        return term

    def _resolve_voucher(self, code: str, *, plan_id: int, member_id: Optional[int], as_of: date) -> Any:
        voucher = self._vouchers.get_by_code(code)
        if voucher is None:
            raise NotFoundError(
                message=f"Voucher {code!r} does not exist.",
                code="voucher_not_found",
                details={"voucher_code": code},
            )

        details = {"voucher_code": voucher.code}
        if not voucher.is_active:
            raise ConflictError(message="Voucher is not active.", code="voucher_inactive", details=details)
        if voucher.valid_from is not None and as_of < voucher.valid_from:
            raise ConflictError(message="Voucher is not valid yet.", code="voucher_not_yet_valid", details=details)
        if voucher.valid_until is not None and as_of > voucher.valid_until:
            raise ConflictError(message="Voucher has expired.", code="voucher_expired", details=details)
        if voucher.max_redemptions is not None and int(voucher.redemption_count or 0) >= int(voucher.max_redemptions):
            raise ConflictError(message="Voucher has no redemptions left.", code="voucher_exhausted", details=details)
        if voucher.plan_id is not None and int(voucher.plan_id) != plan_id:
            raise ConflictError(
                message="Voucher does not apply to this plan.",
                code="voucher_not_applicable",
                details={**details, "plan_id": plan_id},
            )
        if member_id is not None and self._vouchers.has_redemption(voucher_id=int(voucher.id), member_id=member_id):
            raise ConflictError(
                message="Voucher was already used by this member.",
                code="voucher_already_used",
                details={**details, "member_id": member_id},
            )
        return voucher
