from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from club.db.models.plans import MembershipPlan
from club.domains.plans.enums import BillingPeriod, ContractTerm, ContractType, TerminationFeeType
from club.domains.plans.repositories import PlanRepository
from club.services.billing.taxable_fee import HUNDRED, TaxableFee, normalize_currency
from club.shared.errors import ConflictError, NotFoundError, ValidationError


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlanInput:
    name: str
    currency: str
    membership_fee_amount: Decimal
    membership_fee_tax_rate: Decimal
    admin_fee_amount: Decimal = Decimal("0.00")
    admin_fee_tax_rate: Decimal = Decimal("0.00")
    admin_fee_waived: bool = False
    join_fee_amount: Decimal = Decimal("0.00")
    join_fee_tax_rate: Decimal = Decimal("0.00")
    billing_period: str = BillingPeriod.MONTHLY.value
    duration_days: Optional[int] = None

    contract_type: str = ContractType.MONTH_TO_MONTH.value
    supported_terms: list[str] = field(default_factory=lambda: [ContractTerm.MONTHLY.value])
    commitment_months: int = 0
    notice_period_days: int = 30
    cooling_off_days: int = 7
    early_termination_fee_type: str = TerminationFeeType.NONE.value
    early_termination_fee_value: Optional[Decimal] = None

    description: Optional[str] = None
    is_active: bool = True
    available_from: Optional[date] = None
    available_until: Optional[date] = None
    minimum_age: Optional[int] = None
    maximum_age: Optional[int] = None


def _enum(enum_cls, value: str, *, field_name: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise ValidationError(
            message=f"Invalid {field_name}: {value!r}.",
            details={"field": field_name, "allowed": [m.value for m in enum_cls]},
        ) from e


def validate_plan_input(data: PlanInput) -> dict:
    """Validates a plan definition and returns normalised column values."""
    if not data.name or not data.name.strip():
        raise ValidationError(message="Plan name is required.", details={"field": "name"})

    currency = normalize_currency(data.currency)
    for prefix in ("membership_fee", "admin_fee", "join_fee"):
        TaxableFee.of(getattr(data, f"{prefix}_amount"), currency, getattr(data, f"{prefix}_tax_rate"))

    billing_period = _enum(BillingPeriod, data.billing_period, field_name="billing_period")
    contract_type = _enum(ContractType, data.contract_type, field_name="contract_type")
    fee_type = _enum(TerminationFeeType, data.early_termination_fee_type, field_name="early_termination_fee_type")

    if not data.supported_terms:
        raise ValidationError(message="At least one contract term is required.", details={"field": "supported_terms"})
    terms: list[str] = []
    for t in data.supported_terms:
        v = _enum(ContractTerm, t, field_name="supported_terms").value
        if v not in terms:
            terms.append(v)

    if data.duration_days is not None and data.duration_days <= 0:
        raise ValidationError(message="duration_days must be positive.", details={"field": "duration_days"})
    if billing_period == BillingPeriod.ONE_TIME and data.duration_days is None:
        raise ValidationError(
            message="One-time plans require duration_days.",
            details={"field": "duration_days", "billing_period": billing_period.value},
        )

    if data.available_from and data.available_until and data.available_from > data.available_until:
        raise ValidationError(
            message="available_from must not be after available_until.",
            details={"available_from": data.available_from.isoformat(), "available_until": data.available_until.isoformat()},
        )
    for age_field in ("minimum_age", "maximum_age"):
        v = getattr(data, age_field)
        if v is not None and v < 0:
            raise ValidationError(message=f"{age_field} must be 0 or greater.", details={"field": age_field})
    if data.minimum_age is not None and data.maximum_age is not None and data.minimum_age > data.maximum_age:
        raise ValidationError(
            message="minimum_age must not exceed maximum_age.",
            details={"minimum_age": data.minimum_age, "maximum_age": data.maximum_age},
        )

    for f in ("commitment_months", "notice_period_days", "cooling_off_days"):
        if getattr(data, f) < 0:
            raise ValidationError(message=f"{f} must be 0 or greater.", details={"field": f})

    fee_value = data.early_termination_fee_value
    if fee_type in (TerminationFeeType.FLAT, TerminationFeeType.PERCENTAGE):
        if fee_value is None or fee_value < 0:
            raise ValidationError(
                message=f"Termination fee type {fee_type.value} requires a non-negative value.",
                details={"field": "early_termination_fee_value"},
            )
        if fee_type == TerminationFeeType.PERCENTAGE and fee_value > HUNDRED:
            raise ValidationError(
                message="Percentage termination fee must be within 0..100.",
                details={"field": "early_termination_fee_value"},
            )

    values = asdict(data)
    values.update(
        name=data.name.strip(),
        currency=currency,
        billing_period=billing_period.value,
        contract_type=contract_type.value,
        early_termination_fee_type=fee_type.value,
        supported_terms=terms,
    )
    return values


class PlanService:
    """Plan administration (catalogue of pricing terms + contract policy)."""

    def __init__(self, db: Session, *, repo: PlanRepository | None = None) -> None:
        self._db = db
        self._repo = repo or PlanRepository(db)

    def get_plan(self, plan_id: int) -> MembershipPlan:
        plan = self._repo.get(plan_id)
        if plan is None:
            raise NotFoundError(message=f"Plan {plan_id} does not exist.", code="plan_not_found", details={"plan_id": plan_id})
        return plan

    def list_plans(self, *, include_inactive: bool = False, limit: int = 100, offset: int = 0) -> list[MembershipPlan]:
        return self._repo.list_all(include_inactive=include_inactive, limit=limit, offset=offset)

    def create_plan(self, data: PlanInput) -> MembershipPlan:
        values = validate_plan_input(data)
        if self._repo.get_by_name(values["name"]) is not None:
            raise ConflictError(message="A plan with this name already exists.", code="plan_name_taken", details={"name": values["name"]})
        plan = self._repo.create(**values)
        logger.info("plan.created", plan_id=plan.id, name=plan.name)
        return plan

    def update_plan(self, plan_id: int, data: PlanInput) -> MembershipPlan:
        plan = self.get_plan(plan_id)
        values = validate_plan_input(data)
        other = self._repo.get_by_name(values["name"])
        if other is not None and int(other.id) != int(plan.id):
            raise ConflictError(message="A plan with this name already exists.", code="plan_name_taken", details={"name": values["name"]})
        plan = self._repo.update(plan, **values)
        logger.info("plan.updated", plan_id=plan.id)
        return plan
