from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from club.domains.plans.enums import TerminationFeeType
from club.services.billing.date_math import months_between
from club.services.billing.taxable_fee import HUNDRED, ZERO, compute_tax, q2


@dataclass(frozen=True)
class CancellationPreview:
    contract_id: int
    currency: str
    within_cooling_off: bool
    within_commitment: bool
    remaining_commitment_months: int
    notice_period_days: int
    effective_date: date
    early_termination_fee: Decimal
    refund_amount: Decimal


def _gross(amount: Any, tax_rate: Any) -> Decimal:
    return compute_tax(Decimal(amount or 0), Decimal(tax_rate or 0)).gross


def early_termination_fee(
    fee_type: TerminationFeeType,
    fee_value: Decimal | None,
    *,
    monthly_gross: Decimal,
    remaining_months: int,
) -> Decimal:
    if fee_type == TerminationFeeType.NONE:
        return ZERO
    if fee_type == TerminationFeeType.FLAT:
        return q2(Decimal(fee_value or 0))

    remaining_value = monthly_gross * remaining_months
    if fee_type == TerminationFeeType.REMAINING_MONTHS:
        return q2(remaining_value)
    # PERCENTAGE of what is left of the commitment
    return q2(remaining_value * Decimal(fee_value or 0) / HUNDRED)


def preview_cancellation(contract: Any, *, today: date) -> CancellationPreview:
    """What cancelling this contract today would cost. Pure, nothing is changed.

    Inside cooling-off: effective today, no fee, join + membership fees refunded.
    Afterwards: effective after the notice period, with the early termination fee
    while the commitment is still running.
    """
    membership_gross = _gross(contract.locked_membership_fee_amount, contract.locked_membership_fee_tax_rate)

    if today <= contract.cooling_off_end_date:
        refund = q2(_gross(contract.locked_join_fee_amount, contract.locked_join_fee_tax_rate) + membership_gross)
        return CancellationPreview(
            contract_id=int(contract.id),
            currency=str(contract.currency),
            within_cooling_off=True,
            within_commitment=False,
            remaining_commitment_months=0,
            notice_period_days=0,
            effective_date=today,
            early_termination_fee=ZERO,
            refund_amount=refund,
        )

    end = contract.commitment_end_date
    within_commitment = end is not None and today < end
    remaining = months_between(today, end) if within_commitment else 0

    fee = ZERO
    if within_commitment:
        fee = early_termination_fee(
            TerminationFeeType(contract.early_termination_fee_type),
            contract.early_termination_fee_value,
            monthly_gross=membership_gross,
            remaining_months=remaining,
        )

    notice = int(contract.notice_period_days or 0)
    return CancellationPreview(
        contract_id=int(contract.id),
        currency=str(contract.currency),
        within_cooling_off=False,
        within_commitment=within_commitment,
        remaining_commitment_months=remaining,
        notice_period_days=notice,
        effective_date=today + timedelta(days=notice),
        early_termination_fee=fee,
        refund_amount=ZERO,
    )
