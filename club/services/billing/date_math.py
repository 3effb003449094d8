from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from club.domains.plans.enums import BillingPeriod
from club.shared.errors import ValidationError


_PERIOD_DAYS = {
    BillingPeriod.DAILY: 1,
    BillingPeriod.WEEKLY: 7,
    BillingPeriod.BIWEEKLY: 14,
}

_PERIOD_MONTHS = {
    BillingPeriod.MONTHLY: 1,
    BillingPeriod.QUARTERLY: 3,
    BillingPeriod.SEMI_ANNUAL: 6,
    BillingPeriod.YEARLY: 12,
}


def first_day_of_month(d: date) -> date:
    return date(d.year, d.month, 1)


def last_day_of_month(d: date) -> date:
    if d.month == 12:
        next_month = date(d.year + 1, 1, 1)
    else:
        next_month = date(d.year, d.month + 1, 1)
    return next_month - timedelta(days=1)


def add_months(d: date, months: int) -> date:
    # keeps the day, clamped to the last day of the target month (31.01 + 1 -> 28/29.02)
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    ld = last_day_of_month(date(year, month, 1)).day
    return date(year, month, min(d.day, ld))


def subscription_end_date(start: date, *, billing_period: str, duration_days: Optional[int] = None) -> date:
    """End of the first subscription period.

    duration_days wins over billing_period. ONE_TIME plans must define duration_days.
    """
    if duration_days is not None:
        if duration_days <= 0:
            raise ValidationError(message="duration_days must be positive.", details={"duration_days": duration_days})
        return start + timedelta(days=int(duration_days))

    period = BillingPeriod(billing_period)
    if period in _PERIOD_DAYS:
        return start + timedelta(days=_PERIOD_DAYS[period])
    if period in _PERIOD_MONTHS:
        return add_months(start, _PERIOD_MONTHS[period])

    raise ValidationError(
        message=f"Billing period {period} requires duration_days.",
        details={"billing_period": str(period)},
    )


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (0 when end <= start)."""
    if end <= start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(months, 0)
