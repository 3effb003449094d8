from __future__ import annotations

from enum import StrEnum


class BillingPeriod(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    YEARLY = "yearly"
    ONE_TIME = "one_time"


class ContractType(StrEnum):
    MONTH_TO_MONTH = "month_to_month"
    FIXED_TERM = "fixed_term"


class ContractTerm(StrEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"

    def to_months(self) -> int:
        return _TERM_MONTHS[self]


_TERM_MONTHS = {
    ContractTerm.MONTHLY: 1,
    ContractTerm.QUARTERLY: 3,
    ContractTerm.SEMI_ANNUAL: 6,
    ContractTerm.ANNUAL: 12,
}


class TerminationFeeType(StrEnum):
    NONE = "none"
    FLAT = "flat"
    REMAINING_MONTHS = "remaining_months"
    PERCENTAGE = "percentage"
