from .enums import BillingPeriod, ContractTerm, ContractType, TerminationFeeType
from .repositories import PlanRepository

__all__ = [
    "BillingPeriod",
    "ContractType",
    "ContractTerm",
    "TerminationFeeType",
    "PlanRepository",
]
