from .enums import ContractStatus
from .repositories import ContractRepository

__all__ = [
    "ContractStatus",
    "ContractRepository",
]
