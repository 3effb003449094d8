from .enums import DiscountType
from .repositories import VoucherRepository

__all__ = [
    "DiscountType",
    "VoucherRepository",
]
