from __future__ import annotations

from enum import StrEnum


class DiscountType(StrEnum):
    FLAT = "flat"
    PERCENTAGE = "percentage"
