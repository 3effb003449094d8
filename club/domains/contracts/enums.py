from __future__ import annotations

from enum import StrEnum


class ContractStatus(StrEnum):
    PENDING_SIGNATURE = "pending_signature"
    ACTIVE = "active"
    IN_NOTICE_PERIOD = "in_notice_period"
    CANCELLED = "cancelled"
    VOIDED = "voided"
    EXPIRED = "expired"
