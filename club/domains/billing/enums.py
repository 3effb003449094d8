from __future__ import annotations

from enum import StrEnum


class InvoiceStatus(StrEnum):
    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    OVERDUE = "overdue"
    VOID = "void"


class InvoiceLineType(StrEnum):
    MEMBERSHIP_FEE = "membership_fee"
    ADMIN_FEE = "admin_fee"
    JOIN_FEE = "join_fee"
    DISCOUNT = "discount"


class PaymentMethod(StrEnum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
