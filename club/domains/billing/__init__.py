from .enums import InvoiceLineType, InvoiceStatus, PaymentMethod
from .repositories import InvoiceRepository

__all__ = [
    "InvoiceStatus",
    "InvoiceLineType",
    "PaymentMethod",
    "InvoiceRepository",
]
