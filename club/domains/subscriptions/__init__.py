from .enums import SubscriptionStatus
from .repositories import SubscriptionRepository

__all__ = [
    "SubscriptionStatus",
    "SubscriptionRepository",
]
