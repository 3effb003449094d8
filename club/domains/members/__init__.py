from .enums import Gender, MemberStatus
from .repositories import MemberRepository

__all__ = [
    "Gender",
    "MemberStatus",
    "MemberRepository",
]
