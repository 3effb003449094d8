from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error raised by services / use-cases.

    HTTP routes translate it into an HTTPException with
    detail={"code", "message", "details"}.
    """

    message: str
    code: str = "domain_error"
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


@dataclass(eq=False)
class ValidationError(DomainError):
    code: str = "validation_error"


@dataclass(eq=False)
class NotFoundError(DomainError):
    code: str = "not_found"


@dataclass(eq=False)
class ConflictError(DomainError):
    code: str = "conflict"


@dataclass(eq=False)
class EnrollmentFailed(DomainError):
    """Transactional commit failure. The underlying cause is kept in details."""

    code: str = "enrollment_failed"

    @classmethod
    def wrap(cls, cause: BaseException, *, stage: str | None = None) -> "EnrollmentFailed":
        return cls(
            message="Enrollment could not be completed; no records were created.",
            details={
                "stage": stage,
                "cause_type": type(cause).__name__,
                "cause": str(cause),
            },
        )
