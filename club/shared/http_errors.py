from __future__ import annotations

from fastapi import HTTPException

from club.shared.errors import ConflictError, DomainError, EnrollmentFailed, NotFoundError, ValidationError


_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (EnrollmentFailed, 500),
)


def status_for(e: DomainError) -> int:
    for cls, status in _STATUS:
        if isinstance(e, cls):
            return status
    return 400


def to_http(e: DomainError) -> HTTPException:
    """DomainError -> HTTPException(detail={"code", "message", "details"})."""
    return HTTPException(status_code=status_for(e), detail=e.to_detail())
