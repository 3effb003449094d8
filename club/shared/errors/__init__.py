from .domains import ConflictError, DomainError, EnrollmentFailed, NotFoundError, ValidationError

__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "EnrollmentFailed",
]
