"""Error taxonomy shared by the domain, the use cases and the HTTP boundary.

Every error carries a stable machine-readable ``code`` and the HTTP status the
boundary should answer with. Optional details are typed records rather than
free-form dictionaries so callers can rely on their shape.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FieldErrorDetails:
    field: str


@dataclass(frozen=True, slots=True)
class ConflictDetails:
    resource: str
    key: str


@dataclass(frozen=True, slots=True)
class NotFoundDetails:
    resource: str
    identifier: str


ErrorDetails = FieldErrorDetails | ConflictDetails | NotFoundDetails


class DomainError(Exception):
    code: str = "DOMAIN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, *, details: ErrorDetails | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = asdict(self.details)
        return payload


class ValidationError(DomainError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None) -> None:
        details = FieldErrorDetails(field=field) if field else None
        super().__init__(message, details=details)


class ConflictError(DomainError):
    code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str, *, resource: str, key: str) -> None:
        super().__init__(message, details=ConflictDetails(resource=resource, key=key))


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: str | int) -> None:
        super().__init__(
            f"{resource} with identifier '{identifier}' not found",
            details=NotFoundDetails(resource=resource, identifier=str(identifier)),
        )


class UnauthorizedError(DomainError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class PersistenceError(DomainError):
    """Storage failure that is neither a conflict nor a missing row."""

    code = "PERSISTENCE_ERROR"
    status_code = 500


__all__ = [
    "ConflictDetails",
    "ConflictError",
    "DomainError",
    "ErrorDetails",
    "FieldErrorDetails",
    "NotFoundDetails",
    "NotFoundError",
    "PersistenceError",
    "UnauthorizedError",
    "ValidationError",
]
