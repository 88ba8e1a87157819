# Overview: Typed error kinds raised by services and mapped to JSON responses.

from __future__ import annotations


class RestoposError(Exception):
    """Base class for errors that carry a user-displayable message."""

    code = "error"
    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(RestoposError, ValueError):
    """400-level input problem."""

    code = "validation_error"
    status_code = 400


class PermissionDeniedError(RestoposError):
    """Role lacks the capability for the requested action or scope."""

    code = "permission_denied"
    status_code = 403


class NotFoundError(RestoposError):
    """Referenced entity is absent, or outside the caller's scope."""

    code = "not_found"
    status_code = 404


class ConflictError(RestoposError, ValueError):
    """409-level business rule conflict (duplicate email, last superadmin, ...)."""

    code = "conflict"
    status_code = 409


class ConstraintViolation(ConflictError):
    """A database constraint rejected the write (unique index, check constraint)."""

    code = "constraint_violation"


class TransactionFailure(RestoposError):
    """Storage failed in the middle of a multi-step write; the transaction was rolled back."""

    code = "transaction_failed"
    status_code = 500


class StorageUnavailableError(RestoposError):
    """Database could not be reached. Safe for the caller to retry."""

    code = "storage_unavailable"
    status_code = 503
