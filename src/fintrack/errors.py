"""Exception hierarchy for ledger operations.

Every error carries the HTTP status the API reports and a short public message;
internal details stay in the server log.
"""

from __future__ import annotations

from typing import Mapping, Sequence


class LedgerError(Exception):
    """Base exception for ledger operations."""

    status_code = 500
    code = "ledger_error"
    public_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_dict(self) -> dict[str, object]:
        return {"error": self.code, "message": self.message}


class ValidationError(LedgerError):
    """Client supplied data that cannot be applied to the ledger."""

    status_code = 400
    code = "invalid_request"
    public_message = "Invalid request"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = {key: list(value) for key, value in (errors or {}).items()}

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class InvalidCategory(ValidationError):
    code = "invalid_category"
    public_message = "Invalid category"


class InvalidAccount(ValidationError):
    code = "invalid_account"
    public_message = "Invalid account"


class InvalidAmount(ValidationError):
    code = "invalid_amount"
    public_message = "Amount must be greater than zero"


class NotFoundError(LedgerError):
    """Entity not found for the current owner."""

    status_code = 404
    code = "not_found"
    public_message = "Not found"


class ConflictError(LedgerError):
    """Entity is still referenced by ledger rows."""

    status_code = 409
    code = "conflict"
    public_message = "Resource is still in use"


class StorageError(LedgerError):
    """The relational store failed; the unit of work was rolled back."""

    status_code = 500
    code = "storage_error"
    public_message = "Failed to save changes"

    def to_dict(self) -> dict[str, object]:
        # the constructor message is for the log only
        return {"error": self.code, "message": self.public_message}


__all__ = [
    "ConflictError",
    "InvalidAccount",
    "InvalidAmount",
    "InvalidCategory",
    "LedgerError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
]
