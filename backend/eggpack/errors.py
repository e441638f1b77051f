# Overview: Error taxonomy shared by the ledger services and API routes.

from __future__ import annotations


class LedgerError(Exception):
    """Base class for errors surfaced to the caller; carries an HTTP status."""

    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": str(self)}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LedgerError, ValueError):
    """400-level input problem. Raised before any write."""


class InsufficientStockError(ValidationError):
    """A stock movement would drive an on-hand quantity below zero."""


class NotFoundError(LedgerError, LookupError):
    """Referenced material, product, account or credit sale does not exist."""

    status_code = 404


class InsufficientFundsError(LedgerError):
    """Petty-cash withdrawal larger than the till balance."""

    status_code = 409


class ExceedsBalanceError(LedgerError):
    """Credit payment larger than the remaining receivable."""

    status_code = 409


class StorageError(LedgerError):
    """The unit of work failed in the database and was rolled back."""

    status_code = 500
