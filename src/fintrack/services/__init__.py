"""Service layer: unit-of-work operations over the ledger."""

from .ledger_service import LedgerEntry, LedgerService

__all__ = ["LedgerEntry", "LedgerService"]
