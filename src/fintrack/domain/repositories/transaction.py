"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing transaction entities."""

    def get(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def add(self, transaction: Transaction) -> Transaction:
        """Stage a new transaction and assign its ID."""
        ...

    def delete(self, transaction: Transaction) -> None:
        """Remove a transaction."""
        ...

    def list_recent(self, *, user_id: int, limit: Optional[int] = None) -> list[Transaction]:
        """Transactions ordered newest first, with category and account loaded."""
        ...

    def list_between(
        self, start: datetime, end: datetime, *, user_id: int
    ) -> list[Transaction]:
        """Transactions with ``start <= occurred_at < end``."""
        ...

    def signed_totals_by_account(self, *, user_id: int) -> dict[int, int]:
        """Sum of signed cents per account, computed from the ledger."""
        ...

    def signed_total_before(self, moment: datetime, *, user_id: int) -> int:
        """Sum of signed cents for transactions strictly before ``moment``."""
        ...

    def monthly_totals(self, *, user_id: int, limit: int) -> list[tuple[int, int, int, int]]:
        """``(year, month, income_cents, expense_cents)`` rows, newest month first."""
        ...

    def expense_totals_by_category(
        self, *, user_id: int, limit: int
    ) -> list[tuple[int, str, str, int]]:
        """``(category_id, name, color, expense_cents)`` rows, largest first."""
        ...
