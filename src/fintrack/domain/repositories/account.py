"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Repository for managing account entities."""

    def get(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by name (case-insensitive)."""
        ...

    def list_all(self, *, user_id: int) -> list[Account]:
        """List all accounts."""
        ...

    def add(self, account: Account) -> Account:
        """Stage a new account and assign its ID."""
        ...

    def delete(self, account: Account) -> None:
        """Remove an account."""
        ...

    def apply_delta(self, account_id: int, delta_cents: int, *, user_id: int) -> int:
        """Atomically add ``delta_cents`` to the stored balance; return affected rows."""
        ...

    def set_balance(self, account_id: int, balance_cents: int, *, user_id: int) -> int:
        """Overwrite the stored balance (reconciliation repair only)."""
        ...

    def total_balance(self, *, user_id: int) -> int:
        """Sum of all stored balances."""
        ...

    def has_transactions(self, account_id: int, *, user_id: int) -> bool:
        """Whether any ledger row references the account."""
        ...
