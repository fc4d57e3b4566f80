"""SQLModel implementation of Account repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, update
from sqlmodel import Session, select

from ...models.account import Account
from ...models.transaction import Transaction


@dataclass
class SQLModelAccountRepository:
    """Account repository bound to the caller's session (unit of work)."""

    session: Session

    def get(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        return self.session.exec(
            select(Account).where(Account.id == account_id, Account.user_id == user_id)
        ).first()

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by name (case-insensitive)."""
        return self.session.exec(
            select(Account).where(
                func.lower(Account.name) == name.strip().lower(),
                Account.user_id == user_id,
            )
        ).first()

    def list_all(self, *, user_id: int) -> list[Account]:
        """List all accounts ordered by name."""
        statement = (
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(Account.name, Account.id)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def add(self, account: Account) -> Account:
        """Stage a new account and flush so it receives an ID."""
        self.session.add(account)
        self.session.flush()
        return account

    def delete(self, account: Account) -> None:
        self.session.delete(account)
        self.session.flush()

    def apply_delta(self, account_id: int, delta_cents: int, *, user_id: int) -> int:
        """Add ``delta_cents`` to the balance in a single UPDATE statement.

        The read-modify-write happens inside the database, so concurrent
        mutations on the same account cannot overwrite each other's delta.
        """
        statement = (
            update(Account)
            .where(Account.id == account_id, Account.user_id == user_id)  # type: ignore[arg-type]
            .values(balance_cents=Account.balance_cents + delta_cents)
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount

    def set_balance(self, account_id: int, balance_cents: int, *, user_id: int) -> int:
        """Overwrite the cached balance; used by reconciliation repair."""
        statement = (
            update(Account)
            .where(Account.id == account_id, Account.user_id == user_id)  # type: ignore[arg-type]
            .values(balance_cents=balance_cents)
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return result.rowcount

    def total_balance(self, *, user_id: int) -> int:
        """Sum of all stored balances for the owner."""
        total = self.session.exec(
            select(func.coalesce(func.sum(Account.balance_cents), 0)).where(
                Account.user_id == user_id
            )
        ).one()
        return int(total or 0)

    def has_transactions(self, account_id: int, *, user_id: int) -> bool:
        return (
            self.session.exec(
                select(Transaction.id)
                .where(Transaction.account_id == account_id, Transaction.user_id == user_id)
                .limit(1)
            ).first()
            is not None
        )
