"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import case, extract, func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from ...models.category import Category
from ...models.transaction import Transaction
from ...money import EXPENSE, INCOME


def signed_amount_expr():
    """SQL expression for a row's signed amount: income positive, expense negative."""

    return case(
        (Transaction.transaction_type == INCOME, Transaction.amount_cents),
        else_=-Transaction.amount_cents,
    )


def _amount_if(transaction_type: str):
    return case((Transaction.transaction_type == transaction_type, Transaction.amount_cents), else_=0)


@dataclass
class SQLModelTransactionRepository:
    """Transaction repository bound to the caller's session (unit of work)."""

    session: Session

    def get(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        return self.session.exec(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .where(Transaction.user_id == user_id)
        ).first()

    def add(self, transaction: Transaction) -> Transaction:
        """Stage a new transaction and flush so it receives an ID."""
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def delete(self, transaction: Transaction) -> None:
        self.session.delete(transaction)
        self.session.flush()

    def list_recent(self, *, user_id: int, limit: Optional[int] = None) -> list[Transaction]:
        """Transactions newest first, with category and account eagerly loaded."""
        statement = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .options(
                selectinload(Transaction.category),  # type: ignore[arg-type]
                selectinload(Transaction.account),  # type: ignore[arg-type]
            )
            .order_by(Transaction.occurred_at.desc(), Transaction.id.desc())  # type: ignore[union-attr]
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def list_between(
        self, start: datetime, end: datetime, *, user_id: int
    ) -> list[Transaction]:
        """Transactions with ``start <= occurred_at < end``, oldest first."""
        statement = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .where(Transaction.occurred_at >= start)
            .where(Transaction.occurred_at < end)  # Exclusive end boundary
            .options(selectinload(Transaction.category))  # type: ignore[arg-type]
            .order_by(Transaction.occurred_at, Transaction.id)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def signed_totals_by_account(self, *, user_id: int) -> dict[int, int]:
        """Recompute each account's balance from the ledger rows."""
        statement = (
            select(Transaction.account_id, func.sum(signed_amount_expr()))
            .where(Transaction.user_id == user_id)
            .group_by(Transaction.account_id)
        )
        return {
            int(account_id): int(total or 0)
            for account_id, total in self.session.exec(statement).all()
        }

    def signed_total_before(self, moment: datetime, *, user_id: int) -> int:
        """Net ledger value of everything recorded strictly before ``moment``."""
        total = self.session.exec(
            select(func.coalesce(func.sum(signed_amount_expr()), 0))
            .where(Transaction.user_id == user_id)
            .where(Transaction.occurred_at < moment)
        ).one()
        return int(total or 0)

    def monthly_totals(self, *, user_id: int, limit: int) -> list[tuple[int, int, int, int]]:
        """Income and expense sums per calendar month, newest month first."""
        year = extract("year", Transaction.occurred_at)
        month = extract("month", Transaction.occurred_at)
        statement = (
            select(
                year,
                month,
                func.sum(_amount_if(INCOME)),
                func.sum(_amount_if(EXPENSE)),
            )
            .where(Transaction.user_id == user_id)
            .group_by(year, month)
            .order_by(year.desc(), month.desc())
            .limit(limit)
        )
        return [
            (int(y), int(m), int(income or 0), int(expense or 0))
            for y, m, income, expense in self.session.exec(statement).all()
        ]

    def expense_totals_by_category(
        self, *, user_id: int, limit: int
    ) -> list[tuple[int, str, str, int]]:
        """Expense sums per category, largest first."""
        total = func.sum(Transaction.amount_cents)
        statement = (
            select(Category.id, Category.name, Category.color, total)
            .join(Category, Category.id == Transaction.category_id)
            .where(Transaction.user_id == user_id)
            .where(Transaction.transaction_type == EXPENSE)
            .group_by(Category.id, Category.name, Category.color)
            .order_by(total.desc(), Category.name)
            .limit(limit)
        )
        return [
            (int(category_id), name, color, int(cents or 0))
            for category_id, name, color, cents in self.session.exec(statement).all()
        ]
