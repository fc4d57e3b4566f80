"""Balance-consistent ledger mutations.

Every create, update and delete writes the transaction row and adjusts the
affected account balance(s) inside one session. Either all of it commits or
none of it does, so ``Account.balance_cents`` always equals the signed sum of
the account's transactions outside an in-flight unit of work.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .. import money
from ..domain.repositories import AccountRepository
from ..errors import (
    InvalidAccount,
    InvalidAmount,
    InvalidCategory,
    LedgerError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..infra.database import SessionFactory
from ..infra.repositories import (
    SQLModelAccountRepository,
    SQLModelCategoryRepository,
    SQLModelTransactionRepository,
)
from ..logging_config import get_logger
from ..models.account import Account
from ..models.category import Category
from ..models.transaction import Transaction

logger = get_logger("ledger")


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """Canonical, session-independent view of a transaction."""

    id: int
    signed_cents: int
    occurred_at: datetime
    note: str
    transaction_type: str
    category_id: int
    category_name: str
    account_id: int
    account_name: str

    @property
    def amount(self) -> float:
        """Signed amount in major units (income positive, expense negative)."""

        return money.from_cents(self.signed_cents)

    @classmethod
    def from_row(
        cls,
        transaction: Transaction,
        *,
        category: Category | None = None,
        account: Account | None = None,
    ) -> "LedgerEntry":
        category = category or transaction.category
        account = account or transaction.account
        return cls(
            id=int(transaction.id),  # type: ignore[arg-type]
            signed_cents=transaction.signed_cents,
            occurred_at=transaction.occurred_at,
            note=transaction.note or "",
            transaction_type=transaction.transaction_type,
            category_id=transaction.category_id,
            category_name=category.name if category is not None else "Other",
            account_id=transaction.account_id,
            account_name=account.name if account is not None else "",
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON shape returned by the API."""

        return {
            "id": self.id,
            "amount": self.amount,
            "date": self.occurred_at.isoformat(),
            "description": self.note,
            "category": self.category_name,
            "categoryId": self.category_id,
            "accountId": self.account_id,
            "accountName": self.account_name,
            "transactionType": self.transaction_type,
        }


def _parse_amount(amount: money.Number) -> int:
    try:
        cents = money.to_cents(amount)
    except ValueError as exc:
        raise InvalidAmount() from exc
    if cents <= 0:
        raise InvalidAmount()
    return cents


def _parse_type(transaction_type: str) -> str:
    try:
        return money.normalize_transaction_type(transaction_type)
    except ValueError as exc:
        raise ValidationError(
            "Invalid transaction type",
            errors={"transactionType": [str(exc)]},
        ) from exc


def _adjust_balance(
    accounts: AccountRepository, account_id: int, delta_cents: int, *, user_id: int
) -> None:
    if delta_cents == 0:
        return
    if accounts.apply_delta(account_id, delta_cents, user_id=user_id) != 1:
        raise StorageError(f"Balance update for account {account_id} matched no row")
    logger.info(
        "Applied balance delta",
        extra={"account_id": account_id, "delta_cents": delta_cents, "user_id": user_id},
    )


def post_entry(
    session: Session,
    *,
    user_id: int,
    amount_cents: int,
    transaction_type: str,
    occurred_at: datetime,
    note: str,
    category: Category,
    account: Account,
) -> Transaction:
    """Insert a transaction row and apply its signed delta, within ``session``.

    The caller owns the commit; nothing here commits.
    """

    transaction = SQLModelTransactionRepository(session).add(
        Transaction(
            user_id=user_id,
            amount_cents=abs(amount_cents),
            transaction_type=transaction_type,
            occurred_at=occurred_at,
            note=note,
            category_id=category.id,
            account_id=account.id,
        )
    )
    _adjust_balance(
        SQLModelAccountRepository(session),
        account.id,  # type: ignore[arg-type]
        transaction.signed_cents,
        user_id=user_id,
    )
    return transaction


class LedgerService:
    """Create, update and delete transactions while keeping balances exact."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    @contextmanager
    def _unit_of_work(self, action: str, **context: Any) -> Iterator[Session]:
        """Yield a session that commits once, or rolls back everything on failure."""

        with self.session_factory() as session:
            try:
                yield session
                session.commit()
            except StorageError:
                session.rollback()
                logger.exception("Ledger %s failed; rolled back", action, extra=context)
                raise
            except LedgerError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Ledger %s failed; rolled back", action, extra=context)
                raise StorageError() from exc

    # ------------------------------------------------------------------ lookups

    def resolve_category(self, name: str, *, user_id: int) -> int:
        """Return the ID of the owner's category called ``name``."""

        with self.session_factory() as session:
            category = SQLModelCategoryRepository(session).get_by_name(name or "", user_id=user_id)
            if category is None:
                raise InvalidCategory()
            return int(category.id)  # type: ignore[arg-type]

    def resolve_account(self, name: str, *, user_id: int) -> int:
        """Return the ID of the owner's account called ``name``."""

        with self.session_factory() as session:
            account = SQLModelAccountRepository(session).get_by_name(name or "", user_id=user_id)
            if account is None:
                raise InvalidAccount()
            return int(account.id)  # type: ignore[arg-type]

    def get(self, transaction_id: int, *, user_id: int) -> LedgerEntry:
        with self.session_factory() as session:
            transaction = SQLModelTransactionRepository(session).get(
                transaction_id, user_id=user_id
            )
            if transaction is None:
                raise NotFoundError("Transaction not found")
            return LedgerEntry.from_row(transaction)

    # ---------------------------------------------------------------- mutations

    def create(
        self,
        *,
        user_id: int,
        amount: money.Number,
        occurred_at: datetime,
        note: str,
        category_id: int,
        account_id: int,
        transaction_type: str,
    ) -> LedgerEntry:
        """Record a transaction and move its account balance by the signed amount."""

        amount_cents = _parse_amount(amount)
        transaction_type = _parse_type(transaction_type)

        with self._unit_of_work("create", user_id=user_id, account_id=account_id) as session:
            category = SQLModelCategoryRepository(session).get(category_id, user_id=user_id)
            if category is None:
                raise InvalidCategory()
            account = SQLModelAccountRepository(session).get(account_id, user_id=user_id)
            if account is None:
                raise InvalidAccount()

            transaction = post_entry(
                session,
                user_id=user_id,
                amount_cents=amount_cents,
                transaction_type=transaction_type,
                occurred_at=occurred_at,
                note=note,
                category=category,
                account=account,
            )
            entry = LedgerEntry.from_row(transaction, category=category, account=account)

        logger.info(
            "Created transaction",
            extra={"transaction_id": entry.id, "account_id": account_id, "user_id": user_id},
        )
        return entry

    def update(
        self,
        transaction_id: int,
        *,
        user_id: int,
        amount: money.Number,
        occurred_at: datetime,
        note: str,
        category_id: int,
        account_id: int,
        transaction_type: str,
    ) -> LedgerEntry:
        """Rewrite a transaction, reversing its old contribution and applying the new one.

        Same account: one net delta ``new - old``. Different accounts: ``-old`` on
        the previous account and ``+new`` on the new one.
        """

        amount_cents = _parse_amount(amount)
        transaction_type = _parse_type(transaction_type)

        with self._unit_of_work(
            "update", user_id=user_id, transaction_id=transaction_id
        ) as session:
            transactions = SQLModelTransactionRepository(session)
            accounts = SQLModelAccountRepository(session)

            transaction = transactions.get(transaction_id, user_id=user_id)
            if transaction is None:
                raise NotFoundError("Transaction not found")
            category = SQLModelCategoryRepository(session).get(category_id, user_id=user_id)
            if category is None:
                raise InvalidCategory()
            account = accounts.get(account_id, user_id=user_id)
            if account is None:
                raise InvalidAccount()

            old_account_id = transaction.account_id
            old_signed = transaction.signed_cents
            new_signed = money.signed_cents(amount_cents, transaction_type)

            if old_account_id == account_id:
                _adjust_balance(accounts, account_id, new_signed - old_signed, user_id=user_id)
            else:
                _adjust_balance(accounts, old_account_id, -old_signed, user_id=user_id)
                _adjust_balance(accounts, account_id, new_signed, user_id=user_id)

            transaction.amount_cents = abs(amount_cents)
            transaction.transaction_type = transaction_type
            transaction.occurred_at = occurred_at
            transaction.note = note
            transaction.category_id = category_id
            transaction.account_id = account_id
            session.add(transaction)
            session.flush()
            entry = LedgerEntry.from_row(transaction, category=category, account=account)

        logger.info(
            "Updated transaction",
            extra={
                "transaction_id": transaction_id,
                "old_account_id": old_account_id,
                "account_id": account_id,
                "user_id": user_id,
            },
        )
        return entry

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Remove a transaction and reverse its contribution to the account balance."""

        with self._unit_of_work(
            "delete", user_id=user_id, transaction_id=transaction_id
        ) as session:
            transactions = SQLModelTransactionRepository(session)
            transaction = transactions.get(transaction_id, user_id=user_id)
            if transaction is None:
                raise NotFoundError("Transaction not found")

            account_id = transaction.account_id
            _adjust_balance(
                SQLModelAccountRepository(session),
                account_id,
                -transaction.signed_cents,
                user_id=user_id,
            )
            transactions.delete(transaction)

        logger.info(
            "Deleted transaction",
            extra={"transaction_id": transaction_id, "account_id": account_id, "user_id": user_id},
        )

