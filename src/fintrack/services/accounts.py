"""Account management and default data seeding."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from .. import money
from ..constants.categories import (
    DEFAULT_ACCOUNT_NAME,
    DEFAULT_CATEGORIES,
    OPENING_BALANCE_CATEGORY,
)
from ..domain.repositories import CategoryRepository
from ..errors import ConflictError, NotFoundError, StorageError, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories import SQLModelAccountRepository, SQLModelCategoryRepository
from ..logging_config import get_logger
from ..models.account import Account
from ..models.category import Category
from .ledger_service import post_entry

logger = get_logger("accounts")


def account_to_dict(account: Account) -> dict[str, object]:
    return {
        "id": account.id,
        "name": account.name,
        "balance": money.from_cents(account.balance_cents),
    }


def list_accounts(*, user_id: int, session_factory: SessionFactory) -> list[Account]:
    """Return the owner's accounts ordered by name."""
    with session_factory() as session:
        rows = SQLModelAccountRepository(session).list_all(user_id=user_id)
        session.expunge_all()
    return rows


def _ensure_category(repo: CategoryRepository, name: str, color: str, *, user_id: int) -> Category:
    existing = repo.get_by_name(name, user_id=user_id)
    if existing is not None:
        return existing
    return repo.add(Category(user_id=user_id, name=name, color=color))


def create_account(
    *,
    user_id: int,
    name: str,
    opening_balance: money.Number = 0,
    opened_at: datetime | None = None,
    session_factory: SessionFactory,
) -> Account:
    """Open an account.

    A non-zero opening balance is booked as an income (or expense, when
    negative) transaction in the "Opening Balance" category, in the same unit
    of work, so the stored balance is backed by ledger rows from the start.
    """

    name = name.strip()
    try:
        opening_cents = money.to_cents(opening_balance)
    except ValueError as exc:
        raise ValidationError("Invalid opening balance", errors={"balance": [str(exc)]}) from exc

    with session_factory() as session:
        accounts = SQLModelAccountRepository(session)
        if accounts.get_by_name(name, user_id=user_id) is not None:
            raise ValidationError("Account already exists", errors={"name": ["Name already in use."]})
        try:
            account = accounts.add(Account(user_id=user_id, name=name, balance_cents=0))
            if opening_cents:
                amount_cents, transaction_type = money.split_signed(opening_cents)
                category_name, category_color = OPENING_BALANCE_CATEGORY
                post_entry(
                    session,
                    user_id=user_id,
                    amount_cents=amount_cents,
                    transaction_type=transaction_type,
                    occurred_at=opened_at or datetime.now(),
                    note="Opening balance",
                    category=_ensure_category(
                        SQLModelCategoryRepository(session),
                        category_name,
                        category_color,
                        user_id=user_id,
                    ),
                    account=account,
                )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to open account", extra={"user_id": user_id})
            raise StorageError() from exc
        session.refresh(account)
        session.expunge(account)

    logger.info(
        "Opened account",
        extra={"account_id": account.id, "opening_cents": opening_cents, "user_id": user_id},
    )
    return account


def delete_account(account_id: int, *, user_id: int, session_factory: SessionFactory) -> None:
    """Delete an account that no transaction references."""

    with session_factory() as session:
        accounts = SQLModelAccountRepository(session)
        account = accounts.get(account_id, user_id=user_id)
        if account is None:
            raise NotFoundError("Account not found")
        if accounts.has_transactions(account_id, user_id=user_id):
            raise ConflictError("Account has transactions")
        accounts.delete(account)
        session.commit()
    logger.info("Deleted account", extra={"account_id": account_id, "user_id": user_id})


def seed_defaults(*, user_id: int, session_factory: SessionFactory) -> dict[str, int]:
    """Install default categories and a starter account; safe to run repeatedly.

    Returns counts of the rows that were newly created.
    """

    created = {"categories": 0, "accounts": 0}
    with session_factory() as session:
        categories = SQLModelCategoryRepository(session)
        for name, color in DEFAULT_CATEGORIES:
            if categories.get_by_name(name, user_id=user_id) is None:
                categories.add(Category(user_id=user_id, name=name, color=color))
                created["categories"] += 1

        accounts = SQLModelAccountRepository(session)
        if not accounts.list_all(user_id=user_id):
            accounts.add(Account(user_id=user_id, name=DEFAULT_ACCOUNT_NAME, balance_cents=0))
            created["accounts"] += 1
        session.commit()

    if any(created.values()):
        logger.info("Seeded default data", extra={"user_id": user_id, **created})
    return created
