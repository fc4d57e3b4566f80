"""Pytest configuration and shared fixtures for FinTrack tests.

Provides an isolated SQLite database per test, a session factory matching the
one the app uses, and factories that create reference data through the
services so every balance starts out backed by ledger rows.
"""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from sqlmodel import create_engine

from fintrack import create_app
from fintrack.infra.database import _apply_sqlite_pragmas, create_session_factory, init_database
from fintrack.models import Account, Category, User
from fintrack.services.accounts import create_account
from fintrack.services.categories import create_category
from fintrack.services.ledger_service import LedgerEntry, LedgerService
from fintrack.services.reconciliation import reconcile

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    _apply_sqlite_pragmas(engine, {"foreign_keys": "on"})
    init_database(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory with the same commit/rollback scope the app uses."""

    return create_session_factory(db_engine)


@pytest.fixture
def user(session_factory) -> User:
    """Create the owner that scopes all test data."""

    with session_factory() as session:
        row = User(username="tester", password_hash="dummy-hash")
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)
    return row


@pytest.fixture
def other_user(session_factory) -> User:
    """A second owner, for isolation checks."""

    with session_factory() as session:
        row = User(username="someone-else", password_hash="dummy-hash")
        session.add(row)
        session.commit()
        session.refresh(row)
        session.expunge(row)
    return row


@pytest.fixture
def ledger(session_factory) -> LedgerService:
    return LedgerService(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def category_factory(session_factory, user):
    """Factory for creating categories owned by ``user``."""

    def _create_category(
        name: str = "Food",
        color: str = "#FF9500",
        owner: User | None = None,
    ) -> Category:
        owner = owner or user
        return create_category(
            user_id=owner.id, name=name, color=color, session_factory=session_factory
        )

    return _create_category


@pytest.fixture
def account_factory(session_factory, user):
    """Factory for creating accounts; ``opening`` is booked as a ledger row."""

    def _create_account(
        name: str = "Checking",
        opening: float | str = 0,
        owner: User | None = None,
    ) -> Account:
        owner = owner or user
        return create_account(
            user_id=owner.id,
            name=name,
            opening_balance=opening,
            opened_at=datetime(2024, 1, 1),
            session_factory=session_factory,
        )

    return _create_account


@pytest.fixture
def transaction_factory(ledger, user):
    """Factory for recording transactions through the ledger service."""

    def _create_transaction(
        amount: float | str,
        *,
        category: Category,
        account: Account,
        transaction_type: str = "expense",
        occurred_at: datetime | None = None,
        note: str = "Test transaction",
        owner: User | None = None,
    ) -> LedgerEntry:
        owner = owner or user
        return ledger.create(
            user_id=owner.id,
            amount=amount,
            occurred_at=occurred_at or datetime(2024, 1, 15, 12, 0),
            note=note,
            category_id=category.id,
            account_id=account.id,
            transaction_type=transaction_type,
        )

    return _create_transaction


# =============================================================================
# Helpers
# =============================================================================


@pytest.fixture
def balance_of(session_factory, user):
    """Return the stored balance, in cents, of an account."""

    def _balance(account: Account | int, owner: User | None = None) -> int:
        account_id = account if isinstance(account, int) else account.id
        owner = owner or user
        with session_factory() as session:
            row = session.get(Account, account_id)
            assert row is not None and row.user_id == owner.id
            return row.balance_cents

    return _balance


@pytest.fixture
def assert_consistent(session_factory, user):
    """Assert every stored balance equals the sum of its ledger rows."""

    def _check(owner: User | None = None) -> None:
        owner = owner or user
        report = reconcile(user_id=owner.id, session_factory=session_factory)
        assert report.consistent, [check.to_dict() for check in report.drifted]

    return _check


# =============================================================================
# Flask App Fixtures
# =============================================================================


@pytest.fixture()
def app(tmp_path, monkeypatch: pytest.MonkeyPatch):
    db_path = tmp_path / "fintrack.db"
    monkeypatch.setenv("FINTRACK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FINTRACK_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("FINTRACK_SEED_DEFAULTS", "1")
    monkeypatch.setenv("FINTRACK_OWNER", "local")
    return create_app("testing")


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client
