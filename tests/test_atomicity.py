"""Storage faults during a mutation roll back the row change and every balance change."""

from __future__ import annotations

import logging
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from fintrack.errors import NotFoundError, StorageError
from fintrack.infra.repositories import SQLModelAccountRepository, SQLModelTransactionRepository


def _fail_on_call(monkeypatch, failing_call: int = 1):
    """Make the Nth balance update raise like a dropped database connection."""

    original = SQLModelAccountRepository.apply_delta
    calls = {"count": 0}

    def _apply_delta(self, account_id, delta_cents, *, user_id):
        calls["count"] += 1
        if calls["count"] == failing_call:
            raise OperationalError("UPDATE account", {}, Exception("disk I/O error"))
        return original(self, account_id, delta_cents, user_id=user_id)

    monkeypatch.setattr(SQLModelAccountRepository, "apply_delta", _apply_delta)
    return calls


def _payload(category, account, **overrides):
    values = {
        "amount": 100,
        "occurred_at": datetime(2024, 5, 1),
        "note": "Rent",
        "category_id": category.id,
        "account_id": account.id,
        "transaction_type": "expense",
    }
    values.update(overrides)
    return values


def _notes(session_factory, user):
    with session_factory() as session:
        return [row.note for row in SQLModelTransactionRepository(session).list_recent(user_id=user.id)]


def test_fault_during_create_leaves_no_row(
    monkeypatch, ledger, user, session_factory, category_factory, account_factory, balance_of, caplog
):
    housing = category_factory("Housing")
    checking = account_factory(opening=500)
    _fail_on_call(monkeypatch)

    with caplog.at_level(logging.ERROR, logger="fintrack"):
        with pytest.raises(StorageError) as excinfo:
            ledger.create(user_id=user.id, **_payload(housing, checking))

    assert balance_of(checking) == 50000
    assert _notes(session_factory, user) == ["Opening balance"]
    assert excinfo.value.to_dict() == {"error": "storage_error", "message": "Failed to save changes"}
    assert any("rolled back" in record.getMessage() for record in caplog.records)


def test_fault_on_second_account_of_cross_account_update(
    monkeypatch, ledger, user, category_factory, account_factory, balance_of, assert_consistent
):
    housing = category_factory("Housing")
    account_a = account_factory("A", opening=500)
    account_b = account_factory("B", opening=500)
    entry = ledger.create(user_id=user.id, **_payload(housing, account_a))
    _fail_on_call(monkeypatch, failing_call=2)

    with pytest.raises(StorageError):
        ledger.update(entry.id, user_id=user.id, **_payload(housing, account_b, amount=300))

    assert balance_of(account_a) == 40000
    assert balance_of(account_b) == 50000
    assert ledger.get(entry.id, user_id=user.id).account_id == account_a.id
    assert_consistent()


def test_fault_during_delete_keeps_row(
    monkeypatch, ledger, user, category_factory, account_factory, balance_of, assert_consistent
):
    housing = category_factory("Housing")
    checking = account_factory(opening=500)
    entry = ledger.create(user_id=user.id, **_payload(housing, checking))
    _fail_on_call(monkeypatch)

    with pytest.raises(StorageError):
        ledger.delete(entry.id, user_id=user.id)

    assert ledger.get(entry.id, user_id=user.id).id == entry.id
    assert balance_of(checking) == 40000
    assert_consistent()


def test_balance_update_matching_no_row_is_a_storage_error(
    monkeypatch, ledger, user, category_factory, account_factory, balance_of
):
    housing = category_factory("Housing")
    checking = account_factory(opening=500)
    monkeypatch.setattr(
        SQLModelAccountRepository, "apply_delta", lambda self, *args, **kwargs: 0
    )

    with pytest.raises(StorageError):
        ledger.create(user_id=user.id, **_payload(housing, checking))

    assert balance_of(checking) == 50000


def test_validation_error_is_not_wrapped(ledger, user):
    with pytest.raises(NotFoundError):
        ledger.delete(1, user_id=user.id)
