"""Mixed create/update/delete sequences never leave balances out of step with the ledger."""

from __future__ import annotations

import random
from datetime import datetime, timedelta

import pytest

from fintrack.errors import LedgerError
from fintrack.infra.repositories import SQLModelTransactionRepository


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_random_operation_sequence_keeps_invariant(
    seed, ledger, user, session_factory, category_factory, account_factory, assert_consistent
):
    rng = random.Random(seed)
    categories = [category_factory("Food"), category_factory("Income", color="#30B0C7")]
    accounts = [account_factory("Checking", opening=250), account_factory("Savings", opening=1000)]
    live: list[int] = []
    start = datetime(2024, 1, 1)

    for step in range(60):
        action = rng.choice(["create", "create", "update", "delete"]) if live else "create"
        kwargs = {
            "amount": f"{rng.randint(1, 50000) / 100:.2f}",
            "occurred_at": start + timedelta(days=rng.randint(0, 90)),
            "note": f"step {step}",
            "category_id": rng.choice(categories).id,
            "account_id": rng.choice(accounts).id,
            "transaction_type": rng.choice(["income", "expense"]),
        }
        if action == "create":
            live.append(ledger.create(user_id=user.id, **kwargs).id)
        elif action == "update":
            ledger.update(rng.choice(live), user_id=user.id, **kwargs)
        else:
            target = live.pop(rng.randrange(len(live)))
            ledger.delete(target, user_id=user.id)
        assert_consistent()

    with session_factory() as session:
        rows = SQLModelTransactionRepository(session).list_recent(user_id=user.id)
    # two opening-balance rows plus whatever survived
    assert len(rows) == len(live) + 2


def test_failed_operations_do_not_disturb_invariant(
    ledger, user, category_factory, account_factory, assert_consistent
):
    food = category_factory()
    checking = account_factory(opening=100)
    entry = ledger.create(
        user_id=user.id,
        amount=40,
        occurred_at=datetime(2024, 1, 2),
        note="",
        category_id=food.id,
        account_id=checking.id,
        transaction_type="expense",
    )

    for bad in (
        {"amount": 0},
        {"category_id": 999},
        {"account_id": 999},
        {"transaction_type": "refund"},
    ):
        kwargs = {
            "amount": 10,
            "occurred_at": datetime(2024, 1, 3),
            "note": "",
            "category_id": food.id,
            "account_id": checking.id,
            "transaction_type": "income",
            **bad,
        }
        with pytest.raises(LedgerError):
            ledger.update(entry.id, user_id=user.id, **kwargs)
        assert_consistent()
