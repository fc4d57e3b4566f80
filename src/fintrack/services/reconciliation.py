"""Recompute account balances from the ledger and optionally repair drift."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from .. import money
from ..domain.repositories import AccountRepository, TransactionRepository
from ..errors import StorageError
from ..infra.database import SessionFactory
from ..infra.repositories import SQLModelAccountRepository, SQLModelTransactionRepository
from ..logging_config import get_logger

logger = get_logger("reconciliation")


@dataclass(frozen=True, slots=True)
class BalanceCheck:
    """Stored versus ledger-derived balance for one account."""

    account_id: int
    name: str
    stored_cents: int
    computed_cents: int

    @property
    def drift_cents(self) -> int:
        return self.stored_cents - self.computed_cents

    @property
    def consistent(self) -> bool:
        return self.drift_cents == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "accountId": self.account_id,
            "name": self.name,
            "stored": money.from_cents(self.stored_cents),
            "computed": money.from_cents(self.computed_cents),
            "drift": money.from_cents(self.drift_cents),
        }


@dataclass(frozen=True, slots=True)
class ReconciliationReport:
    checks: tuple[BalanceCheck, ...]
    repaired: bool = False

    @property
    def drifted(self) -> list[BalanceCheck]:
        return [check for check in self.checks if not check.consistent]

    @property
    def consistent(self) -> bool:
        return not self.drifted

    def to_dict(self) -> dict[str, object]:
        return {
            "consistent": self.consistent,
            "repaired": self.repaired,
            "accounts": [check.to_dict() for check in self.checks],
        }


def _collect_checks(
    accounts: AccountRepository, transactions: TransactionRepository, *, user_id: int
) -> tuple[BalanceCheck, ...]:
    totals = transactions.signed_totals_by_account(user_id=user_id)
    return tuple(
        BalanceCheck(
            account_id=int(account.id),  # type: ignore[arg-type]
            name=account.name,
            stored_cents=account.balance_cents,
            computed_cents=totals.get(int(account.id), 0),  # type: ignore[arg-type]
        )
        for account in accounts.list_all(user_id=user_id)
    )


def reconcile(
    *, user_id: int, session_factory: SessionFactory, repair: bool = False
) -> ReconciliationReport:
    """Compare every account's cached balance with the sum of its transactions.

    With ``repair`` set, drifted balances are overwritten with the ledger value
    in a single commit. The returned report describes the state found before
    any repair.
    """

    with session_factory() as session:
        accounts = SQLModelAccountRepository(session)
        checks = _collect_checks(
            accounts, SQLModelTransactionRepository(session), user_id=user_id
        )
        report = ReconciliationReport(checks=checks, repaired=False)

        for check in report.drifted:
            logger.warning(
                "Balance drift detected",
                extra={
                    "account_id": check.account_id,
                    "stored_cents": check.stored_cents,
                    "computed_cents": check.computed_cents,
                    "user_id": user_id,
                },
            )

        if not repair or report.consistent:
            return report

        try:
            for check in report.drifted:
                accounts.set_balance(check.account_id, check.computed_cents, user_id=user_id)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Balance repair failed; rolled back", extra={"user_id": user_id})
            raise StorageError() from exc

    logger.info(
        "Repaired account balances",
        extra={"accounts": [check.account_id for check in report.drifted], "user_id": user_id},
    )
    return ReconciliationReport(checks=checks, repaired=True)


def is_consistent(*, user_id: int, session_factory: SessionFactory) -> bool:
    """True when every stored balance equals its ledger sum."""

    return reconcile(user_id=user_id, session_factory=session_factory).consistent
