"""Read-only projections over the ledger: listing, dashboard and reports.

Nothing in this module writes. Totals are computed in integer cents and only
converted to major units when building the response dictionaries.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

from .. import money
from ..infra.database import SessionFactory
from ..infra.repositories import (
    SQLModelAccountRepository,
    SQLModelCategoryRepository,
    SQLModelTransactionRepository,
)
from ..models.transaction import Transaction
from .ledger_service import LedgerEntry

REPORT_TYPES = ("spending", "income", "categories", "balance")
TIME_RANGES = {"week": 7, "month": 30, "quarter": 90, "year": 365}
# Short windows chart per day, long windows per month
_DAILY_RANGES = {"week", "month"}

SERIES_COLORS = {"income": "#34C759", "expense": "#FF3B30", "balance": "#0A84FF"}


def percent_change(current: float, previous: float) -> float:
    """Period-over-period change in percent, rounded to one decimal.

    ``(current - previous) / previous * 100``. A zero previous period is a
    policy decision rather than arithmetic: 100.0 when something appeared,
    0.0 when both periods are empty.
    """

    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return round((current - previous) / previous * 100, 1)


def list_transactions(*, user_id: int, session_factory: SessionFactory) -> list[LedgerEntry]:
    """All transactions newest first, joined with category and account names."""

    with session_factory() as session:
        rows = SQLModelTransactionRepository(session).list_recent(user_id=user_id)
        return [LedgerEntry.from_row(row) for row in rows]


def _month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")


def dashboard(
    *,
    user_id: int,
    session_factory: SessionFactory,
    recent_limit: int = 5,
    category_limit: int = 5,
    month_limit: int = 6,
) -> dict[str, Any]:
    """Total balance, recent activity, top spending categories and monthly totals.

    Totals are aggregated in SQL; only ``recent_limit`` rows are loaded.
    """

    with session_factory() as session:
        transactions = SQLModelTransactionRepository(session)
        recent = [
            LedgerEntry.from_row(row)
            for row in transactions.list_recent(user_id=user_id, limit=recent_limit)
        ]
        months = transactions.monthly_totals(user_id=user_id, limit=month_limit)
        spending = transactions.expense_totals_by_category(user_id=user_id, limit=category_limit)
        total_balance = SQLModelAccountRepository(session).total_balance(user_id=user_id)

    monthly_summary = [
        {
            "month": f"{year:04d}-{month:02d}",
            "income": money.from_cents(income),
            "expense": money.from_cents(expense),
        }
        for year, month, income, expense in months
    ]
    latest = monthly_summary[0] if monthly_summary else {"income": 0.0, "expense": 0.0}

    return {
        "balance": money.from_cents(total_balance),
        "income": latest["income"],
        "expenses": latest["expense"],
        "recentTransactions": [entry.to_dict() for entry in recent],
        "categorySpending": [
            {"name": name, "total": money.from_cents(total), "color": color}
            for _category_id, name, color, total in spending
        ],
        "monthlySummary": monthly_summary,
    }


# --------------------------------------------------------------------- reports


@dataclass(frozen=True, slots=True)
class ReportWindow:
    """Half-open ``[start, end)`` span of whole days."""

    start: datetime
    end: datetime
    days: int

    @classmethod
    def ending_on(cls, today: date, days: int) -> "ReportWindow":
        end = datetime.combine(today + timedelta(days=1), time.min)
        return cls(start=end - timedelta(days=days), end=end, days=days)

    def previous(self) -> "ReportWindow":
        return ReportWindow(start=self.start - timedelta(days=self.days), end=self.start, days=self.days)


def _bucket_keys(window: ReportWindow, daily: bool) -> list[str]:
    keys: list[str] = []
    cursor = window.start
    while cursor < window.end:
        key = cursor.strftime("%Y-%m-%d") if daily else _month_key(cursor)
        if not keys or keys[-1] != key:
            keys.append(key)
        cursor += timedelta(days=1)
    return keys


def _bucket_key(moment: datetime, daily: bool) -> str:
    return moment.strftime("%Y-%m-%d") if daily else _month_key(moment)


@dataclass(frozen=True, slots=True)
class _PeriodStats:
    total: int
    largest: int
    count: int


def _stats(transactions: Iterable[Transaction], report_type: str) -> _PeriodStats:
    if report_type == "income":
        values = [t.amount_cents for t in transactions if t.transaction_type == money.INCOME]
        return _PeriodStats(total=sum(values), largest=max(values, default=0), count=len(values))
    if report_type == "balance":
        rows = list(transactions)
        return _PeriodStats(
            total=sum(t.signed_cents for t in rows),
            largest=max((t.amount_cents for t in rows), default=0),
            count=len(rows),
        )
    values = [t.amount_cents for t in transactions if t.transaction_type == money.EXPENSE]
    return _PeriodStats(total=sum(values), largest=max(values, default=0), count=len(values))


def _summary(current: _PeriodStats, previous: _PeriodStats, report_type: str, days: int) -> list[dict]:
    total_label = {
        "income": "Total Income",
        "balance": "Net Change",
    }.get(report_type, "Total Spending")
    current_avg = current.total / days
    previous_avg = previous.total / days
    return [
        {
            "label": total_label,
            "value": money.from_cents(current.total),
            "change": percent_change(current.total, previous.total),
        },
        {
            "label": "Average per Day",
            "value": round(current_avg / 100, 2),
            "change": percent_change(current_avg, previous_avg),
        },
        {
            "label": "Largest Transaction",
            "value": money.from_cents(current.largest),
            "change": percent_change(current.largest, previous.largest),
        },
        {
            "label": "Transactions",
            "value": current.count,
            "change": percent_change(current.count, previous.count),
        },
    ]


def report(
    *,
    user_id: int,
    report_type: str,
    time_range: str,
    session_factory: SessionFactory,
    today: date | None = None,
) -> dict[str, Any]:
    """Chart, category and summary data for the requested window.

    Raises:
        ValueError: for an unknown ``report_type`` or ``time_range``
    """

    if report_type not in REPORT_TYPES:
        raise ValueError(f"reportType must be one of {', '.join(REPORT_TYPES)}")
    if time_range not in TIME_RANGES:
        raise ValueError(f"timeRange must be one of {', '.join(TIME_RANGES)}")

    window = ReportWindow.ending_on(today or date.today(), TIME_RANGES[time_range])
    prior = window.previous()
    daily = time_range in _DAILY_RANGES

    with session_factory() as session:
        repo = SQLModelTransactionRepository(session)
        current_rows = repo.list_between(window.start, window.end, user_id=user_id)
        previous_rows = repo.list_between(prior.start, prior.end, user_id=user_id)
        opening_cents = repo.signed_total_before(window.start, user_id=user_id)
        categories = {
            category.id: category
            for category in SQLModelCategoryRepository(session).list_all(user_id=user_id)
        }

    keys = _bucket_keys(window, daily)
    buckets: dict[str, dict[str, int]] = {key: {"income": 0, "expense": 0} for key in keys}
    by_category: dict[int, dict[str, int]] = defaultdict(lambda: {"income": 0, "expense": 0})
    for row in current_rows:
        field = "income" if row.transaction_type == money.INCOME else "expense"
        buckets[_bucket_key(row.occurred_at, daily)][field] += row.amount_cents
        by_category[row.category_id][field] += row.amount_cents

    category_field = "income" if report_type == "income" else "expense"
    category_data = [
        {
            "name": categories[category_id].name,
            "value": money.from_cents(totals[category_field]),
            "color": categories[category_id].color,
        }
        for category_id, totals in by_category.items()
        if totals[category_field] > 0 and category_id in categories
    ]
    category_data.sort(key=lambda item: (-item["value"], item["name"]))

    if report_type == "categories":
        chart_data = [
            {
                "name": categories[category_id].name,
                "income": money.from_cents(totals["income"]),
                "expense": money.from_cents(totals["expense"]),
            }
            for category_id, totals in sorted(
                by_category.items(), key=lambda item: -(item[1]["income"] + item[1]["expense"])
            )
            if category_id in categories
        ]
        series_keys = ["income", "expense"]
    elif report_type == "balance":
        chart_data = []
        running = opening_cents
        for key in keys:
            running += buckets[key]["income"] - buckets[key]["expense"]
            chart_data.append(
                {
                    "name": key,
                    "income": money.from_cents(buckets[key]["income"]),
                    "expense": money.from_cents(buckets[key]["expense"]),
                    "balance": money.from_cents(running),
                }
            )
        series_keys = ["balance"]
    else:
        field = "income" if report_type == "income" else "expense"
        chart_data = [{"name": key, field: money.from_cents(buckets[key][field])} for key in keys]
        series_keys = [field]

    series = [
        {"key": key, "name": key.capitalize(), "color": SERIES_COLORS[key]} for key in series_keys
    ]

    return {
        "chartData": chart_data,
        "series": series,
        "categoryData": category_data,
        "summary": _summary(
            _stats(current_rows, report_type),
            _stats(previous_rows, report_type),
            report_type,
            window.days,
        ),
    }
