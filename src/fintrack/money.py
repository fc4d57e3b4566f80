"""Money conversion helpers.

Amounts live in the database as integer cents. Incoming values are parsed with
``Decimal`` and quantized half-up to two places; outgoing values are plain
numbers in major units for JSON consumers.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

_CENT = Decimal("0.01")
# Largest magnitude a single amount may carry (a DECIMAL(10, 2) column)
MAX_AMOUNT = Decimal("99999999.99")

Number = Union[int, float, str, Decimal]


def to_cents(value: Number) -> int:
    """Convert a major-unit amount (``"12.34"``, ``12.34``) to integer cents.

    Raises:
        ValueError: if the value is not a finite number or its magnitude
            exceeds :data:`MAX_AMOUNT`
    """

    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    try:
        # str() keeps float inputs from dragging binary noise into Decimal
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"Amount must not exceed {MAX_AMOUNT}")
    try:
        quantized = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if abs(quantized) > MAX_AMOUNT:
        raise ValueError(f"Amount must not exceed {MAX_AMOUNT}")
    return int(quantized * 100)


def from_cents(cents: int) -> float:
    """Render integer cents as a major-unit number for JSON output."""

    return float(Decimal(cents) / 100)


def signed_cents(amount_cents: int, transaction_type: str) -> int:
    """Return the signed value of a stored magnitude: income positive, expense negative."""

    magnitude = abs(amount_cents)
    if transaction_type == INCOME:
        return magnitude
    if transaction_type == EXPENSE:
        return -magnitude
    raise ValueError(f"Unknown transaction type: {transaction_type!r}")


def split_signed(value_cents: int) -> tuple[int, str]:
    """Inverse of :func:`signed_cents`: magnitude plus the type implied by the sign."""

    if value_cents < 0:
        return -value_cents, EXPENSE
    return value_cents, INCOME


def normalize_transaction_type(raw: str | None) -> str:
    """Lower-case and validate a transaction type string."""

    value = (raw or "").strip().lower()
    if value not in TRANSACTION_TYPES:
        raise ValueError(f"Transaction type must be one of {', '.join(TRANSACTION_TYPES)}")
    return value
