"""Request payload validation for the JSON API."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ...errors import ValidationError
from ...money import MAX_AMOUNT, TRANSACTION_TYPES

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def parse_timestamp(raw: str) -> datetime:
    """Parse ``YYYY-MM-DD`` or ISO-8601; aware values are stored as naive UTC."""

    raw = raw.strip()
    if len(raw) == 10:
        return datetime.strptime(raw, "%Y-%m-%d")
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class _Form:
    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, Any] = field(default_factory=dict, init=False)

    def _add_error(self, name: str, message: str) -> None:
        """Accumulate validation errors for a specific field."""

        self.errors.setdefault(name, []).append(message)

    def _optional_id(self, key: str) -> Optional[int]:
        raw = self.raw_data.get(key)
        if raw in (None, ""):
            return None
        if isinstance(raw, bool):
            self._add_error(key, "Must be a whole number.")
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            self._add_error(key, "Must be a whole number.")
            return None
        if value <= 0:
            self._add_error(key, "Must be greater than zero.")
            return None
        return value

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError("Invalid request", errors=self.errors)


@dataclass
class TransactionForm(_Form):
    """Transaction payload: ``{amount, date, note, category|categoryId, accountId|account, transactionType}``."""

    amount: Optional[Decimal] = None
    occurred_at: Optional[datetime] = None
    note: str = ""
    category_name: Optional[str] = None
    category_id: Optional[int] = None
    account_name: Optional[str] = None
    account_id: Optional[int] = None
    transaction_type: Optional[str] = None

    _KEYS = (
        "amount",
        "date",
        "note",
        "description",
        "category",
        "categoryId",
        "account",
        "accountId",
        "transactionType",
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "TransactionForm":
        """Create a form populated from request data."""

        form = cls()
        data = data or {}
        form.raw_data = {key: data.get(key) for key in cls._KEYS}
        return form

    def validate(self) -> bool:
        """Validate the bound data and populate typed attributes."""

        self.errors.clear()

        amount_raw = self.raw_data.get("amount")
        self.amount = None
        if amount_raw in (None, "") or isinstance(amount_raw, bool):
            self._add_error("amount", "Amount is required.")
        else:
            try:
                parsed_amount = Decimal(_as_text(amount_raw).strip())
            except InvalidOperation:
                self._add_error("amount", "Enter a valid number for the amount.")
            else:
                if not parsed_amount.is_finite():
                    self._add_error("amount", "Enter a valid number for the amount.")
                elif parsed_amount <= 0:
                    self._add_error("amount", "Amount must be greater than zero.")
                elif parsed_amount > MAX_AMOUNT:
                    self._add_error("amount", f"Amount must not exceed {MAX_AMOUNT}.")
                else:
                    self.amount = parsed_amount

        date_raw = _as_text(self.raw_data.get("date")).strip()
        self.occurred_at = None
        if not date_raw:
            self._add_error("date", "Date is required.")
        else:
            try:
                self.occurred_at = parse_timestamp(date_raw)
            except ValueError:
                self._add_error("date", "Enter a valid date (YYYY-MM-DD or ISO-8601).")

        note_raw = self.raw_data.get("note")
        if note_raw is None:
            note_raw = self.raw_data.get("description")
        self.note = _as_text(note_raw).strip()
        if len(self.note) > 255:
            self._add_error("note", "Note must be 255 characters or fewer.")

        self.category_id = self._optional_id("categoryId")
        self.category_name = _as_text(self.raw_data.get("category")).strip() or None
        if self.category_id is None and self.category_name is None and "categoryId" not in self.errors:
            self._add_error("category", "Category is required.")

        self.account_id = self._optional_id("accountId")
        self.account_name = _as_text(self.raw_data.get("account")).strip() or None
        if self.account_id is None and self.account_name is None and "accountId" not in self.errors:
            self._add_error("accountId", "Account is required.")

        type_raw = _as_text(self.raw_data.get("transactionType")).strip().lower()
        self.transaction_type = None
        if type_raw not in TRANSACTION_TYPES:
            self._add_error("transactionType", "Transaction type must be income or expense.")
        else:
            self.transaction_type = type_raw

        return not self.errors


@dataclass
class CategoryForm(_Form):
    """Category payload ``{name, color}``; ``partial`` forms accept either field alone."""

    name: Optional[str] = None
    color: Optional[str] = None
    partial: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None, *, partial: bool = False) -> "CategoryForm":
        form = cls(partial=partial)
        data = data or {}
        form.raw_data = {key: data.get(key) for key in ("name", "color")}
        return form

    def validate(self) -> bool:
        self.errors.clear()

        name_raw = self.raw_data.get("name")
        self.name = None
        if name_raw is None and self.partial:
            pass
        else:
            name = _as_text(name_raw).strip()
            if not name:
                self._add_error("name", "Name is required.")
            elif len(name) > 64:
                self._add_error("name", "Name must be 64 characters or fewer.")
            else:
                self.name = name

        color_raw = self.raw_data.get("color")
        self.color = None
        if color_raw not in (None, ""):
            color = _as_text(color_raw).strip()
            if not _HEX_COLOR.match(color):
                self._add_error("color", "Color must be a hex value like #0A84FF.")
            else:
                self.color = color.upper()

        return not self.errors


@dataclass
class AccountForm(_Form):
    """Account payload ``{name, balance}``; ``balance`` is the opening balance."""

    name: Optional[str] = None
    balance: Decimal = Decimal("0")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AccountForm":
        form = cls()
        data = data or {}
        form.raw_data = {key: data.get(key) for key in ("name", "balance")}
        return form

    def validate(self) -> bool:
        self.errors.clear()

        name = _as_text(self.raw_data.get("name")).strip()
        self.name = None
        if not name:
            self._add_error("name", "Name is required.")
        elif len(name) > 128:
            self._add_error("name", "Name must be 128 characters or fewer.")
        else:
            self.name = name

        balance_raw = self.raw_data.get("balance")
        self.balance = Decimal("0")
        if balance_raw not in (None, ""):
            try:
                balance = Decimal(_as_text(balance_raw).strip())
            except InvalidOperation:
                self._add_error("balance", "Enter a valid number for the balance.")
            else:
                if not balance.is_finite() or isinstance(balance_raw, bool):
                    self._add_error("balance", "Enter a valid number for the balance.")
                elif abs(balance) > MAX_AMOUNT:
                    self._add_error("balance", f"Balance must not exceed {MAX_AMOUNT}.")
                else:
                    self.balance = balance

        return not self.errors
