"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import CheckConstraint, Column, DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from .. import money

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .account import Account
    from .category import Category
    from .user import User


class Transaction(SQLModel, table=True):
    """A single ledger entry.

    The row stores a positive magnitude plus ``transaction_type``; the signed
    value is always derived, never persisted.
    """

    __tablename__: ClassVar[str] = "transaction"
    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transaction_positive_amount"),
        CheckConstraint(
            "transaction_type IN ('income', 'expense')",
            name="ck_transaction_type",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    # Naive UTC; timezone-aware input is normalized before it reaches the model
    occurred_at: datetime = Field(
        sa_column=Column(DateTime(timezone=False), nullable=False, index=True)
    )
    amount_cents: int = Field(nullable=False, description="Positive magnitude in cents")
    transaction_type: str = Field(nullable=False, max_length=16)
    note: str = Field(default="", max_length=255)

    category_id: int = Field(foreign_key="category.id", nullable=False, index=True)
    category: "Category" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Category", back_populates="transactions"),
    )

    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    account: "Account" = Relationship(
        back_populates="transactions",
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="transactions"))

    @property
    def signed_cents(self) -> int:
        """Income positive, expense negative."""

        return money.signed_cents(self.amount_cents, self.transaction_type)
