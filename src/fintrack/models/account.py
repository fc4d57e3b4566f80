"""Account model holding the cached ledger balance."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction
    from .user import User


class Account(SQLModel, table=True):
    """A money account whose balance mirrors the sum of its transactions.

    ``balance_cents`` is a cached aggregate in integer cents. It only moves as a
    side effect of a transaction mutation, through an atomic
    ``balance_cents = balance_cents + delta`` statement, or when reconciliation
    repairs drift.
    """

    __tablename__: ClassVar[str] = "account"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    balance_cents: int = Field(default=0, nullable=False)

    transactions: list["Transaction"] = Relationship(
        back_populates="account",
        sa_relationship=relationship("Transaction", back_populates="account"),
    )
    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="accounts"))
