"""Ledger category definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction
    from .user import User

DEFAULT_COLOR = "#0A84FF"


class Category(SQLModel, table=True):
    """Transaction category used for reporting; ``color`` is a display hint."""

    __tablename__: ClassVar[str] = "category"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(index=True, nullable=False, max_length=64)
    color: str = Field(default=DEFAULT_COLOR, nullable=False, max_length=7)

    transactions: list["Transaction"] = Relationship(
        back_populates="category",
        sa_relationship=relationship("Transaction", back_populates="category"),
    )
    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="categories"))
