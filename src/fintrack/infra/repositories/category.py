"""SQLModel implementation of Category repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.category import Category
from ...models.transaction import Transaction


@dataclass
class SQLModelCategoryRepository:
    """Category repository bound to the caller's session (unit of work)."""

    session: Session

    def get(self, category_id: int, *, user_id: int) -> Optional[Category]:
        """Retrieve a category by ID."""
        return self.session.exec(
            select(Category).where(Category.id == category_id, Category.user_id == user_id)
        ).first()

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Category]:
        """Retrieve a category by name, ignoring case and surrounding whitespace."""
        return self.session.exec(
            select(Category).where(
                func.lower(Category.name) == name.strip().lower(),
                Category.user_id == user_id,
            )
        ).first()

    def list_all(self, *, user_id: int) -> list[Category]:
        """List all categories."""
        statement = (
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(Category.name, Category.id)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def add(self, category: Category) -> Category:
        self.session.add(category)
        self.session.flush()
        return category

    def delete(self, category: Category) -> None:
        self.session.delete(category)
        self.session.flush()

    def has_transactions(self, category_id: int, *, user_id: int) -> bool:
        return (
            self.session.exec(
                select(Transaction.id)
                .where(Transaction.category_id == category_id, Transaction.user_id == user_id)
                .limit(1)
            ).first()
            is not None
        )
