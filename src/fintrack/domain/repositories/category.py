"""Category repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.category import Category


class CategoryRepository(Protocol):
    """Repository for managing category entities."""

    def get(self, category_id: int, *, user_id: int) -> Optional[Category]:
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Category]:
        ...

    def list_all(self, *, user_id: int) -> list[Category]:
        ...

    def add(self, category: Category) -> Category:
        ...

    def delete(self, category: Category) -> None:
        ...

    def has_transactions(self, category_id: int, *, user_id: int) -> bool:
        ...
