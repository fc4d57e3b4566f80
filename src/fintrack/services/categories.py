"""Category management for the ledger owner."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories import SQLModelCategoryRepository
from ..logging_config import get_logger
from ..models.category import DEFAULT_COLOR, Category

logger = get_logger("categories")


def category_to_dict(category: Category) -> dict[str, object]:
    return {"id": category.id, "name": category.name, "color": category.color}


def list_categories(*, user_id: int, session_factory: SessionFactory) -> list[Category]:
    """Return the owner's categories ordered by name."""
    with session_factory() as session:
        rows = SQLModelCategoryRepository(session).list_all(user_id=user_id)
        session.expunge_all()
    return rows


def create_category(
    *,
    user_id: int,
    name: str,
    color: Optional[str] = None,
    session_factory: SessionFactory,
) -> Category:
    """Add a category; names are unique per owner regardless of case."""

    name = name.strip()
    with session_factory() as session:
        repo = SQLModelCategoryRepository(session)
        if repo.get_by_name(name, user_id=user_id) is not None:
            raise ValidationError("Category already exists", errors={"name": ["Name already in use."]})
        try:
            category = repo.add(Category(user_id=user_id, name=name, color=color or DEFAULT_COLOR))
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ValidationError(
                "Category already exists", errors={"name": ["Name already in use."]}
            ) from exc
        session.expunge(category)
    logger.info("Created category", extra={"category_id": category.id, "user_id": user_id})
    return category


def update_category(
    category_id: int,
    *,
    user_id: int,
    name: Optional[str] = None,
    color: Optional[str] = None,
    session_factory: SessionFactory,
) -> Category:
    """Rename and/or recolour a category. Existing transactions follow the new name."""

    with session_factory() as session:
        repo = SQLModelCategoryRepository(session)
        category = repo.get(category_id, user_id=user_id)
        if category is None:
            raise NotFoundError("Category not found")
        if name is not None:
            name = name.strip()
            clash = repo.get_by_name(name, user_id=user_id)
            if clash is not None and clash.id != category.id:
                raise ValidationError(
                    "Category already exists", errors={"name": ["Name already in use."]}
                )
            category.name = name
        if color is not None:
            category.color = color
        session.add(category)
        session.commit()
        session.refresh(category)
        session.expunge(category)
    return category


def delete_category(category_id: int, *, user_id: int, session_factory: SessionFactory) -> None:
    """Delete an unused category; categories referenced by transactions are kept."""

    with session_factory() as session:
        repo = SQLModelCategoryRepository(session)
        category = repo.get(category_id, user_id=user_id)
        if category is None:
            raise NotFoundError("Category not found")
        if repo.has_transactions(category_id, user_id=user_id):
            raise ConflictError("Category is used by existing transactions")
        repo.delete(category)
        session.commit()
    logger.info("Deleted category", extra={"category_id": category_id, "user_id": user_id})
