"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .category import SQLModelCategoryRepository
from .transaction import SQLModelTransactionRepository, signed_amount_expr

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelCategoryRepository",
    "SQLModelTransactionRepository",
    "signed_amount_expr",
]
