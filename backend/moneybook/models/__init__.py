"""
Database models package.
"""

from moneybook.models.user import User
from moneybook.models.category import Category, EntryType
from moneybook.models.transaction import Transaction

__all__ = [
    "User",
    "Category",
    "EntryType",
    "Transaction",
]
