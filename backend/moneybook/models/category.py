"""
Category database model.
"""

import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from moneybook.database import Base


class EntryType(str, enum.Enum):
    """Direction of money for categories and transactions."""
    income = "income"
    expense = "expense"


class Category(Base):
    """Category owned by a single user."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(EntryType, name="entry_type"), nullable=False)
    description = Column(String(500), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="categories")
    transactions = relationship("Transaction", back_populates="category", passive_deletes=True)


# Names are unique per user regardless of case
Index("uq_category_name_user", func.lower(Category.name), Category.user_id, unique=True)
