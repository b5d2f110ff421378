"""
Transaction database model.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Date, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from moneybook.database import Base
from moneybook.models.category import EntryType
from moneybook.money import from_minor, to_minor


class Transaction(Base):
    """
    Transaction model.

    Amounts are stored as integer minor units (cents) so SQL aggregates stay
    exact on every backend; ``amount`` exposes them as a 2-place Decimal.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    amount_minor = Column(BigInteger, nullable=False)
    type = Column(Enum(EntryType, name="entry_type"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True)
    description = Column(String(500), nullable=True)
    transaction_date = Column(Date, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")

    # Indexes for common queries
    __table_args__ = (
        Index("idx_transaction_user_date", "user_id", "transaction_date"),
        Index("idx_transaction_category", "category_id"),
    )

    @property
    def amount(self) -> Decimal:
        return from_minor(self.amount_minor)

    @amount.setter
    def amount(self, value: Decimal) -> None:
        self.amount_minor = to_minor(value)

    @property
    def category_name(self):
        return self.category.name if self.category else None
