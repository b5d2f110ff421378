"""
Category Pydantic schemas for API validation.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from moneybook.models.category import EntryType


class CategoryBase(BaseModel):
    """Base category schema."""
    name: str = Field(..., min_length=2, max_length=100)
    type: EntryType
    description: Optional[str] = Field(None, max_length=500)


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CategoryUpdate(CategoryBase):
    """Schema for replacing a category's fields."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CategoryResponse(CategoryBase):
    """Schema for category response."""
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CategoryUsage(BaseModel):
    """Per-category usage; unused categories report zero."""
    id: int
    name: str
    type: EntryType
    transaction_count: int
    total_amount: Decimal
