"""
Category API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from moneybook.database import get_db
from moneybook.dependencies import get_current_user, require_ownership
from moneybook.models import EntryType, User
from moneybook.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryUsage,
)
from moneybook.schemas.common import ApiResponse, envelope
from moneybook.services import category_service

router = APIRouter(prefix="/categories", tags=["categories"])

owns_category = require_ownership("category", "category_id")


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
def list_categories(
    type: Optional[EntryType] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's categories, optionally only one type."""
    categories = category_service.list_for_user(db, current_user.id, type)
    return envelope(
        "Categories retrieved successfully",
        [CategoryResponse.model_validate(c) for c in categories]
    )


@router.get("/stats", response_model=ApiResponse[List[CategoryUsage]])
def category_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Transaction count and total per category."""
    stats = category_service.usage_stats_for_user(db, current_user.id)
    return envelope("Category statistics retrieved successfully", stats)


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=201)
def create_category(
    category: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    db_category = category_service.create_category(db, category, current_user.id)
    return envelope("Category created successfully", CategoryResponse.model_validate(db_category))


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
def get_category(
    category_id: int,
    current_user: User = Depends(owns_category),
    db: Session = Depends(get_db)
):
    category = category_service.get_category(db, category_id, current_user.id)
    return envelope("Category retrieved successfully", CategoryResponse.model_validate(category))


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    current_user: User = Depends(owns_category),
    db: Session = Depends(get_db)
):
    category = category_service.update_category(db, category_id, category_update, current_user.id)
    return envelope("Category updated successfully", CategoryResponse.model_validate(category))


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category(
    category_id: int,
    current_user: User = Depends(owns_category),
    db: Session = Depends(get_db)
):
    """Delete a category that no transaction uses."""
    category_service.delete_category(db, category_id, current_user.id)
    return envelope("Category deleted successfully")
