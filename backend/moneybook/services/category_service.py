"""Category operations, always scoped to the owning user."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moneybook.exceptions import ConflictError, NotFoundError
from moneybook.models import Category, EntryType, Transaction
from moneybook.money import from_minor
from moneybook.schemas.category import CategoryCreate, CategoryUpdate, CategoryUsage

logger = logging.getLogger(__name__)

IN_USE_MESSAGE = "Cannot delete category that is being used by transactions"


def name_exists(db: Session, name: str, user_id: int, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category.id).filter(
        func.lower(Category.name) == name.lower(),
        Category.user_id == user_id
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def usage_count(db: Session, category_id: int) -> int:
    return db.query(func.count(Transaction.id)).filter(
        Transaction.category_id == category_id
    ).scalar()


def get_category(db: Session, category_id: int, user_id: int) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def list_for_user(db: Session, user_id: int, entry_type: Optional[EntryType] = None) -> List[Category]:
    query = db.query(Category).filter(Category.user_id == user_id)
    if entry_type:
        query = query.filter(Category.type == entry_type)
    return query.order_by(Category.type, Category.name).all()


def create_category(db: Session, payload: CategoryCreate, user_id: int) -> Category:
    if name_exists(db, payload.name, user_id):
        raise ConflictError("Category name already exists")

    category = Category(
        name=payload.name,
        type=payload.type,
        description=payload.description,
        user_id=user_id,
    )
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent insert of the same name
        db.rollback()
        raise ConflictError("Category name already exists")
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, payload: CategoryUpdate, user_id: int) -> Category:
    category = get_category(db, category_id, user_id)

    if name_exists(db, payload.name, user_id, exclude_id=category.id):
        raise ConflictError("Category name already exists")

    # Referencing transactions must keep the same type as their category
    if payload.type != category.type and usage_count(db, category.id) > 0:
        raise ConflictError("Cannot change the type of a category that is being used by transactions")

    category.name = payload.name
    category.type = payload.type
    category.description = payload.description

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Category name already exists")
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int, user_id: int) -> None:
    """
    Delete a category that no transaction references.

    The count check gives a friendly error; the RESTRICT foreign key on
    transactions.category_id closes the window between check and delete.
    """
    category = get_category(db, category_id, user_id)

    if usage_count(db, category.id) > 0:
        raise ConflictError(IN_USE_MESSAGE)

    db.delete(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Category {category_id} gained a transaction before it could be deleted")
        raise ConflictError(IN_USE_MESSAGE)


def usage_stats_for_user(db: Session, user_id: int) -> List[CategoryUsage]:
    """Every category of the user with its transaction count and total, zeros included."""
    txn_count = func.count(Transaction.id)
    rows = db.query(
        Category.id,
        Category.name,
        Category.type,
        txn_count.label("transaction_count"),
        func.coalesce(func.sum(Transaction.amount_minor), 0).label("total_minor"),
    ).outerjoin(
        Transaction,
        (Transaction.category_id == Category.id) & (Transaction.user_id == user_id)
    ).filter(
        Category.user_id == user_id
    ).group_by(
        Category.id, Category.name, Category.type
    ).order_by(
        Category.type, txn_count.desc(), Category.name
    ).all()

    return [
        CategoryUsage(
            id=row.id,
            name=row.name,
            type=row.type,
            transaction_count=row.transaction_count,
            total_amount=from_minor(row.total_minor),
        )
        for row in rows
    ]
