"""
Transaction operations and aggregate reports.

Every query here filters on ``user_id``. Sums are taken over integer minor
units in SQL and converted to Decimal afterwards, so totals never pick up
floating-point drift.
"""

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from moneybook.exceptions import NotFoundError, ValidationFailed
from moneybook.models import Category, EntryType, Transaction
from moneybook.money import ZERO, from_minor, quantize
from moneybook.schemas.report import (
    Balance,
    CategoryBreakdown,
    MonthlySummary,
    TypeStatistics,
    TypeTotals,
)
from moneybook.schemas.transaction import (
    DeletedTransaction,
    TransactionCreate,
    TransactionFilters,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2
SEARCH_DEFAULT_LIMIT = 50
TYPE_ORDER = {EntryType.income: 0, EntryType.expense: 1}


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the following month."""
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


def validate_period(month: Optional[int], year: Optional[int], today: Optional[date] = None) -> None:
    """Month 1-12 and year 1900..today+10; either may be omitted."""
    today = today or date.today()
    errors = []
    if month is not None and not 1 <= month <= 12:
        errors.append({"field": "month", "message": "Month must be between 1 and 12"})
    if year is not None and not 1900 <= year <= today.year + 10:
        errors.append({"field": "year", "message": "Invalid year"})
    if errors:
        raise ValidationFailed("Invalid period", errors=errors)


def ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_long_date(day: date) -> str:
    """e.g. ``Monday, January 15th 2024``."""
    return f"{calendar.day_name[day.weekday()]}, {calendar.month_name[day.month]} {ordinal(day.day)} {day.year}"


def _owned(db: Session, user_id: int) -> Query:
    return db.query(Transaction).options(joinedload(Transaction.category)).filter(
        Transaction.user_id == user_id
    )


def _apply_filters(query: Query, filters: TransactionFilters) -> Query:
    query = query.filter(Transaction.user_id == filters.user_id)

    if filters.type:
        query = query.filter(Transaction.type == filters.type)
    if filters.category_id:
        query = query.filter(Transaction.category_id == filters.category_id)
    if filters.start_date:
        query = query.filter(Transaction.transaction_date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Transaction.transaction_date <= filters.end_date)

    if filters.month and filters.year:
        start, end = month_bounds(filters.year, filters.month)
        query = query.filter(
            Transaction.transaction_date >= start,
            Transaction.transaction_date < end
        )
    elif filters.year:
        query = query.filter(
            Transaction.transaction_date >= date(filters.year, 1, 1),
            Transaction.transaction_date < date(filters.year + 1, 1, 1)
        )

    return query


def list_transactions(db: Session, filters: TransactionFilters) -> List[Transaction]:
    """Newest activity first: by transaction date, then by insertion recency."""
    query = _apply_filters(
        db.query(Transaction).options(joinedload(Transaction.category)),
        filters
    ).order_by(
        Transaction.transaction_date.desc(),
        Transaction.created_at.desc(),
        Transaction.id.desc()
    )

    if filters.limit:
        query = query.limit(filters.limit)
    if filters.offset:
        query = query.offset(filters.offset)

    return query.all()


def count_transactions(db: Session, filters: TransactionFilters) -> int:
    return _apply_filters(db.query(func.count(Transaction.id)), filters).scalar()


def get_transaction(db: Session, transaction_id: int, user_id: int) -> Transaction:
    transaction = _owned(db, user_id).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise NotFoundError("Transaction not found")
    return transaction


def resolve_category(db: Session, category_id: Optional[int], entry_type: EntryType,
                     user_id: int) -> Optional[Category]:
    """The referenced category must exist, belong to the user and share the transaction's type."""
    if category_id is None:
        return None

    category = db.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id
    ).first()
    if not category:
        raise ValidationFailed(
            "Invalid category ID",
            errors=[{"field": "category_id", "message": "Invalid category ID"}]
        )

    if category.type != entry_type:
        message = (
            f"Category type ({category.type.value}) does not match "
            f"transaction type ({entry_type.value})"
        )
        raise ValidationFailed(message, errors=[{"field": "category_id", "message": message}])

    return category


def create_transaction(db: Session, payload: TransactionCreate, user_id: int) -> Transaction:
    category = resolve_category(db, payload.category_id, payload.type, user_id)

    transaction = Transaction(
        title=payload.title,
        amount=payload.amount,
        type=payload.type,
        category_id=category.id if category else None,
        description=payload.description,
        transaction_date=payload.transaction_date or date.today(),
        user_id=user_id,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    logger.info(f"User {user_id} created transaction {transaction.id}")
    return transaction


def update_transaction(db: Session, transaction_id: int, payload: TransactionUpdate,
                       user_id: int) -> Transaction:
    transaction = get_transaction(db, transaction_id, user_id)
    category = resolve_category(db, payload.category_id, payload.type, user_id)

    transaction.title = payload.title
    transaction.amount = payload.amount
    transaction.type = payload.type
    transaction.category_id = category.id if category else None
    transaction.description = payload.description
    transaction.transaction_date = payload.transaction_date

    db.commit()
    db.refresh(transaction)
    return transaction


def delete_transaction(db: Session, transaction_id: int, user_id: int) -> DeletedTransaction:
    """Delete and return a summary of what was removed."""
    transaction = get_transaction(db, transaction_id, user_id)
    summary = DeletedTransaction.model_validate(transaction)

    db.delete(transaction)
    db.commit()
    logger.info(f"User {user_id} deleted transaction {transaction_id}")
    return summary


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_transactions(
    db: Session,
    term: Optional[str],
    user_id: int,
    entry_type: Optional[EntryType] = None,
    category_id: Optional[int] = None,
    limit: int = SEARCH_DEFAULT_LIMIT,
) -> Tuple[str, List[Transaction]]:
    """Case-insensitive match on title, description and category name."""
    cleaned = (term or "").strip()
    if len(cleaned) < SEARCH_MIN_LENGTH:
        raise ValidationFailed(
            "Search term must be at least 2 characters long",
            errors=[{"field": "q", "message": "Search term must be at least 2 characters long"}]
        )

    pattern = _like_pattern(cleaned)
    query = db.query(Transaction).outerjoin(
        Category, Transaction.category_id == Category.id
    ).options(
        joinedload(Transaction.category)
    ).filter(
        Transaction.user_id == user_id,
        or_(
            Transaction.title.ilike(pattern, escape="\\"),
            Transaction.description.ilike(pattern, escape="\\"),
            Category.name.ilike(pattern, escape="\\"),
        )
    )

    if entry_type:
        query = query.filter(Transaction.type == entry_type)
    if category_id:
        query = query.filter(Transaction.category_id == category_id)

    results = query.order_by(
        Transaction.transaction_date.desc(),
        Transaction.created_at.desc(),
        Transaction.id.desc()
    ).limit(limit).all()

    return cleaned, results


def _totals_by_type(db: Session, user_id: int, start: Optional[date] = None,
                    end: Optional[date] = None) -> dict:
    """{type: (count, total_minor)} for the user, optionally within [start, end)."""
    query = db.query(
        Transaction.type,
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.amount_minor), 0)
    ).filter(Transaction.user_id == user_id)

    if start:
        query = query.filter(Transaction.transaction_date >= start)
    if end:
        query = query.filter(Transaction.transaction_date < end)

    return {
        entry_type: (count, int(total))
        for entry_type, count, total in query.group_by(Transaction.type).all()
    }


def get_balance(db: Session, user_id: int) -> Balance:
    totals = _totals_by_type(db, user_id)
    income_minor = totals.get(EntryType.income, (0, 0))[1]
    expense_minor = totals.get(EntryType.expense, (0, 0))[1]

    return Balance(
        total_income=from_minor(income_minor),
        total_expense=from_minor(expense_minor),
        balance=from_minor(income_minor - expense_minor),
    )


def get_recent_activity(db: Session, user_id: int, limit: int = 10) -> List[Transaction]:
    """Most recently recorded transactions; id breaks ties between equal timestamps."""
    return _owned(db, user_id).order_by(
        Transaction.created_at.desc(),
        Transaction.id.desc()
    ).limit(limit).all()


def get_monthly_summary(db: Session, month: int, year: int, user_id: int) -> MonthlySummary:
    start, end = month_bounds(year, month)
    totals = _totals_by_type(db, user_id, start, end)

    income_count, income_minor = totals.get(EntryType.income, (0, 0))
    expense_count, expense_minor = totals.get(EntryType.expense, (0, 0))

    return MonthlySummary(
        income=TypeTotals(count=income_count, total=from_minor(income_minor)),
        expense=TypeTotals(count=expense_count, total=from_minor(expense_minor)),
        balance=from_minor(income_minor - expense_minor),
    )


def get_monthly_report(db: Session, month: int, year: int, user_id: int) -> List[CategoryBreakdown]:
    """Per (type, category) totals for the month: income first, largest totals first."""
    start, end = month_bounds(year, month)

    rows = db.query(
        Transaction.type,
        Category.id,
        Category.name,
        func.count(Transaction.id),
        func.sum(Transaction.amount_minor)
    ).outerjoin(
        Category, Transaction.category_id == Category.id
    ).filter(
        Transaction.user_id == user_id,
        Transaction.transaction_date >= start,
        Transaction.transaction_date < end
    ).group_by(
        Transaction.type, Category.id, Category.name
    ).all()

    rows = sorted(rows, key=lambda row: (TYPE_ORDER[row[0]], -int(row[4] or 0)))

    return [
        CategoryBreakdown(
            type=entry_type,
            category_id=category_id,
            category_name=category_name,
            transaction_count=count,
            total_amount=from_minor(total),
        )
        for entry_type, category_id, category_name, count, total in rows
    ]


def get_daily_transactions(db: Session, day: date, user_id: int) -> List[Transaction]:
    return _owned(db, user_id).filter(
        Transaction.transaction_date == day
    ).order_by(
        Transaction.created_at.desc(),
        Transaction.id.desc()
    ).all()


def get_statistics(db: Session, user_id: int, start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> List[TypeStatistics]:
    """count/total/average/min/max per type; both types are always reported."""
    query = db.query(
        Transaction.type,
        func.count(Transaction.id),
        func.sum(Transaction.amount_minor),
        func.min(Transaction.amount_minor),
        func.max(Transaction.amount_minor)
    ).filter(Transaction.user_id == user_id)

    if start_date:
        query = query.filter(Transaction.transaction_date >= start_date)
    if end_date:
        query = query.filter(Transaction.transaction_date <= end_date)

    found = {row[0]: row for row in query.group_by(Transaction.type).all()}

    statistics = []
    for entry_type in (EntryType.income, EntryType.expense):
        row = found.get(entry_type)
        if row is None:
            statistics.append(TypeStatistics(type=entry_type, count=0, total=ZERO, average=ZERO))
            continue

        _, count, total, minimum, maximum = row
        total_amount = from_minor(total)
        statistics.append(TypeStatistics(
            type=entry_type,
            count=count,
            total=total_amount,
            average=quantize(total_amount / Decimal(count)),
            minimum=from_minor(minimum),
            maximum=from_minor(maximum),
        ))

    return statistics
