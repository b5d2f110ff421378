"""
Transaction API endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from moneybook.database import get_db
from moneybook.dependencies import (
    get_current_user,
    limit_body_size,
    limit_transaction_creation,
    require_ownership,
)
from moneybook.exceptions import ValidationFailed
from moneybook.models import EntryType, User
from moneybook.schemas.common import ApiResponse, envelope
from moneybook.schemas.report import (
    DailyTransactions,
    MonthlyReport,
    StatisticsPeriod,
    StatisticsReport,
)
from moneybook.schemas.transaction import (
    DATE_PATTERN,
    DeletedTransaction,
    Pagination,
    SearchData,
    TransactionCreate,
    TransactionFilters,
    TransactionListData,
    TransactionResponse,
    TransactionUpdate,
)
from moneybook.services import transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])

owns_transaction = require_ownership("transaction", "transaction_id")


def parse_iso_date(value: str, field: str) -> date:
    try:
        if not DATE_PATTERN.match(value):
            raise ValueError(value)
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationFailed(
            f"Invalid {field} format. Use YYYY-MM-DD",
            errors=[{"field": field, "message": "Date must be in YYYY-MM-DD format"}]
        )


@router.get("", response_model=ApiResponse[TransactionListData])
def list_transactions(
    type: Optional[EntryType] = None,
    category_id: Optional[int] = Query(None, ge=1),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List transactions with filtering and pagination"""
    transaction_service.validate_period(month, year)

    filters = TransactionFilters(
        user_id=current_user.id,
        type=type,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
        month=month,
        year=year,
        limit=limit,
        offset=offset,
    )

    transactions = transaction_service.list_transactions(db, filters)
    total = transaction_service.count_transactions(db, filters)

    data = TransactionListData(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            page=offset // limit + 1,
            pages=(total + limit - 1) // limit,
        ),
        filters=filters.public(),
    )
    return envelope("Transactions retrieved successfully", data)


@router.get("/search", response_model=ApiResponse[SearchData])
def search_transactions(
    q: Optional[str] = None,
    type: Optional[EntryType] = None,
    category_id: Optional[int] = Query(None, ge=1),
    limit: int = Query(transaction_service.SEARCH_DEFAULT_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    term, results = transaction_service.search_transactions(
        db, q, current_user.id, entry_type=type, category_id=category_id, limit=limit
    )
    filters = {"type": type.value if type else None, "category_id": category_id, "limit": limit}
    data = SearchData(
        search_term=term,
        filters={key: value for key, value in filters.items() if value is not None},
        results=[TransactionResponse.model_validate(t) for t in results],
        count=len(results),
    )
    return envelope("Search completed successfully", data)


@router.get("/report", response_model=ApiResponse[MonthlyReport])
def monthly_report(
    month: Optional[int] = None,
    year: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Per-category breakdown and summary for a month (defaults to the current one)."""
    today = date.today()
    month = month if month is not None else today.month
    year = year if year is not None else today.year
    transaction_service.validate_period(month, year, today)

    report = MonthlyReport(
        month=month,
        year=year,
        month_name=date(year, month, 1).strftime("%B"),
        summary=transaction_service.get_monthly_summary(db, month, year, current_user.id),
        categories=transaction_service.get_monthly_report(db, month, year, current_user.id),
    )
    return envelope("Monthly report retrieved successfully", report)


@router.get("/statistics", response_model=ApiResponse[StatisticsReport])
def statistics(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    start = parse_iso_date(start_date, "start_date") if start_date else None
    end = parse_iso_date(end_date, "end_date") if end_date else None

    report = StatisticsReport(
        period=StatisticsPeriod(start_date=start, end_date=end),
        statistics=transaction_service.get_statistics(db, current_user.id, start, end),
    )
    return envelope("Transaction statistics retrieved successfully", report)


@router.get("/daily/{day}", response_model=ApiResponse[DailyTransactions])
def daily_transactions(
    day: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    parsed = parse_iso_date(day, "date")
    transactions = transaction_service.get_daily_transactions(db, parsed, current_user.id)

    data = DailyTransactions(
        date=parsed,
        date_formatted=transaction_service.format_long_date(parsed),
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )
    return envelope("Daily transactions retrieved successfully", data)


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
def get_transaction(
    transaction_id: int,
    current_user: User = Depends(owns_transaction),
    db: Session = Depends(get_db)
):
    """Get a single transaction"""
    transaction = transaction_service.get_transaction(db, transaction_id, current_user.id)
    return envelope("Transaction retrieved successfully", TransactionResponse.model_validate(transaction))


@router.post(
    "",
    response_model=ApiResponse[TransactionResponse],
    status_code=201,
    dependencies=[Depends(limit_body_size)]
)
def create_transaction(
    payload: TransactionCreate,
    current_user: User = Depends(limit_transaction_creation),
    db: Session = Depends(get_db)
):
    transaction = transaction_service.create_transaction(db, payload, current_user.id)
    return envelope("Transaction created successfully", TransactionResponse.model_validate(transaction))


@router.put(
    "/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    dependencies=[Depends(limit_body_size)]
)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    current_user: User = Depends(owns_transaction),
    db: Session = Depends(get_db)
):
    transaction = transaction_service.update_transaction(db, transaction_id, payload, current_user.id)
    return envelope("Transaction updated successfully", TransactionResponse.model_validate(transaction))


@router.delete("/{transaction_id}", response_model=ApiResponse[DeletedTransaction])
def delete_transaction(
    transaction_id: int,
    current_user: User = Depends(owns_transaction),
    db: Session = Depends(get_db)
):
    deleted = transaction_service.delete_transaction(db, transaction_id, current_user.id)
    return envelope("Transaction deleted successfully", deleted)
