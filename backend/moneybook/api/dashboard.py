"""
Dashboard API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from moneybook.database import get_db
from moneybook.dependencies import get_current_user
from moneybook.models import User
from moneybook.schemas.common import ApiResponse, envelope
from moneybook.schemas.dashboard import DashboardSummary
from moneybook.schemas.report import Balance
from moneybook.schemas.transaction import TransactionResponse
from moneybook.services import transaction_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=ApiResponse[DashboardSummary])
def get_dashboard_summary(
    recent: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Overall balance, this month's summary and the latest activity.
    """
    today = date.today()
    recent_transactions = transaction_service.get_recent_activity(db, current_user.id, recent)

    summary = DashboardSummary(
        month=today.strftime("%Y-%m"),
        balance=transaction_service.get_balance(db, current_user.id),
        current_month=transaction_service.get_monthly_summary(db, today.month, today.year, current_user.id),
        recent_transactions=[TransactionResponse.model_validate(t) for t in recent_transactions],
    )
    return envelope("Dashboard retrieved successfully", summary)


@router.get("/balance", response_model=ApiResponse[Balance])
def get_balance(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return envelope("Balance retrieved successfully", transaction_service.get_balance(db, current_user.id))


@router.get("/recent-transactions", response_model=ApiResponse[List[TransactionResponse]])
def get_recent_transactions(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Most recently recorded transactions for the dashboard widget"""
    transactions = transaction_service.get_recent_activity(db, current_user.id, limit)
    return envelope(
        "Recent transactions retrieved successfully",
        [TransactionResponse.model_validate(t) for t in transactions]
    )
