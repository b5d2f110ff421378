"""
Aggregate report schemas.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from moneybook.models.category import EntryType
from moneybook.money import ZERO
from moneybook.schemas.transaction import TransactionResponse


class TypeTotals(BaseModel):
    count: int = 0
    total: Decimal = ZERO


class MonthlySummary(BaseModel):
    income: TypeTotals = TypeTotals()
    expense: TypeTotals = TypeTotals()
    balance: Decimal = ZERO


class CategoryBreakdown(BaseModel):
    type: EntryType
    category_id: Optional[int]
    category_name: Optional[str]
    transaction_count: int
    total_amount: Decimal


class MonthlyReport(BaseModel):
    month: int
    year: int
    month_name: str
    summary: MonthlySummary
    categories: List[CategoryBreakdown]


class Balance(BaseModel):
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal


class TypeStatistics(BaseModel):
    type: EntryType
    count: int
    total: Decimal
    average: Decimal
    minimum: Optional[Decimal] = None
    maximum: Optional[Decimal] = None


class StatisticsPeriod(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class StatisticsReport(BaseModel):
    period: StatisticsPeriod
    statistics: List[TypeStatistics]


class DailyTransactions(BaseModel):
    date: date
    date_formatted: str
    transactions: List[TransactionResponse]
