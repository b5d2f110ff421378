"""
Dashboard schemas.
"""

from pydantic import BaseModel
from typing import List

from moneybook.schemas.report import Balance, MonthlySummary
from moneybook.schemas.transaction import TransactionResponse


class DashboardSummary(BaseModel):
    month: str
    balance: Balance
    current_month: MonthlySummary
    recent_transactions: List[TransactionResponse]
