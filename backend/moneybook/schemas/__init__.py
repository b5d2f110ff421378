"""
Pydantic schemas package.
"""

from moneybook.schemas.common import ApiResponse, ErrorDetail, ErrorResponse, envelope
from moneybook.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UpdateProfileRequest,
    ChangePasswordRequest,
    DeleteAccountRequest,
    UserResponse,
    AuthData,
    VerifyData,
)
from moneybook.schemas.category import (
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryUsage,
)
from moneybook.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionFilters,
    TransactionListData,
    DeletedTransaction,
    Pagination,
    SearchData,
)
from moneybook.schemas.report import (
    Balance,
    CategoryBreakdown,
    DailyTransactions,
    MonthlyReport,
    MonthlySummary,
    StatisticsReport,
    TypeStatistics,
    TypeTotals,
)
from moneybook.schemas.dashboard import DashboardSummary

__all__ = [
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    "envelope",
    "RegisterRequest",
    "LoginRequest",
    "UpdateProfileRequest",
    "ChangePasswordRequest",
    "DeleteAccountRequest",
    "UserResponse",
    "AuthData",
    "VerifyData",
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryUsage",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionFilters",
    "TransactionListData",
    "DeletedTransaction",
    "Pagination",
    "SearchData",
    "Balance",
    "CategoryBreakdown",
    "DailyTransactions",
    "MonthlyReport",
    "MonthlySummary",
    "StatisticsReport",
    "TypeStatistics",
    "TypeTotals",
    "DashboardSummary",
]
