"""
Transaction schemas.

Incoming titles and descriptions are screened for markup, amounts are held to
two decimal places, and unknown fields are rejected outright.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from moneybook.models.category import EntryType
from moneybook.money import quantize

MAX_AMOUNT = Decimal("999999999.99")
MIN_TRANSACTION_DATE = date(1900, 1, 1)

TITLE_PATTERN = re.compile(r"^[A-Za-z0-9\s\-_.(),!?\u00C0-\u017F]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MARKUP_PATTERNS = [
    re.compile(r"<\s*script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
]


def latest_transaction_date(today: Optional[date] = None) -> date:
    today = today or date.today()
    try:
        return today.replace(year=today.year + 1)
    except ValueError:
        # Feb 29th
        return today.replace(year=today.year + 1, day=28)


def parse_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError("Amount must be a number")
    text = str(value).strip()
    if "e" in text.lower() and "inf" not in text.lower():
        raise ValueError("Scientific notation not allowed")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError("Amount must be a valid number")
    if not amount.is_finite():
        raise ValueError("Amount must be a finite number")
    if amount.normalize().as_tuple().exponent < -2:
        raise ValueError("Maximum 2 decimal places allowed")
    return amount


class TransactionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=2, max_length=255)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    type: EntryType
    category_id: Optional[int] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=500)
    transaction_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        if not TITLE_PATTERN.match(value):
            raise ValueError("Title contains forbidden characters")
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount_literal(cls, value: Any) -> Decimal:
        return parse_amount(value)

    @field_validator("amount")
    @classmethod
    def normalize_amount(cls, value: Decimal) -> Decimal:
        return quantize(value)

    @field_validator("description")
    @classmethod
    def screen_description(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if any(pattern.search(value) for pattern in MARKUP_PATTERNS):
            raise ValueError("Description contains potentially harmful content")
        return value

    @field_validator("transaction_date", mode="before")
    @classmethod
    def check_date_format(cls, value: Any) -> Any:
        if value is None or isinstance(value, date):
            return value
        if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
            raise ValueError("Transaction date must be in YYYY-MM-DD format")
        return value.strip()

    @field_validator("transaction_date")
    @classmethod
    def check_date_range(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and not (MIN_TRANSACTION_DATE <= value <= latest_transaction_date()):
            raise ValueError("Invalid transaction date range")
        return value


class TransactionUpdate(TransactionCreate):
    """Full replacement; the date is required rather than defaulted."""
    transaction_date: date


class TransactionResponse(BaseModel):
    id: int
    title: str
    amount: Decimal
    type: EntryType
    description: Optional[str]
    transaction_date: date
    category_id: Optional[int]
    category_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeletedTransaction(BaseModel):
    id: int
    title: str
    amount: Decimal
    type: EntryType
    transaction_date: date

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    page: int
    pages: int


class TransactionListData(BaseModel):
    transactions: List[TransactionResponse]
    pagination: Pagination
    filters: Dict[str, Any]


class SearchData(BaseModel):
    search_term: str
    filters: Dict[str, Any]
    results: List[TransactionResponse]
    count: int


class TransactionFilters(BaseModel):
    """Query filters; ``user_id`` is always applied."""
    user_id: int
    type: Optional[EntryType] = None
    category_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1900)
    limit: Optional[int] = Field(None, ge=1)
    offset: int = Field(0, ge=0)

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > date.today().year + 10:
            raise ValueError("Invalid year")
        return value

    def public(self) -> Dict[str, Any]:
        """Filters echoed back to the caller, without the owner id."""
        return self.model_dump(mode="json", exclude={"user_id"}, exclude_none=True)
