"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal

from moneybook.config import settings
from moneybook.database import Base, enable_sqlite_foreign_keys, get_db
from moneybook.dependencies import get_rate_limiters
from moneybook.main import app
from moneybook.models import Category, EntryType, Transaction, User
from moneybook.security import hash_password
from moneybook.services.rate_limiter import RateLimiters, SlidingWindowRateLimiter
from moneybook.services.token_service import issue_token

PASSWORD = "Secret123!"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch, tmp_path):
    """Cheap bcrypt, no table creation on startup, uploads in a temp dir."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)
    monkeypatch.setattr(settings, "auto_create_tables", False)
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    return settings


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def rate_limiters():
    """Generous limits so ordinary tests never trip them."""
    return RateLimiters(
        auth=SlidingWindowRateLimiter(1000, 60, name="auth"),
        api=SlidingWindowRateLimiter(1000, 60, name="api"),
        transaction_create=SlidingWindowRateLimiter(1000, 60, name="transaction_create"),
    )


@pytest.fixture(scope="function")
def client(db_session, rate_limiters):
    """Create a test client with database and rate limiter overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_limiters] = lambda: rate_limiters
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory for users stored directly in the database."""
    def _make_user(email="alice@example.com", name="Alice", password=PASSWORD):
        user = User(name=name, email=email, password=hash_password(password))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def other_user(make_user):
    return make_user(email="bob@example.com", name="Bob")


def bearer(user):
    token, _ = issue_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build an Authorization header for any user."""
    return bearer


@pytest.fixture
def auth_headers(user):
    return bearer(user)


@pytest.fixture
def other_headers(other_user):
    return bearer(other_user)


@pytest.fixture
def make_category(db_session):
    def _make_category(user, name="Salary", type=EntryType.income, description=None):
        category = Category(name=name, type=type, description=description, user_id=user.id)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category
    return _make_category


@pytest.fixture
def income_category(make_category, user):
    return make_category(user, "Salary", EntryType.income)


@pytest.fixture
def expense_category(make_category, user):
    return make_category(user, "Groceries", EntryType.expense)


@pytest.fixture
def make_transaction(db_session):
    def _make_transaction(user, amount="100.00", type=EntryType.expense, title="Test entry",
                          category=None, transaction_date=date(2024, 1, 15), description=None,
                          **extra):
        txn = Transaction(
            title=title,
            amount=Decimal(amount),
            type=type,
            category_id=category.id if category else None,
            description=description,
            transaction_date=transaction_date,
            user_id=user.id,
            **extra
        )
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn
    return _make_transaction


@pytest.fixture
def sample_transaction(make_transaction, user, expense_category):
    """Create a sample transaction."""
    return make_transaction(
        user,
        amount="50.00",
        type=EntryType.expense,
        title="Whole Foods",
        category=expense_category,
        description="Weekly groceries",
    )
