"""Tests for transactions API endpoints."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from moneybook.database import get_db
from moneybook.main import app
from moneybook.models import EntryType


def expense_payload(category, **overrides):
    payload = {
        "title": "Farmers market",
        "amount": "42.10",
        "type": "expense",
        "category_id": category.id,
        "description": "Vegetables",
        "transaction_date": "2024-01-20",
    }
    payload.update(overrides)
    return payload


class TestCreateTransaction:
    """Creation and input validation."""

    def test_create_transaction(self, client, auth_headers, expense_category):
        response = client.post("/api/transactions", headers=auth_headers, json=expense_payload(expense_category))
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Farmers market"
        assert Decimal(data["amount"]) == Decimal("42.10")
        assert data["category_name"] == "Groceries"
        assert data["transaction_date"] == "2024-01-20"

    def test_date_defaults_to_today(self, client, auth_headers, expense_category):
        payload = expense_payload(expense_category)
        del payload["transaction_date"]
        response = client.post("/api/transactions", headers=auth_headers, json=payload)
        assert response.status_code == 201
        assert response.json()["data"]["transaction_date"] == date.today().isoformat()

    def test_category_is_optional(self, client, auth_headers, expense_category):
        payload = expense_payload(expense_category)
        del payload["category_id"]
        response = client.post("/api/transactions", headers=auth_headers, json=payload)
        assert response.status_code == 201
        assert response.json()["data"]["category_id"] is None

    def test_category_type_must_match(self, client, auth_headers, income_category):
        """An expense cannot be filed under an income category."""
        response = client.post("/api/transactions", headers=auth_headers, json=expense_payload(income_category))
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Category type (income) does not match transaction type (expense)"
        assert body["errors"][0]["field"] == "category_id"

    def test_foreign_category_rejected(self, client, other_headers, expense_category):
        response = client.post("/api/transactions", headers=other_headers, json=expense_payload(expense_category))
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid category ID"

    def test_unknown_fields_rejected(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, user_id=99),
        )
        assert response.status_code == 400
        assert "user_id" in {e["field"] for e in response.json()["errors"]}

    @pytest.mark.parametrize("amount", ["1e5", "10.123", "-5.00", "0", "abc", "1000000000.00"])
    def test_invalid_amounts(self, client, auth_headers, expense_category, amount):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, amount=amount),
        )
        assert response.status_code == 400
        assert "amount" in {e["field"] for e in response.json()["errors"]}

    def test_numeric_amount_is_accepted(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, amount=19.9),
        )
        assert response.status_code == 201
        assert Decimal(response.json()["data"]["amount"]) == Decimal("19.90")

    @pytest.mark.parametrize("value", ["1899-12-31", "2999-01-01", "20-01-2024", "2024/01/20"])
    def test_invalid_dates(self, client, auth_headers, expense_category, value):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, transaction_date=value),
        )
        assert response.status_code == 400

    def test_title_charset(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, title="Lunch <b>bold</b>"),
        )
        assert response.status_code == 400
        assert "title" in {e["field"] for e in response.json()["errors"]}

    def test_accented_title_allowed(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, title="Café Crème"),
        )
        assert response.status_code == 201

    def test_script_in_description_rejected(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, description="<script>alert(1)</script>"),
        )
        assert response.status_code == 400

    def test_description_stored_as_entered(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, description="Fish & chips"),
        )
        assert response.status_code == 201
        assert response.json()["data"]["description"] == "Fish & chips"

    def test_description_survives_edit_round_trip(self, client, auth_headers, expense_category):
        """Saving an unchanged transaction back must not alter its description."""
        created = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, description="Tom & Jerry <3"),
        ).json()["data"]

        for _ in range(2):
            current = client.get(f"/api/transactions/{created['id']}", headers=auth_headers).json()["data"]
            fields = ("title", "amount", "type", "category_id", "description", "transaction_date")
            response = client.put(
                f"/api/transactions/{created['id']}",
                headers=auth_headers,
                json={key: current[key] for key in fields},
            )
            assert response.status_code == 200

        assert response.json()["data"]["description"] == "Tom & Jerry <3"

    def test_reports_all_errors_at_once(self, client, auth_headers):
        response = client.post("/api/transactions", headers=auth_headers, json={
            "title": "X",
            "amount": "-1",
            "type": "gift",
        })
        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"title", "amount", "type"} <= fields

    def test_oversized_payload(self, client, auth_headers, expense_category):
        response = client.post(
            "/api/transactions",
            headers=auth_headers,
            json=expense_payload(expense_category, description="a" * 6000),
        )
        assert response.status_code == 413

    def test_creation_is_throttled(self, client, auth_headers, expense_category, rate_limiters):
        """At most five creations per minute per user."""
        rate_limiters.transaction_create.max_requests = 5
        for _ in range(5):
            ok = client.post("/api/transactions", headers=auth_headers, json=expense_payload(expense_category))
            assert ok.status_code == 201

        response = client.post("/api/transactions", headers=auth_headers, json=expense_payload(expense_category))
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1

        # Reads are not part of the creation window
        assert client.get("/api/transactions", headers=auth_headers).status_code == 200


class TestReadUpdateDelete:
    """Single-transaction access and ownership."""

    def test_get_transaction(self, client, auth_headers, sample_transaction):
        response = client.get(f"/api/transactions/{sample_transaction.id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == sample_transaction.id
        assert data["category_name"] == "Groceries"

    def test_get_missing(self, client, auth_headers):
        response = client.get("/api/transactions/9999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Transaction not found"

    def test_get_foreign(self, client, other_headers, sample_transaction):
        response = client.get(f"/api/transactions/{sample_transaction.id}", headers=other_headers)
        assert response.status_code == 403

    def test_update_transaction(self, client, auth_headers, sample_transaction, expense_category):
        response = client.put(
            f"/api/transactions/{sample_transaction.id}",
            headers=auth_headers,
            json=expense_payload(expense_category, title="Trader Joes", amount="61.25"),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Trader Joes"
        assert Decimal(data["amount"]) == Decimal("61.25")

    def test_update_requires_date(self, client, auth_headers, sample_transaction, expense_category):
        payload = expense_payload(expense_category)
        del payload["transaction_date"]
        response = client.put(f"/api/transactions/{sample_transaction.id}", headers=auth_headers, json=payload)
        assert response.status_code == 400

    def test_update_foreign(self, client, other_headers, sample_transaction, expense_category):
        response = client.put(
            f"/api/transactions/{sample_transaction.id}",
            headers=other_headers,
            json=expense_payload(expense_category),
        )
        assert response.status_code == 403

    def test_delete_transaction(self, client, auth_headers, sample_transaction):
        response = client.delete(f"/api/transactions/{sample_transaction.id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Whole Foods"
        assert Decimal(data["amount"]) == Decimal("50.00")

        follow_up = client.get(f"/api/transactions/{sample_transaction.id}", headers=auth_headers)
        assert follow_up.status_code == 404

    def test_delete_foreign(self, client, other_headers, sample_transaction):
        response = client.delete(f"/api/transactions/{sample_transaction.id}", headers=other_headers)
        assert response.status_code == 403


class TestListAndSearch:
    """Listing, filtering and search."""

    def test_list_empty(self, client, auth_headers):
        response = client.get("/api/transactions", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["transactions"] == []
        assert data["pagination"]["total"] == 0

    def test_list_is_newest_first_and_paginated(self, client, auth_headers, user, make_transaction):
        make_transaction(user, title="Oldest", transaction_date=date(2024, 1, 1))
        make_transaction(user, title="Newest", transaction_date=date(2024, 3, 1))
        make_transaction(user, title="Middle", transaction_date=date(2024, 2, 1))

        first = client.get("/api/transactions?limit=2", headers=auth_headers).json()["data"]
        assert [t["title"] for t in first["transactions"]] == ["Newest", "Middle"]
        assert first["pagination"]["total"] == 3
        assert first["pagination"]["pages"] == 2

        second = client.get("/api/transactions?limit=2&offset=2", headers=auth_headers).json()["data"]
        assert [t["title"] for t in second["transactions"]] == ["Oldest"]
        assert second["pagination"]["page"] == 2

    def test_limit_is_capped(self, client, auth_headers):
        response = client.get("/api/transactions?limit=500", headers=auth_headers)
        assert response.status_code == 400

    def test_filter_by_month_and_year(self, client, auth_headers, user, make_transaction):
        make_transaction(user, title="January", transaction_date=date(2024, 1, 31))
        make_transaction(user, title="February", transaction_date=date(2024, 2, 1))

        response = client.get("/api/transactions?month=2&year=2024", headers=auth_headers)
        data = response.json()["data"]
        assert [t["title"] for t in data["transactions"]] == ["February"]
        assert data["filters"] == {"month": 2, "year": 2024, "limit": 50, "offset": 0}

    @pytest.mark.parametrize("query", ["year=9999", "month=12&year=9999", "year=1899", "month=13&year=2024"])
    def test_out_of_range_period_rejected(self, client, auth_headers, query):
        response = client.get(f"/api/transactions?{query}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_december_filter(self, client, auth_headers, user, make_transaction):
        make_transaction(user, title="Year end", transaction_date=date(2023, 12, 31))
        make_transaction(user, title="New year", transaction_date=date(2024, 1, 1))

        response = client.get("/api/transactions?month=12&year=2023", headers=auth_headers)
        assert [t["title"] for t in response.json()["data"]["transactions"]] == ["Year end"]

    def test_filter_by_type(self, client, auth_headers, user, income_category, make_transaction):
        make_transaction(user, title="Paycheck", type=EntryType.income, category=income_category)
        make_transaction(user, title="Rent")

        response = client.get("/api/transactions?type=income", headers=auth_headers)
        assert [t["title"] for t in response.json()["data"]["transactions"]] == ["Paycheck"]

    def test_list_hides_other_users(self, client, other_headers, sample_transaction):
        response = client.get("/api/transactions", headers=other_headers)
        assert response.json()["data"]["pagination"]["total"] == 0

    def test_search_needs_two_characters(self, client, auth_headers, sample_transaction):
        response = client.get("/api/transactions/search?q=W", headers=auth_headers)
        assert response.status_code == 400

        response = client.get("/api/transactions/search?q=Wh", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["count"] == 1

    def test_search_is_case_insensitive(self, client, auth_headers, sample_transaction):
        response = client.get("/api/transactions/search?q=whole%20FOODS", headers=auth_headers)
        data = response.json()["data"]
        assert data["search_term"] == "whole FOODS"
        assert [t["id"] for t in data["results"]] == [sample_transaction.id]

    def test_search_matches_category_name(self, client, auth_headers, user, expense_category, make_transaction):
        txn = make_transaction(user, title="Market run", category=expense_category)
        response = client.get("/api/transactions/search?q=grocer", headers=auth_headers)
        assert [t["id"] for t in response.json()["data"]["results"]] == [txn.id]

    def test_search_treats_wildcards_literally(self, client, auth_headers, sample_transaction):
        response = client.get("/api/transactions/search?q=%25%25", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["count"] == 0

    def test_search_scoped_to_user(self, client, other_headers, sample_transaction):
        response = client.get("/api/transactions/search?q=Whole", headers=other_headers)
        assert response.json()["data"]["count"] == 0


class TestReports:
    """Monthly report, statistics and daily view."""

    def test_salary_month(self, client, auth_headers, user, income_category, make_transaction):
        make_transaction(
            user,
            title="Salary January",
            amount="5000000.00",
            type=EntryType.income,
            category=income_category,
            transaction_date=date(2024, 1, 10),
        )

        report = client.get("/api/transactions/report?month=1&year=2024", headers=auth_headers)
        assert report.status_code == 200
        data = report.json()["data"]
        assert data["month_name"] == "January"
        assert Decimal(data["summary"]["income"]["total"]) == Decimal("5000000.00")
        assert data["summary"]["income"]["count"] == 1
        assert Decimal(data["summary"]["expense"]["total"]) == Decimal("0")
        assert Decimal(data["summary"]["balance"]) == Decimal("5000000.00")
        assert data["categories"][0]["category_name"] == "Salary"

        balance = client.get("/api/dashboard/balance", headers=auth_headers).json()["data"]
        assert Decimal(balance["balance"]) == Decimal("5000000.00")

    def test_empty_month_reports_zeros(self, client, auth_headers):
        response = client.get("/api/transactions/report?month=6&year=2020", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["summary"]["income"]["count"] == 0
        assert Decimal(data["summary"]["balance"]) == Decimal("0")
        assert data["categories"] == []

    def test_report_income_first(self, client, auth_headers, user, income_category, expense_category,
                                 make_transaction):
        make_transaction(user, amount="900.00", category=expense_category)
        make_transaction(user, amount="100.00", type=EntryType.income, category=income_category)

        data = client.get("/api/transactions/report?month=1&year=2024", headers=auth_headers).json()["data"]
        assert [c["type"] for c in data["categories"]] == ["income", "expense"]

    def test_report_rejects_bad_period(self, client, auth_headers):
        response = client.get("/api/transactions/report?month=13&year=1800", headers=auth_headers)
        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"month", "year"}

    def test_statistics(self, client, auth_headers, user, income_category, expense_category, make_transaction):
        make_transaction(user, amount="100.00", type=EntryType.income, category=income_category)
        make_transaction(user, amount="50.00", category=expense_category)
        make_transaction(user, amount="30.00", category=expense_category)

        response = client.get("/api/transactions/statistics", headers=auth_headers)
        assert response.status_code == 200
        stats = {s["type"]: s for s in response.json()["data"]["statistics"]}

        assert stats["income"]["count"] == 1
        assert stats["expense"]["count"] == 2
        assert Decimal(stats["expense"]["total"]) == Decimal("80.00")
        assert Decimal(stats["expense"]["average"]) == Decimal("40.00")
        assert Decimal(stats["expense"]["minimum"]) == Decimal("30.00")
        assert Decimal(stats["expense"]["maximum"]) == Decimal("50.00")

    def test_statistics_without_data(self, client, auth_headers):
        stats = client.get("/api/transactions/statistics", headers=auth_headers).json()["data"]["statistics"]
        assert [s["type"] for s in stats] == ["income", "expense"]
        assert all(s["count"] == 0 and s["minimum"] is None for s in stats)

    def test_statistics_date_range(self, client, auth_headers, user, make_transaction):
        make_transaction(user, amount="10.00", transaction_date=date(2024, 1, 1))
        make_transaction(user, amount="20.00", transaction_date=date(2024, 2, 1))

        response = client.get(
            "/api/transactions/statistics?start_date=2024-01-15&end_date=2024-02-28",
            headers=auth_headers,
        )
        data = response.json()["data"]
        assert data["period"] == {"start_date": "2024-01-15", "end_date": "2024-02-28"}
        expense = [s for s in data["statistics"] if s["type"] == "expense"][0]
        assert Decimal(expense["total"]) == Decimal("20.00")

    def test_statistics_bad_date(self, client, auth_headers):
        response = client.get("/api/transactions/statistics?start_date=2024-1-1", headers=auth_headers)
        assert response.status_code == 400

    def test_daily(self, client, auth_headers, sample_transaction, user, make_transaction):
        make_transaction(user, title="Other day", transaction_date=date(2024, 1, 16))

        response = client.get("/api/transactions/daily/2024-01-15", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["date_formatted"] == "Monday, January 15th 2024"
        assert [t["id"] for t in data["transactions"]] == [sample_transaction.id]

    def test_daily_bad_date(self, client, auth_headers):
        response = client.get("/api/transactions/daily/15-01-2024", headers=auth_headers)
        assert response.status_code == 400

    def test_week_dates_rejected(self, client, auth_headers):
        """Only calendar dates in YYYY-MM-DD form are accepted."""
        assert client.get("/api/transactions/daily/2024-W03-1", headers=auth_headers).status_code == 400
        response = client.get("/api/transactions/statistics?start_date=2024-W03-1", headers=auth_headers)
        assert response.status_code == 400


class TestStoreUnavailable:
    """Database outages surface as 503."""

    def test_unreachable_database(self, client, auth_headers, tmp_path):
        broken_engine = create_engine(f"sqlite:///{tmp_path}/missing/dir/moneybook.db")
        BrokenSession = sessionmaker(bind=broken_engine)

        def broken_db():
            session = BrokenSession()
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db] = broken_db
        try:
            response = client.get("/api/transactions", headers=auth_headers)
        finally:
            broken_engine.dispose()

        assert response.status_code == 503
        assert response.json()["success"] is False
