"""Category, account, dashboard and report endpoints."""

from __future__ import annotations

from fintrack.constants.categories import DEFAULT_CATEGORIES


def _account_id(client, name: str = "Checking") -> int:
    return next(a["id"] for a in client.get("/api/accounts").get_json() if a["name"] == name)


def _balance(client, name: str = "Checking") -> float:
    return next(a["balance"] for a in client.get("/api/accounts").get_json() if a["name"] == name)


def test_default_categories_are_seeded(client):
    response = client.get("/api/categories")

    assert response.status_code == 200
    names = {row["name"] for row in response.get_json()}
    assert names == {name for name, _ in DEFAULT_CATEGORIES}
    assert all(row["color"].startswith("#") for row in response.get_json())


def test_category_lifecycle(client):
    created = client.post("/api/categories", json={"name": "Travel", "color": "#00aa00"})
    assert created.status_code == 201
    category = created.get_json()
    assert category["color"] == "#00AA00"

    renamed = client.put(f"/api/categories/{category['id']}", json={"name": "Trips"})
    assert renamed.status_code == 200
    assert renamed.get_json() == {"id": category["id"], "name": "Trips", "color": "#00AA00"}

    assert client.delete(f"/api/categories/{category['id']}").status_code == 204
    assert client.delete(f"/api/categories/{category['id']}").status_code == 404


def test_category_validation(client):
    assert client.post("/api/categories", json={"name": ""}).status_code == 400
    assert client.post("/api/categories", json={"name": "X", "color": "blue"}).status_code == 400
    duplicate = client.post("/api/categories", json={"name": "food"})
    assert duplicate.status_code == 400
    assert "name" in duplicate.get_json()["errors"]
    assert client.put("/api/categories/9999", json={"name": "Ghost"}).status_code == 404


def test_renamed_category_follows_existing_transactions(client):
    food_id = next(c["id"] for c in client.get("/api/categories").get_json() if c["name"] == "Food")
    client.post(
        "/api/transactions",
        json={
            "amount": 12,
            "date": "2024-04-01",
            "categoryId": food_id,
            "accountId": _account_id(client),
            "transactionType": "expense",
        },
    )

    client.put(f"/api/categories/{food_id}", json={"name": "Groceries"})

    assert client.get("/api/transactions").get_json()[0]["category"] == "Groceries"


def test_referenced_category_cannot_be_deleted(client):
    food_id = next(c["id"] for c in client.get("/api/categories").get_json() if c["name"] == "Food")
    client.post(
        "/api/transactions",
        json={
            "amount": 12,
            "date": "2024-04-01",
            "category": "Food",
            "accountId": _account_id(client),
            "transactionType": "expense",
        },
    )

    response = client.delete(f"/api/categories/{food_id}")

    assert response.status_code == 409
    assert response.get_json()["error"] == "conflict"


def test_account_with_opening_balance(client):
    response = client.post("/api/accounts", json={"name": "Savings", "balance": "250.75"})

    assert response.status_code == 201
    assert response.get_json()["balance"] == 250.75
    rows = client.get("/api/transactions").get_json()
    assert rows[0]["category"] == "Opening Balance"
    assert rows[0]["amount"] == 250.75
    assert client.get("/api/accounts/reconcile").get_json()["consistent"] is True


def test_account_validation_and_conflicts(client):
    assert client.post("/api/accounts", json={"name": ""}).status_code == 400
    assert client.post("/api/accounts", json={"name": "Cash", "balance": "lots"}).status_code == 400
    assert client.post("/api/accounts", json={"name": "checking"}).status_code == 400

    savings = client.post("/api/accounts", json={"name": "Savings", "balance": -20}).get_json()
    assert savings["balance"] == -20.0
    assert client.delete(f"/api/accounts/{savings['id']}").status_code == 409

    empty = client.post("/api/accounts", json={"name": "Empty"}).get_json()
    assert client.delete(f"/api/accounts/{empty['id']}").status_code == 204
    assert client.delete(f"/api/accounts/{empty['id']}").status_code == 404


def test_reconcile_get_reports_and_post_repairs(app, client):
    from fintrack.extensions import get_session_factory
    from fintrack.infra.repositories import SQLModelAccountRepository

    checking_id = _account_id(client)
    with app.app_context():
        with get_session_factory()() as session:
            SQLModelAccountRepository(session).set_balance(
                checking_id, 777, user_id=app.config["FINTRACK_OWNER_ID"]
            )

    report = client.get("/api/accounts/reconcile").get_json()
    assert report["consistent"] is False
    assert report["repaired"] is False

    # query arguments never turn the read into a write
    still_drifted = client.get("/api/accounts/reconcile?repair=1").get_json()
    assert still_drifted["repaired"] is False
    assert _balance(client) == 7.77

    response = client.post("/api/accounts/reconcile")
    assert response.status_code == 200
    assert response.get_json()["repaired"] is True
    assert _balance(client) == 0.0
    assert client.get("/api/accounts/reconcile").get_json()["consistent"] is True


def test_dashboard_shape(client):
    account_id = _account_id(client)
    for amount, category, kind, day in (
        (3000, "Income", "income", "2024-05-01"),
        (1200, "Housing", "expense", "2024-05-02"),
        (80, "Food", "expense", "2024-05-03"),
        (40, "Food", "expense", "2024-04-20"),
    ):
        client.post(
            "/api/transactions",
            json={
                "amount": amount,
                "date": day,
                "category": category,
                "accountId": account_id,
                "transactionType": kind,
            },
        )

    response = client.get("/api/dashboard")

    assert response.status_code == 200
    data = response.get_json()
    assert data["balance"] == 1680.0
    assert data["income"] == 3000.0
    assert data["expenses"] == 1280.0
    assert [row["amount"] for row in data["recentTransactions"]] == [-80.0, -1200.0, 3000.0, -40.0]
    assert data["categorySpending"][0] == {"name": "Housing", "total": 1200.0, "color": "#34C759"}
    assert data["categorySpending"][1]["total"] == 120.0
    assert data["monthlySummary"] == [
        {"month": "2024-05", "income": 3000.0, "expense": 1280.0},
        {"month": "2024-04", "income": 0.0, "expense": 40.0},
    ]


def test_reports_require_parameters(client):
    missing = client.get("/api/reports?reportType=spending")
    assert missing.status_code == 400
    assert missing.get_json()["error"] == "missing_parameter"

    unknown = client.get("/api/reports?reportType=profit&timeRange=month")
    assert unknown.status_code == 400
    assert unknown.get_json()["error"] == "invalid_parameter"

    bad_range = client.get("/api/reports?reportType=spending&timeRange=decade")
    assert bad_range.status_code == 400


def test_reports_return_chart_payload(client):
    response = client.get("/api/reports?reportType=spending&timeRange=week")

    assert response.status_code == 200
    data = response.get_json()
    assert set(data) == {"chartData", "series", "categoryData", "summary"}
    assert len(data["chartData"]) == 7
    assert data["series"] == [{"key": "expense", "name": "Expense", "color": "#FF3B30"}]
    assert [item["label"] for item in data["summary"]] == [
        "Total Spending",
        "Average per Day",
        "Largest Transaction",
        "Transactions",
    ]


def test_oversized_opening_balance_is_400(client):
    response = client.post("/api/accounts", json={"name": "Offshore", "balance": "1e30"})

    assert response.status_code == 400
    assert "balance" in response.get_json()["errors"]
    assert all(account["name"] != "Offshore" for account in client.get("/api/accounts").get_json())


def test_duplicate_category_caught_by_constraint_is_400(client, monkeypatch):
    from fintrack.infra.repositories import SQLModelCategoryRepository

    # Another request inserted the same name after the lookup ran
    monkeypatch.setattr(SQLModelCategoryRepository, "get_by_name", lambda self, name, *, user_id: None)

    response = client.post("/api/categories", json={"name": "Food"})

    assert response.status_code == 400
    assert response.get_json()["errors"] == {"name": ["Name already in use."]}
    monkeypatch.undo()
    names = [row["name"] for row in client.get("/api/categories").get_json()]
    assert names.count("Food") == 1
