import copy

import pytest
from fastapi.testclient import TestClient

from api_server import app

SNAPSHOT = {
    "expenses": [
        {"id": "e1", "amount": 1000, "category": "Food", "date": "2026-10-05", "userId": "u1"},
        {"id": "e2", "amount": 4000, "category": "Food", "date": "2026-10-10", "userId": "u1"},
        {"id": "e3", "amount": 500, "category": "Travel", "date": "2026-09-10", "userId": "u1"},
    ],
    "goals": [
        {"id": "g1", "name": "Laptop", "targetAmount": 12000, "currentAmount": 0, "deadline": "2026-11-17", "userId": "u1"},
    ],
    "income": 10000,
    "now": "2026-10-18T12:00:00",
}


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_insights(client):
    response = client.post("/tools/insights", json=SNAPSHOT)
    assert response.status_code == 200
    assert [i["title"] for i in response.json()["insights"]] == [
        "Increased Spending Detected",
        "High Concentration in Food",
        "Healthy Savings Rate Achieved!",
        "Savings Goals at Risk",
    ]


def test_insights_without_expenses(client):
    response = client.post("/tools/insights", json={"income": 5000})
    assert response.status_code == 200
    assert response.json() == {"insights": []}


def test_monthly_insights(client):
    response = client.post("/tools/monthly_insights", json=SNAPSHOT)
    assert response.status_code == 200
    insights = response.json()["insights"]
    assert [i["title"] for i in insights] == ["Monthly Trend", "Peak Analysis", "Monthly Average", "Top Category Impact"]
    assert "Food accounts for 100.0%" in insights[-1]["narrative"]


def test_monthly_insights_window(client):
    response = client.post("/tools/monthly_insights", json={**SNAPSHOT, "last_n": 1})
    assert [i["title"] for i in response.json()["insights"]] == ["First Month"]


def test_goal_progress(client):
    response = client.post("/tools/goal_progress", json=SNAPSHOT)
    assert response.status_code == 200
    (goal,) = response.json()["goals"]
    assert goal["id"] == "g1"
    assert goal["days_left"] == 30
    assert goal["daily_amount_needed"] == 400
    assert goal["status"] == "in_progress"
    assert goal["is_completed"] is False


def test_summary(client):
    response = client.post("/tools/summary", json=SNAPSHOT)
    assert response.status_code == 200
    body = response.json()
    assert body["this_month"] == 5000
    assert body["last_month"] == 500
    assert body["savings_rate"] == 50
    assert body["transaction_count"] == 3
    assert body["categories"] == [{"category": "Food", "total": 5000}, {"category": "Travel", "total": 500}]
    assert [m["label"] for m in body["months"]] == ["Sep 26", "Oct 26"]


def test_summary_without_income(client):
    body = client.post("/tools/summary", json={**SNAPSHOT, "income": 0}).json()
    assert body["savings_rate"] is None


def test_assistant(client):
    response = client.post(
        "/tools/assistant", json={**SNAPSHOT, "query": "monthly spending", "user_name": "Asha"}
    )
    assert response.status_code == 200
    assert "**Total Spent This Month:** ₹5,000" in response.json()["answer"]


def test_validation_errors(client):
    assert client.post("/tools/assistant", json={**SNAPSHOT, "query": ""}).status_code == 422

    bad = copy.deepcopy(SNAPSHOT)
    bad["expenses"][0]["amount"] = -10
    assert client.post("/tools/insights", json=bad).status_code == 422

    assert client.post("/tools/summary", json={**SNAPSHOT, "income": -1}).status_code == 422
