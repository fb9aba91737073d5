"""Mini README: End-to-end tests for the JSON API using FastAPI's TestClient.

Each test gets a fresh application bound to its own in-memory store, so no
state leaks between cases.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from ledgerdesk.configuration import LedgerdeskSettings
from ledgerdesk.interface import create_application
from ledgerdesk.ledger import LedgerStore


@pytest.fixture
def client() -> TestClient:
    settings = LedgerdeskSettings(_env_file=None, scrypt_cost=16, seed_admin=False)
    app = create_application(store=LedgerStore(settings), settings=settings)
    return TestClient(app)


def _register(client: TestClient, email: str = "a@x.com", username: str = "A") -> int:
    response = client.post(
        "/api/register", json={"email": email, "username": username, "password": "pw"}
    )
    assert response.status_code == 201
    login = client.post("/api/login", json={"email": email, "password": "pw"})
    return login.json()["user"]["id"]


def test_register_conflict_on_duplicate_email(client: TestClient) -> None:
    first = client.post(
        "/api/register", json={"email": "a@x.com", "username": "A", "password": "pw"}
    )
    second = client.post(
        "/api/register", json={"email": "a@x.com", "username": "B", "password": "pw2"}
    )

    assert first.status_code == 201
    assert first.json() == {"message": "Registration successful. Please login."}
    assert second.status_code == 409
    assert second.json() == {"error": "Email already exists"}


def test_register_missing_fields_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/register", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "All fields required"}


def test_login_failures_share_one_shape(client: TestClient) -> None:
    _register(client)

    wrong_password = client.post("/api/login", json={"email": "a@x.com", "password": "bad"})
    unknown_email = client.post("/api/login", json={"email": "no@x.com", "password": "pw"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "Invalid credentials"}


def test_login_token_identifies_user_until_logout(client: TestClient) -> None:
    _register(client)
    login = client.post("/api/login", json={"email": "a@x.com", "password": "pw"})
    body = login.json()
    headers = {"Authorization": f"Bearer {body['token']}"}

    assert body["user"] == {
        "id": body["user"]["id"],
        "email": "a@x.com",
        "username": "A",
        "balance": 0.0,
        "isActive": False,
        "verified_email": False,
    }
    assert client.get("/api/me", headers=headers).json()["email"] == "a@x.com"
    assert client.post("/api/logout", headers=headers).status_code == 200
    assert client.get("/api/me", headers=headers).status_code == 401


def test_get_unknown_user_is_not_found(client: TestClient) -> None:
    response = client.get("/api/user/42")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_btc_deposit_response(client: TestClient) -> None:
    user_id = _register(client)

    response = client.post("/api/deposit", json={"userId": user_id, "method": "BTC", "amount": 50})

    body = response.json()
    assert response.status_code == 200
    assert body["address"] == "35DrUNecGXnuhQvizUTxYD42WN9PqcHUHz"
    assert len(body["txId"]) == 20
    assert body["message"].startswith("Send $50 to this address:")


@pytest.mark.parametrize("amount", [0, -1, "lots"])
def test_deposit_rejects_bad_amount(client: TestClient, amount: object) -> None:
    user_id = _register(client)

    response = client.post(
        "/api/deposit", json={"userId": user_id, "method": "BTC", "amount": amount}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid data"}
    assert client.get(f"/api/transactions/{user_id}").json() == []


def test_approval_credits_balance_once(client: TestClient) -> None:
    user_id = _register(client)
    tx_id = client.post(
        "/api/deposit", json={"userId": user_id, "method": "ETH", "amount": 20}
    ).json()["txId"]

    assert client.get(f"/api/user/{user_id}").json()["balance"] == 0.0
    for _ in range(2):
        response = client.post("/api/approve-deposit", json={"txId": tx_id})
        assert response.json() == {"message": "Deposit approved!"}

    assert client.get(f"/api/user/{user_id}").json()["balance"] == 20.0
    transactions = client.get(f"/api/transactions/{user_id}").json()
    assert transactions[0]["status"] == "successful"
    assert client.get(f"/api/reconcile/{user_id}").json()["balanced"] is True


def test_decline_after_approval_conflicts(client: TestClient) -> None:
    user_id = _register(client)
    tx_id = client.post(
        "/api/deposit", json={"userId": user_id, "method": "USDT", "amount": 5}
    ).json()["txId"]
    client.post("/api/approve-deposit", json={"txId": tx_id})

    response = client.post("/api/decline-deposit", json={"txId": tx_id})

    assert response.status_code == 409


def test_approve_unknown_transaction_is_not_found(client: TestClient) -> None:
    response = client.post("/api/approve-deposit", json={"txId": "missing"})

    assert response.status_code == 404


def test_freeze_and_unfreeze(client: TestClient) -> None:
    user_id = _register(client)

    assert client.post("/api/freeze-account", json={"userId": user_id}).json() == {
        "message": "Account frozen."
    }
    assert client.get(f"/api/user/{user_id}").json()["isActive"] is False
    client.post("/api/unfreeze-account", json={"userId": user_id})
    assert client.get(f"/api/user/{user_id}").json()["isActive"] is True


def test_message_feed_is_newest_first(client: TestClient) -> None:
    alice = _register(client, "a@x.com", "Alice")
    bob = _register(client, "b@x.com", "Bob")
    client.post("/api/send-message", json={"userId": alice, "message": "hello"})
    client.post("/api/send-message", json={"userId": bob, "message": "hi back"})

    feed = client.get("/api/messages").json()

    assert [(entry["username"], entry["message"]) for entry in feed] == [
        ("Bob", "hi back"),
        ("Alice", "hello"),
    ]


def test_unmatched_route_is_not_found(client: TestClient) -> None:
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_non_numeric_user_id_is_not_found(client: TestClient) -> None:
    response = client.get("/api/user/abc")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_blank_and_missing_username_share_one_message(client: TestClient) -> None:
    blank = client.post(
        "/api/register", json={"email": "a@x.com", "username": "   ", "password": "pw"}
    )
    missing = client.post("/api/register", json={"email": "a@x.com", "password": "pw"})

    assert blank.status_code == missing.status_code == 400
    assert blank.json() == missing.json() == {"error": "All fields required"}
