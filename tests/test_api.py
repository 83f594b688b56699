import pytest
from httpx import ASGITransport, AsyncClient

from app.core.cookies import SESSION_COOKIE_NAME, make_session_value
from app.core.database import get_db
from app.domain.savings.services import TRANSACTION_DELETE_FORBIDDEN


async def _create_box(client, name="Trip", **extra):
    response = await client.post("/api/savings-boxes/", json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _create_account(client, balance="1000.00"):
    response = await client.post("/api/accounts/", json={"name": "Checking", "balance": balance})
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"


async def test_create_and_list_boxes(client):
    created = await _create_box(client, target_amount="150.00")

    response = await client.get("/api/savings-boxes/")
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert [box["id"] for box in body["data"]] == [created["id"]]
    assert created["target_amount"] == 15000
    assert created["current_amount"] == 0


async def test_create_box_rejects_unknown_fields(client):
    response = await client.post(
        "/api/savings-boxes/", json={"name": "Trip", "current_amount": 1000}
    )

    assert response.status_code == 422


async def test_deposit_withdraw_and_transfer_flow(client):
    account = await _create_account(client)
    trip = await _create_box(client, "Trip")
    house = await _create_box(client, "House")

    deposit = await client.post(
        f"/api/savings-boxes/{trip['id']}/deposit",
        json={"amount": "250.00", "account_id": account["id"]},
    )
    assert deposit.status_code == 201
    assert deposit.json()["data"]["type"] == "DEPOSIT"
    assert deposit.json()["data"]["amount"] == 25000

    withdraw = await client.post(
        f"/api/savings-boxes/{trip['id']}/withdraw",
        json={"amount": "100.00", "account_id": account["id"]},
    )
    assert withdraw.status_code == 201

    transfer = await client.post(
        "/api/savings-boxes/transfer",
        json={"from_box_id": trip["id"], "to_box_id": house["id"], "amount": "500.00"},
    )
    assert transfer.status_code == 422
    assert transfer.json() == {
        "success": False,
        "error": 'Insufficient balance in savings box "Trip". Available: 150.00',
        "kind": "INSUFFICIENT_FUNDS",
    }

    box = (await client.get(f"/api/savings-boxes/{trip['id']}")).json()["data"]
    checking = (await client.get(f"/api/accounts/{account['id']}")).json()["data"]
    assert box["current_amount"] == 15000
    assert checking["balance"] == 85000

    history = (await client.get("/api/savings-transactions/", params={"box_id": trip["id"]})).json()
    assert [tx["type"] for tx in history["data"]] == ["WITHDRAW", "DEPOSIT"]


async def test_same_box_transfer_is_bad_request(client):
    box = await _create_box(client)

    response = await client.post(
        "/api/savings-boxes/transfer",
        json={"from_box_id": box["id"], "to_box_id": box["id"], "amount": "1"},
    )

    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_INPUT"


async def test_oversized_deposit_is_bad_request(client):
    box = await _create_box(client)

    response = await client.post(f"/api/savings-boxes/{box['id']}/deposit", json={"amount": "1e20"})
    fetched = (await client.get(f"/api/savings-boxes/{box['id']}")).json()["data"]

    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_INPUT"
    assert fetched["current_amount"] == 0


async def test_oversized_account_balance_is_bad_request(client):
    response = await client.post("/api/accounts/", json={"name": "Huge", "balance": "1e20"})

    assert response.status_code == 400
    assert response.json()["kind"] == "INVALID_INPUT"


async def test_unknown_box_is_not_found(client):
    response = await client.post("/api/savings-boxes/999/deposit", json={"amount": "1"})

    assert response.status_code == 404
    assert response.json()["error"] == "Savings box not found"


async def test_deleted_box_rejects_deposits(client):
    box = await _create_box(client)

    deleted = await client.delete(f"/api/savings-boxes/{box['id']}")
    deposit = await client.post(f"/api/savings-boxes/{box['id']}/deposit", json={"amount": "1"})
    restored = await client.post(f"/api/savings-boxes/{box['id']}/restore")

    assert deleted.json() == {"success": True}
    assert deposit.status_code == 409
    assert deposit.json()["kind"] == "INACTIVE_ENTITY"
    assert restored.json()["data"]["is_active"] is True


async def test_delete_box_with_balance_conflicts(client):
    box = await _create_box(client)
    await client.post(f"/api/savings-boxes/{box['id']}/deposit", json={"amount": "3"})

    soft = await client.delete(f"/api/savings-boxes/{box['id']}")
    hard = await client.delete(f"/api/savings-boxes/{box['id']}/purge")

    assert soft.status_code == 409
    assert hard.status_code == 409


@pytest.mark.parametrize("transaction_id", [1, 987654])
async def test_transaction_delete_is_forbidden(client, transaction_id):
    response = await client.delete(f"/api/savings-transactions/{transaction_id}")

    assert response.status_code == 403
    assert response.json()["error"] == TRANSACTION_DELETE_FORBIDDEN


async def test_aggregate_endpoints(client):
    box = await _create_box(client, target_amount="100")
    await client.post(f"/api/savings-boxes/{box['id']}/deposit", json={"amount": "25"})

    total = (await client.get("/api/savings-boxes/total")).json()
    summary = (await client.get("/api/savings-boxes/summary")).json()
    stats = (await client.get("/api/savings-boxes/stats")).json()
    tx_stats = (await client.get("/api/savings-transactions/stats")).json()

    assert total["data"] == {"total": 2500}
    assert summary["data"][0]["progress_percentage"] == 25
    assert stats["data"]["total_boxes"] == 1
    assert tx_stats["data"]["total_deposited"] == 2500


async def test_goal_link_and_contribute(client):
    account = await _create_account(client)
    box = await _create_box(client)
    created = await client.post(
        "/api/goals/",
        json={
            "name": "Trip",
            "target_amount": "100",
            "target_date": "2099-12-31",
            "account_id": account["id"],
        },
    )
    assert created.status_code == 201
    goal = created.json()["data"]

    linked = await client.put(
        f"/api/goals/{goal['id']}/savings-box", json={"savings_box_id": box["id"]}
    )
    assert linked.json()["data"]["transition"] == "linking"
    assert linked.json()["data"]["goal"]["savings_box_id"] == box["id"]

    contributed = await client.post(f"/api/goals/{goal['id']}/contribute", json={"amount": "100"})
    assert contributed.status_code == 200
    assert contributed.json()["data"]["current_amount"] == 10000
    assert contributed.json()["data"]["is_completed"] is True

    unlinked = await client.put(f"/api/goals/{goal['id']}/savings-box", json={"savings_box_id": None})
    assert unlinked.json()["data"]["transition"] == "unlinking"
    assert unlinked.json()["data"]["goal"]["current_amount"] == 10000


async def test_requests_without_session_are_rejected(session_factory, user):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as anonymous:
            missing = await anonymous.get("/api/savings-boxes/")
        async with AsyncClient(
            transport=transport,
            base_url="http://testserver",
            cookies={SESSION_COOKIE_NAME: "forged"},
        ) as forged:
            tampered = await forged.get("/api/savings-boxes/")
        async with AsyncClient(
            transport=transport,
            base_url="http://testserver",
            cookies={SESSION_COOKIE_NAME: make_session_value(user.email)},
        ) as signed_in:
            allowed = await signed_in.get("/api/savings-boxes/")
    finally:
        app.dependency_overrides.clear()

    assert missing.status_code == 401
    assert missing.json() == {"success": False, "error": "Not authenticated"}
    assert tampered.status_code == 401
    assert allowed.status_code == 200
    assert allowed.json() == {"success": True, "data": []}
