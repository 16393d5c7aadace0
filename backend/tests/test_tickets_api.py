"""
Tests for the ticket HTTP endpoints.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from ticketing.api import errors
from ticketing.core.errors import StorageError, TicketNotFoundError


@pytest.mark.asyncio
async def test_create_ticket(client: AsyncClient):
    response = await client.post(
        "/tickets",
        json={"name": "Concert", "desc": "Live at the arena", "allocation": 2},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["id"] >= 1
    assert data["name"] == "Concert"
    assert data["desc"] == "Live at the arena"
    assert data["allocation"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"name": "Concert", "desc": "x", "allocation": 0},
        {"name": "Concert", "desc": "x", "allocation": -1},
        {"name": "", "desc": "x", "allocation": 1},
        {"name": "Concert", "desc": "", "allocation": 1},
        {"name": "Concert", "allocation": 1},
        {"desc": "x", "allocation": 1},
        {"name": "Concert", "desc": "x"},
        {"name": "   ", "desc": "x", "allocation": 1},
    ],
)
async def test_create_ticket_invalid_body(client: AsyncClient, body):
    response = await client.post("/tickets", json=body)
    assert response.status_code == 400
    assert "error" in response.json()

    assert (await client.get("/tickets")).json() == []


@pytest.mark.asyncio
async def test_create_ticket_malformed_json(client: AsyncClient):
    response = await client.post(
        "/tickets", content="not json at all", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_tickets_empty(client: AsyncClient):
    response = await client.get("/tickets")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_list_tickets(client: AsyncClient, concert, limited_ticket):
    response = await client.get("/tickets")
    assert response.status_code == 200
    data = response.json()
    assert [t["id"] for t in data] == [concert.id, limited_ticket.id]
    assert data[0] == {
        "id": concert.id,
        "name": "Concert",
        "desc": "Live at the arena",
        "allocation": 2,
    }


@pytest.mark.asyncio
async def test_get_ticket(client: AsyncClient, concert):
    response = await client.get(f"/tickets/{concert.id}")
    assert response.status_code == 200
    assert response.json()["allocation"] == 2

    # Reads are idempotent
    assert (await client.get(f"/tickets/{concert.id}")).json() == response.json()


@pytest.mark.asyncio
async def test_get_ticket_bad_id(client: AsyncClient):
    response = await client.get("/tickets/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid ticket ID"}


@pytest.mark.asyncio
async def test_get_ticket_not_found(client: AsyncClient):
    response = await client.get("/tickets/99999")
    assert response.status_code == 404
    assert response.json() == {"error": "Ticket not found"}


@pytest.mark.asyncio
async def test_purchase_flow(client: AsyncClient, concert):
    """Concert with 2: u1 buys 1 (200, empty body); u2 asks for 2 (400); 1 left."""
    response = await client.post(
        f"/tickets/{concert.id}/purchases", json={"quantity": 1, "user_id": "u1"}
    )
    assert response.status_code == 200
    assert response.content == b""
    assert (await client.get(f"/tickets/{concert.id}")).json()["allocation"] == 1

    response = await client.post(
        f"/tickets/{concert.id}/purchases", json={"quantity": 2, "user_id": "u2"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Not enough tickets available"}
    assert (await client.get(f"/tickets/{concert.id}")).json()["allocation"] == 1


@pytest.mark.asyncio
async def test_purchase_not_found(client: AsyncClient):
    response = await client.post("/tickets/99999/purchases", json={"quantity": 1, "user_id": "u1"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_purchase_bad_id(client: AsyncClient):
    response = await client.post("/tickets/abc/purchases", json={"quantity": 1, "user_id": "u1"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid ticket ID"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"quantity": 0, "user_id": "u1"},
        {"quantity": -2, "user_id": "u1"},
        {"quantity": 1, "user_id": ""},
        {"quantity": 1},
        {"user_id": "u1"},
        {"quantity": 1, "user_id": "   "},
    ],
)
async def test_purchase_invalid_body(client: AsyncClient, concert, body):
    response = await client.post(f"/tickets/{concert.id}/purchases", json=body)
    assert response.status_code == 400
    assert (await client.get(f"/tickets/{concert.id}")).json()["allocation"] == 2


@pytest.mark.asyncio
async def test_purchase_storage_failure_returns_500(client: AsyncClient, store, concert, monkeypatch):
    async def failing_record(ticket_id, user_id, quantity, scope):
        raise StorageError("Failed to record purchase", operation="record_purchase")

    monkeypatch.setattr(store, "record_purchase", failing_record)

    response = await client.post(
        f"/tickets/{concert.id}/purchases", json={"quantity": 1, "user_id": "u1"}
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to record purchase"}
    assert (await client.get(f"/tickets/{concert.id}")).json()["allocation"] == 2


@pytest.mark.asyncio
async def test_concurrent_purchases_never_oversell(client: AsyncClient, limited_ticket):
    """Ten simultaneous requests against an allocation of 5."""
    responses = await asyncio.gather(*(
        client.post(
            f"/tickets/{limited_ticket.id}/purchases",
            json={"quantity": 1, "user_id": f"user-{i}"},
        )
        for i in range(10)
    ))
    codes = sorted(r.status_code for r in responses)
    assert codes == [200] * 5 + [400] * 5

    assert (await client.get(f"/tickets/{limited_ticket.id}")).json()["allocation"] == 0
    purchases = (await client.get(f"/tickets/{limited_ticket.id}/purchases")).json()
    assert sum(p["quantity"] for p in purchases) == 5


@pytest.mark.asyncio
async def test_list_purchases(client: AsyncClient, concert):
    await client.post(f"/tickets/{concert.id}/purchases", json={"quantity": 1, "user_id": "u1"})
    await client.post(f"/tickets/{concert.id}/purchases", json={"quantity": 1, "user_id": "u2"})

    response = await client.get(f"/tickets/{concert.id}/purchases")
    assert response.status_code == 200
    data = response.json()
    assert [(p["user_id"], p["quantity"]) for p in data] == [("u1", 1), ("u2", 1)]
    assert all(p["ticket_id"] == concert.id for p in data)


@pytest.mark.asyncio
async def test_list_purchases_not_found(client: AsyncClient):
    response = await client.get("/tickets/99999/purchases")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_request_id_header(client: AsyncClient):
    response = await client.get("/tickets", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Response-Time"].endswith("ms")


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["cache"] == {"status": "disabled"}


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient, concert):
    await client.post(f"/tickets/{concert.id}/purchases", json={"quantity": 1, "user_id": "u1"})
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "purchase_attempts_total" in response.text


@pytest.mark.asyncio
async def test_server_errors_are_logged_with_traceback(monkeypatch):
    logged = MagicMock()
    monkeypatch.setattr(errors, "logger", logged)

    try:
        raise StorageError("Failed to commit transaction", operation="commit")
    except StorageError as exc:
        response = await errors.domain_error_handler(MagicMock(), exc)

    assert response.status_code == 500
    logged.exception.assert_called_once_with(
        "domain_error", code="STORAGE_ERROR", error="Failed to commit transaction"
    )
    logged.error.assert_not_called()


@pytest.mark.asyncio
async def test_client_errors_are_logged_as_warnings(monkeypatch):
    logged = MagicMock()
    monkeypatch.setattr(errors, "logger", logged)

    response = await errors.domain_error_handler(MagicMock(), TicketNotFoundError(7))

    assert response.status_code == 404
    logged.warning.assert_called_once()
    logged.exception.assert_not_called()
