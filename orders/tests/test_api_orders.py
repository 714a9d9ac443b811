"""API tests for the orders HTTP endpoints.

Most tests run the service on the in-memory repository through
``app.dependency_overrides``; the last one goes through the default
providers down to a SQLite database.
"""

import uuid

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from orders.adapters import InMemoryOrderRepository
from orders.domain import OrderService
from orders.main import app
from orders.providers import get_order_service

ORDERS_URL = "/orders"
DETAIL_URL = "/orders/{oid}"
PAY_URL = "/orders/{oid}/pay"
REVENUE_URL = "/revenue"


def _create(client, **overrides):
    payload = {"customer_email": "someone@i.ua", "item": "Poster", "qty": 2, "price": "50.40"}
    payload.update(overrides)
    return client.post(ORDERS_URL, json=payload)


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_create_order_returns_201_and_id(client):
    r = _create(client)
    assert r.status_code == 201
    assert r.json() == {"id": 1, "status": "NEW"}


def test_create_order_domain_validation_maps_to_422(client):
    r = _create(client, customer_email="someonei.ua")
    assert r.status_code == 422
    assert r.json() == {"detail": "VALIDATION_ERROR", "message": "invalid email"}

    r = _create(client, qty=0)
    assert r.json()["message"] == "invalid qty"
    r = _create(client, price="-1")
    assert r.json()["message"] == "invalid price"
    r = _create(client, price="1e26")
    assert r.status_code == 422
    assert r.json()["message"] == "invalid price"


def test_create_order_malformed_payload(client):
    """Shape errors are rejected by the request schema before the service."""
    r = client.post(ORDERS_URL, json={"customer_email": "a@b.c", "item": "x", "qty": "many", "price": "1"})
    assert r.status_code == 422
    assert isinstance(r.json()["detail"], list)


def test_get_order_by_id_returns_payload(client):
    oid = _create(client).json()["id"]
    r = client.get(DETAIL_URL.format(oid=oid))
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == oid
    assert body["status"] == "NEW"
    assert body["unit_price"] == "50.40"
    assert body["total"] == "100.80"
    assert body["created_at"]


def test_get_order_not_found_returns_404(client):
    r = client.get(DETAIL_URL.format(oid=42))
    assert r.status_code == 404
    assert r.json()["detail"] == "NOT_FOUND"


def test_list_orders_returns_paginated_results(client):
    _create(client)
    _create(client, item="Suit")
    r = client.get(ORDERS_URL, params={"page": 1, "page_size": 10})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert body["page_size"] == 10
    assert [x["item"] for x in body["results"]] == ["Suit", "Poster"]

    r = client.get(ORDERS_URL, params={"page": 0})
    assert r.status_code == 422


def test_pay_order_flow(client):
    oid = _create(client).json()["id"]
    r = client.post(PAY_URL.format(oid=oid))
    assert r.status_code == 200
    assert r.json() == {"id": oid, "paid": True}

    r = client.post(PAY_URL.format(oid=oid))
    assert r.status_code == 409
    assert r.json() == {"detail": "INVALID_STATE", "message": "order must have NEW status"}

    r = client.post(PAY_URL.format(oid=999))
    assert r.status_code == 404


def test_revenue_counts_only_paid_orders(client):
    assert client.get(REVENUE_URL).json() == {"revenue": "0.00"}
    a = _create(client, qty=2, price="50.40").json()["id"]
    b = _create(client, qty=1, price="20.15").json()["id"]
    assert client.get(REVENUE_URL).json() == {"revenue": "0.00"}

    client.post(PAY_URL.format(oid=a))
    client.post(PAY_URL.format(oid=b))
    assert client.get(REVENUE_URL).json() == {"revenue": "120.95"}


def test_request_id_is_echoed_or_generated(client):
    rid = "req-123"
    r = client.get("/health", headers={"X-Request-ID": rid})
    assert r.headers["X-Request-ID"] == rid

    r = client.get("/health")
    uuid.UUID(r.headers["X-Request-ID"])


def test_sql_backed_api_end_to_end(sql_client):
    a = _create(sql_client, qty=2, price="50.40").json()["id"]
    b = _create(sql_client, qty=1, price="20.15").json()["id"]
    assert sql_client.post(PAY_URL.format(oid=a)).status_code == 200
    assert sql_client.post(PAY_URL.format(oid=a)).status_code == 409
    assert sql_client.post(PAY_URL.format(oid=b)).status_code == 200
    assert sql_client.get(REVENUE_URL).json() == {"revenue": "120.95"}
    assert sql_client.get(DETAIL_URL.format(oid=b)).json()["status"] == "PAID"


def _lost_connection(*args, **kwargs):
    raise OperationalError("COMMIT", {}, ConnectionError("server closed the connection at db:5432"))


class UnreachableRepository(InMemoryOrderRepository):
    """Repository whose reads and commits fail like a dropped connection."""

    async def paid_revenue(self):
        _lost_connection()

    async def commit(self):
        _lost_connection()


def test_storage_failure_maps_to_503(client):
    app.dependency_overrides[get_order_service] = lambda: OrderService(UnreachableRepository())
    r = client.get(REVENUE_URL)
    assert r.status_code == 503
    assert r.json() == {"detail": "STORAGE_UNAVAILABLE", "message": "storage unavailable"}

    r = _create(client)
    assert r.status_code == 503
    assert "db:5432" not in r.text


def test_commit_failure_returns_503_and_persists_nothing(sql_client, monkeypatch):
    """A failing commit must surface as an error, never as a 2xx."""
    monkeypatch.setattr(AsyncSession, "commit", lambda self: _lost_connection())
    r = _create(sql_client)
    assert r.status_code == 503
    assert r.json()["detail"] == "STORAGE_UNAVAILABLE"

    monkeypatch.undo()
    assert sql_client.get(ORDERS_URL).json()["count"] == 0


def test_created_order_is_readable_right_away(sql_client):
    oid = _create(sql_client).json()["id"]
    r = sql_client.get(DETAIL_URL.format(oid=oid))
    assert r.status_code == 200
    assert r.json()["status"] == "NEW"
