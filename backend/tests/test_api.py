"""End-to-end tests of the HTTP surface with a SQLite file database and the fake gateway."""

import httpx
import pytest

from checkout.db import init_db
from checkout.db.seed import seed_products
from checkout.gateway import get_payment_gateway
from checkout.gateway.types import ChargeStatus
from checkout.main import app


def _order(product_id, **overrides):
    body = {
        "customer_email": "ana@example.com",
        "customer_full_name": "Ana Gomez",
        "customer_phone": "3001234567",
        "product_id": product_id,
        "quantity": 1,
        "delivery_full_name": "Ana Gomez",
        "delivery_phone": "3001234567",
        "delivery_address": "Calle 123 # 45-67",
        "delivery_city": "Medellin",
        "delivery_state": "Antioquia",
        "delivery_postal_code": "050001",
    }
    body.update(overrides)
    return body


def _payment(number="4242424242424242"):
    return {
        "card_number": number,
        "card_exp_month": "08",
        "card_exp_year": "28",
        "card_cvc": "123",
        "card_holder": "ANA GOMEZ",
    }


@pytest.fixture
async def api(session_factory, gateway, monkeypatch):
    monkeypatch.setattr(init_db, "AsyncSessionLocal", session_factory)
    async with session_factory() as session:
        await seed_products(session)

    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _first_product(api):
    response = await api.get("/api/products")
    return response.json()["products"][0]


async def _create(api, **overrides):
    product = await _first_product(api)
    response = await api.post("/api/transactions", json=_order(product["id"], **overrides))
    assert response.status_code == 201, response.text
    return product, response.json()


class TestHealth:
    async def test_health(self, api):
        response = await api.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProducts:
    async def test_lists_seeded_catalog(self, api):
        response = await api.get("/api/products")

        body = response.json()
        assert response.status_code == 200
        assert body["count"] == 6
        assert {"id", "name", "price", "stock_quantity"} <= set(body["products"][0])

    async def test_get_product(self, api):
        product = await _first_product(api)

        response = await api.get(f"/api/products/{product['id']}")

        assert response.status_code == 200
        assert response.json()["name"] == product["name"]

    async def test_unknown_product_is_404(self, api):
        response = await api.get("/api/products/missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Product not found"


class TestCheckoutFlow:
    async def test_create_then_pay_then_detail(self, api):
        product, created = await _create(api)
        assert created["status"] == "PENDING"

        paid = await api.patch(f"/api/transactions/{created['transaction_id']}/payment", json=_payment())
        assert paid.status_code == 200, paid.text
        assert paid.json()["status"] == "APPROVED"
        assert paid.json()["card_last_four"] == "4242"

        detail = (await api.get(f"/api/transactions/{created['transaction_id']}")).json()
        assert detail["transaction"]["status"] == "APPROVED"
        assert detail["payment"]["card_brand"] == "VISA"
        assert detail["delivery"]["city"] == "Medellin"

        refreshed = (await api.get(f"/api/products/{product['id']}")).json()
        assert refreshed["stock_quantity"] == product["stock_quantity"] - 1

    async def test_declined_payment_keeps_stock(self, api):
        product, created = await _create(api)

        paid = await api.patch(
            f"/api/transactions/{created['transaction_id']}/payment", json=_payment("4111111111111111")
        )

        assert paid.status_code == 200
        assert paid.json()["status"] == "DECLINED"
        refreshed = (await api.get(f"/api/products/{product['id']}")).json()
        assert refreshed["stock_quantity"] == product["stock_quantity"]

    async def test_paying_twice_is_rejected(self, api):
        _, created = await _create(api)
        url = f"/api/transactions/{created['transaction_id']}/payment"
        await api.patch(url, json=_payment())

        second = await api.patch(url, json=_payment())

        assert second.status_code == 400
        assert second.json()["error_code"] == "checkout:transaction:invalid_state"
        assert second.json()["message"] == "Transaction cannot be processed. Current status: APPROVED"

    async def test_gateway_error_status_is_persisted(self, api, gateway):
        gateway.configure(final_status=ChargeStatus.ERROR)
        _, created = await _create(api)

        paid = await api.patch(
            f"/api/transactions/{created['transaction_id']}/payment", json=_payment("5555555555554444")
        )

        assert paid.status_code == 400
        assert paid.json()["message"] == "Payment error occurred"
        detail = (await api.get(f"/api/transactions/{created['transaction_id']}")).json()
        assert detail["transaction"]["status"] == "ERROR"

    async def test_recover_pending_checkout(self, api):
        product, created = await _create(api)

        response = await api.get("/api/transactions/recover", params={"email": "ana@example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["transaction"]["id"] == created["transaction_id"]
        assert body["product"]["name"] == product["name"]
        assert body["delivery"]["city"] == "Medellin"

    async def test_recover_unknown_email_is_404(self, api):
        response = await api.get("/api/transactions/recover", params={"email": "nobody@example.com"})

        assert response.status_code == 404
        assert response.json()["message"] == "No pending transactions found for this email"


class TestErrors:
    async def test_unknown_transaction_is_404(self, api):
        response = await api.get("/api/transactions/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "checkout:resource:not_found"

    async def test_pay_unknown_transaction_is_404(self, api):
        response = await api.patch("/api/transactions/missing/payment", json=_payment())

        assert response.status_code == 404
        assert response.json()["message"] == "Transaction not found"

    async def test_insufficient_stock_is_400(self, api):
        product = await _first_product(api)

        response = await api.post(
            "/api/transactions", json=_order(product["id"], quantity=product["stock_quantity"] + 1)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "checkout:product:unavailable"
        assert response.json()["message"] == "Insufficient stock"

    async def test_invalid_body_is_422(self, api):
        product = await _first_product(api)

        response = await api.post("/api/transactions", json=_order(product["id"], customer_email="nope"))

        assert response.status_code == 422

    async def test_malformed_card_is_400(self, api):
        _, created = await _create(api)

        response = await api.patch(
            f"/api/transactions/{created['transaction_id']}/payment", json=_payment("4242-4242")
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "validation_error"
