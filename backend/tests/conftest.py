"""Shared fixtures: domain records, mocked repositories, fake gateway, SQLite session."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from checkout.db.init_db import create_engine_for, create_session_factory, create_tables
from checkout.mocks.payment_gateway import FakePaymentGateway
from checkout.models.entities import Customer, Delivery, Product, Transaction
from checkout.models.schemas import CardData
from checkout.repositories.base import (
    CustomerRepository,
    DeliveryRepository,
    ProductRepository,
    TransactionRepository,
)
from checkout.services.polling import RetryPolicy

APPROVED_CARD = "4242424242424242"
DECLINED_CARD = "4111111111111111"


# ----------------------------------------------------------------------------
# Domain records
# ----------------------------------------------------------------------------


@pytest.fixture
def customer():
    return Customer(email="ana@example.com", full_name="Ana Gomez", phone="3001234567")


@pytest.fixture
def product():
    return Product(
        name="Wireless Headphones",
        description="Noise cancelling wireless headphones",
        price=Decimal("250000"),
        stock_quantity=10,
        image_url="https://picsum.photos/id/0/5000/3333",
    )


@pytest.fixture
def pending_transaction(customer, product):
    return Transaction(
        product_id=product.id,
        customer_id=customer.id,
        amount=Decimal("250000"),
        base_fee=Decimal("5000"),
        delivery_fee=Decimal("10000"),
        total_amount=Decimal("265000"),
    )


@pytest.fixture
def delivery(pending_transaction):
    return Delivery(
        transaction_id=pending_transaction.id,
        full_name="Ana Gomez",
        phone="3001234567",
        address="Calle 123 # 45-67",
        city="Medellin",
        state="Antioquia",
        postal_code="050001",
    )


@pytest.fixture
def card():
    return CardData(
        number=APPROVED_CARD,
        exp_month="08",
        exp_year="28",
        cvc="123",
        card_holder="ANA GOMEZ",
    )


# ----------------------------------------------------------------------------
# Collaborators
# ----------------------------------------------------------------------------


@pytest.fixture
def customer_repository():
    return AsyncMock(spec=CustomerRepository)


@pytest.fixture
def product_repository():
    return AsyncMock(spec=ProductRepository)


@pytest.fixture
def transaction_repository():
    return AsyncMock(spec=TransactionRepository)


@pytest.fixture
def delivery_repository():
    return AsyncMock(spec=DeliveryRepository)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def polling_policy(sleep):
    """Production budget (2s x 15) with the wait replaced by a mock."""
    return RetryPolicy(interval=2.0, timeout=30.0, sleep=sleep)


# ----------------------------------------------------------------------------
# Database
# ----------------------------------------------------------------------------


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'checkout.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
