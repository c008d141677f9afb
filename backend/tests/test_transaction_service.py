"""Tests for the create, recover and detail use cases."""

from decimal import Decimal

import pytest

from checkout.models.entities import TransactionStatus
from checkout.models.schemas import CreateTransactionRequest
from checkout.services.product_service import ProductService
from checkout.services.transaction_service import TransactionService


def _request(**overrides):
    data = dict(
        customer_email="ana@example.com",
        customer_full_name="Ana Gomez",
        customer_phone="3001234567",
        product_id="product-1",
        quantity=1,
        delivery_full_name="Ana Gomez",
        delivery_phone="3001234567",
        delivery_address="Calle 123 # 45-67",
        delivery_city="Medellin",
        delivery_state="Antioquia",
        delivery_postal_code="050001",
    )
    data.update(overrides)
    return CreateTransactionRequest(**data)


@pytest.fixture
def service(customer_repository, product_repository, transaction_repository, delivery_repository, product):
    product_repository.find_by_id.return_value = product
    return TransactionService(
        customer_repository=customer_repository,
        product_repository=product_repository,
        transaction_repository=transaction_repository,
        delivery_repository=delivery_repository,
        base_fee=Decimal("5000"),
        delivery_fee=Decimal("10000"),
    )


class TestCreateTransaction:
    async def test_new_customer_creates_customer_transaction_and_delivery(
        self, service, customer_repository, transaction_repository, delivery_repository, product
    ):
        customer_repository.find_by_email.return_value = None

        result = await service.create_transaction(_request(product_id=product.id))

        assert result.is_success
        assert result.value.status == "PENDING"
        assert result.value.total_amount == Decimal("265000")
        assert result.value.transaction_no.startswith("TXN-")

        customer_repository.create.assert_awaited_once()
        created_customer = customer_repository.create.await_args.args[0]
        assert created_customer.email == "ana@example.com"

        transaction = transaction_repository.create.await_args.args[0]
        assert transaction.id == result.value.transaction_id
        assert transaction.customer_id == created_customer.id
        assert transaction.amount == Decimal("250000")
        assert transaction.base_fee == Decimal("5000")
        assert transaction.delivery_fee == Decimal("10000")

        delivery = delivery_repository.create.await_args.args[0]
        assert delivery.transaction_id == transaction.id
        assert delivery.city == "Medellin"

    async def test_quantity_multiplies_amount_only(self, service, customer_repository, transaction_repository, product):
        customer_repository.find_by_email.return_value = None

        result = await service.create_transaction(_request(product_id=product.id, quantity=2))

        transaction = transaction_repository.create.await_args.args[0]
        assert transaction.quantity == 2
        assert transaction.amount == Decimal("500000")
        assert result.value.total_amount == Decimal("515000")

    async def test_stock_is_not_touched_on_create(self, service, customer_repository, product_repository, product):
        customer_repository.find_by_email.return_value = None

        await service.create_transaction(_request(product_id=product.id))

        assert product.stock_quantity == 10
        product_repository.update.assert_not_awaited()

    async def test_existing_customer_with_same_details_is_not_written(
        self, service, customer_repository, customer, product
    ):
        customer_repository.find_by_email.return_value = customer

        result = await service.create_transaction(_request(product_id=product.id))

        assert result.is_success
        customer_repository.create.assert_not_awaited()
        customer_repository.update.assert_not_awaited()

    async def test_existing_customer_with_new_details_is_updated_once(
        self, service, customer_repository, customer, product
    ):
        customer_repository.find_by_email.return_value = customer

        await service.create_transaction(
            _request(product_id=product.id, customer_full_name="Ana Maria Gomez", customer_phone="3110000000")
        )

        customer_repository.create.assert_not_awaited()
        customer_repository.update.assert_awaited_once_with(customer)
        assert customer.full_name == "Ana Maria Gomez"
        assert customer.phone == "3110000000"

    async def test_product_not_found(self, service, customer_repository, product_repository, transaction_repository):
        customer_repository.find_by_email.return_value = None
        product_repository.find_by_id.return_value = None

        result = await service.create_transaction(_request())

        assert result.error == "Product not found"
        transaction_repository.create.assert_not_awaited()

    async def test_inactive_product_not_available(self, service, customer_repository, product, transaction_repository):
        customer_repository.find_by_email.return_value = None
        product.deactivate()

        result = await service.create_transaction(_request(product_id=product.id))

        assert result.error == "Product not available"
        transaction_repository.create.assert_not_awaited()

    async def test_sold_out_product_is_insufficient_stock(
        self, service, customer_repository, product, transaction_repository
    ):
        customer_repository.find_by_email.return_value = None
        product.stock_quantity = 0

        result = await service.create_transaction(_request(product_id=product.id))

        assert result.error == "Insufficient stock"
        transaction_repository.create.assert_not_awaited()

    async def test_insufficient_stock(self, service, customer_repository, product, transaction_repository):
        customer_repository.find_by_email.return_value = None

        result = await service.create_transaction(_request(product_id=product.id, quantity=11))

        assert result.error == "Insufficient stock"
        transaction_repository.create.assert_not_awaited()

    async def test_invalid_delivery_writes_nothing(
        self, service, customer_repository, customer, product, transaction_repository, delivery_repository
    ):
        customer_repository.find_by_email.return_value = customer
        request = _request(product_id=product.id).model_copy(update={"delivery_address": "Calle 1"})

        result = await service.create_transaction(request)

        assert result.error == "Delivery address must be at least 10 characters"
        transaction_repository.create.assert_not_awaited()
        delivery_repository.create.assert_not_awaited()


class TestRecoverTransaction:
    async def test_returns_latest_pending_with_product_and_delivery(
        self,
        service,
        customer_repository,
        transaction_repository,
        delivery_repository,
        customer,
        product,
        pending_transaction,
        delivery,
    ):
        customer_repository.find_by_email.return_value = customer
        transaction_repository.find_pending_by_customer_id.return_value = pending_transaction
        delivery_repository.find_by_transaction_id.return_value = delivery

        result = await service.recover_transaction("ana@example.com")

        assert result.is_success
        recovered = result.value
        assert recovered.transaction.id == pending_transaction.id
        assert recovered.transaction.status == "PENDING"
        assert recovered.product.name == product.name
        assert recovered.delivery.city == "Medellin"
        transaction_repository.find_pending_by_customer_id.assert_awaited_once_with(customer.id)

    async def test_unknown_email(self, service, customer_repository):
        customer_repository.find_by_email.return_value = None

        result = await service.recover_transaction("nobody@example.com")

        assert result.error == "No pending transactions found for this email"

    async def test_no_pending_transaction(self, service, customer_repository, transaction_repository, customer):
        customer_repository.find_by_email.return_value = customer
        transaction_repository.find_pending_by_customer_id.return_value = None

        result = await service.recover_transaction("ana@example.com")

        assert result.error == "No pending transactions found for this email"

    async def test_missing_delivery(
        self, service, customer_repository, transaction_repository, delivery_repository, customer, pending_transaction
    ):
        customer_repository.find_by_email.return_value = customer
        transaction_repository.find_pending_by_customer_id.return_value = pending_transaction
        delivery_repository.find_by_transaction_id.return_value = None

        result = await service.recover_transaction("ana@example.com")

        assert result.error == "Delivery not found"


class TestGetTransaction:
    @pytest.fixture(autouse=True)
    def _records(
        self,
        customer_repository,
        transaction_repository,
        delivery_repository,
        customer,
        pending_transaction,
        delivery,
    ):
        transaction_repository.find_by_id.return_value = pending_transaction
        customer_repository.find_by_id.return_value = customer
        delivery_repository.find_by_transaction_id.return_value = delivery

    async def test_pending_transaction_has_no_payment_block(self, service, pending_transaction):
        result = await service.get_transaction(pending_transaction.id)

        detail = result.value
        assert detail.transaction.status == "PENDING"
        assert detail.transaction.total_amount == Decimal("265000")
        assert detail.customer.email == "ana@example.com"
        assert detail.product.name == "Wireless Headphones"
        assert detail.delivery.address == "Calle 123 # 45-67"
        assert detail.payment is None

    async def test_approved_transaction_has_payment_block(self, service, pending_transaction):
        pending_transaction.approve("gw-1", "REF-1", "VISA", "4242")

        detail = (await service.get_transaction(pending_transaction.id)).value

        assert detail.transaction.status == TransactionStatus.APPROVED.value
        assert detail.payment.card_brand == "VISA"
        assert detail.payment.card_last_four == "4242"
        assert detail.payment.gateway_transaction_id == "gw-1"
        assert detail.payment.gateway_reference == "REF-1"

    async def test_payment_reference_falls_back_to_transaction_number(self, service, pending_transaction):
        pending_transaction.approve("gw-1", "REF-1", "VISA", "4242")
        pending_transaction.gateway_reference = None

        detail = (await service.get_transaction(pending_transaction.id)).value

        assert detail.payment.gateway_reference == pending_transaction.transaction_no

    async def test_declined_without_card_details_has_no_payment_block(self, service, pending_transaction):
        pending_transaction.decline("gw-2", "REF-2")

        detail = (await service.get_transaction(pending_transaction.id)).value

        assert detail.payment is None

    async def test_not_found(self, service, transaction_repository):
        transaction_repository.find_by_id.return_value = None

        result = await service.get_transaction("missing")

        assert result.error == "Transaction not found"


class TestProductService:
    async def test_lists_available_products(self, product_repository, product):
        product_repository.find_all_available.return_value = [product]

        products = await ProductService(product_repository).list_products()

        assert [view.id for view in products] == [product.id]
        assert products[0].price == Decimal("250000")

    async def test_inactive_product_is_hidden(self, product_repository, product):
        product.deactivate()
        product_repository.find_by_id.return_value = product

        result = await ProductService(product_repository).get_product(product.id)

        assert result.error == "Product is not active"

    async def test_unknown_product(self, product_repository):
        product_repository.find_by_id.return_value = None

        result = await ProductService(product_repository).get_product("missing")

        assert result.error == "Product not found"
