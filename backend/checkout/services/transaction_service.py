"""
Transaction Service

Checkout use cases around a transaction:
- Create a PENDING transaction with its delivery for one product
- Recover the customer's latest PENDING transaction by email
- Retrieve the full detail of a transaction

The customer is found by email or created; contact details are only
rewritten when they actually changed.
"""
import logging
from decimal import Decimal
from typing import Optional

from ..config import settings
from ..models.entities import Customer, Delivery, Transaction
from ..models.fees import compute_order_amounts
from ..models.result import Result
from ..models.schemas import (
    CreateTransactionRequest,
    CreateTransactionResponse,
    CustomerView,
    DeliveryView,
    PaymentView,
    ProductSummary,
    RecoveredDelivery,
    RecoveredProduct,
    RecoveredTransaction,
    RecoveredTransactionSummary,
    TransactionDetail,
    TransactionView,
)
from ..repositories.base import CustomerRepository, DeliveryRepository, ProductRepository, TransactionRepository

logger = logging.getLogger(__name__)


class TransactionService:

    def __init__(
        self,
        customer_repository: CustomerRepository,
        product_repository: ProductRepository,
        transaction_repository: TransactionRepository,
        delivery_repository: DeliveryRepository,
        base_fee: Optional[Decimal] = None,
        delivery_fee: Optional[Decimal] = None,
    ):
        self.customer_repository = customer_repository
        self.product_repository = product_repository
        self.transaction_repository = transaction_repository
        self.delivery_repository = delivery_repository
        self.base_fee = settings.base_fee if base_fee is None else base_fee
        self.delivery_fee = settings.delivery_fee if delivery_fee is None else delivery_fee

    # ========================================================================
    # Create
    # ========================================================================

    async def create_transaction(self, request: CreateTransactionRequest) -> Result[CreateTransactionResponse]:
        """
        Create a PENDING transaction and its delivery.

        Failures: "Product not found", "Product not available" (inactive),
        "Insufficient stock", or an entity validation message.
        Stock is only checked here; it is decremented on approval.
        """
        customer_result = await self._find_or_create_customer(request)
        if customer_result.is_failure:
            return Result.fail(customer_result.error)
        customer = customer_result.value

        product = await self.product_repository.find_by_id(request.product_id)
        if not product:
            return Result.fail("Product not found")
        if not product.is_active:
            return Result.fail("Product not available")
        if not product.has_stock(request.quantity):
            return Result.fail("Insufficient stock")

        amounts = compute_order_amounts(
            unit_price=product.price,
            quantity=request.quantity,
            base_fee=self.base_fee,
            delivery_fee=self.delivery_fee,
        )

        transaction_result = Transaction.create(
            product_id=product.id,
            customer_id=customer.id,
            quantity=request.quantity,
            amount=amounts.amount,
            base_fee=amounts.base_fee,
            delivery_fee=amounts.delivery_fee,
            total_amount=amounts.total_amount,
        )
        if transaction_result.is_failure:
            return Result.fail(transaction_result.error)
        transaction = transaction_result.value

        # Validated before any write so an invalid delivery leaves nothing behind
        delivery_result = Delivery.create(
            transaction_id=transaction.id,
            full_name=request.delivery_full_name,
            phone=request.delivery_phone,
            address=request.delivery_address,
            city=request.delivery_city,
            state=request.delivery_state,
            postal_code=request.delivery_postal_code,
        )
        if delivery_result.is_failure:
            return Result.fail(delivery_result.error)

        await self.transaction_repository.create(transaction)
        await self.delivery_repository.create(delivery_result.value)

        logger.info(
            f"Created transaction {transaction.transaction_no} for {customer.email}: "
            f"{request.quantity} x {product.name}, total {transaction.total_amount}"
        )

        return Result.ok(CreateTransactionResponse(
            transaction_id=transaction.id,
            transaction_no=transaction.transaction_no,
            status=transaction.status.value,
            total_amount=transaction.total_amount,
        ))

    async def _find_or_create_customer(self, request: CreateTransactionRequest) -> Result[Customer]:
        customer = await self.customer_repository.find_by_email(request.customer_email)

        if customer is None:
            created = Customer.create(
                email=request.customer_email,
                full_name=request.customer_full_name,
                phone=request.customer_phone,
            )
            if created.is_success:
                await self.customer_repository.create(created.value)
                logger.info(f"Registered customer {created.value.email}")
            return created

        if customer.differs_from(request.customer_full_name, request.customer_phone):
            customer.update_info(request.customer_full_name, request.customer_phone)
            await self.customer_repository.update(customer)
            logger.debug(f"Updated contact details for {customer.email}")

        return Result.ok(customer)

    # ========================================================================
    # Recover
    # ========================================================================

    async def recover_transaction(self, email: str) -> Result[RecoveredTransaction]:
        """
        Latest PENDING transaction of the customer, with product and delivery.

        An unknown email fails the same way as a customer with nothing pending.
        """
        customer = await self.customer_repository.find_by_email(email)
        if not customer:
            return Result.fail("No pending transactions found for this email")

        transaction = await self.transaction_repository.find_pending_by_customer_id(customer.id)
        if not transaction:
            return Result.fail("No pending transactions found for this email")

        product = await self.product_repository.find_by_id(transaction.product_id)
        if not product:
            return Result.fail("Product not found")

        delivery = await self.delivery_repository.find_by_transaction_id(transaction.id)
        if not delivery:
            return Result.fail("Delivery not found")

        logger.info(f"Recovered {transaction.transaction_no} for {email}")

        return Result.ok(RecoveredTransaction(
            transaction=RecoveredTransactionSummary(**transaction.summary()),
            product=RecoveredProduct(name=product.name, price=product.price, image_url=product.image_url),
            delivery=RecoveredDelivery(city=delivery.city, state=delivery.state, address=delivery.address),
        ))

    # ========================================================================
    # Detail
    # ========================================================================

    async def get_transaction(self, transaction_id: str) -> Result[TransactionDetail]:
        transaction = await self.transaction_repository.find_by_id(transaction_id)
        if not transaction:
            return Result.fail("Transaction not found")

        customer = await self.customer_repository.find_by_id(transaction.customer_id)
        if not customer:
            return Result.fail("Customer not found")

        product = await self.product_repository.find_by_id(transaction.product_id)
        if not product:
            return Result.fail("Product not found")

        delivery = await self.delivery_repository.find_by_transaction_id(transaction.id)
        if not delivery:
            return Result.fail("Delivery not found")

        payment = None
        if transaction.gateway_transaction_id and transaction.card_brand and transaction.card_last_four:
            payment = PaymentView(
                card_brand=transaction.card_brand,
                card_last_four=transaction.card_last_four,
                gateway_transaction_id=transaction.gateway_transaction_id,
                gateway_reference=transaction.gateway_reference or transaction.transaction_no,
            )

        return Result.ok(TransactionDetail(
            transaction=TransactionView(
                id=transaction.id,
                transaction_no=transaction.transaction_no,
                status=transaction.status.value,
                quantity=transaction.quantity,
                amount=transaction.amount,
                base_fee=transaction.base_fee,
                delivery_fee=transaction.delivery_fee,
                total_amount=transaction.total_amount,
                created_at=transaction.created_at,
                updated_at=transaction.updated_at,
            ),
            customer=CustomerView(email=customer.email, full_name=customer.full_name, phone=customer.phone),
            product=ProductSummary(
                id=product.id,
                name=product.name,
                description=product.description,
                price=product.price,
                image_url=product.image_url,
            ),
            delivery=DeliveryView(
                full_name=delivery.full_name,
                phone=delivery.phone,
                address=delivery.address,
                city=delivery.city,
                state=delivery.state,
                postal_code=delivery.postal_code,
            ),
            payment=payment,
        ))
