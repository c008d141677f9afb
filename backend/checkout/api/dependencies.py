"""
FastAPI dependencies that wire services to the request-scoped session
and the process-wide payment gateway.
"""
from typing import Type

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.init_db import get_db
from ..exceptions import (
    CheckoutError,
    InvalidStateError,
    NotFoundError,
    PaymentFailedError,
    ProductUnavailableError,
)
from ..gateway import get_payment_gateway
from ..gateway.port import PaymentGateway
from ..models.result import Result
from ..repositories.sqlalchemy import (
    SqlAlchemyCustomerRepository,
    SqlAlchemyDeliveryRepository,
    SqlAlchemyProductRepository,
    SqlAlchemyTransactionRepository,
)
from ..services.payment_service import PaymentService
from ..services.product_service import ProductService
from ..services.transaction_service import TransactionService

NOT_FOUND_MESSAGES = frozenset({
    "Transaction not found",
    "Customer not found",
    "Product not found",
    "Delivery not found",
    "No pending transactions found for this email",
})

UNAVAILABLE_MESSAGES = frozenset({
    "Product not available",
    "Product is not active",
    "Insufficient stock",
})


def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    return ProductService(SqlAlchemyProductRepository(db))


def get_transaction_service(db: AsyncSession = Depends(get_db)) -> TransactionService:
    return TransactionService(
        customer_repository=SqlAlchemyCustomerRepository(db),
        product_repository=SqlAlchemyProductRepository(db),
        transaction_repository=SqlAlchemyTransactionRepository(db),
        delivery_repository=SqlAlchemyDeliveryRepository(db),
    )


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(
        transaction_repository=SqlAlchemyTransactionRepository(db),
        product_repository=SqlAlchemyProductRepository(db),
        customer_repository=SqlAlchemyCustomerRepository(db),
        gateway=gateway,
    )


def raise_for_failure(result: Result, fallback: Type[CheckoutError] = PaymentFailedError) -> None:
    """
    Translate a failed Result into the matching CheckoutError.

    Missing records become NotFoundError (404), stock and availability
    problems ProductUnavailableError, non-PENDING transactions
    InvalidStateError; anything else is raised as `fallback`.
    """
    if result.is_success:
        return

    message = result.error
    if message in NOT_FOUND_MESSAGES:
        raise NotFoundError(message)
    if message in UNAVAILABLE_MESSAGES:
        raise ProductUnavailableError(message)
    if message.startswith("Transaction cannot be processed"):
        raise InvalidStateError(message)
    raise fallback(message)
