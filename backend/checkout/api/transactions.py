"""
Transactions API Endpoints

Checkout flow over HTTP:
1. POST  /transactions                 - create a PENDING transaction
2. PATCH /transactions/{id}/payment    - pay it with a card
3. GET   /transactions/{id}            - full detail
4. GET   /transactions/recover?email=  - resume the latest PENDING checkout

Business failures are raised as CheckoutError subclasses and rendered by the
application's exception handler; the request session still commits them.
"""
from fastapi import APIRouter, Depends, Query
import logging

from ..exceptions import InvalidRequestError
from ..models.schemas import (
    CreateTransactionRequest,
    CreateTransactionResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
    RecoveredTransaction,
    TransactionDetail,
)
from ..services.payment_service import PaymentService
from ..services.transaction_service import TransactionService
from .dependencies import get_payment_service, get_transaction_service, raise_for_failure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201, response_model=CreateTransactionResponse)
async def create_transaction_endpoint(
    request: CreateTransactionRequest,
    service: TransactionService = Depends(get_transaction_service)
) -> CreateTransactionResponse:
    """
    Create a PENDING transaction with its delivery.

    Request Body:
        CreateTransactionRequest (customer, product, quantity, delivery)

    Returns:
        201 with transaction id, number, status and total amount

    Errors:
        404 Product not found
        400 Product not available / Insufficient stock
    """
    logger.info(f"Create transaction: product={request.product_id}, quantity={request.quantity}")

    result = await service.create_transaction(request)
    raise_for_failure(result, fallback=InvalidRequestError)

    return result.value


# Declared before /{transaction_id} so "recover" is not taken as an id
@router.get("/recover", response_model=RecoveredTransaction)
async def recover_transaction_endpoint(
    email: str = Query(..., min_length=3, description="Customer email"),
    service: TransactionService = Depends(get_transaction_service)
) -> RecoveredTransaction:
    """
    Latest PENDING transaction for the customer, to resume payment.

    Example:
        GET /api/transactions/recover?email=ana@example.com
    """
    result = await service.recover_transaction(email)
    raise_for_failure(result, fallback=InvalidRequestError)

    return result.value


@router.patch("/{transaction_id}/payment", response_model=ProcessPaymentResponse)
async def process_payment_endpoint(
    transaction_id: str,
    request: ProcessPaymentRequest,
    service: PaymentService = Depends(get_payment_service)
) -> ProcessPaymentResponse:
    """
    Pay a PENDING transaction.

    The card is tokenized by the payment gateway; raw card data is never
    stored. The call blocks until the charge settles or the polling budget
    runs out.

    Returns:
        200 with status APPROVED or DECLINED

    Errors:
        404 Transaction not found
        400 Transaction cannot be processed (not PENDING)
        400 Payment processing failed / Payment error occurred
    """
    card = request.to_card()
    logger.info(f"Payment requested for {transaction_id} with card {card.redacted()['number']}")

    result = await service.process_payment(transaction_id, card)
    raise_for_failure(result)

    return result.value


@router.get("/{transaction_id}", response_model=TransactionDetail)
async def get_transaction_endpoint(
    transaction_id: str,
    service: TransactionService = Depends(get_transaction_service)
) -> TransactionDetail:
    """
    Get transaction detail with customer, product, delivery and payment.

    The payment block is only present once the gateway returned a charge id
    and card details.

    Example:
        GET /api/transactions/6b0f7c1e-...
    """
    logger.debug(f"Retrieving transaction: {transaction_id}")

    result = await service.get_transaction(transaction_id)
    raise_for_failure(result, fallback=InvalidRequestError)

    return result.value
