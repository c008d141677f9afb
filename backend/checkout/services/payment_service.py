"""
Payment Settlement Service

Drives a PENDING transaction to a terminal status through the payment gateway:
1. Tokenize the card
2. Create the charge (amount in cents, transaction number as reference)
3. Poll until the gateway reports a terminal status
4. Update the transaction, and on approval only, decrement stock

Gateway failures before step 4 leave the transaction PENDING so the customer
can retry or resume it through the recovery flow. A timeout means the real
payment state is unknown and has to be reconciled with the gateway.
"""
import logging
from typing import Optional

from ..config import settings
from ..exceptions import ConcurrentModificationError, GatewayError, InsufficientStockError, PollingTimeoutError
from ..gateway.port import PaymentGateway
from ..gateway.types import ChargeRequest, ChargeResponse, ChargeStatus, TokenizeResult
from ..models.entities import Transaction
from ..models.fees import to_minor_units
from ..models.result import Result
from ..models.schemas import CardData, ProcessPaymentResponse
from ..repositories.base import CustomerRepository, ProductRepository, TransactionRepository
from .polling import RetryPolicy

logger = logging.getLogger(__name__)

# Units removed from stock per approved payment. The ordered quantity is
# recorded on the transaction but not applied here.
STOCK_UNITS_PER_APPROVAL = 1


def default_polling_policy() -> RetryPolicy:
    return RetryPolicy(
        interval=settings.wompi_polling_interval,
        timeout=settings.wompi_polling_timeout,
    )


class PaymentService:
    """
    Settlement orchestrator.

    Steps run strictly in order: tokenize, create charge, poll, persist
    status, persist stock.
    """

    def __init__(
        self,
        transaction_repository: TransactionRepository,
        product_repository: ProductRepository,
        customer_repository: CustomerRepository,
        gateway: PaymentGateway,
        polling_policy: Optional[RetryPolicy] = None,
        currency: Optional[str] = None,
    ):
        self.transaction_repository = transaction_repository
        self.product_repository = product_repository
        self.customer_repository = customer_repository
        self.gateway = gateway
        self.polling_policy = polling_policy or default_polling_policy()
        self.currency = currency or settings.wompi_currency

    async def process_payment(self, transaction_id: str, card: CardData) -> Result[ProcessPaymentResponse]:
        """
        Pay a PENDING transaction with the given card.

        Returns:
            Success with status APPROVED or DECLINED, or a failure whose
            message is one of:
            - "Transaction not found"
            - "Transaction cannot be processed. Current status: <status>"
            - "Customer not found"
            - the gateway's tokenization error
            - "Payment processing failed: <reason>"
            - "Payment error occurred"
        """
        transaction = await self.transaction_repository.find_by_id(transaction_id)
        if not transaction:
            return Result.fail("Transaction not found")

        if not transaction.can_be_processed():
            return Result.fail(
                f"Transaction cannot be processed. Current status: {transaction.status.value}"
            )

        customer = await self.customer_repository.find_by_id(transaction.customer_id)
        if not customer:
            return Result.fail("Customer not found")

        logger.info(f"Processing payment for {transaction.transaction_no}")

        # Step 1: tokenize. From here on only the token is used.
        token = await self.gateway.tokenize_card(card)
        if not token.success:
            logger.warning(f"Tokenization failed for {transaction.transaction_no}: {token.error}")
            return Result.fail(token.error or "Card tokenization failed")

        # Step 2: create charge
        request = ChargeRequest(
            amount_in_cents=to_minor_units(transaction.total_amount),
            currency=self.currency,
            customer_email=customer.email,
            reference=transaction.transaction_no,
            token=token.token,
        )
        try:
            charge = await self.gateway.create_charge(request)
        except GatewayError as e:
            self.gateway.invalidate_acceptance_token()
            logger.error(f"Charge creation failed for {transaction.transaction_no}: {e}")
            return Result.fail(f"Payment processing failed: {e}")

        # Step 3: settle
        try:
            settled = await self._settle(charge)
        except (PollingTimeoutError, GatewayError) as e:
            logger.error(
                f"Settlement of charge {charge.id} for {transaction.transaction_no} "
                f"left unresolved: {e}"
            )
            return Result.fail(f"Payment processing failed: {e}")

        # Step 4: apply outcome
        reference = settled.reference or charge.reference or transaction.transaction_no
        try:
            return await self._apply_outcome(transaction, settled, reference, token)
        except ConcurrentModificationError:
            logger.error(
                f"Transaction {transaction.transaction_no} settled by another request; "
                f"charge {settled.id} ({settled.status.value}) needs reconciliation"
            )
            return Result.fail("Transaction cannot be processed. It was modified by another request")

    async def _settle(self, charge: ChargeResponse) -> ChargeResponse:
        if charge.status.is_terminal:
            return charge
        logger.info(f"Charge {charge.id} is PENDING, polling for final status")
        return await self.gateway.poll_charge_status(charge.id, self.polling_policy)

    async def _apply_outcome(
        self,
        transaction: Transaction,
        charge: ChargeResponse,
        reference: str,
        token: TokenizeResult,
    ) -> Result[ProcessPaymentResponse]:
        logger.info(f"Final status for {transaction.transaction_no}: {charge.status.value}")

        if charge.status == ChargeStatus.APPROVED:
            transaction.approve(
                gateway_transaction_id=charge.id,
                gateway_reference=reference,
                card_brand=token.card_brand or charge.card_brand,
                card_last_four=token.card_last_four or charge.card_last_four,
            )
            await self.transaction_repository.update(transaction)
            await self._decrease_stock(transaction)
            return Result.ok(self._response(transaction, "Payment processed successfully"))

        if charge.status == ChargeStatus.DECLINED:
            transaction.decline(gateway_transaction_id=charge.id, gateway_reference=reference)
            await self.transaction_repository.update(transaction)
            return Result.ok(self._response(transaction, "Payment declined by payment gateway"))

        transaction.mark_as_error(gateway_transaction_id=charge.id, gateway_reference=reference)
        await self.transaction_repository.update(transaction)
        return Result.fail("Payment error occurred")

    async def _decrease_stock(self, transaction: Transaction) -> None:
        """
        Remove sold units after the APPROVED status is persisted.

        The payment is already captured, so a missing product or a shortfall
        does not undo the approval; it is logged for reconciliation.
        """
        product = await self.product_repository.find_by_id(transaction.product_id)
        if not product:
            logger.error(
                f"Product {transaction.product_id} missing after approving "
                f"{transaction.transaction_no}; stock not decremented"
            )
            return

        try:
            product.decrease_stock(STOCK_UNITS_PER_APPROVAL)
        except InsufficientStockError as e:
            logger.error(f"Oversold product {product.id} on {transaction.transaction_no}: {e}")
            return

        await self.product_repository.update(product)

    @staticmethod
    def _response(transaction: Transaction, message: str) -> ProcessPaymentResponse:
        return ProcessPaymentResponse(
            transaction_id=transaction.id,
            transaction_no=transaction.transaction_no,
            status=transaction.status.value,
            total_amount=transaction.total_amount,
            gateway_transaction_id=transaction.gateway_transaction_id,
            gateway_reference=transaction.gateway_reference,
            card_brand=transaction.card_brand,
            card_last_four=transaction.card_last_four,
            message=message,
        )
