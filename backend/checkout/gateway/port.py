"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakePaymentGateway (dev/test) and WompiGateway
(production) without changing the settlement code.
"""

from abc import ABC, abstractmethod

from .types import ChargeRequest, ChargeResponse, TokenizeResult
from ..models.schemas import CardData
from ..services.polling import RetryPolicy, poll_until


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def tokenize_card(self, card: CardData) -> TokenizeResult:
        """Exchange raw card data for a single-use token. Never raises."""
        ...

    @abstractmethod
    async def create_charge(self, request: ChargeRequest) -> ChargeResponse:
        """Create a charge. Raises GatewayError on transport or API failure."""
        ...

    @abstractmethod
    async def get_charge_status(self, charge_id: str) -> ChargeResponse:
        """Fetch the current charge state. Raises GatewayError on failure."""
        ...

    @abstractmethod
    def invalidate_acceptance_token(self) -> None:
        """Drop the cached acceptance token so the next charge fetches a new one."""
        ...

    async def poll_charge_status(self, charge_id: str, policy: RetryPolicy) -> ChargeResponse:
        """
        Poll until the charge reaches a terminal status.

        Raises:
            PollingTimeoutError: still PENDING after policy.max_attempts
            GatewayError: a status request failed
        """
        return await poll_until(
            lambda: self.get_charge_status(charge_id),
            lambda response: response.status.is_terminal,
            policy,
            description=f"Charge {charge_id}",
        )

    async def aclose(self) -> None:
        """Release network resources."""
        return None
