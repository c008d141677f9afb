"""
Mock Payment Gateway

Simulates card tokenization, charge creation and asynchronous settlement
without any network calls. Used in development (gateway_mode="fake") and in
tests.

Mock Behavior:
- Sandbox card numbers trigger specific outcomes (see TEST_CARDS)
- Any other card settles with the configured final status (APPROVED by default)
- Charges stay PENDING for `pending_polls` status checks before settling
- Every call is recorded in `calls` for assertions
"""
import hashlib
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..exceptions import GatewayError
from ..gateway.port import PaymentGateway
from ..gateway.types import ChargeRequest, ChargeResponse, ChargeStatus, TokenizeResult
from ..models.schemas import CardData


# Sandbox cards that trigger specific behaviors
TEST_CARDS = {
    "4242424242424242": ChargeStatus.APPROVED,
    "4111111111111111": ChargeStatus.DECLINED,
}

# Cards rejected at tokenization time
INVALID_CARDS = {
    "4000000000000002": "Card number is invalid",
}


def _card_brand(number: str) -> str:
    if number.startswith("4"):
        return "VISA"
    if number[:2] in {"51", "52", "53", "54", "55"}:
        return "MASTERCARD"
    if number[:2] in {"34", "37"}:
        return "AMEX"
    return "UNKNOWN"


class FakePaymentGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.final_status: ChargeStatus = ChargeStatus.APPROVED
        self.pending_polls: int = 0
        self.tokenize_error: Optional[str] = None
        self.charge_error: Optional[str] = None
        self.calls: List[Dict[str, Any]] = []
        self._acceptance_token: Optional[str] = None
        self._tokens: Dict[str, Dict[str, str]] = {}
        self._charges: Dict[str, Dict[str, Any]] = {}

    def configure(
        self,
        final_status: ChargeStatus = ChargeStatus.APPROVED,
        pending_polls: int = 0,
        tokenize_error: Optional[str] = None,
        charge_error: Optional[str] = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.final_status = final_status
        self.pending_polls = pending_polls
        self.tokenize_error = tokenize_error
        self.charge_error = charge_error

    @property
    def acceptance_token(self) -> Optional[str]:
        return self._acceptance_token

    async def tokenize_card(self, card: CardData) -> TokenizeResult:
        self.calls.append({"method": "tokenize_card", "card": card.redacted()})

        error = self.tokenize_error or INVALID_CARDS.get(card.number)
        if error:
            return TokenizeResult(success=False, error=error)

        token = f"tok_test_{uuid4().hex[:12]}"
        self._tokens[token] = {
            "brand": _card_brand(card.number),
            "last_four": card.number[-4:],
            "number": card.number,
        }
        return TokenizeResult(
            success=True,
            token=token,
            card_brand=self._tokens[token]["brand"],
            card_last_four=self._tokens[token]["last_four"],
        )

    async def create_charge(self, request: ChargeRequest) -> ChargeResponse:
        self.calls.append({
            "method": "create_charge",
            "amount_in_cents": request.amount_in_cents,
            "currency": request.currency,
            "customer_email": request.customer_email,
            "reference": request.reference,
        })

        if self._acceptance_token is None:
            self._acceptance_token = f"acc_{uuid4().hex[:16]}"

        if self.charge_error:
            raise GatewayError(self.charge_error)

        card = self._tokens.get(request.token)
        if card is None:
            raise GatewayError("Card token not found")

        settled = TEST_CARDS.get(card["number"], self.final_status)
        charge_id = self._charge_id(request)
        self._charges[charge_id] = {
            "reference": request.reference,
            "settled_status": settled,
            "remaining_polls": self.pending_polls,
            "brand": card["brand"],
            "last_four": card["last_four"],
        }

        initial = ChargeStatus.PENDING if self.pending_polls > 0 else settled
        return self._response(charge_id, initial)

    async def get_charge_status(self, charge_id: str) -> ChargeResponse:
        self.calls.append({"method": "get_charge_status", "charge_id": charge_id})

        charge = self._charges.get(charge_id)
        if charge is None:
            raise GatewayError(f"Charge {charge_id} not found", status_code=404)

        if charge["remaining_polls"] > 0:
            charge["remaining_polls"] -= 1
        status = ChargeStatus.PENDING if charge["remaining_polls"] > 0 else charge["settled_status"]
        return self._response(charge_id, status)

    def invalidate_acceptance_token(self) -> None:
        self.calls.append({"method": "invalidate_acceptance_token"})
        self._acceptance_token = None

    def _response(self, charge_id: str, status: ChargeStatus) -> ChargeResponse:
        charge = self._charges[charge_id]
        return ChargeResponse(
            id=charge_id,
            status=status,
            reference=charge["reference"],
            card_brand=charge["brand"],
            card_last_four=charge["last_four"],
        )

    @staticmethod
    def _charge_id(request: ChargeRequest) -> str:
        # Same id format as the sandbox: <merchant>-<epoch>-<suffix>
        digest = hashlib.sha256(f"{request.reference}:{uuid4().hex}".encode()).hexdigest()
        return f"fake-{int(time.time())}-{digest[:5]}"
