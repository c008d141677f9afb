"""
Wompi Gateway Client

HTTP client for the card payment gateway:
- POST /tokens/cards          tokenize raw card data
- GET  /merchants/{key}       fetch the acceptance token (cached)
- POST /transactions          create a charge
- GET  /transactions/{id}     query charge status

Card numbers and CVC are redacted before anything is logged.
"""
import hashlib
import logging
from typing import Any, Dict, Optional

import httpx

from ..exceptions import GatewayError
from ..models.schemas import CardData
from .port import PaymentGateway
from .types import ChargeRequest, ChargeResponse, TokenizeResult

logger = logging.getLogger(__name__)


def integrity_signature(reference: str, amount_in_cents: int, currency: str, integrity_key: str) -> str:
    """
    SHA-256 hex digest of reference + amount_in_cents + currency + integrity_key.

    Sent with each charge when the merchant requires integrity verification.
    """
    message = f"{reference}{amount_in_cents}{currency}{integrity_key}"
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """
    Flatten a gateway error body into one message.

    Gateway errors look like:
        {"error": {"type": "INPUT_VALIDATION_ERROR",
                   "messages": {"number": ["Número de tarjeta inválido"]}}}
    """
    try:
        body = response.json()
    except ValueError:
        return None

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return None

    messages = error.get("messages")
    if isinstance(messages, dict):
        flattened = []
        for value in messages.values():
            if isinstance(value, list):
                flattened.extend(str(item) for item in value)
            else:
                flattened.append(str(value))
        if flattened:
            return ", ".join(flattened)

    return error.get("reason") or error.get("type")


class WompiGateway(PaymentGateway):
    """
    Gateway adapter speaking the Wompi REST contract over httpx.

    The acceptance token is fetched on first charge and cached on the
    instance until invalidate_acceptance_token() is called.
    """

    def __init__(
        self,
        base_url: str,
        public_key: str,
        integrity_key: str = "",
        request_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.public_key = public_key
        self.integrity_key = integrity_key
        self._acceptance_token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=request_timeout,
            transport=transport,
        )

        logger.info("Wompi gateway initialized")
        logger.info(f"Base URL: {base_url}")
        logger.info(f"Public Key: {public_key[:20]}...")

    @property
    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.public_key}"}

    # ============================================================
    # 1. Tokenize card
    # ============================================================

    async def tokenize_card(self, card: CardData) -> TokenizeResult:
        """
        Convert card data into a gateway token.

        Returns:
            TokenizeResult with token, brand and last four on success, or the
            gateway's error message on failure. Never raises.
        """
        logger.info("Tokenizing card...")

        body = {
            "number": card.number,
            "exp_month": card.exp_month.zfill(2),
            "exp_year": card.exp_year,
            "cvc": card.cvc,
            "card_holder": card.card_holder,
        }
        logger.debug(f"Request body: {card.redacted()}")

        try:
            response = await self._client.post("/tokens/cards", json=body, headers=self._auth_headers)
            response.raise_for_status()
            data = response.json()["data"]
            result = TokenizeResult(
                success=True,
                token=data["id"],
                card_brand=data.get("brand"),
                card_last_four=data.get("last_four"),
            )
        except httpx.HTTPStatusError as e:
            message = extract_error_message(e.response)
            logger.error(f"Gateway rejected tokenization: {message or e}")
            return TokenizeResult(success=False, error=message or "Card tokenization failed")
        except httpx.HTTPError as e:
            logger.error(f"Error tokenizing card: {e}")
            return TokenizeResult(
                success=False,
                error=str(e) or "Error connecting to payment gateway",
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected tokenization response: {e}")
            return TokenizeResult(success=False, error="Unexpected error tokenizing card")

        logger.info("Card tokenized successfully")
        return result

    # ============================================================
    # 1.1 Acceptance token (cached)
    # ============================================================

    async def get_acceptance_token(self) -> str:
        """
        Return the merchant acceptance token, fetching it once.

        Raises:
            GatewayError: request failed or the token is missing
        """
        if self._acceptance_token:
            return self._acceptance_token

        logger.info("Fetching acceptance token...")

        payload = await self._request("GET", f"/merchants/{self.public_key}", "fetching acceptance token")
        data = payload.get("data")
        acceptance = data.get("presigned_acceptance") if isinstance(data, dict) else None
        token = acceptance.get("acceptance_token") if isinstance(acceptance, dict) else None
        if not token:
            raise GatewayError("Acceptance token not found in gateway response")

        self._acceptance_token = token
        return token

    def invalidate_acceptance_token(self) -> None:
        if self._acceptance_token:
            logger.info("Invalidating cached acceptance token")
        self._acceptance_token = None

    # ============================================================
    # 2. Create charge
    # ============================================================

    async def create_charge(self, request: ChargeRequest) -> ChargeResponse:
        """Create a card charge. Raises GatewayError on any failure."""
        logger.info(f"Creating charge for reference {request.reference}...")

        body: Dict[str, Any] = {
            "acceptance_token": await self.get_acceptance_token(),
            "amount_in_cents": request.amount_in_cents,
            "currency": request.currency,
            "customer_email": request.customer_email,
            "reference": request.reference,
            "payment_method": {
                "type": "CARD",
                "token": request.token,
                "installments": request.installments,
            },
        }
        if self.integrity_key:
            body["signature"] = integrity_signature(
                request.reference, request.amount_in_cents, request.currency, self.integrity_key
            )

        payload = await self._request("POST", "/transactions", "creating charge", json=body)
        charge = self._parse_charge(payload, "creating charge")
        logger.info(f"Charge {charge.id} created with status {charge.status.value}")
        return charge

    # ============================================================
    # 3. Charge status
    # ============================================================

    async def get_charge_status(self, charge_id: str) -> ChargeResponse:
        logger.debug(f"Getting status for charge {charge_id}...")
        payload = await self._request("GET", f"/transactions/{charge_id}", "getting charge status")
        return self._parse_charge(payload, "getting charge status")

    async def aclose(self) -> None:
        await self._client.aclose()

    # ============================================================
    # Helpers
    # ============================================================

    async def _request(self, method: str, path: str, context: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, headers=self._auth_headers, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            message = extract_error_message(e.response) or f"HTTP {e.response.status_code}"
            logger.error(f"Gateway API error {context}: {message}")
            raise GatewayError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Error {context}: {e}")
            raise GatewayError(str(e) or "Error connecting to payment gateway") from e
        except ValueError as e:
            logger.error(f"Invalid JSON {context}: {e}")
            raise GatewayError("Invalid response from payment gateway") from e

        if not isinstance(body, dict):
            logger.error(f"Unexpected response body {context}: {body!r}")
            raise GatewayError("Invalid response from payment gateway")
        return body

    @staticmethod
    def _parse_charge(payload: Dict[str, Any], context: str) -> ChargeResponse:
        try:
            return ChargeResponse.from_payload(payload)
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f"Unexpected payload {context}: {e}")
            raise GatewayError("Invalid response from payment gateway") from e
