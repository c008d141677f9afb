"""
Payment gateway data types.

Shapes exchanged with the gateway port. Wire payloads are parsed into these
so the rest of the backend never touches raw JSON.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ChargeStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    ERROR = "ERROR"
    VOIDED = "VOIDED"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ChargeStatus":
        """Map unknown statuses to ERROR so they settle as failures."""
        try:
            return cls(raw)
        except ValueError:
            return cls.ERROR

    @property
    def is_terminal(self) -> bool:
        return self is not ChargeStatus.PENDING


@dataclass(frozen=True)
class TokenizeResult:
    """Result of a card tokenization attempt."""

    success: bool
    token: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ChargeRequest:
    """Charge to create against a card token."""

    amount_in_cents: int
    currency: str
    customer_email: str
    reference: str
    token: str
    installments: int = 1


@dataclass(frozen=True)
class ChargeResponse:
    """Charge state as reported by the gateway."""

    id: str
    status: ChargeStatus
    reference: Optional[str] = None
    status_message: Optional[str] = None
    card_brand: Optional[str] = None
    card_last_four: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ChargeResponse":
        """
        Build from a gateway response body.

        Expects {"data": {"id", "status", "reference", "status_message",
        "payment_method": {"extra": {"brand", "last_four"}}}}.

        Raises:
            KeyError: body has no data.id
        """
        data = payload["data"]
        extra = (data.get("payment_method") or {}).get("extra") or {}
        return cls(
            id=str(data["id"]),
            status=ChargeStatus.parse(data.get("status")),
            reference=data.get("reference"),
            status_message=data.get("status_message"),
            card_brand=extra.get("brand"),
            card_last_four=extra.get("last_four"),
        )
