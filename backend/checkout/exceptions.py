"""
Checkout Exception Hierarchy

Stable error codes for every business failure the API can surface.
All errors use the checkout: prefix so clients can match on them.
"""
from typing import Optional, Dict, Any


class CheckoutError(Exception):
    """
    Base exception for all checkout business errors.

    The message is the stable taxonomy string returned by the services;
    the error code groups failures for clients.
    """

    status_code = 400

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(CheckoutError):
    """
    A referenced record does not exist.

    Examples:
    - Transaction not found
    - Product not found
    - No pending transactions found for this email
    """

    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:resource:not_found", message, details)


class ProductUnavailableError(CheckoutError):
    """
    Product exists but cannot be ordered.

    Examples:
    - Product not available (inactive)
    - Insufficient stock
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:product:unavailable", message, details)


class InvalidStateError(CheckoutError):
    """
    Transaction is no longer PENDING and cannot be processed again.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:transaction:invalid_state", message, details)


class InvalidRequestError(CheckoutError):
    """
    Request data rejected by an entity rule that schema validation did not cover.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:request:invalid", message, details)


class PaymentFailedError(CheckoutError):
    """
    Payment could not be settled.

    Examples:
    - Card tokenization rejected by the gateway
    - Network failure creating the charge
    - Polling timeout exceeded
    - Gateway reported ERROR
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("checkout:payment:failed", message, details)


# ============================================================================
# Domain invariant errors (raised by entities, not returned by services)
# ============================================================================

class EntityValidationError(ValueError):
    """Entity constructed or mutated into an invalid state."""


class InvalidStateTransitionError(EntityValidationError):
    """Status transition attempted on a transaction that is not PENDING."""

    def __init__(self, action: str, status: str):
        self.action = action
        self.status = status
        super().__init__(f"Cannot {action} transaction with status: {status}")


class InsufficientStockError(EntityValidationError):
    """Stock decrement larger than the available quantity."""

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}"
        )


class ConcurrentModificationError(Exception):
    """Optimistic version check failed while persisting a transaction."""

    def __init__(self, transaction_id: str, expected_version: int):
        self.transaction_id = transaction_id
        self.expected_version = expected_version
        super().__init__(
            f"Transaction {transaction_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class PollingTimeoutError(Exception):
    """Gateway charge did not reach a terminal status within the polling budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__("Polling timeout exceeded")


class GatewayError(Exception):
    """Payment gateway returned an error response or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
