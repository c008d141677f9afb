"""Payment gateway factory.

Provides get_payment_gateway() / set_payment_gateway() to swap implementations:
- FakePaymentGateway for development and testing
- WompiGateway for real sandbox/production traffic
"""

from typing import Optional

from ..config import settings
from .port import PaymentGateway

_current_gateway: Optional[PaymentGateway] = None


def build_payment_gateway() -> PaymentGateway:
    """Create the gateway selected by settings.gateway_mode."""
    if settings.gateway_mode == "wompi":
        from .wompi import WompiGateway

        return WompiGateway(
            base_url=settings.wompi_base_url,
            public_key=settings.wompi_public_key,
            integrity_key=settings.wompi_integrity_key,
            request_timeout=settings.wompi_request_timeout,
        )

    from ..mocks.payment_gateway import FakePaymentGateway

    return FakePaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """Return the process-wide payment gateway, creating it on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_payment_gateway()
    return _current_gateway


def set_payment_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


async def close_payment_gateway() -> None:
    """Close and forget the active gateway."""
    global _current_gateway
    if _current_gateway is not None:
        await _current_gateway.aclose()
    _current_gateway = None
