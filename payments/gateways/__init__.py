from .base import (
    CheckoutLink,
    CheckoutRequest,
    GatewayError,
    PaymentGateway,
    StatusEvent,
    WebhookVerificationError,
)
from .payos import PayOSGateway
from .paypal import PayPalGateway

__all__ = [
    "CheckoutLink",
    "CheckoutRequest",
    "GatewayError",
    "PaymentGateway",
    "PayOSGateway",
    "PayPalGateway",
    "StatusEvent",
    "WebhookVerificationError",
]
