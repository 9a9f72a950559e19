"""
payments.gateways.base

What the coordinator needs from a payment provider: open a hosted checkout
for one session, and turn the provider's webhook into a status event.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional


class GatewayError(Exception):
    """Provider unreachable, misconfigured, or answered with an error."""


class WebhookVerificationError(GatewayError):
    """Webhook signature did not verify."""


@dataclass(frozen=True)
class CheckoutRequest:
    order_code: int
    amount: Decimal
    currency: str
    description: str
    return_url: str
    cancel_url: str
    customer_email: Optional[str] = None


@dataclass(frozen=True)
class CheckoutLink:
    checkout_url: str
    reference: str = ""
    # provider already had a payment link for this order code
    existing: bool = False


@dataclass(frozen=True)
class StatusEvent:
    order_code: int
    status: str  # one of payments.models.SessionStatus terminal values
    message: str = ""
    reference: str = ""


class PaymentGateway:
    method = ""
    currency = ""

    def create_checkout(self, request: CheckoutRequest) -> CheckoutLink:
        raise NotImplementedError

    def parse_webhook(self, body: bytes, headers: Mapping[str, Any]) -> Optional[StatusEvent]:
        """Verified event, or None for notifications that carry no status."""
        raise NotImplementedError
