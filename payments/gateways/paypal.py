"""
payments.gateways.paypal

PayPal Orders v2, amounts in USD, through the official `paypal-server-sdk`.

  create   orders.create_order -> the "approve" (or "payer-action") link
           is the checkout URL
  return   buyer comes back with ?token=<paypal order id>; we capture it
  webhook  verified by PayPal itself (/v1/notifications/verify-webhook-signature);
           the SDK has no endpoint for that, so it goes over plain HTTPS

The gateway order code travels as purchase_units[0].custom_id so every
webhook resource can be mapped back to a session.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

import requests
from paypalserversdk.configuration import Environment
from paypalserversdk.exceptions.api_exception import ApiException
from paypalserversdk.http.auth.o_auth_2 import ClientCredentialsAuthCredentials
from paypalserversdk.models.amount_with_breakdown import AmountWithBreakdown
from paypalserversdk.models.checkout_payment_intent import CheckoutPaymentIntent
from paypalserversdk.models.order_application_context import OrderApplicationContext
from paypalserversdk.models.order_request import OrderRequest
from paypalserversdk.models.purchase_unit_request import PurchaseUnitRequest
from paypalserversdk.paypal_serversdk_client import PaypalServersdkClient

from .base import CheckoutLink, CheckoutRequest, GatewayError, PaymentGateway, StatusEvent, WebhookVerificationError

logger = logging.getLogger(__name__)

APPROVE_RELS = ("approve", "payer-action")

EVENT_STATUS = {
    "PAYMENT.CAPTURE.COMPLETED": "paid",
    "CHECKOUT.ORDER.COMPLETED": "paid",
    "PAYMENT.CAPTURE.DENIED": "failed",
    "PAYMENT.CAPTURE.DECLINED": "failed",
    "CHECKOUT.ORDER.VOIDED": "cancelled",
    "CHECKOUT.PAYMENT-APPROVAL.REVERSED": "cancelled",
}

VERIFY_HEADERS = {
    "auth_algo": "PAYPAL-AUTH-ALGO",
    "cert_url": "PAYPAL-CERT-URL",
    "transmission_id": "PAYPAL-TRANSMISSION-ID",
    "transmission_sig": "PAYPAL-TRANSMISSION-SIG",
    "transmission_time": "PAYPAL-TRANSMISSION-TIME",
}


def format_usd(amount: Any) -> str:
    return f"{Decimal(amount).quantize(Decimal('0.01'))}"


def _order_code_of(units) -> Optional[str]:
    unit = units[0] if units else None
    if unit is None:
        return None
    return getattr(unit, "custom_id", None) or getattr(unit, "reference_id", None)


class PayPalGateway(PaymentGateway):
    method = "PAYPAL"
    currency = "USD"

    def __init__(self, client_id: str, client_secret: str, webhook_id: str = "",
                 api_url: str = "https://api-m.sandbox.paypal.com", timeout: float = 15,
                 client: Optional[PaypalServersdkClient] = None, session=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.webhook_id = webhook_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self.http = session or requests.Session()

    def _require_credentials(self) -> None:
        if not (self.client_id and self.client_secret):
            raise GatewayError("PayPal credentials are not configured")

    @property
    def client(self) -> PaypalServersdkClient:
        if self._client is None:
            self._require_credentials()
            self._client = PaypalServersdkClient(
                client_credentials_auth_credentials=ClientCredentialsAuthCredentials(
                    o_auth_client_id=self.client_id,
                    o_auth_client_secret=self.client_secret,
                ),
                environment=Environment.SANDBOX if "sandbox" in self.api_url else Environment.PRODUCTION,
                timeout=self.timeout,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # orders
    # ------------------------------------------------------------------ #
    def create_checkout(self, request: CheckoutRequest) -> CheckoutLink:
        body = OrderRequest(
            intent=CheckoutPaymentIntent.CAPTURE,
            purchase_units=[PurchaseUnitRequest(
                reference_id=str(request.order_code),
                custom_id=str(request.order_code),
                description=request.description[:127],
                amount=AmountWithBreakdown(currency_code=self.currency, value=format_usd(request.amount)),
            )],
            application_context=OrderApplicationContext(
                return_url=request.return_url,
                cancel_url=request.cancel_url,
                user_action="PAY_NOW",
                shipping_preference="NO_SHIPPING",
            ),
        )
        try:
            order = self.client.orders.create_order({"body": body}).body
        except (ApiException, requests.exceptions.RequestException) as exc:
            raise GatewayError(f"PayPal order for {request.order_code} failed: {exc}") from exc

        for link in getattr(order, "links", None) or []:
            if link.rel in APPROVE_RELS and link.href:
                return CheckoutLink(checkout_url=link.href, reference=str(order.id or ""))
        raise GatewayError(f"PayPal order for {request.order_code} has no approval link")

    def capture(self, paypal_order_id: str) -> Optional[StatusEvent]:
        """Capture an approved order (buyer returned from PayPal)."""
        try:
            order = self.client.orders.capture_order({
                "id": paypal_order_id,
                "prefer": "return=representation",
            }).body
        except (ApiException, requests.exceptions.RequestException) as exc:
            raise GatewayError(f"PayPal capture {paypal_order_id} failed: {exc}") from exc

        order_code = _order_code_of(getattr(order, "purchase_units", None))
        if not order_code:
            logger.warning("PayPal capture %s carries no order code", paypal_order_id)
            return None
        status = "paid" if order.status == "COMPLETED" else "failed"
        return StatusEvent(order_code=int(order_code), status=status,
                           message=f"PayPal {order.status}", reference=str(paypal_order_id))

    # ------------------------------------------------------------------ #
    # webhooks
    # ------------------------------------------------------------------ #
    def _access_token(self) -> str:
        self._require_credentials()
        try:
            resp = self.http.post(
                f"{self.api_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        except requests.exceptions.RequestException as exc:
            raise GatewayError(f"PayPal auth failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError("PayPal auth returned a non-JSON body") from exc
        if not token:
            raise GatewayError("PayPal auth returned no access token")
        return token

    def verify_webhook(self, event: Dict[str, Any], headers: Mapping[str, Any]) -> bool:
        if not self.webhook_id:
            raise WebhookVerificationError("PAYPAL_WEBHOOK_ID is not configured")
        body = {key: headers.get(header, "") for key, header in VERIFY_HEADERS.items()}
        body["webhook_id"] = self.webhook_id
        body["webhook_event"] = event
        token = self._access_token()
        try:
            resp = self.http.post(
                f"{self.api_url}/v1/notifications/verify-webhook-signature",
                json=body,
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json().get("verification_status") == "SUCCESS"
        except requests.exceptions.RequestException as exc:
            raise GatewayError(f"PayPal webhook verification failed: {exc}") from exc
        except ValueError as exc:
            raise GatewayError("PayPal webhook verification returned a non-JSON body") from exc

    def parse_webhook(self, body: bytes, headers: Mapping[str, Any]) -> Optional[StatusEvent]:
        try:
            event = json.loads(body or b"{}")
        except ValueError as exc:
            raise WebhookVerificationError("PayPal webhook body is not JSON") from exc
        if not self.verify_webhook(event, headers):
            raise WebhookVerificationError("PayPal webhook signature did not verify")

        status = EVENT_STATUS.get(event.get("event_type") or "")
        if status is None:
            logger.info("PayPal event %s ignored", event.get("event_type"))
            return None

        resource = event.get("resource") or {}
        order_code = resource.get("custom_id")
        if not order_code:
            units = resource.get("purchase_units") or [{}]
            order_code = units[0].get("custom_id") or units[0].get("reference_id")
        if not order_code:
            logger.warning("PayPal event %s has no custom_id", event.get("id"))
            return None
        return StatusEvent(
            order_code=int(order_code),
            status=status,
            message=str(event.get("summary") or event.get("event_type")),
            reference=str(resource.get("id") or ""),
        )
