"""
payments.gateways.payos

PayOS (VietQR bank transfer / e-wallet), amounts in whole VND, through the
official `payos` SDK. The SDK signs requests and checks webhook signatures
with the merchant checksum key.

Error code "231" means a payment link for that orderCode already exists;
we fetch it and hand the same checkout back instead of failing.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

import requests
from payos import PaymentData, PayOS
from payos.custom_error import PayOSError

from .base import CheckoutLink, CheckoutRequest, GatewayError, PaymentGateway, StatusEvent, WebhookVerificationError

logger = logging.getLogger(__name__)

CODE_OK = "00"
CODE_ORDER_EXISTS = "231"
MAX_DESCRIPTION = 25
CHECKOUT_BASE = "https://pay.payos.vn/web/"

PAYOS_STATUS = {
    "PAID": "paid",
    "CANCELLED": "cancelled",
    "EXPIRED": "timeout",
}


class PayOSGateway(PaymentGateway):
    method = "PAYOS"
    currency = "VND"

    def __init__(self, client_id: str, api_key: str, checksum_key: str, client: Optional[PayOS] = None):
        self.client_id = client_id
        self.api_key = api_key
        self.checksum_key = checksum_key
        self._client = client

    @property
    def client(self) -> PayOS:
        if self._client is None:
            if not (self.client_id and self.api_key and self.checksum_key):
                raise GatewayError("PayOS credentials are not configured")
            self._client = PayOS(client_id=self.client_id, api_key=self.api_key, checksum_key=self.checksum_key)
        return self._client

    # ------------------------------------------------------------------ #
    # outbound
    # ------------------------------------------------------------------ #
    def create_checkout(self, request: CheckoutRequest) -> CheckoutLink:
        data = PaymentData(
            orderCode=int(request.order_code),
            amount=int(request.amount),
            description=request.description[:MAX_DESCRIPTION],
            cancelUrl=request.cancel_url,
            returnUrl=request.return_url,
            buyerEmail=request.customer_email or None,
        )
        try:
            result = self.client.createPaymentLink(paymentData=data)
        except PayOSError as exc:
            code = str(getattr(exc, "code", ""))
            if code == CODE_ORDER_EXISTS:
                logger.info("PayOS already has a link for orderCode=%s; reusing it", request.order_code)
                return self._existing_link(request.order_code)
            raise GatewayError(f"PayOS rejected orderCode={request.order_code}: {code} {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise GatewayError(f"PayOS request failed for orderCode={request.order_code}: {exc}") from exc

        if not result.checkoutUrl:
            raise GatewayError(f"PayOS returned no checkout URL for orderCode={request.order_code}")
        return CheckoutLink(checkout_url=result.checkoutUrl, reference=str(result.paymentLinkId or ""))

    def _link_info(self, order_code: int):
        try:
            return self.client.getPaymentLinkInformation(orderId=int(order_code))
        except (PayOSError, requests.exceptions.RequestException) as exc:
            raise GatewayError(f"PayOS lookup failed for orderCode={order_code}: {exc}") from exc

    def _existing_link(self, order_code: int) -> CheckoutLink:
        info = self._link_info(order_code)
        if not info.id:
            raise GatewayError(f"PayOS has no link id for orderCode={order_code}")
        return CheckoutLink(checkout_url=f"{CHECKOUT_BASE}{info.id}", reference=str(info.id), existing=True)

    # ------------------------------------------------------------------ #
    # inbound
    # ------------------------------------------------------------------ #
    def parse_webhook(self, body: bytes, headers: Mapping[str, Any]) -> Optional[StatusEvent]:
        try:
            payload = json.loads(body or b"{}")
        except ValueError as exc:
            raise WebhookVerificationError("PayOS webhook body is not JSON") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict) or not payload.get("signature"):
            raise WebhookVerificationError("PayOS webhook missing data or signature")

        try:
            data = self.client.verifyPaymentWebhookData(payload)
        except GatewayError:
            raise
        except Exception as exc:
            # the SDK reports a bad checksum with a bare Exception in some releases
            raise WebhookVerificationError(f"PayOS webhook did not verify: {exc}") from exc

        if data.orderCode in (None, ""):
            return None
        paid = str(payload.get("code")) == CODE_OK and str(data.code or CODE_OK) == CODE_OK
        return StatusEvent(
            order_code=int(data.orderCode),
            status="paid" if paid else "failed",
            message=str(data.desc or payload.get("desc") or ""),
            reference=str(data.paymentLinkId or data.reference or ""),
        )

    def fetch_status(self, order_code: int) -> Optional[StatusEvent]:
        """Ask PayOS directly; used on the return redirect, whose query string is unsigned."""
        info = self._link_info(order_code)
        status = PAYOS_STATUS.get(str(info.status or "").upper())
        if status is None:
            return None
        return StatusEvent(order_code=int(order_code), status=status,
                           message=f"PayOS {info.status}", reference=str(info.id or ""))
