import json
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

import requests
from django.test import SimpleTestCase
from payos.custom_error import PayOSError
from paypalserversdk.exceptions.api_exception import ApiException

from payments.gateways import CheckoutRequest, GatewayError, WebhookVerificationError
from payments.gateways.payos import PayOSGateway
from payments.gateways.paypal import PayPalGateway, format_usd


def response(payload, status=200):
    resp = mock.Mock()
    resp.status_code = status
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


def checkout_request(amount=59000, currency="VND"):
    return CheckoutRequest(
        order_code=12001,
        amount=Decimal(amount),
        currency=currency,
        description="QR 12001 for a very long gift description",
        return_url="https://order.example.com/api/payment/return?method=PAYOS",
        cancel_url="https://order.example.com/api/payment/return?method=PAYOS&cancel=true",
        customer_email="lan@example.com",
    )


class PayOSGatewayTests(SimpleTestCase):
    def setUp(self):
        self.sdk = mock.Mock()
        self.gateway = PayOSGateway("client", "api-key", "secret", client=self.sdk)

    def test_create_checkout_sends_payment_data(self):
        self.sdk.createPaymentLink.return_value = SimpleNamespace(
            checkoutUrl="https://pay.payos.vn/web/abc", paymentLinkId="abc",
        )
        link = self.gateway.create_checkout(checkout_request())

        self.assertEqual(link.checkout_url, "https://pay.payos.vn/web/abc")
        self.assertEqual(link.reference, "abc")
        self.assertFalse(link.existing)

        data = self.sdk.createPaymentLink.call_args[1]["paymentData"]
        self.assertEqual(data.orderCode, 12001)
        self.assertEqual(data.amount, 59000)
        self.assertLessEqual(len(data.description), 25)
        self.assertEqual(data.buyerEmail, "lan@example.com")

    def test_existing_link_is_fetched_and_flagged(self):
        self.sdk.createPaymentLink.side_effect = PayOSError("231", "Đơn thanh toán đã tồn tại")
        self.sdk.getPaymentLinkInformation.return_value = SimpleNamespace(id="link42", status="PENDING")
        link = self.gateway.create_checkout(checkout_request())
        self.assertTrue(link.existing)
        self.assertEqual(link.checkout_url, "https://pay.payos.vn/web/link42")
        self.sdk.getPaymentLinkInformation.assert_called_once_with(orderId=12001)

    def test_timeout_and_rejection_raise_gateway_error(self):
        self.sdk.createPaymentLink.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(GatewayError):
            self.gateway.create_checkout(checkout_request())

        self.sdk.createPaymentLink.side_effect = PayOSError("20", "bad request")
        with self.assertRaises(GatewayError):
            self.gateway.create_checkout(checkout_request())

    def test_missing_credentials(self):
        gateway = PayOSGateway("", "", "")
        with self.assertRaises(GatewayError):
            gateway.create_checkout(checkout_request())

    def test_webhook_is_verified_by_the_sdk(self):
        payload = {"code": "00", "desc": "success", "signature": "sig",
                   "data": {"orderCode": 12001, "amount": 59000, "code": "00", "desc": "success"}}
        self.sdk.verifyPaymentWebhookData.return_value = SimpleNamespace(
            orderCode=12001, code="00", desc="success", paymentLinkId="abc", reference="FT1",
        )
        event = self.gateway.parse_webhook(json.dumps(payload).encode(), {})
        self.assertEqual((event.order_code, event.status, event.reference), (12001, "paid", "abc"))
        self.sdk.verifyPaymentWebhookData.assert_called_once_with(payload)

        self.sdk.verifyPaymentWebhookData.side_effect = PayOSError("20", "Data not integrity")
        with self.assertRaises(WebhookVerificationError):
            self.gateway.parse_webhook(json.dumps(payload).encode(), {})
        with self.assertRaises(WebhookVerificationError):
            self.gateway.parse_webhook(b"not json", {})
        with self.assertRaises(WebhookVerificationError):
            self.gateway.parse_webhook(json.dumps({"code": "00", "data": {}}).encode(), {})

    def test_failed_transfer_webhook(self):
        payload = {"code": "00", "signature": "sig", "data": {"orderCode": 12001, "code": "01"}}
        self.sdk.verifyPaymentWebhookData.return_value = SimpleNamespace(
            orderCode=12001, code="01", desc="declined", paymentLinkId="abc", reference="",
        )
        self.assertEqual(self.gateway.parse_webhook(json.dumps(payload).encode(), {}).status, "failed")

    def test_fetch_status_maps_payos_states(self):
        self.sdk.getPaymentLinkInformation.return_value = SimpleNamespace(id="abc", status="PAID")
        self.assertEqual(self.gateway.fetch_status(12001).status, "paid")
        self.sdk.getPaymentLinkInformation.return_value = SimpleNamespace(id="abc", status="CANCELLED")
        self.assertEqual(self.gateway.fetch_status(12001).status, "cancelled")
        self.sdk.getPaymentLinkInformation.return_value = SimpleNamespace(id="abc", status="PENDING")
        self.assertIsNone(self.gateway.fetch_status(12001))

        self.sdk.getPaymentLinkInformation.side_effect = PayOSError("101", "not found")
        with self.assertRaises(GatewayError):
            self.gateway.fetch_status(12001)


class PayPalGatewayTests(SimpleTestCase):
    def setUp(self):
        self.sdk = mock.Mock()
        self.http = mock.Mock()
        self.verification = {"verification_status": "SUCCESS"}
        self.http.post.side_effect = self.fake_post
        self.gateway = PayPalGateway("cid", "secret", webhook_id="WH-1", api_url="https://paypal.test",
                                     client=self.sdk, session=self.http)

    def fake_post(self, url, **kwargs):
        if url.endswith("/v1/oauth2/token"):
            return response({"access_token": "tok"})
        return response(self.verification)

    def test_format_usd(self):
        self.assertEqual(format_usd(15), "15.00")
        self.assertEqual(format_usd(Decimal("5.5")), "5.50")

    def test_create_checkout_returns_approve_link(self):
        self.sdk.orders.create_order.return_value = SimpleNamespace(body=SimpleNamespace(
            id="PP-ORDER-1",
            links=[
                SimpleNamespace(rel="self", href="https://paypal.test/v2/checkout/orders/PP-ORDER-1"),
                SimpleNamespace(rel="approve", href="https://www.sandbox.paypal.com/checkoutnow?token=PP-ORDER-1"),
            ],
        ))
        link = self.gateway.create_checkout(checkout_request(amount=15, currency="USD"))

        self.assertEqual(link.checkout_url, "https://www.sandbox.paypal.com/checkoutnow?token=PP-ORDER-1")
        self.assertEqual(link.reference, "PP-ORDER-1")
        unit = self.sdk.orders.create_order.call_args[0][0]["body"].purchase_units[0]
        self.assertEqual((unit.amount.currency_code, unit.amount.value), ("USD", "15.00"))
        self.assertEqual(unit.custom_id, "12001")

    def test_missing_approve_link(self):
        self.sdk.orders.create_order.return_value = SimpleNamespace(body=SimpleNamespace(id="PP-ORDER-1", links=[]))
        with self.assertRaises(GatewayError):
            self.gateway.create_checkout(checkout_request(amount=15, currency="USD"))

    def test_api_error_becomes_gateway_error(self):
        self.sdk.orders.create_order.side_effect = ApiException("boom", mock.Mock(status_code=500, text=""))
        with self.assertRaises(GatewayError):
            self.gateway.create_checkout(checkout_request(amount=15, currency="USD"))

    def test_missing_credentials(self):
        gateway = PayPalGateway("", "", session=self.http)
        with self.assertRaises(GatewayError):
            gateway.create_checkout(checkout_request(amount=15, currency="USD"))

    def test_capture_maps_back_to_order_code(self):
        self.sdk.orders.capture_order.return_value = SimpleNamespace(body=SimpleNamespace(
            status="COMPLETED", purchase_units=[SimpleNamespace(custom_id=None, reference_id="12001")],
        ))
        event = self.gateway.capture("PP-ORDER-1")
        self.assertEqual((event.order_code, event.status), (12001, "paid"))
        self.assertEqual(self.sdk.orders.capture_order.call_args[0][0]["id"], "PP-ORDER-1")

    def test_webhook_verified_by_paypal(self):
        event = {
            "id": "WH-EVT",
            "event_type": "PAYMENT.CAPTURE.COMPLETED",
            "resource": {"id": "CAP-1", "custom_id": "12001"},
        }
        headers = {"PAYPAL-TRANSMISSION-ID": "t-1", "PAYPAL-TRANSMISSION-SIG": "sig"}

        parsed = self.gateway.parse_webhook(json.dumps(event).encode(), headers)
        self.assertEqual((parsed.order_code, parsed.status, parsed.reference), (12001, "paid", "CAP-1"))
        verify_call = self.http.post.call_args
        self.assertTrue(verify_call[0][0].endswith("/v1/notifications/verify-webhook-signature"))
        self.assertEqual(verify_call[1]["json"]["webhook_id"], "WH-1")
        self.assertEqual(verify_call[1]["json"]["transmission_id"], "t-1")
        self.assertEqual(verify_call[1]["headers"]["Authorization"], "Bearer tok")

        self.verification = {"verification_status": "FAILURE"}
        with self.assertRaises(WebhookVerificationError):
            self.gateway.parse_webhook(json.dumps(event).encode(), headers)

    def test_unmapped_event_type_is_ignored(self):
        event = {"event_type": "CHECKOUT.ORDER.APPROVED", "resource": {"custom_id": "12001"}}
        self.assertIsNone(self.gateway.parse_webhook(json.dumps(event).encode(), {}))
