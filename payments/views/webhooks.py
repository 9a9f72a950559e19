"""
Gateway webhooks. Both verify the sender before touching any session and
always answer 2xx for events we deliberately ignore, so the gateway stops
retrying them.
"""
import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from payments import get_coordinator
from payments.gateways import GatewayError, WebhookVerificationError

logger = logging.getLogger(__name__)


class _GatewayWebhookView(APIView):
    method = ""

    def post(self, request, *args, **kwargs):
        body = request.body
        coordinator = get_coordinator()
        gateway = coordinator.gateways.get(self.method)
        if gateway is None:
            raise errors.NotFoundError(f"{self.method} is not enabled")

        try:
            event = gateway.parse_webhook(body, request.headers)
        except WebhookVerificationError as exc:
            logger.warning("%s webhook rejected: %s", self.method, exc)
            raise errors.ValidationError("Invalid webhook signature")
        except GatewayError as exc:
            logger.error("%s webhook verification unavailable: %s", self.method, exc)
            raise errors.ExternalServiceError("Could not verify webhook, retry later")

        if event is None:
            return Response({"success": True, "ignored": True})

        try:
            session, changed = coordinator.apply_status(
                event.order_code, event.status, event.message, source=f"{self.method.lower()}-webhook"
            )
        except errors.NotFoundError:
            # gateway dashboards send test pings with made-up order codes
            return Response({"success": True, "ignored": True})

        return Response({"success": True, "orderCode": session.order_code, "status": session.status, "changed": changed})


class PayOSWebhookView(_GatewayWebhookView):
    method = "PAYOS"


class PayPalWebhookView(_GatewayWebhookView):
    method = "PAYPAL"
