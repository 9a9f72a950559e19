from django.conf import settings

from .payos import PayOSGateway
from .paypal import PayPalGateway


def build_gateways():
    return {
        "PAYOS": PayOSGateway(
            client_id=settings.PAYOS_CLIENT_ID,
            api_key=settings.PAYOS_API_KEY,
            checksum_key=settings.PAYOS_CHECKSUM_KEY,
        ),
        "PAYPAL": PayPalGateway(
            client_id=settings.PAYPAL_CLIENT_ID,
            client_secret=settings.PAYPAL_CLIENT_SECRET,
            webhook_id=settings.PAYPAL_WEBHOOK_ID,
            api_url=settings.PAYPAL_API_URL,
            timeout=getattr(settings, "PAYMENT_GATEWAY_TIMEOUT", 15),
        ),
    }
