from .create import PaymentCreateView
from .events import payment_events
from .returns import payment_return
from .webhooks import PayOSWebhookView, PayPalWebhookView

__all__ = [
    "PaymentCreateView",
    "PayOSWebhookView",
    "PayPalWebhookView",
    "payment_events",
    "payment_return",
]
