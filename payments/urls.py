from django.urls import path

from .views import PaymentCreateView, PayOSWebhookView, PayPalWebhookView, payment_events, payment_return

urlpatterns = [
    path("create", PaymentCreateView.as_view(), name="payment-create"),
    path("webhook/payos", PayOSWebhookView.as_view(), name="payment-webhook-payos"),
    path("webhook/paypal", PayPalWebhookView.as_view(), name="payment-webhook-paypal"),
    path("return", payment_return, name="payment-return"),
    path("events", payment_events, name="payment-events"),
]
