from django.urls import path

from .views import (
    CheckQrNameView,
    OrderCreateView,
    OrderDetailView,
    OrderQuoteView,
    SiteDetailView,
    VoucherValidateView,
)

urlpatterns = [
    path("orders", OrderCreateView.as_view(), name="order-create"),
    path("orders/check-qr-name", CheckQrNameView.as_view(), name="order-check-qr-name"),
    path("orders/quote", OrderQuoteView.as_view(), name="order-quote"),
    path("orders/<str:order_id>", OrderDetailView.as_view(), name="order-detail"),
    path("vouchers/validate", VoucherValidateView.as_view(), name="voucher-validate"),
    path("qrcodes/<str:name>", SiteDetailView.as_view(), name="qrcode-detail"),
]
