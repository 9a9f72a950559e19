from .orders import CheckQrNameView, OrderCreateView, OrderDetailView, OrderQuoteView
from .sites import SiteDetailView
from .vouchers import VoucherValidateView

__all__ = [
    "CheckQrNameView",
    "OrderCreateView",
    "OrderDetailView",
    "OrderQuoteView",
    "SiteDetailView",
    "VoucherValidateView",
]
