from .site import Site
from .voucher import Voucher, DiscountType
from .order import Order, OrderStatus

__all__ = [
    "Site",
    "Voucher",
    "DiscountType",
    "Order",
    "OrderStatus",
]
