"""
POST /api/payment/create {orderId | orderCode, paymentMethod, amount?, uid?}

    -> {"code": "00", "desc": "success",
        "data": {"checkoutUrl", "isExistingOrder", "orderCode", "amount", "currency"}}

`amount` from the client is informational only; the server prices the
checkout from the stored order. `orderCode` may be the code of an earlier
checkout for the order, or the order id itself when no checkout exists yet.
"""

from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from orders.services import get_order
from payments import get_coordinator
from payments.models import PaymentSession


def _order_from_request(data):
    if data.get("orderId") not in (None, ""):
        return get_order(data["orderId"])
    code = data.get("orderCode")
    if code in (None, ""):
        raise errors.ValidationError("orderId or orderCode is required")
    try:
        code = int(str(code))
    except (TypeError, ValueError):
        raise errors.ValidationError("orderCode must be a number")
    session = PaymentSession.objects.select_related("order").filter(order_code=code).first()
    if session is not None:
        return session.order
    return get_order(code)


class PaymentCreateView(APIView):
    def post(self, request, *args, **kwargs):
        data = request.data
        order = _order_from_request(data)
        result = get_coordinator().create_checkout_session(
            order,
            data.get("paymentMethod") or "PAYOS",
            uid=data.get("uid"),
            client_amount=data.get("amount"),
        )
        return Response({"code": "00", "desc": "success", "data": result.as_payload()})
