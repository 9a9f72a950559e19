"""
GET /api/payment/return

Where the gateways send the buyer back. The query string is not signed, so
nothing it claims counts until the gateway confirms it. A confirmed cancel
or failure closes the session but leaves the order pending so the buyer
can pay again; only a confirmed "paid" moves the order.
"""
import logging

from django.conf import settings
from django.shortcuts import render
from django.views.decorators.http import require_GET

from giftsite import errors
from payments import get_coordinator
from payments.gateways import GatewayError
from payments.models import PaymentSession, SessionStatus

logger = logging.getLogger(__name__)


def _confirm(coordinator, method, params, cancelled):
    """Returns the gateway-confirmed StatusEvent, or None when still unknown."""
    gateway = coordinator.gateways.get(method)
    if method == "PAYPAL":
        # capturing on a cancel redirect would charge the buyer
        token = params.get("token")
        return gateway.capture(token) if token and not cancelled else None
    code = params.get("orderCode")
    return gateway.fetch_status(int(code)) if code and code.isdigit() else None


@require_GET
def payment_return(request):
    params = request.GET
    method = (params.get("method") or "PAYOS").upper()
    coordinator = get_coordinator()
    cancelled = params.get("cancel") == "true"

    session = None
    code = params.get("orderCode")
    if code and code.isdigit():
        session = PaymentSession.objects.select_related("order").filter(order_code=int(code)).first()

    try:
        event = _confirm(coordinator, method, params, cancelled) if method in coordinator.gateways else None
        if event is not None:
            session, _ = coordinator.apply_status(
                event.order_code, event.status, event.message, source="return",
                update_order=str(event.status).lower() == SessionStatus.PAID,
            )
    except GatewayError as exc:
        # the webhook will still settle it
        logger.warning("Could not confirm %s return (%s): %s", method, dict(params), exc)
    except errors.NotFoundError:
        logger.warning("Return for unknown payment session: %s", dict(params))

    if session is not None and session.is_terminal:
        status = session.status
    elif cancelled:
        status = SessionStatus.CANCELLED.value
    else:
        status = "processing"
    context = {
        "status": status,
        "session": session,
        "site_url": f"https://{session.order.site.full_url}" if session is not None else "",
        "storefront_url": settings.DEPLOY_BASE_URL,
    }
    return render(request, "payments/return.html", context)
