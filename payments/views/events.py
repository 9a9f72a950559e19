"""
GET /api/payment/events?orderCode=<code>[&uid=<client uid>]

Server-sent events for one checkout. The stream joins the order-code room and
emits a single `payment_status_update` once the payment resolves, or once the
session's status window runs out. Without orderCode the room is recovered
from the uid's stored in-flight code (client reloaded mid-payment).
"""
import json
import logging
import time

from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.http import require_GET

from giftsite import errors
from payments import get_coordinator
from payments.models import PaymentSession, SessionStatus
from payments.watcher import CachePaymentState, MemoryPaymentState, PaymentStatusWatcher

logger = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 15


def sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def _stream(coordinator, watcher, session):
    code = session.order_code
    try:
        watcher.connect()
        watcher.watch(code)
        # join first, then read: an event published in between is not lost
        session.refresh_from_db(fields=["status", "message"])
        if session.is_terminal:
            watcher.resolve(session.status, session.message)

        deadline = time.monotonic() + max(0.0, coordinator.status_timeout - session.age_seconds())
        outcome = None
        while outcome is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            outcome = watcher.poll(min(HEARTBEAT_SECONDS, remaining))
            if outcome is None:
                # another worker may have applied the webhook
                session.refresh_from_db(fields=["status", "message"])
                if session.is_terminal:
                    watcher.resolve(session.status, session.message)
                    continue
                yield ": keepalive\n\n"

        if outcome is None:
            outcome = watcher.wait(0)
            session, _ = coordinator.timeout_if_expired(code)
            if session is not None and session.status != SessionStatus.TIMEOUT and session.is_terminal:
                outcome = outcome._replace(status=session.status, message=session.message)

        yield sse("payment_status_update", {
            "orderCode": code,
            "status": outcome.status,
            "message": outcome.message,
        })
    finally:
        watcher.disconnect()


@require_GET
def payment_events(request):
    uid = (request.GET.get("uid") or "").strip()
    state = CachePaymentState(uid) if uid else MemoryPaymentState()
    code = request.GET.get("orderCode") or state.load()
    if not code or not str(code).isdigit():
        return JsonResponse(errors.error_payload("orderCode is required", errors.ValidationError.code), status=400)

    session = PaymentSession.objects.filter(order_code=int(code)).first()
    if session is None:
        return JsonResponse(errors.error_payload("Payment session not found", errors.NotFoundError.code), status=404)

    coordinator = get_coordinator()
    watcher = PaymentStatusWatcher(coordinator.hub, state)

    response = StreamingHttpResponse(_stream(coordinator, watcher, session), content_type="text/event-stream")
    response["Cache-Control"] = "no-cache"
    response["X-Accel-Buffering"] = "no"
    return response

