"""
payments.coordinator

Server side of a payment: opens gateway checkouts for orders and applies the
status the gateway reports back.

Session lifecycle:

    created -> awaiting_payment -> paid | cancelled | failed | timeout

Terminal means terminal. A repeated event is a no-op; a late "paid" for a
session we already closed is kept for manual reconciliation instead of
silently flipping the order. Opening a checkout locks the order row.

========= CHANGE LOG =========
2026-01-12 • ADD: PayOS + PayPal checkout with session reuse.
2026-01-20 • ADD: late-paid reconciliation flag + admin reconcile path.
2026-02-03 • FIX: PayPal amount is base fee + tip in USD, not the VND total.
2026-03-02 • FIX: serialise checkout per order; codes derive from the highest attempt.
2026-03-02 • FIX: no PayPal base fee on free templates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from giftsite import errors
from orders.models import Order, OrderStatus
from orders.pricing import to_amount

from .channel import PaymentStatusHub
from .gateways import CheckoutRequest, GatewayError, PaymentGateway
from .models import PaymentMethod, PaymentSession, SessionStatus, TERMINAL_STATUSES
from .signals import payment_resolved

logger = logging.getLogger(__name__)

ORDER_CODE_FACTOR = 1000

# timeout leaves the order pending on purpose
ORDER_STATUS_FOR = {
    SessionStatus.PAID.value: OrderStatus.PAID,
    SessionStatus.CANCELLED.value: OrderStatus.CANCELLED,
    SessionStatus.FAILED.value: OrderStatus.FAILED,
}


@dataclass(frozen=True)
class CheckoutResult:
    session: PaymentSession
    is_existing_order: bool = False

    def as_payload(self) -> Dict[str, Any]:
        s = self.session
        return {
            "checkoutUrl": s.checkout_url,
            "isExistingOrder": self.is_existing_order,
            "orderCode": s.order_code,
            "amount": float(s.amount),
            "currency": s.currency,
        }


def _with_query(url: str, **params) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


class PaymentCoordinator:
    def __init__(self, gateways: Mapping[str, PaymentGateway], hub: PaymentStatusHub,
                 status_timeout: Optional[int] = None):
        self.gateways = {key.upper(): gw for key, gw in gateways.items()}
        self.hub = hub
        self._status_timeout = status_timeout

    @property
    def status_timeout(self) -> int:
        if self._status_timeout is not None:
            return self._status_timeout
        return int(getattr(settings, "PAYMENT_STATUS_TIMEOUT", 300))

    # ------------------------------------------------------------------ #
    # amounts
    # ------------------------------------------------------------------ #
    def gateway_for(self, payment_method: Any) -> Tuple[str, PaymentGateway]:
        method = str(payment_method or "").strip().upper()
        gateway = self.gateways.get(method)
        if gateway is None:
            raise errors.ValidationError(
                f"Unsupported payment method. Use one of: {', '.join(sorted(self.gateways))}"
            )
        return method, gateway

    def amount_for(self, order: Order, method: str) -> Tuple[Decimal, str]:
        """
        PAYOS charges the order total in VND. PAYPAL charges a flat USD base
        fee plus the tip, which the storefront collects in USD on that path;
        free templates skip the base fee.
        """
        if method == PaymentMethod.PAYPAL:
            base_fee = to_amount(settings.PAYPAL_BASE_FEE_USD) if order.template.price > 0 else Decimal(0)
            return base_fee + to_amount(order.tip_amount), "USD"
        return Decimal(order.total_amount), "VND"

    # ------------------------------------------------------------------ #
    # checkout
    # ------------------------------------------------------------------ #
    def create_checkout_session(self, order: Order, payment_method: Any, uid: Any = None,
                                client_amount: Any = None) -> CheckoutResult:
        method, gateway = self.gateway_for(payment_method)

        failure = None
        # the order row lock serialises concurrent "Pay" clicks for one order
        with transaction.atomic():
            order = Order.objects.select_for_update(of=("self",)).select_related("template").get(pk=order.pk)
            if order.status != OrderStatus.PENDING:
                raise errors.ValidationError(f"Order is already {order.status}", order=order.pk)
            if not order.total_amount:
                raise errors.ValidationError("Order total is 0, nothing to pay", order=order.pk)

            amount, currency = self.amount_for(order, method)
            if amount <= 0:
                raise errors.ValidationError(f"Nothing to pay in {currency}", order=order.pk)
            if client_amount not in (None, "") and to_amount(client_amount) != amount:
                logger.warning(
                    "Client amount %s differs from server amount %s %s for order %s; using server amount",
                    client_amount, amount, currency, order.pk,
                )

            existing = self._reusable_session(order, method, amount)
            if existing is not None:
                logger.info("Reusing payment session %s for order %s", existing.order_code, order.pk)
                return CheckoutResult(session=existing, is_existing_order=True)

            try:
                with transaction.atomic():
                    session = PaymentSession.objects.create(
                        order=order,
                        order_code=self._next_order_code(order),
                        uid=str(uid or "")[:128],
                        method=method,
                        amount=amount,
                        currency=currency,
                    )
            except IntegrityError:
                existing = PaymentSession.objects.open().filter(order=order, method=method, amount=amount).first()
                if existing is None:
                    raise errors.ConflictError("A checkout for this order is already being opened, please retry",
                                               order=order.pk)
                logger.info("Reusing payment session %s for order %s after a collision", existing.order_code, order.pk)
                return CheckoutResult(session=existing, is_existing_order=True)

            checkout = CheckoutRequest(
                order_code=session.order_code,
                amount=amount,
                currency=currency,
                description=f"QR {session.order_code}",
                return_url=_with_query(settings.PAYMENT_RETURN_URL, method=method),
                cancel_url=_with_query(settings.PAYMENT_CANCEL_URL, method=method, cancel="true"),
                customer_email=order.customer_email,
            )
            try:
                link = gateway.create_checkout(checkout)
            except GatewayError as exc:
                failure = exc
                session.status = SessionStatus.FAILED
                session.message = str(exc)[:255]
                session.resolved_at = timezone.now()
                session.save(update_fields=["status", "message", "resolved_at", "updated_at"])
            else:
                session.checkout_url = link.checkout_url
                session.gateway_reference = link.reference
                session.status = SessionStatus.AWAITING_PAYMENT
                session.save(update_fields=["checkout_url", "gateway_reference", "status", "updated_at"])

        if failure is not None:
            logger.error("Checkout failed for order %s (site %s, %s): %s", order.pk, order.qr_name, method, failure)
            raise errors.ExternalServiceError(order=order.pk, site=order.qr_name) from failure

        logger.info(
            "Payment session %s opened for order %s: %s %s via %s",
            session.order_code, order.pk, amount, currency, method,
        )
        return CheckoutResult(session=session, is_existing_order=link.existing)

    def _reusable_session(self, order: Order, method: str, amount: Decimal) -> Optional[PaymentSession]:
        now = timezone.now()
        cutoff = now - timedelta(seconds=self.status_timeout)
        reusable = None
        for session in PaymentSession.objects.open().filter(order=order):
            if reusable is None and session.method == method and session.amount == amount and session.created_at >= cutoff:
                reusable = session
                continue
            # stale, repriced, or another method: close it so only one checkout stays live
            closing = SessionStatus.TIMEOUT if session.created_at < cutoff else SessionStatus.CANCELLED
            self.apply_status(session.order_code, closing, "Superseded by a new checkout", source="checkout",
                              update_order=False)
        return reusable

    def _next_order_code(self, order: Order) -> int:
        base = order.pk * ORDER_CODE_FACTOR
        last = PaymentSession.objects.filter(order=order).aggregate(last=Max("order_code"))["last"]
        attempt = last - base + 1 if last else 1
        # codes past the factor would spill into the next order's range
        if attempt >= ORDER_CODE_FACTOR:
            raise errors.ValidationError("Too many payment attempts for this order", order=order.pk)
        return base + attempt

    # ------------------------------------------------------------------ #
    # status
    # ------------------------------------------------------------------ #
    def apply_status(self, order_code: Any, status: Any, message: str = "", source: str = "webhook",
                     update_order: bool = True) -> Tuple[PaymentSession, bool]:
        """
        Move a session to a terminal status. Returns (session, changed);
        changed is False for duplicates and for events after a terminal state.
        """
        status = str(status or "").strip().lower()
        if status not in TERMINAL_STATUSES:
            raise errors.ValidationError(f"Unknown payment status '{status}'")
        try:
            code = int(str(order_code))
        except (TypeError, ValueError):
            raise errors.ValidationError("orderCode must be a number")

        with transaction.atomic():
            session = (
                PaymentSession.objects.select_for_update()
                .select_related("order")
                .filter(order_code=code)
                .first()
            )
            if session is None:
                logger.warning("Status %s from %s for unknown orderCode %s", status, source, code)
                raise errors.NotFoundError("Payment session not found")

            order = session.order
            if session.is_terminal:
                self._after_terminal(session, order, status, message, source)
                return session, False

            session.status = status
            session.message = (message or "")[:255]
            session.resolved_at = timezone.now()
            session.save(update_fields=["status", "message", "resolved_at", "updated_at"])

            order_status = ORDER_STATUS_FOR.get(status)
            if update_order and order_status and order.status == OrderStatus.PENDING:
                order.status = order_status
                order.save(update_fields=["status", "updated_at"])

            transaction.on_commit(lambda: self._announce(session, order))

        logger.info(
            "Payment %s -> %s (order %s, site %s, via %s)",
            code, status, order.pk, order.qr_name, source,
        )
        return session, True

    def _after_terminal(self, session: PaymentSession, order: Order, status: str, message: str, source: str) -> None:
        if session.status == status:
            logger.info("Duplicate %s for orderCode %s ignored", status, session.order_code)
            return

        if status == SessionStatus.PAID:
            # money moved after we gave up on the session; an operator decides
            session.needs_reconciliation = True
            session.late_status = status
            session.message = (message or f"Paid after {session.status}")[:255]
            session.save(update_fields=["needs_reconciliation", "late_status", "message", "updated_at"])
            logger.warning(
                "Late PAID for orderCode %s after %s: order %s, site %s, %s %s. Needs manual reconciliation.",
                session.order_code, session.status, order.pk, order.qr_name, session.amount, session.currency,
            )
            return

        logger.warning(
            "Ignoring %s from %s for orderCode %s: session already %s (order %s)",
            status, source, session.order_code, session.status, order.pk,
        )

    def _announce(self, session: PaymentSession, order: Order) -> None:
        event = {"orderCode": session.order_code, "status": session.status, "message": session.message}
        self.hub.publish(session.order_code, event)
        payment_resolved.send(sender=self.__class__, session=session, order=order, status=session.status)

    # ------------------------------------------------------------------ #
    # timeouts / reconciliation
    # ------------------------------------------------------------------ #
    def timeout_if_expired(self, order_code: Any, now=None) -> Tuple[Optional[PaymentSession], bool]:
        session = PaymentSession.objects.filter(order_code=order_code).first()
        if session is None or session.status != SessionStatus.AWAITING_PAYMENT:
            return session, False
        if session.age_seconds(now) < self.status_timeout:
            return session, False
        return self.apply_status(session.order_code, SessionStatus.TIMEOUT,
                                 "No payment status received in time", source="timeout")

    def expire_stale_sessions(self, now=None) -> int:
        now = now or timezone.now()
        cutoff = now - timedelta(seconds=self.status_timeout)
        codes = list(PaymentSession.objects.stale(cutoff).values_list("order_code", flat=True))
        expired = 0
        for code in codes:
            _, changed = self.apply_status(code, SessionStatus.TIMEOUT,
                                           "No payment status received in time", source="sweeper")
            expired += int(changed)
        if expired:
            logger.info("Expired %s stale payment session(s)", expired)
        return expired

    def reconcile_late_payment(self, session: PaymentSession) -> bool:
        """Accept a late PAID that an operator confirmed with the gateway."""
        with transaction.atomic():
            session = PaymentSession.objects.select_for_update().select_related("order").get(pk=session.pk)
            if not (session.needs_reconciliation and session.late_status == SessionStatus.PAID):
                return False
            session.status = SessionStatus.PAID
            session.needs_reconciliation = False
            session.resolved_at = timezone.now()
            session.save(update_fields=["status", "needs_reconciliation", "resolved_at", "updated_at"])
            order = session.order
            if order.status != OrderStatus.PAID:
                order.status = OrderStatus.PAID
                order.save(update_fields=["status", "updated_at"])
            transaction.on_commit(lambda: self._announce(session, order))
        logger.info("Late payment %s reconciled as paid (order %s)", session.order_code, order.pk)
        return True
