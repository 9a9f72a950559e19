"""
payments.watcher

The waiting side of a checkout. One watcher follows one order code at a time:

    watcher = PaymentStatusWatcher(hub, CachePaymentState(uid))
    watcher.connect()
    watcher.watch(12001)
    outcome = watcher.wait(timeout=300)      # paid / cancelled / failed / timeout / aborted

The in-flight order code is kept in a PendingPaymentState so that a
reconnecting client (page reload, dropped stream) re-joins the same room via
on_reconnect(). Every way out of wait() (a terminal event, the timeout, or
cancel()) leaves the room and clears that state.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, NamedTuple, Optional

from django.core.cache import cache as default_cache

from giftsite import errors

from .channel import PaymentStatusHub, room_name
from .models import SessionStatus, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

ABORTED = "aborted"


class PaymentOutcome(NamedTuple):
    status: str
    order_code: Optional[str]
    message: str = ""

    @property
    def is_paid(self) -> bool:
        return self.status == SessionStatus.PAID


class PendingPaymentState:
    """Where the in-flight order code survives a reconnect."""

    def load(self) -> Optional[str]:
        raise NotImplementedError

    def save(self, order_code: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryPaymentState(PendingPaymentState):
    def __init__(self):
        self._code = None

    def load(self):
        return self._code

    def save(self, order_code):
        self._code = order_code

    def clear(self):
        self._code = None


class CachePaymentState(PendingPaymentState):
    """Keyed by the storefront's client uid; outlives any single request."""

    def __init__(self, uid: str, cache=None, ttl: int = 3600):
        self.key = f"payments:pending:{uid}"
        self.cache = cache or default_cache
        self.ttl = ttl

    def load(self):
        return self.cache.get(self.key)

    def save(self, order_code):
        self.cache.set(self.key, order_code, self.ttl)

    def clear(self):
        self.cache.delete(self.key)


class PaymentStatusWatcher:
    def __init__(self, hub: PaymentStatusHub, state: Optional[PendingPaymentState] = None):
        self.hub = hub
        self.state = state or MemoryPaymentState()
        self._cond = threading.Condition()
        self._connected = False
        self._room: Optional[str] = None
        self._outcome: Optional[PaymentOutcome] = None
        self._cancelled = False
        self._aborted_room: Optional[str] = None

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #
    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def current_order(self) -> Optional[str]:
        return self._room

    def connect(self) -> None:
        self._connected = True
        self.on_reconnect()

    def disconnect(self) -> None:
        """Drop the subscription but keep the stored code for on_reconnect()."""
        with self._cond:
            if self._room is not None:
                self.hub.leave(self._room, self._handle)
                self._room = None
            self._connected = False

    def on_reconnect(self) -> Optional[str]:
        code = self.state.load()
        if code and self._connected and self._room != room_name(code):
            logger.info("Re-joining payment room %s after reconnect", code)
            self._join(code)
        return code

    # ------------------------------------------------------------------ #
    # subscription
    # ------------------------------------------------------------------ #
    def watch(self, order_code: Any) -> None:
        if not self._connected:
            raise RuntimeError("connect() before watch()")
        self._join(order_code)
        self.state.save(room_name(order_code))

    def switch_order(self, order_code: Any) -> None:
        """The server handed back an existing session; follow its code instead."""
        logger.info("Switching payment room %s -> %s", self._room, order_code)
        self.watch(order_code)

    def _join(self, order_code: Any) -> None:
        room = room_name(order_code)
        with self._cond:
            if self._room is not None and self._room != room:
                self.hub.leave(self._room, self._handle)
            self._room = room
            self._outcome = None
            self._cancelled = False
            self._aborted_room = None
            self.hub.join(room, self._handle)

    def _release(self) -> None:
        with self._cond:
            if self._room is not None:
                self.hub.leave(self._room, self._handle)
                self._room = None
        self.state.clear()

    def _handle(self, event: Dict[str, Any]) -> None:
        status = str(event.get("status") or "").lower()
        if status not in TERMINAL_STATUSES:
            return
        with self._cond:
            if self._room is None or room_name(event.get("orderCode")) != self._room:
                return
            if self._outcome is None:
                self._outcome = PaymentOutcome(status, self._room, str(event.get("message") or ""))
            self._cond.notify_all()

    # ------------------------------------------------------------------ #
    # waiting
    # ------------------------------------------------------------------ #
    def poll(self, timeout: float) -> Optional[PaymentOutcome]:
        """
        Wait up to `timeout` seconds. Returns the outcome (and releases) once
        resolved or cancelled; None means still pending, still subscribed.
        """
        with self._cond:
            if self._room is None and self._outcome is None and not self._cancelled:
                raise RuntimeError("watch() before waiting")
            self._cond.wait_for(lambda: self._outcome is not None or self._cancelled, timeout)
            if self._outcome is not None:
                outcome = self._outcome
            elif self._cancelled:
                outcome = PaymentOutcome(ABORTED, self._aborted_room or self._room, "Cancelled by the customer")
            else:
                return None
        self._release()
        return outcome

    def resolve(self, status: str, message: str = "") -> None:
        """Feed an outcome learned out of band (e.g. read from the database)."""
        self._handle({"orderCode": self._room, "status": status, "message": message})

    def wait(self, timeout: float) -> PaymentOutcome:
        outcome = self.poll(timeout)
        if outcome is not None:
            return outcome
        code = self._room
        self._release()
        logger.info("No payment status for %s within %ss", code, timeout)
        return PaymentOutcome(SessionStatus.TIMEOUT.value, code, errors.PaymentTimeoutError.default_message)

    def cancel(self) -> None:
        with self._cond:
            self._cancelled = True
            self._aborted_room = self._room
            self._cond.notify_all()
        self._release()
