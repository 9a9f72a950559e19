"""
payments.channel

In-process status rooms. A room is named by the gateway order code; anyone
waiting on that payment joins it and receives every event published there:

    {"orderCode": 12001, "status": "paid", "message": "..."}
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]


def room_name(order_code: Any) -> str:
    return str(order_code).strip()


class PaymentStatusHub:
    def __init__(self):
        self._lock = threading.RLock()
        self._rooms: Dict[str, List[Handler]] = defaultdict(list)

    def join(self, room: Any, handler: Handler) -> None:
        room = room_name(room)
        with self._lock:
            if handler not in self._rooms[room]:
                self._rooms[room].append(handler)
        logger.debug("join room=%s", room)

    def leave(self, room: Any, handler: Handler) -> None:
        room = room_name(room)
        with self._lock:
            handlers = self._rooms.get(room)
            if not handlers:
                return
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                del self._rooms[room]
        logger.debug("leave room=%s", room)

    def members(self, room: Any) -> int:
        with self._lock:
            return len(self._rooms.get(room_name(room), ()))

    def publish(self, room: Any, event: Dict[str, Any]) -> int:
        """Deliver to every handler in the room; returns how many got it."""
        room = room_name(room)
        with self._lock:
            handlers = list(self._rooms.get(room, ()))
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("Status handler failed in room %s", room)
        return delivered
