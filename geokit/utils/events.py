"""
Generic callback channel used to publish notifications to outward subscribers.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any, Callable

from pydantic import BaseModel

from geokit.utils.log import get_logger

logger = get_logger(__name__)

MOTION_STATE_CHANGED = "motion_state_changed"
LOCATION_LOG         = "location_log"
LOCATION_ERROR       = "location_error"

Subscriber = Callable[[dict[str, Any]], None]


class EventBus:
    """
    Name-keyed publish/subscribe channel.

    Payloads are pydantic models and are delivered to subscribers as plain
    dicts. A subscriber that raises is logged and skipped.
    """
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, name: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register `callback` for events called `name`.

        Returns
        -------
        Callable[[], None]
            Function removing the subscription again.
        """
        with self._lock:
            self._subscribers[name].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[name]:
                    self._subscribers[name].remove(callback)

        return unsubscribe

    def emit(self, name: str, payload: BaseModel) -> None:
        with self._lock:
            subscribers = list(self._subscribers[name])
        if not subscribers:
            logger.debug("No subscribers for event %s", name)
            return
        data = payload.model_dump()
        for callback in subscribers:
            try:
                callback(data)
            except Exception:
                logger.exception("Subscriber for %s failed", name)
