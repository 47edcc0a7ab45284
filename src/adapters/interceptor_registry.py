"""In-process interceptor registry.

Stands in for the chat server's interceptor manager: every in-flight message
is offered to each registered interceptor before it is marked processed.
"""

from __future__ import annotations

import logging
import threading
from typing import List

from core.models import Message
from core.ports import Interceptor

LOGGER = logging.getLogger(__name__)


class InterceptorRegistry:
    """Holds interceptors and dispatches messages to them."""

    def __init__(self) -> None:
        self._interceptors: List[Interceptor] = []
        self._lock = threading.Lock()

    def add_interceptor(self, interceptor: Interceptor) -> None:
        with self._lock:
            if interceptor not in self._interceptors:
                self._interceptors = [*self._interceptors, interceptor]

    def remove_interceptor(self, interceptor: Interceptor) -> None:
        with self._lock:
            self._interceptors = [item for item in self._interceptors if item is not interceptor]

    @property
    def interceptors(self) -> List[Interceptor]:
        return list(self._interceptors)

    def dispatch(self, message: Message, processed: bool = False, read: bool = False) -> List[str]:
        """Offer a message to every interceptor and return their actions.

        A failing interceptor is logged and skipped so one bad hook never
        blocks delivery for the others.
        """

        actions: List[str] = []
        # Iterate over a snapshot; registration may change concurrently.
        for interceptor in self._interceptors:
            try:
                actions.append(interceptor.evaluate(message, processed, read))
            except Exception:
                LOGGER.exception("Interceptor %r failed", interceptor)
        return actions
