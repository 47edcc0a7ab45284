"""JSON-lines routing adapter.

Writes every server-originated message to a stream so a real server (or a
test) can pick it up for delivery.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TextIO

from adapters.message_mapper import message_to_dict
from core.models import Message

LOGGER = logging.getLogger(__name__)


class JsonLinesRouter:
    """RouterPort adapter that emits one JSON object per routed message."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def route(self, message: Message) -> None:
        line = json.dumps(message_to_dict(message), ensure_ascii=False)
        # Concurrent gates may route at the same time; keep lines whole.
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()
        LOGGER.info("Routed %s message to %s", message.message_type, message.recipient)
