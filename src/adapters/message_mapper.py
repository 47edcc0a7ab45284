"""JSON-to-core message mapping adapter.

This keeps the wire representation out of the core gate. Messages are plain
objects shaped like ``{"from", "to", "type", "body", "subject"}``; replayed
traffic may also carry the upstream ``processed``/``read`` flags.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from core.addresses import parse_optional_address
from core.models import MESSAGE_TYPES, NORMAL, Message


def _optional_text(raw: dict[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    return str(value)


def message_from_dict(raw: dict[str, Any]) -> Message:
    """Build a core Message from its JSON representation."""

    if not isinstance(raw, dict):
        raise ValueError("message must be a JSON object")

    message_type = str(raw.get("type") or NORMAL).lower()
    if message_type not in MESSAGE_TYPES:
        raise ValueError(f"Unsupported message type: {message_type}")

    return Message(
        sender=parse_optional_address(_optional_text(raw, "from")),
        recipient=parse_optional_address(_optional_text(raw, "to")),
        message_type=message_type,
        body=_optional_text(raw, "body"),
        subject=_optional_text(raw, "subject"),
    )


def delivery_flags(raw: dict[str, Any]) -> Tuple[bool, bool]:
    """Return the (processed, read) flags carried by a replayed message."""

    return bool(raw.get("processed", False)), bool(raw.get("read", False))


def message_to_dict(message: Message) -> dict[str, Any]:
    """Serialize a core Message, omitting absent fields."""

    payload: dict[str, Any] = {"type": message.message_type}
    if message.sender is not None:
        payload["from"] = str(message.sender)
    if message.recipient is not None:
        payload["to"] = str(message.recipient)
    if message.subject is not None:
        payload["subject"] = message.subject
    if message.body is not None:
        payload["body"] = message.body
    return payload
