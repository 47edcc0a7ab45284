"""Confirmation and e-mail body composition (core domain)."""

from __future__ import annotations

from typing import Optional

from core.config import BODY_PLACEHOLDER
from core.models import NORMAL, Message, ProtocolAddress

CONFIRMATION_SUBJECT = "I'm away"
_CONFIRMATION_LEAD = "I'm currently away. Your message has been forwarded to my email address"


def confirmation_body(recipient_email: str, show_email: bool) -> str:
    if show_email:
        return f"{_CONFIRMATION_LEAD} ({recipient_email})."
    return f"{_CONFIRMATION_LEAD}."


def compose_confirmation(
    to: ProtocolAddress,
    from_: ProtocolAddress,
    recipient_email: str,
    show_email: bool,
) -> Message:
    """Build the notice sent back to the original sender.

    The notice is a ``normal`` message between bare addresses, so it never
    qualifies for forwarding itself.
    """

    return Message(
        sender=from_.bare,
        recipient=to.bare,
        message_type=NORMAL,
        body=confirmation_body(recipient_email, show_email),
        subject=CONFIRMATION_SUBJECT,
    )


def render_body(template: str, body: str) -> Optional[str]:
    """Substitute the chat body into a template; empty templates yield None."""

    if not template:
        return None
    return template.replace(BODY_PLACEHOLDER, body)
