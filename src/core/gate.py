"""Core interception gate.

This module is server-agnostic. It only relies on ports for lookups, mail,
and routing, so any hosting server can drive it through its interceptor hook.

Qualification runs in a strict order and stops at the first failed rule:
1) Skip messages already processed or read upstream
2) Require a recipient (and a sender to confirm to)
3) Only one-to-one chat messages
4) Only recipients served by this server
5) Recipient account must exist
6) Recipient presence must read as "away"
7) Body must be non-empty
"""

from __future__ import annotations

import logging
from typing import Optional

from core.composer import compose_confirmation, render_body
from core.config import ForwardingConfig
from core.errors import MailError, UserNotFound
from core.models import CHAT, Message, UserIdentity
from core.ports import (
    ConfigPort,
    HostPort,
    InterceptorRegistryPort,
    MailerPort,
    PresencePort,
    RouterPort,
    UserDirectoryPort,
)
from core.resolver import IdentityResolver

LOGGER = logging.getLogger(__name__)

FORWARD = "forward"
PASSTHROUGH = "passthrough"

AWAY_MARKER = "away"


def is_away(presence: Optional[str]) -> bool:
    """Free-text presence check; anything mentioning "away" counts."""

    return presence is not None and AWAY_MARKER in presence.lower()


class AwayMailGate:
    """Forwards chat messages for away users to e-mail and confirms to the sender."""

    def __init__(
        self,
        host: HostPort,
        users: UserDirectoryPort,
        presence: PresencePort,
        resolver: IdentityResolver,
        mailer: MailerPort,
        router: RouterPort,
        config: ConfigPort,
    ) -> None:
        self._host = host
        self._users = users
        self._presence = presence
        self._resolver = resolver
        self._mailer = mailer
        self._router = router
        self._config = config

    def attach(self, registry: InterceptorRegistryPort) -> None:
        registry.add_interceptor(self)

    def detach(self, registry: InterceptorRegistryPort) -> None:
        registry.remove_interceptor(self)

    def evaluate(self, message: Message, processed: bool, read: bool) -> str:
        """Decide whether to forward one in-flight message. Never raises."""

        try:
            return self._evaluate(message, processed, read)
        except Exception:
            LOGGER.exception("Error while evaluating message to %s", message.recipient)
            return PASSTHROUGH

    def _recipient_if_away(self, message: Message) -> Optional[UserIdentity]:
        recipient = message.recipient
        if recipient is None or not recipient.local_part:
            return None
        try:
            user = self._users.get_user(recipient.local_part)
        except UserNotFound:
            LOGGER.debug(
                "Unable to determine if an email should be sent to %s: user cannot be found",
                recipient,
                exc_info=True,
            )
            return None
        if not is_away(self._presence.get_presence(user)):
            return None
        return user

    def _evaluate(self, message: Message, processed: bool, read: bool) -> str:
        # Upstream stages may already have handled this packet; acting again
        # would send a second e-mail.
        if processed or read:
            return PASSTHROUGH
        if message.recipient is None or message.sender is None:
            return PASSTHROUGH
        if message.message_type != CHAT:
            return PASSTHROUGH
        if not self._host.is_local(message.recipient):
            return PASSTHROUGH
        if self._recipient_if_away(message) is None:
            return PASSTHROUGH
        if not message.body:
            return PASSTHROUGH

        config = self._config.snapshot()
        if not self._forward(message, message.body, config):
            return PASSTHROUGH
        return FORWARD

    def _forward(self, message: Message, body: str, config: ForwardingConfig) -> bool:
        recipient = self._resolver.resolve(message.recipient, config)
        sender = self._resolver.resolve(message.sender, config)

        try:
            self._mailer.send_message(
                recipient.display_name,
                recipient.email_address,
                sender.display_name,
                sender.email_address,
                config.subject,
                render_body(config.body_plain, body),
                render_body(config.body_html, body),
            )
        except MailError:
            LOGGER.warning(
                "Failed to email away user %s; no confirmation sent to %s",
                message.recipient,
                message.sender,
                exc_info=True,
            )
            return False

        self._router.route(
            compose_confirmation(
                message.sender,
                message.recipient,
                recipient.email_address,
                config.show_email,
            )
        )
        LOGGER.debug(
            "Sent an email to away user %s that received a chat message from %s",
            message.recipient,
            message.sender,
        )
        return True
