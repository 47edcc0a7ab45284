"""Ports (interfaces) used by the interception gate.

Ports define the minimal contracts for the hosting chat server, the user and
profile stores, the mail transport, and configuration so that the core can be
reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.config import ForwardingConfig
from core.models import Message, ProtocolAddress, UserIdentity


class Interceptor(Protocol):
    """Anything the registry can invoke for an in-flight message."""

    def evaluate(self, message: Message, processed: bool, read: bool) -> str:
        ...


class InterceptorRegistryPort(Protocol):
    """Registration hooks offered by the message-routing server."""

    def add_interceptor(self, interceptor: Interceptor) -> None:
        ...

    def remove_interceptor(self, interceptor: Interceptor) -> None:
        ...


class HostPort(Protocol):
    """Locality check for addresses served by this server."""

    def is_local(self, address: ProtocolAddress) -> bool:
        ...


class UserDirectoryPort(Protocol):
    """Account lookup; raises ``UserNotFound`` for unknown usernames."""

    def get_user(self, username: str) -> UserIdentity:
        ...


class PresencePort(Protocol):
    """Free-text presence status, or None when the user is unavailable."""

    def get_presence(self, user: UserIdentity) -> Optional[str]:
        ...


class ProfilePort(Protocol):
    """Profile (vCard) field lookup."""

    def get_profile_field(self, username: str, field: str) -> Optional[str]:
        ...


class MailerPort(Protocol):
    """Outbound mail transport; raises ``MailError`` on failure."""

    def send_message(
        self,
        to_name: str,
        to_email: str,
        from_name: str,
        from_email: str,
        subject: str,
        plain_body: Optional[str],
        html_body: Optional[str],
    ) -> None:
        ...


class RouterPort(Protocol):
    """Delivers a server-originated message to a local session."""

    def route(self, message: Message) -> None:
        ...


class ConfigPort(Protocol):
    """Read-only access to the current forwarding settings."""

    def snapshot(self) -> ForwardingConfig:
        ...
