"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any server-specific packet types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

CHAT = "chat"
GROUPCHAT = "groupchat"
NORMAL = "normal"
HEADLINE = "headline"
ERROR = "error"

MESSAGE_TYPES = frozenset({CHAT, GROUPCHAT, NORMAL, HEADLINE, ERROR})


@dataclass(frozen=True)
class ProtocolAddress:
    """A chat address in ``local@domain/resource`` form."""

    local_part: Optional[str]
    domain: str
    resource: Optional[str] = None

    @property
    def bare(self) -> "ProtocolAddress":
        if self.resource is None:
            return self
        return ProtocolAddress(local_part=self.local_part, domain=self.domain)

    def bare_equals(self, other: "ProtocolAddress") -> bool:
        return self.local_part == other.local_part and self.domain == other.domain

    def to_bare_string(self) -> str:
        if self.local_part:
            return f"{self.local_part}@{self.domain}"
        return self.domain

    def __str__(self) -> str:
        if self.resource is None:
            return self.to_bare_string()
        return f"{self.to_bare_string()}/{self.resource}"


@dataclass(frozen=True)
class Message:
    """Minimal message representation used by the interception gate."""

    sender: Optional[ProtocolAddress]
    recipient: Optional[ProtocolAddress]
    message_type: str = NORMAL
    body: Optional[str] = None
    subject: Optional[str] = None


@dataclass(frozen=True)
class UserIdentity:
    """Account record exposed by the user directory."""

    username: str
    name: Optional[str]
    email: Optional[str]


@dataclass(frozen=True)
class ResolvedIdentity:
    """Display name and e-mail address resolved for one party."""

    display_name: str
    email_address: str
