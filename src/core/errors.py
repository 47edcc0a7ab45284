"""Error taxonomy shared by the core and its adapters."""

from __future__ import annotations


class AwayMailError(Exception):
    """Base class for awaymail errors."""


class UserNotFound(AwayMailError):
    """Raised by user directories when a username has no account."""

    def __init__(self, username: str) -> None:
        super().__init__(f"User not found: {username}")
        self.username = username


class MailError(AwayMailError):
    """Raised by mailers when the transport rejects or fails a message."""


class ConfigurationUnavailable(AwayMailError):
    """Raised by config sources when settings cannot be read."""
