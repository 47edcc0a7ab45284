"""Display name and e-mail resolution for protocol addresses.

Both lookups walk an ordered fallback chain over profile fields and the
account record. Nothing is cached: every call re-reads the stores so the
result always reflects their current state.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from core.config import ForwardingConfig
from core.errors import UserNotFound
from core.fallback import Provider, first_non_empty, join_names
from core.models import ProtocolAddress, ResolvedIdentity
from core.ports import HostPort, ProfilePort, UserDirectoryPort

LOGGER = logging.getLogger(__name__)

FIELD_FULL_NAME = "FN"
FIELD_GIVEN_NAME = "N:GIVEN"
FIELD_FAMILY_NAME = "N:FAMILY"
FIELD_NICKNAME = "NICKNAME"
FIELD_EMAIL = "EMAIL"
FIELD_EMAIL_USERID = "EMAIL:USERID"

UNKNOWN_NAME_PREFIX = "Chat User "


class IdentityResolver:
    """Resolves human-readable names and e-mail addresses."""

    def __init__(self, host: HostPort, users: UserDirectoryPort, profiles: ProfilePort) -> None:
        self._host = host
        self._users = users
        self._profiles = profiles

    def _field(self, username: str, field: str) -> Provider:
        return lambda: self._profiles.get_profile_field(username, field)

    def name_providers(self, username: str) -> List[Provider]:
        """Name lookups for a local user, highest priority first."""

        return [
            self._field(username, FIELD_FULL_NAME),
            lambda: join_names(
                self._profiles.get_profile_field(username, FIELD_GIVEN_NAME),
                self._profiles.get_profile_field(username, FIELD_FAMILY_NAME),
            ),
            self._field(username, FIELD_NICKNAME),
            lambda: self._users.get_user(username).name,
        ]

    def email_providers(self, username: str) -> List[Provider]:
        """E-mail lookups for a local user, highest priority first."""

        return [
            self._field(username, FIELD_EMAIL),
            self._field(username, FIELD_EMAIL_USERID),
            lambda: self._users.get_user(username).email,
        ]

    def _lookup_local(self, address: ProtocolAddress, providers_for) -> Optional[str]:
        if not address.local_part or not self._host.is_local(address):
            return None
        try:
            return first_non_empty(providers_for(address.local_part))
        except UserNotFound:
            LOGGER.debug("Unable to find user for '%s'", address.local_part, exc_info=True)
            return None

    def resolve_name(self, address: ProtocolAddress) -> str:
        name = self._lookup_local(address, self.name_providers)
        if name:
            return name
        return f"{UNKNOWN_NAME_PREFIX}{address.to_bare_string()}"

    def resolve_email(self, address: ProtocolAddress, config: ForwardingConfig) -> str:
        email = self._lookup_local(address, self.email_providers)
        if email:
            return email
        if config.use_address_as_email:
            return address.to_bare_string()
        return config.default_email_address

    def resolve(self, address: ProtocolAddress, config: ForwardingConfig) -> ResolvedIdentity:
        return ResolvedIdentity(
            display_name=self.resolve_name(address),
            email_address=self.resolve_email(address, config),
        )
