"""Helpers for parsing and formatting protocol addresses."""

from __future__ import annotations

from typing import Optional, Tuple

from core.models import ProtocolAddress

LOCAL_SEPARATOR = "@"
RESOURCE_SEPARATOR = "/"


def split_address(raw: str) -> Tuple[Optional[str], str, Optional[str]]:
    """Split a raw address into (local_part, domain, resource)."""

    bare, sep, resource = raw.partition(RESOURCE_SEPARATOR)
    local_part, at, domain = bare.partition(LOCAL_SEPARATOR)
    if not at:
        # Domain-only address, e.g. a server component.
        return None, local_part, resource if sep else None
    return local_part, domain, resource if sep else None


def parse_address(raw: str) -> ProtocolAddress:
    """Parse and normalize ``local@domain/resource``.

    Local-part and domain are lowercased; the resource is kept verbatim.
    """

    raw = raw.strip()
    if not raw:
        raise ValueError("address is required")

    local_part, domain, resource = split_address(raw)
    domain = domain.lower()
    if not domain:
        raise ValueError(f"address has no domain: {raw!r}")
    if LOCAL_SEPARATOR in domain:
        raise ValueError(f"address has more than one '@': {raw!r}")
    if local_part is not None:
        if not local_part:
            raise ValueError(f"address has an empty local-part: {raw!r}")
        local_part = local_part.lower()
    if resource is not None and not resource:
        raise ValueError(f"address has an empty resource: {raw!r}")

    return ProtocolAddress(local_part=local_part, domain=domain, resource=resource)


def parse_optional_address(raw: Optional[str]) -> Optional[ProtocolAddress]:
    """Parse an address that may be absent."""

    if raw is None or not raw.strip():
        return None
    return parse_address(raw)
