"""Ordered first-non-empty lookups (core domain)."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

Provider = Callable[[], Optional[str]]


def first_non_empty(providers: Iterable[Provider]) -> Optional[str]:
    """Return the first provider result that is neither None nor empty.

    Providers are called lazily in order, so later lookups never run once an
    earlier one produced a value.
    """

    for provider in providers:
        value = provider()
        if value:
            return value
    return None


def join_names(*parts: Optional[str]) -> Optional[str]:
    """Join the non-empty name parts with a single space."""

    present = [part for part in parts if part]
    if not present:
        return None
    return " ".join(present)
