"""Hot-reloading forwarding configuration backed by config.json.

The ``forwarding`` object of the config file holds the plugin properties by
key. The file is re-read whenever its modification time changes, so edits
take effect on the next intercepted message without a restart.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import replace
from typing import Any, Optional, Tuple

from core.config import (
    KEY_BODY_HTML,
    KEY_BODY_PLAIN,
    KEY_DEFAULT_EMAIL_ADDRESS,
    KEY_SHOW_EMAIL,
    KEY_SUBJECT,
    KEY_USE_ADDRESS_AS_EMAIL,
    ForwardingConfig,
)
from core.errors import ConfigurationUnavailable

LOGGER = logging.getLogger(__name__)

FORWARDING_SECTION = "forwarding"

_BOOL_KEYS = {
    KEY_SHOW_EMAIL: "show_email",
    KEY_USE_ADDRESS_AS_EMAIL: "use_address_as_email",
}
_STR_KEYS = {
    KEY_SUBJECT: "subject",
    KEY_BODY_PLAIN: "body_plain",
    KEY_BODY_HTML: "body_html",
    KEY_DEFAULT_EMAIL_ADDRESS: "default_email_address",
}


def build_forwarding_config(properties: dict[str, Any], server_domain: str) -> ForwardingConfig:
    """Overlay configured properties on the defaults, ignoring wrong types."""

    overrides: dict[str, Any] = {}
    for key, value in properties.items():
        if key in _BOOL_KEYS and isinstance(value, bool):
            overrides[_BOOL_KEYS[key]] = value
        elif key in _STR_KEYS and isinstance(value, str):
            overrides[_STR_KEYS[key]] = value
        elif key in _BOOL_KEYS or key in _STR_KEYS:
            LOGGER.warning("Ignoring %s: unexpected value %r", key, value)

    defaults = ForwardingConfig.defaults(server_domain)
    # An empty default address would leave nowhere to send; keep the derived one.
    if not overrides.get("default_email_address", defaults.default_email_address):
        overrides.pop("default_email_address")
    return replace(defaults, **overrides)


class JsonFileConfig:
    """ConfigPort adapter that re-reads the config file when it changes."""

    def __init__(self, path: str, server_domain: str) -> None:
        self._path = path
        self._server_domain = server_domain
        self._lock = threading.Lock()
        self._stamp: Optional[Tuple[int, int]] = None
        self._cached = ForwardingConfig.defaults(server_domain)

    def _read_properties(self) -> dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            raise ConfigurationUnavailable(f"Cannot read {self._path}: {e}") from e
        section = data.get(FORWARDING_SECTION, {}) if isinstance(data, dict) else {}
        if not isinstance(section, dict):
            raise ConfigurationUnavailable(f"'{FORWARDING_SECTION}' must be an object")
        return section

    def snapshot(self) -> ForwardingConfig:
        # Size is compared too: coarse clocks can give two edits the same mtime.
        try:
            stat = os.stat(self._path)
            stamp: Optional[Tuple[int, int]] = (stat.st_mtime_ns, stat.st_size)
        except OSError:
            stamp = None

        with self._lock:
            if stamp is not None and stamp == self._stamp:
                return self._cached
            try:
                properties = self._read_properties()
            except ConfigurationUnavailable:
                LOGGER.warning("Forwarding config unavailable, using defaults", exc_info=True)
                self._stamp = None
                self._cached = ForwardingConfig.defaults(self._server_domain)
                return self._cached
            self._cached = build_forwarding_config(properties, self._server_domain)
            self._stamp = stamp
            LOGGER.info("Loaded forwarding config from %s", self._path)
            return self._cached
