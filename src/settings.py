"""Static configuration for awaymail.

All user-editable settings (server domain, directory database, SMTP relay,
logging, forwarding properties) live in a single JSON file for quick edits
without touching Python. Forwarding properties are re-read at runtime by the
JSON config adapter; everything here is fixed at startup.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("AWAYMAIL_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The server domain names the default no-reply address; extra local domains
# are other virtual hosts whose users the directory also serves.
_server = _CONFIG.get("server", {})
SERVER_DOMAIN = str(_server.get("domain", "localhost")).lower()
LOCAL_DOMAINS = {SERVER_DOMAIN} | {str(d).lower() for d in _server.get("extra_domains", [])}

# Where to store the SQLite directory (users, profiles, presence).
DB_PATH = _resolve_path(_CONFIG.get("directory", {}).get("db_path", "awaymail.db"))

# SMTP relay; credentials come from SMTP_USERNAME/SMTP_PASSWORD in the env.
_smtp = _CONFIG.get("smtp", {})
SMTP_HOST = _smtp.get("host", "localhost")
SMTP_PORT = int(_smtp.get("port", 25))
SMTP_STARTTLS = bool(_smtp.get("starttls", False))
SMTP_TIMEOUT = float(_smtp.get("timeout", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
