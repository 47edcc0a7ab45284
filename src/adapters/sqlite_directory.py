"""SQLite directory adapter.

Implements the core host, user, presence, and profile ports on a simple
SQLite database so the gate can run without a full chat server behind it.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.errors import UserNotFound
from core.models import ProtocolAddress, UserIdentity


class SQLiteDirectory:
    """Thin SQLite wrapper that satisfies the directory-facing ports."""

    def __init__(self, db_path: str, local_domains: Iterable[str]) -> None:
        self._db_path = db_path
        self._local_domains = {domain.lower() for domain in local_domains}

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - users: accounts served by this server
        - profile_fields: vCard-style fields per user
        - presence: current free-text status per user
        """

        with self._connect() as conn:
            # Fields:
            # - username: local-part of the user's address (PRIMARY KEY)
            # - name: account display name
            # - email: account e-mail address
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    username TEXT PRIMARY KEY,
                    name TEXT,
                    email TEXT
                )
                """
            )
            # Field names follow vCard paths such as FN, N:GIVEN, EMAIL:USERID.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS profile_fields (
                    username TEXT NOT NULL,
                    field TEXT NOT NULL,
                    value TEXT,
                    PRIMARY KEY (username, field)
                )
                """
            )
            # A missing row means the user is unavailable (offline).
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS presence (
                    username TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def is_local(self, address: ProtocolAddress) -> bool:
        return address.domain in self._local_domains

    def get_user(self, username: str) -> UserIdentity:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT username, name, email FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if row is None:
            raise UserNotFound(username)
        return UserIdentity(username=row["username"], name=row["name"], email=row["email"])

    def get_presence(self, user: UserIdentity) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT status FROM presence WHERE username = ?",
                (user.username,),
            ).fetchone()
        return row["status"] if row else None

    def get_profile_field(self, username: str, field: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM profile_fields WHERE username = ? AND field = ?",
                (username, field),
            ).fetchone()
        return row["value"] if row else None

    def upsert_user(self, username: str, name: Optional[str] = None, email: Optional[str] = None) -> None:
        """Insert or update an account."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (username, name, email)
                VALUES (?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET name = excluded.name, email = excluded.email
                """,
                (username, name, email),
            )

    def set_profile_field(self, username: str, field: str, value: Optional[str]) -> None:
        """Upsert one profile field; None removes it."""

        with self._connect() as conn:
            if value is None:
                conn.execute(
                    "DELETE FROM profile_fields WHERE username = ? AND field = ?",
                    (username, field),
                )
                return
            conn.execute(
                """
                INSERT INTO profile_fields (username, field, value)
                VALUES (?, ?, ?)
                ON CONFLICT(username, field) DO UPDATE SET value = excluded.value
                """,
                (username, field, value),
            )

    def set_presence(self, username: str, status: str) -> None:
        """Record the user's current free-text presence status."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO presence (username, status, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(username) DO UPDATE SET
                    status = excluded.status,
                    updated_at = excluded.updated_at
                """,
                (username, status, now.isoformat()),
            )

    def clear_presence(self, username: str) -> None:
        """Mark the user unavailable."""

        with self._connect() as conn:
            conn.execute("DELETE FROM presence WHERE username = ?", (username,))

    def import_directory(self, data: dict) -> int:
        """Load users from a JSON-style mapping and return how many were imported.

        Expected shape::

            {"users": [{"username": "alice", "name": "...", "email": "...",
                        "profile": {"FN": "..."}, "presence": "away"}]}
        """

        count = 0
        for entry in data.get("users", []):
            username = entry.get("username")
            if not username:
                continue
            username = username.lower()
            self.upsert_user(username, entry.get("name"), entry.get("email"))
            for field, value in (entry.get("profile") or {}).items():
                self.set_profile_field(username, field, value)
            presence = entry.get("presence")
            if presence:
                self.set_presence(username, presence)
            else:
                self.clear_presence(username)
            count += 1
        return count
