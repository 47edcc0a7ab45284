"""Application entry point for the awaymail forwarder."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Optional, TextIO

from art import text2art
from dotenv import load_dotenv

import settings
from adapters.interceptor_registry import InterceptorRegistry
from adapters.json_config import JsonFileConfig
from adapters.json_router import JsonLinesRouter
from adapters.message_mapper import delivery_flags, message_from_dict
from adapters.smtp_mailer import SMTPMailer
from adapters.sqlite_directory import SQLiteDirectory
from core.gate import FORWARD, AwayMailGate
from core.resolver import IdentityResolver

NAME = "AWAYMAIL"
FONT = "tarty-1"


def _print_banner() -> None:
    # stdout carries routed messages during a replay; keep the banner off it.
    print(text2art(NAME, font=FONT, space=1), file=sys.stderr)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # Console logs go to stderr so they never mix with routed JSON lines.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/awaymail.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_directory() -> SQLiteDirectory:
    directory = SQLiteDirectory(settings.DB_PATH, settings.LOCAL_DOMAINS)
    directory.init_db()
    return directory


def _build_mailer() -> SMTPMailer:
    return SMTPMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        starttls=settings.SMTP_STARTTLS,
        username=os.getenv("SMTP_USERNAME"),
        password=os.getenv("SMTP_PASSWORD"),
        timeout=settings.SMTP_TIMEOUT,
    )


def build_gate(directory: SQLiteDirectory, mailer, router) -> AwayMailGate:
    """Wire the gate to its collaborators."""

    return AwayMailGate(
        host=directory,
        users=directory,
        presence=directory,
        resolver=IdentityResolver(host=directory, users=directory, profiles=directory),
        mailer=mailer,
        router=router,
        config=JsonFileConfig(settings.CONFIG_PATH, settings.SERVER_DOMAIN),
    )


def replay(registry: InterceptorRegistry, lines: Iterable[str]) -> tuple[int, int]:
    """Dispatch JSON-lines messages and return (messages, forwarded)."""

    logger = logging.getLogger(__name__)
    seen = 0
    forwarded = 0
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
            message = message_from_dict(raw)
        except ValueError:
            logger.exception("Skipping malformed message on line %s", line_number)
            continue
        processed, read = delivery_flags(raw)
        seen += 1
        if FORWARD in registry.dispatch(message, processed=processed, read=read):
            forwarded += 1
    return seen, forwarded


def _run(source: Optional[str], out: TextIO) -> None:
    logger = logging.getLogger(__name__)
    logger.info("Starting awaymail for %s", ", ".join(sorted(settings.LOCAL_DOMAINS)))

    directory = _build_directory()
    gate = build_gate(directory, _build_mailer(), JsonLinesRouter(out))
    registry = InterceptorRegistry()
    gate.attach(registry)
    try:
        if source:
            with open(source, "r", encoding="utf-8") as handle:
                seen, forwarded = replay(registry, handle)
        else:
            seen, forwarded = replay(registry, sys.stdin)
    finally:
        gate.detach(registry)

    logger.info("Replay complete: messages=%s, forwarded=%s", seen, forwarded)


def _init_db() -> None:
    _build_directory()
    logging.getLogger(__name__).info("Directory ready at %s", settings.DB_PATH)


def _import_directory(path: str) -> None:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    count = _build_directory().import_directory(data)
    logging.getLogger(__name__).info("Imported %s users into %s", count, settings.DB_PATH)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="awaymail")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run",
        help="Replay JSON-lines chat messages through the away-mail gate",
    )
    run_parser.add_argument("source", nargs="?", help="Message file (defaults to stdin)")
    subparsers.add_parser("init-db", help="Create the directory database")
    import_parser = subparsers.add_parser("import-directory", help="Load users from a JSON file")
    import_parser.add_argument("path")

    args = parser.parse_args(argv)
    load_dotenv()
    _print_banner()
    _configure_logging()

    if args.command == "init-db":
        _init_db()
        return
    if args.command == "import-directory":
        _import_directory(args.path)
        return
    _run(getattr(args, "source", None), sys.stdout)


if __name__ == "__main__":
    main()
