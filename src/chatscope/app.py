"""Application entry point for chatscope."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

from chatscope.adapters.groupme_client import build_groupme_client
from chatscope.adapters.http_service import HttpMessageService
from chatscope.adapters.sqlite_store import SQLiteMessageStore
from chatscope.archiver import Archiver
from chatscope.core.config import LoggingConfig
from chatscope.core.ports import MessageServicePort
from chatscope.settings import Settings, load_settings

NAME = "CHATSCOPE"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _SecretMaskingFormatter(logging.Formatter):
    """Replaces known secret values (the GroupMe token) with `***`."""

    def __init__(self, secrets: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _build_log_handlers(config: LoggingConfig) -> list[logging.Handler]:
    if not config.enabled:
        return []

    formatter = _SecretMaskingFormatter([os.getenv(name, "") for name in config.redact_env])
    handlers: list[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler())
    if config.file_path:
        os.makedirs(os.path.dirname(config.file_path) or ".", exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                config.file_path,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_logging(settings: Settings) -> None:
    handlers = _build_log_handlers(settings.logging)
    if handlers:
        level = getattr(logging, settings.logging.level, logging.INFO)
        logging.basicConfig(level=level, handlers=handlers)


def build_service(settings: Settings) -> MessageServicePort:
    """Select the message service backend from configuration."""

    if settings.service.backend == "sqlite":
        if not os.path.exists(settings.db_path):
            raise RuntimeError(f"Archive database not found: {settings.db_path} (run `chatscope archive` first)")
        return SQLiteMessageStore(
            settings.db_path,
            window_size=settings.pagination.window_size,
            page_size=settings.pagination.page_size,
        )
    if settings.service.backend == "http":
        return HttpMessageService(
            settings.service.base_url,
            timeout_seconds=settings.service.timeout_seconds,
        )
    raise RuntimeError("service.backend must be 'http' or 'sqlite'")


def _view(settings: Settings) -> None:
    logger = logging.getLogger(__name__)
    service = build_service(settings)
    logger.info("Starting viewer with %s backend", settings.service.backend)

    from chatscope.frontend.app import ViewerApp

    ViewerApp(service).run()


def _archive(settings: Settings) -> None:
    _print_banner()
    logger = logging.getLogger(__name__)

    store = SQLiteMessageStore(settings.db_path)
    store.init_db()
    client = build_groupme_client(limit=settings.archive.page_limit)
    try:
        archiver = Archiver(
            client,
            store,
            page_delay_seconds=settings.archive.page_delay_seconds,
        )
        saved = archiver.run()
    finally:
        client.close()
    logger.info("Archive now holds %s messages", store.count_messages())
    print(f"Archived {saved} messages into {settings.db_path}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="chatscope")
    parser.add_argument("--config", help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("view", help="Search messages and browse conversations")
    subparsers.add_parser("archive", help="Download GroupMe history into the local archive")

    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    _configure_logging(settings)

    if args.command == "archive":
        _archive(settings)
        return
    _view(settings)


if __name__ == "__main__":
    main()
