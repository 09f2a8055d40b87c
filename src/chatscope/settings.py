"""Configuration loading for chatscope.

All user-editable settings (service backend, pagination, archive, logging)
live in a single JSON file for quick edits without touching Python. Secrets
stay in the environment (.env via python-dotenv).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from chatscope.core.config import ArchiveConfig, LoggingConfig, PaginationConfig, ServiceConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

# Relative db paths in config.json are resolved against the project root.
DEFAULT_DB_PATH = "chatscope.db"

SERVICE_BACKENDS = {"http", "sqlite"}


@dataclass(frozen=True)
class Settings:
    service: ServiceConfig
    pagination: PaginationConfig
    archive: ArchiveConfig
    db_path: str
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError("config root must be an object")
    return loaded


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _load_logging(config: dict[str, Any]) -> LoggingConfig:
    if not config.get("enabled", False):
        return LoggingConfig()

    file_cfg = config.get("file", {}) or {}
    file_path = None
    if file_cfg.get("enabled", False):
        file_path = _resolve_path(str(file_cfg.get("path", "logs/chatscope.log")))

    redact_cfg = config.get("redact", {}) or {}
    redact_env: tuple[str, ...] = ()
    if redact_cfg.get("enabled", False):
        redact_env = tuple(str(name) for name in redact_cfg.get("patterns", []))

    return LoggingConfig(
        enabled=True,
        level=str(config.get("level", "INFO")).upper(),
        # Console output corrupts the TUI, so config.json ships with it off.
        console=bool(config.get("console", False)),
        file_path=file_path,
        max_bytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backup_count=int(file_cfg.get("backup_count", 5)),
        redact_env=redact_env,
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """Read config.json (or `path`) and apply environment overrides."""

    load_dotenv()
    config = _load_json_config(path or CONFIG_PATH)

    _service = config.get("service", {})
    backend = str(_service.get("backend", "http")).lower()
    if backend not in SERVICE_BACKENDS:
        raise ValueError(f"service.backend must be one of {sorted(SERVICE_BACKENDS)}, got {backend!r}")
    # The env override makes it easy to point at another data service per shell.
    base_url = os.getenv("CHATSCOPE_SERVICE_URL") or _service.get("base_url", "http://localhost:8080")
    service = ServiceConfig(
        backend=backend,
        base_url=str(base_url),
        timeout_seconds=float(_service.get("timeout_seconds", 10)),
    )

    _pagination = config.get("pagination", {})
    pagination = PaginationConfig(
        window_size=int(_pagination.get("window_size", 10)),
        page_size=int(_pagination.get("page_size", 20)),
    )

    # GroupMe pages are capped at 100 messages; 2s between pages is gentle on rate limits.
    _archive = config.get("archive", {})
    archive = ArchiveConfig(
        page_limit=int(_archive.get("page_limit", 100)),
        page_delay_seconds=float(_archive.get("page_delay_seconds", 2)),
    )

    return Settings(
        service=service,
        pagination=pagination,
        archive=archive,
        db_path=_resolve_path(str(config.get("db_path", DEFAULT_DB_PATH))),
        logging=_load_logging(config.get("logging", {}) or {}),
    )
