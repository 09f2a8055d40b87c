"""Typed settings shared by the viewer, the archiver and the app layer.

settings.py fills these from config.json; nothing here reads files or the
environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ServiceConfig:
    """Where the viewer reads messages from."""

    backend: str
    base_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class PaginationConfig:
    """Window and page sizes used by the SQLite backend."""

    window_size: int
    page_size: int


@dataclass(frozen=True)
class ArchiveConfig:
    """GroupMe history paging settings."""

    page_limit: int
    page_delay_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    enabled: bool = False
    level: str = "INFO"
    console: bool = False
    # None disables the rotating file log.
    file_path: Optional[str] = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    # Names of environment variables whose values are masked in log output.
    redact_env: tuple[str, ...] = field(default_factory=tuple)
