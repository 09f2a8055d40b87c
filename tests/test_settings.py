from __future__ import annotations

import json
import logging
import os

import pytest

from chatscope.app import _SecretMaskingFormatter, _build_log_handlers, build_service
from chatscope.adapters.http_service import HttpMessageService
from chatscope.adapters.sqlite_store import SQLiteMessageStore
from chatscope.settings import load_settings


def _write_config(tmp_path, data: dict) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_fill_missing_sections(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("CHATSCOPE_SERVICE_URL", raising=False)
    settings = load_settings(_write_config(tmp_path, {}))

    assert settings.service.backend == "http"
    assert settings.service.base_url == "http://localhost:8080"
    assert settings.service.timeout_seconds == 10
    assert settings.pagination.window_size == 10
    assert settings.archive.page_limit == 100
    assert os.path.isabs(settings.db_path)


def test_env_overrides_base_url(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("CHATSCOPE_SERVICE_URL", "http://archive.local:9000")
    settings = load_settings(_write_config(tmp_path, {"service": {"base_url": "http://other"}}))
    assert settings.service.base_url == "http://archive.local:9000"


def test_unknown_backend_is_rejected(tmp_path) -> None:
    with pytest.raises(ValueError, match="backend"):
        load_settings(_write_config(tmp_path, {"service": {"backend": "ftp"}}))


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "absent.json"))


def test_build_service_selects_backend(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("CHATSCOPE_SERVICE_URL", raising=False)
    db_path = tmp_path / "archive.db"
    db_path.write_bytes(b"")

    http_settings = load_settings(_write_config(tmp_path, {"service": {"backend": "http"}}))
    sqlite_settings = load_settings(
        _write_config(tmp_path, {"service": {"backend": "sqlite"}, "db_path": str(db_path)})
    )

    assert isinstance(build_service(http_settings), HttpMessageService)
    assert isinstance(build_service(sqlite_settings), SQLiteMessageStore)


def test_sqlite_backend_requires_archive(tmp_path) -> None:
    settings = load_settings(
        _write_config(tmp_path, {"service": {"backend": "sqlite"}, "db_path": str(tmp_path / "none.db")})
    )
    with pytest.raises(RuntimeError, match="archive"):
        build_service(settings)


def test_secret_masking_formatter_masks_longest_first() -> None:
    formatter = _SecretMaskingFormatter(["abc", "abc-123", ""])
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "key=%s", ("abc-123",), None)

    assert formatter.format(record).endswith("key=***")


def test_logging_section_is_parsed_into_config(tmp_path) -> None:
    settings = load_settings(
        _write_config(
            tmp_path,
            {
                "logging": {
                    "enabled": True,
                    "level": "debug",
                    "file": {"enabled": True, "path": str(tmp_path / "logs" / "app.log"), "backup_count": 2},
                    "redact": {"enabled": True, "patterns": ["GROUPME_TOKEN"]},
                }
            },
        )
    )

    assert settings.logging.enabled
    assert settings.logging.level == "DEBUG"
    assert not settings.logging.console
    assert settings.logging.file_path == str(tmp_path / "logs" / "app.log")
    assert settings.logging.backup_count == 2
    assert settings.logging.redact_env == ("GROUPME_TOKEN",)


def test_disabled_logging_builds_no_handlers(tmp_path) -> None:
    settings = load_settings(_write_config(tmp_path, {"logging": {"enabled": False, "console": True}}))
    assert _build_log_handlers(settings.logging) == []


def test_file_log_masks_groupme_token(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GROUPME_TOKEN", "tok-123")
    log_path = tmp_path / "logs" / "chatscope.log"
    settings = load_settings(
        _write_config(
            tmp_path,
            {
                "logging": {
                    "enabled": True,
                    "file": {"enabled": True, "path": str(log_path)},
                    "redact": {"enabled": True, "patterns": ["GROUPME_TOKEN"]},
                }
            },
        )
    )

    handlers = _build_log_handlers(settings.logging)
    assert len(handlers) == 1
    record = logging.LogRecord("chatscope", logging.INFO, __file__, 1, "GET ?token=%s", ("tok-123",), None)
    handlers[0].handle(record)
    handlers[0].close()

    written = log_path.read_text(encoding="utf-8")
    assert "GET ?token=***" in written
    assert "tok-123" not in written
