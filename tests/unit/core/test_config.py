from __future__ import annotations

import json
import logging

import pytest

from oppflow.core.config import _build_config
from oppflow.core.exceptions import ConfigurationError
from oppflow.core.logging_config import JsonFormatter
from oppflow.utils.media import detect_mime_type, generate_media_path


def test_defaults_build_a_development_config(monkeypatch):
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("BUNNY_STORAGE_API_KEY", raising=False)
    config = _build_config()
    assert config.ENV == "development"
    assert config.API_PREFIX == "/api/v1"
    assert config.blob_store_configured is False


def test_production_rejects_placeholder_secret(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "change_me_jwt_secret")
    monkeypatch.setenv("DATABASE_URL", "postgresql://app:pw@db/oppflow")
    with pytest.raises(ConfigurationError):
        _build_config("production")


def test_unsupported_database_scheme_rejected(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "mysql://db/oppflow")
    with pytest.raises(ConfigurationError):
        _build_config("development")


def test_json_formatter_copies_context_fields():
    record = logging.LogRecord("oppflow.test", logging.INFO, __file__, 1, "task.created", None, None)
    record.event = "task.created"
    record.tenant_id = 4
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "task.created"
    assert payload["tenant_id"] == 4
    assert "user_id" not in payload


def test_json_formatter_keeps_diagnostic_extras():
    logger = logging.getLogger("oppflow.test")
    record = logger.makeRecord(
        "oppflow.test",
        logging.WARNING,
        __file__,
        1,
        "task.assignee.unresolved",
        None,
        None,
        extra={"event": "task.assignee.unresolved", "ref": "user-99", "reason": "empty generation", "latency_ms": 12},
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["ref"] == "user-99"
    assert payload["reason"] == "empty generation"
    assert payload["latency_ms"] == 12


def test_media_helpers():
    assert detect_mime_type("report.XLSX").endswith("spreadsheetml.sheet")
    assert detect_mime_type("archive") == "application/octet-stream"
    path = generate_media_path(3, "photo.JPG", prefix="companies")
    assert path.startswith("companies/3/")
    assert path.endswith(".jpg")
