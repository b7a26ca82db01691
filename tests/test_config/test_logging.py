"""Testes para config.logging.

Cobre: configure_logging, get_logger, log_fallback,
CorrelationIdFilter, create_json_formatter.
"""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

import pytest

from config.logging import (
    FIELD_RENAME_MAP,
    NOISY_LOGGERS,
    REQUIRED_LOG_FIELDS,
    CorrelationIdFilter,
    configure_logging,
    create_json_formatter,
    get_logger,
    log_fallback,
)
from config.logging.config import VALID_LOG_LEVELS
from config.logging.filters import run_kind_of
from config.settings import BaseSettings


def _record(msg: str = "msg", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestConfigureLogging:
    """Testes para configure_logging."""

    def test_configure_logging_default_level(self) -> None:
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize("level", ["DEBUG", "warning", "ERROR", "CRITICAL"])
    def test_configure_logging_levels_case_insensitive(self, level: str) -> None:
        configure_logging(level=level)
        assert logging.getLogger().level == getattr(logging, level.upper())

    def test_configure_logging_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Nível de log inválido"):
            configure_logging(level="INVALID")

    def test_configure_logging_replaces_handlers(self) -> None:
        root = logging.getLogger()
        root.handlers = [logging.NullHandler(), logging.NullHandler()]
        configure_logging()
        assert len(root.handlers) == 1

    def test_configure_logging_installs_correlation_filter(self) -> None:
        configure_logging(correlation_id_getter=lambda: "custom-corr-id")
        handler = logging.getLogger().handlers[0]
        assert any(isinstance(f, CorrelationIdFilter) for f in handler.filters)

    def test_transport_loggers_capped_at_warning(self) -> None:
        logging.getLogger("httpx").setLevel(logging.DEBUG)
        configure_logging(level="DEBUG")
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_constants(self) -> None:
        assert {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} == VALID_LOG_LEVELS
        assert NOISY_LOGGERS == ("httpx", "httpcore")


class TestGetLogger:
    def test_get_logger_returns_same_instance(self) -> None:
        logger = get_logger("same.module")
        assert isinstance(logger, logging.Logger)
        assert logger is get_logger("same.module")


class TestLogFallback:
    """Testes para log_fallback."""

    def test_log_fallback_basic(self) -> None:
        logger = MagicMock(spec=logging.Logger)
        log_fallback(logger, "github_app_auth")
        logger.warning.assert_called_once()
        call_args = logger.warning.call_args
        assert call_args[0][0] == "Fallback applied for %s"
        assert call_args[0][1] == "github_app_auth"
        extra = call_args[1]["extra"]
        assert extra["fallback_used"] is True
        assert extra["component"] == "github_app_auth"
        assert "reason" not in extra
        assert "target" not in extra

    def test_log_fallback_with_reason_and_target(self) -> None:
        logger = MagicMock(spec=logging.Logger)
        log_fallback(
            logger,
            "github_app_auth",
            reason="token_pool_exhausted",
            target="https://api.github.com/repos/o/r/comments",
        )
        extra = logger.warning.call_args[1]["extra"]
        assert extra["reason"] == "token_pool_exhausted"
        assert extra["target"].endswith("/repos/o/r/comments")


class TestCorrelationIdFilter:
    def test_filter_adds_correlation_id_from_getter(self) -> None:
        filter_ = CorrelationIdFilter("my_service", lambda: "corr-123")
        record = _record()
        assert filter_.filter(record) is True
        assert record.correlation_id == "corr-123"
        assert record.service == "my_service"

    def test_filter_preserves_explicit_correlation_id(self) -> None:
        filter_ = CorrelationIdFilter("svc", lambda: "from-getter")
        record = _record()
        record.correlation_id = "explicit-id"
        filter_.filter(record)
        assert record.correlation_id == "explicit-id"

    def test_filter_uses_empty_string_when_no_getter(self) -> None:
        filter_ = CorrelationIdFilter("service_name", None)
        record = _record(level=logging.ERROR)
        assert filter_.filter(record) is True
        assert record.correlation_id == ""
        assert record.run_kind == ""

    def test_service_and_environment_default_to_base_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "config.logging.filters.get_base_settings",
            lambda: BaseSettings(service_name="relay-eu", environment="staging"),
        )
        filter_ = CorrelationIdFilter()
        record = _record()

        filter_.filter(record)

        assert record.service == "relay-eu"
        assert record.environment == "staging"

    def test_run_kind_from_correlation_prefix(self) -> None:
        filter_ = CorrelationIdFilter("svc", lambda: "webhook-3f1c2a", environment="production")
        record = _record()

        filter_.filter(record)

        assert record.run_kind == "webhook"
        assert record.environment == "production"

    @pytest.mark.parametrize(
        ("correlation_id", "expected"),
        [
            ("poll-1234", "poll"),
            ("request-abcd", ""),
            ("3f1c2a9e-1111-2222", ""),
            ("poll", ""),
            ("", ""),
        ],
    )
    def test_run_kind_of(self, correlation_id: str, expected: str) -> None:
        assert run_kind_of(correlation_id) == expected


class TestCreateJsonFormatter:
    def test_required_log_fields_content(self) -> None:
        assert REQUIRED_LOG_FIELDS == (
            "asctime",
            "levelname",
            "name",
            "message",
            "correlation_id",
            "service",
        )

    def test_field_rename_map_content(self) -> None:
        assert FIELD_RENAME_MAP == {"levelname": "level", "name": "logger"}

    def test_json_formatter_renames_fields(self) -> None:
        from pythonjsonlogger.json import JsonFormatter

        formatter = create_json_formatter()
        assert isinstance(formatter, JsonFormatter)

        record = _record("gate_mode_changed")
        record.correlation_id = "poll-abc"
        record.service = "github_relay"
        payload = json.loads(formatter.format(record))

        assert payload["message"] == "gate_mode_changed"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "test.logger"
        assert payload["correlation_id"] == "poll-abc"
        assert payload["service"] == "github_relay"


class TestLoggingIntegration:
    def test_full_logging_flow(self) -> None:
        configure_logging(
            level="DEBUG",
            service_name="integration_test",
            correlation_id_getter=lambda: "int-test-001",
        )
        logger = get_logger("integration.test")
        logger.debug("token_acquired", extra={"token": "...abcd"})
        logger.warning("gate_transient_error")
