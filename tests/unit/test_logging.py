"""Testes para o modulo de logging estruturado."""

from __future__ import annotations

import io
import json
import logging

import structlog

import voxclean.logging as voxclean_logging


class TestGetLogger:
    def setup_method(self) -> None:
        voxclean_logging.reset_logging()

    def teardown_method(self) -> None:
        voxclean_logging.reset_logging()

    def test_get_logger_returns_bound_logger(self) -> None:
        logger = voxclean_logging.get_logger("test")
        assert isinstance(logger, structlog.stdlib.BoundLogger)

    def test_get_logger_binds_component(self) -> None:
        logger = voxclean_logging.get_logger("preprocessing.pipeline")
        context = logger._context  # type: ignore[attr-defined]
        assert context.get("component") == "preprocessing.pipeline"

    def test_get_logger_configures_lazily(self) -> None:
        assert voxclean_logging._configured is False
        voxclean_logging.get_logger("test")
        assert voxclean_logging._configured is True


class TestConfigureLogging:
    def setup_method(self) -> None:
        voxclean_logging.reset_logging()

    def teardown_method(self) -> None:
        voxclean_logging.reset_logging()

    def test_configure_idempotent(self) -> None:
        voxclean_logging.configure_logging(log_format="console", level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        # Segunda chamada e ignorada
        voxclean_logging.configure_logging(log_format="json", level="ERROR")
        assert logging.getLogger().level == logging.DEBUG

    def test_reset_allows_reconfiguration(self) -> None:
        voxclean_logging.configure_logging(level="DEBUG")
        voxclean_logging.reset_logging()
        voxclean_logging.configure_logging(level="ERROR")
        assert logging.getLogger().level == logging.ERROR

    def test_default_level_from_env(self, monkeypatch: object) -> None:
        monkeypatch.setenv("VOXCLEAN_LOG_LEVEL", "INFO")  # type: ignore[attr-defined]
        voxclean_logging.configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_default_level_is_warning(self, monkeypatch: object) -> None:
        monkeypatch.delenv("VOXCLEAN_LOG_LEVEL", raising=False)  # type: ignore[attr-defined]
        voxclean_logging.configure_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_json_format_has_required_fields(self) -> None:
        stream = io.StringIO()
        voxclean_logging.configure_logging(log_format="json", level="DEBUG", stream=stream)
        logger = voxclean_logging.get_logger("test_component")

        logger.info("structured event", key="value")

        parsed = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert parsed["event"] == "structured event"
        assert parsed["level"] == "info"
        assert "timestamp" in parsed
        assert parsed["component"] == "test_component"
        assert parsed["key"] == "value"

    def test_contextvars_are_merged(self) -> None:
        stream = io.StringIO()
        voxclean_logging.configure_logging(log_format="json", level="DEBUG", stream=stream)
        logger = voxclean_logging.get_logger("test_component")

        with structlog.contextvars.bound_contextvars(invocation_id="abc123"):
            logger.info("inside")
        logger.info("outside")

        lines = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
        assert lines[-2]["invocation_id"] == "abc123"
        assert "invocation_id" not in lines[-1]

    def test_console_format_no_exception(self) -> None:
        stream = io.StringIO()
        voxclean_logging.configure_logging(log_format="console", level="INFO", stream=stream)
        voxclean_logging.get_logger("test").info("test message")
        assert "test message" in stream.getvalue()

    def test_reset_removes_installed_handler(self) -> None:
        stream = io.StringIO()
        voxclean_logging.configure_logging(stream=stream)
        installed = logging.getLogger().handlers[-1]

        voxclean_logging.reset_logging()

        assert installed not in logging.getLogger().handlers
