"""Tests for the structlog processor chain."""

from __future__ import annotations

import structlog

from creditgate.core.logging import build_processors, get_logger, setup_logging


class TestBuildProcessors:
    def test_console_chain_leaves_exceptions_to_renderer(self) -> None:
        processors = build_processors(json_output=False)
        assert structlog.processors.format_exc_info not in processors
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_json_chain_formats_exceptions(self) -> None:
        processors = build_processors(json_output=True)
        assert structlog.processors.format_exc_info in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert processors.index(structlog.processors.format_exc_info) < len(processors) - 1


class TestSetupLogging:
    def test_exception_logging_does_not_raise(self) -> None:
        setup_logging("DEBUG", json_output=False)
        log = get_logger("creditgate.tests")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            log.exception("test_failure_logged")
