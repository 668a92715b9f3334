"""Unit tests for mediaquery.utils.logging."""

from __future__ import annotations

import logging

import pytest
import structlog

from mediaquery.utils.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_root_logger_gets_single_handler(self) -> None:
        configure_logging(log_level="DEBUG")
        configure_logging(log_level="DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG

    def test_client_loggers_held_at_warning(self) -> None:
        configure_logging(log_level="DEBUG")

        for name in ("httpx", "httpcore", "chromadb"):
            assert logging.getLogger(name).level == logging.WARNING

    def test_json_output_renders_json(self, capsys) -> None:
        configure_logging(log_level="INFO", json_output=True)

        structlog.get_logger().info("media_batch_indexed", indexed=3)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        assert '"event": "media_batch_indexed"' in line
        assert '"indexed": 3' in line

    def test_get_logger_returns_usable_logger(self) -> None:
        logger = get_logger("mediaquery.tests")
        assert hasattr(logger, "info")
