"""Tests for the structlog bridge and the SUCCESS level."""

import json
import logging

import pytest
import structlog

from polyci.core.logging import SUCCESS, configure_structlog, log_success


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSuccessLevel:
    def test_level_registered(self):
        assert logging.getLevelName(SUCCESS) == "SUCCESS"
        assert logging.INFO < SUCCESS < logging.WARNING


class TestConfigure:
    def test_json_renderer(self, capsys):
        configure_structlog(fmt="json")
        log_success(logging.getLogger("polyci.test"), "hello %s", "world")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "hello world"
        assert payload["level"] == "success"
        assert payload["logger"] == "polyci.test"

    def test_level_filtering(self, capsys):
        configure_structlog(level="WARNING", fmt="json")
        logger = logging.getLogger("polyci.test")
        logger.info("hidden")
        logger.warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_debug_flag_overrides_level(self, capsys):
        configure_structlog(debug=True, level="ERROR", fmt="json")
        logging.getLogger("polyci.test").debug("details")
        assert "details" in capsys.readouterr().err

    def test_console_renderer(self, capsys):
        configure_structlog()
        logging.getLogger("polyci.test").info("plain message")
        assert "plain message" in capsys.readouterr().err
