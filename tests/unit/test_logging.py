"""Unit tests for logging setup."""

import json
import logging

import pytest
import structlog

from agentdesk_core.core.logging import JSONFormatter, PrettyFormatter, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="agentdesk.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="scoped_mutation_noop",
        args=(),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


class TestFormatters:
    """Tests for the log formatters."""

    def test_json_formatter_carries_context(self):
        payload = json.loads(JSONFormatter().format(_record(entity="agents", entity_id="a1")))

        assert payload["message"] == "scoped_mutation_noop"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "agentdesk.test"
        assert payload["context"] == {"entity": "agents", "entity_id": "a1"}

    def test_pretty_formatter_appends_key_values(self):
        line = PrettyFormatter().format(_record(operation="delete"))

        assert "scoped_mutation_noop" in line
        assert "operation=delete" in line


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_single_root_handler(self, restore_logging):
        setup_logging(level="DEBUG", format="json")
        setup_logging(level="WARNING", format="simple")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_unknown_format_falls_back_to_simple(self, restore_logging):
        setup_logging(level="INFO", format="xml")

        from agentdesk_core.core.logging import SimpleFormatter

        assert isinstance(logging.getLogger().handlers[0].formatter, SimpleFormatter)

    def test_structlog_renders_through_stdlib(self, restore_logging, capsys):
        setup_logging(level="INFO", format="json")

        structlog.get_logger("agentdesk.test.render").info("entity_deleted", entity_id="a1")

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]
        event = next(line for line in lines if line["message"] == "entity_deleted")
        assert event["context"]["entity_id"] == "a1"
