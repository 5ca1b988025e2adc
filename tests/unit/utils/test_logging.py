"""Unit tests for logging utilities."""

import io
import json
from pathlib import Path

import pytest

from upterm_action.utils import (
    create_action_logger,
    debug_requested,
    escape_command_data,
    render_workflow_command,
)


@pytest.fixture(autouse=True)
def _no_debug_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RUNNER_DEBUG", raising=False)
    monkeypatch.delenv("UPTERM_ACTION_DEBUG", raising=False)


class TestEscapeCommandData:
    def test_escapes_percent_and_newlines(self) -> None:
        assert escape_command_data("100%\r\ndone") == "100%25%0D%0Adone"

    def test_plain_text_unchanged(self) -> None:
        assert escape_command_data("hello") == "hello"


class TestRenderWorkflowCommand:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("debug", "::debug::msg"),
            ("warning", "::warning::msg"),
            ("error", "::error::msg"),
            ("critical", "::error::msg"),
            ("info", "msg"),
        ],
    )
    def test_maps_levels(self, level: str, expected: str) -> None:
        event = {"event": "msg", "level": level, "timestamp": "2026-01-01T00:00:00Z"}

        assert render_workflow_command(None, level, event) == expected

    def test_escapes_multiline_errors(self) -> None:
        event = {"event": "line1\nline2", "level": "error"}

        assert render_workflow_command(None, "error", event) == "::error::line1%0Aline2"

    def test_info_keeps_newlines(self) -> None:
        event = {"event": "line1\nline2", "level": "info"}

        assert render_workflow_command(None, "info", event) == "line1\nline2"

    def test_appends_extra_keys(self) -> None:
        event = {"event": "downloaded", "level": "info", "bytes": 42}

        assert render_workflow_command(None, "info", event) == "downloaded bytes=42"


class TestDebugRequested:
    def test_runner_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUNNER_DEBUG", "1")
        assert debug_requested() is True

    def test_local_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPTERM_ACTION_DEBUG", "yes")
        assert debug_requested() is True

    def test_unset(self) -> None:
        assert debug_requested() is False


class TestCreateActionLogger:
    def test_actions_format(self) -> None:
        stream = io.StringIO()
        logger = create_action_logger(stream=stream)

        logger.info("Waiting for upterm to be ready...")
        logger.error("boom")

        assert stream.getvalue().splitlines() == [
            "Waiting for upterm to be ready...",
            "::error::boom",
        ]

    def test_filters_below_level(self) -> None:
        stream = io.StringIO()
        logger = create_action_logger(level="info", stream=stream)

        logger.debug("hidden")

        assert stream.getvalue() == ""

    def test_runner_debug_enables_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RUNNER_DEBUG", "1")
        stream = io.StringIO()
        logger = create_action_logger(level="error", stream=stream)

        logger.debug("visible")

        assert stream.getvalue() == "::debug::visible\n"

    def test_json_format(self) -> None:
        stream = io.StringIO()
        logger = create_action_logger(log_format="json", stream=stream)

        logger.info("session_ready", server="ssh://host:22")

        record = json.loads(stream.getvalue())
        assert record["event"] == "session_ready"
        assert record["server"] == "ssh://host:22"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_text_format(self) -> None:
        stream = io.StringIO()
        logger = create_action_logger(log_format="text", stream=stream)

        logger.info("test_event", key="value")

        assert "test_event" in stream.getvalue()
        assert "key=value" in stream.getvalue()

    def test_log_file_receives_json_lines(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "action.jsonl"
        stream = io.StringIO()
        logger = create_action_logger(log_file=str(log_file), stream=stream)

        logger.info("first")
        logger.error("second")

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert [r["event"] for r in records] == ["first", "second"]
        assert stream.getvalue().splitlines() == ["first", "::error::second"]
