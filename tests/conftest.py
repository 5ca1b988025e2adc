"""Shared test fixtures for upterm-action tests."""

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, cast

import pytest
import structlog
from rich.console import Console
from structlog.testing import CapturingLogger

from upterm_action.exceptions import CommandError
from upterm_action.runtime import OSFamily, PlatformProfile, RuntimePaths
from upterm_action.utils import CommandResult, format_command_failure

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


@dataclass(frozen=True, slots=True)
class LogCapture:
    """A logger whose events are recorded instead of printed."""

    logger: "FilteringBoundLogger"  # noqa: UP037
    sink: CapturingLogger

    def messages(self, level: str | None = None) -> list[str]:
        return [
            str(call.kwargs["event"])
            for call in self.sink.calls
            if level is None or call.method_name == level
        ]


@dataclass(slots=True)
class _Rule:
    fragment: str
    result: CommandResult | None
    error: Exception | None
    side_effect: Callable[[], None] | None


@dataclass(slots=True)
class FakeShell:
    """Stands in for ShellRunner: records commands and replays canned results.

    Rules are matched by substring, most recently added first. Commands with
    no matching rule succeed with empty output.
    """

    commands: list[str] = field(default_factory=list)
    _rules: list[_Rule] = field(default_factory=list)

    def on(  # noqa: PLR0913
        self,
        fragment: str,
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        error: Exception | None = None,
        side_effect: Callable[[], None] | None = None,
    ) -> None:
        result = CommandResult(
            command=fragment, exit_code=exit_code, stdout=stdout, stderr=stderr
        )
        self._rules.insert(0, _Rule(fragment, result, error, side_effect))

    def ran(self, fragment: str) -> bool:
        return any(fragment in command for command in self.commands)

    def execute(self, command: str, *, timeout: float | None = None) -> CommandResult:
        del timeout
        self.commands.append(command)
        for rule in self._rules:
            if rule.fragment not in command:
                continue
            if rule.side_effect is not None:
                rule.side_effect()
            if rule.error is not None:
                raise rule.error
            assert rule.result is not None
            return dataclasses.replace(rule.result, command=command)
        return CommandResult(command=command, exit_code=0)

    def run(self, command: str, *, timeout: float | None = None) -> str:
        result = self.execute(command, timeout=timeout)
        if not result.success:
            msg = format_command_failure(command, result.exit_code, result.stderr)
            raise CommandError(
                msg, command=command, exit_code=result.exit_code, stderr=result.stderr
            )
        return result.stdout


@pytest.fixture
def console() -> Console:
    return Console(
        width=120,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def log_capture() -> LogCapture:
    sink = CapturingLogger()
    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            sink,
            processors=[],
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
            context_class=dict,
        ),
    )
    return LogCapture(logger=logger, sink=sink)


@pytest.fixture
def fake_shell() -> FakeShell:
    return FakeShell()


@pytest.fixture
def linux_profile() -> PlatformProfile:
    return PlatformProfile(os_family=OSFamily.LINUX, machine="x64")


@pytest.fixture
def runtime_paths(tmp_path: Path, linux_profile: PlatformProfile) -> RuntimePaths:
    """RuntimePaths rooted in tmp_path, with both continue files under it."""
    home = tmp_path / "home"
    workspace = tmp_path / "workspace"
    home.mkdir()
    workspace.mkdir()
    paths = RuntimePaths.build(
        linux_profile, home=home, workspace=workspace, base_dir=tmp_path
    )
    return dataclasses.replace(
        paths,
        continue_files=(tmp_path / "root" / "continue", workspace / "continue"),
    )
