# pyright: reportArgumentType=false
from tests.conftest import FakeShell
from upterm_action.exceptions import CommandError
from upterm_action.runtime import RuntimePaths
from upterm_action.session import ISSUES_URL, collect_diagnostics


class TestCollectDiagnostics:
    def test_reports_every_section(
        self, runtime_paths: RuntimePaths, fake_shell: FakeShell
    ) -> None:
        runtime_paths.prepare()
        runtime_paths.socket_dir.mkdir()
        runtime_paths.daemon_log.parent.mkdir(parents=True)
        _ = runtime_paths.daemon_log.write_text("failed to connect to relay\n")
        _ = runtime_paths.command_log.write_text("=== upterm host output ===\n")
        _ = runtime_paths.error_log.write_text("permission denied\n")
        fake_shell.on("tmux list-sessions", stdout="upterm-wrapper: 1 windows\n")

        report = collect_diagnostics(runtime_paths, fake_shell)

        assert report.startswith("=== UPTERM READINESS FAILURE ===")
        assert f"--- Socket directory {runtime_paths.socket_dir} ---\n(empty)" in report
        assert "failed to connect to relay" in report
        assert "=== upterm host output ===" in report
        assert "permission denied" in report
        assert "upterm-wrapper: 1 windows" in report
        assert report.endswith(ISSUES_URL + " with the output above.")

    def test_missing_artifacts_are_reported_not_raised(
        self, runtime_paths: RuntimePaths, fake_shell: FakeShell
    ) -> None:
        fake_shell.on("tmux list-sessions", exit_code=1, stderr="no server running")

        report = collect_diagnostics(runtime_paths, fake_shell)

        assert f"{runtime_paths.socket_dir} does not exist" in report
        assert f"{runtime_paths.daemon_log} not found" in report
        assert "no server running" in report

    def test_shell_failure_is_reported_not_raised(
        self, runtime_paths: RuntimePaths, fake_shell: FakeShell
    ) -> None:
        fake_shell.on(
            "tmux list-sessions",
            error=CommandError("Process error: bash missing", command="tmux"),
        )

        report = collect_diagnostics(runtime_paths, fake_shell)

        assert "Could not list tmux sessions: Process error: bash missing" in report
