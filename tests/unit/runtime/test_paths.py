import stat
from pathlib import Path

import pytest

from upterm_action.runtime import OSFamily, PlatformProfile, RuntimePaths


class TestBuild:
    def test_linux_layout(self, tmp_path: Path) -> None:
        profile = PlatformProfile(OSFamily.LINUX, "x64")

        paths = RuntimePaths.build(
            profile, home=tmp_path / "home", workspace=tmp_path / "ws"
        )

        data = Path("/tmp/upterm-data")
        assert paths.data_dir == data
        assert paths.runtime_dir == data / "runtime"
        assert paths.socket_dir == data / "runtime" / "upterm"
        assert paths.daemon_log == data / "state" / "upterm" / "upterm.log"
        assert paths.command_log == data / "upterm-command.log"
        assert paths.error_log == data / "upterm-error.log"
        assert paths.timeout_flag == data / "timeout-flag"
        assert paths.continue_files == (Path("/continue"), tmp_path / "ws" / "continue")
        assert paths.ssh_dir == tmp_path / "home" / ".ssh"

    def test_windows_root_continue_file(self, tmp_path: Path) -> None:
        profile = PlatformProfile(OSFamily.WINDOWS, "x64")

        paths = RuntimePaths.build(profile, home=tmp_path, base_dir=tmp_path)

        assert paths.continue_files == (Path("C:/msys64/continue"),)
        assert paths.data_dir == tmp_path / "upterm-data"

    def test_build_is_deterministic(self, tmp_path: Path) -> None:
        profile = PlatformProfile(OSFamily.DARWIN, "arm64")

        first = RuntimePaths.build(profile, home=tmp_path, workspace=tmp_path)
        second = RuntimePaths.build(profile, home=tmp_path, workspace=tmp_path)

        assert first == second


class TestEnvironment:
    def test_injects_runtime_locations(self, runtime_paths: RuntimePaths) -> None:
        env = runtime_paths.environment()

        assert env["HOME"] == str(runtime_paths.home_dir)
        assert env["XDG_RUNTIME_DIR"] == str(runtime_paths.runtime_dir)
        assert env["XDG_STATE_HOME"] == str(runtime_paths.state_dir)
        assert env["UPTERM_TIMEOUT_FLAG"] == str(runtime_paths.timeout_flag)

    def test_ignores_ambient_runtime_dir(
        self, runtime_paths: RuntimePaths, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XDG_RUNTIME_DIR", "/run/user/1000")

        assert runtime_paths.environment()["XDG_RUNTIME_DIR"] != "/run/user/1000"


class TestPrepare:
    def test_creates_private_runtime_dir(self, runtime_paths: RuntimePaths) -> None:
        runtime_paths.prepare()

        assert runtime_paths.state_dir.is_dir()
        mode = stat.S_IMODE(runtime_paths.runtime_dir.stat().st_mode)
        assert mode & 0o077 == 0

    def test_clears_stale_timeout_flag(self, runtime_paths: RuntimePaths) -> None:
        runtime_paths.data_dir.mkdir(parents=True)
        runtime_paths.timeout_flag.touch()

        runtime_paths.prepare()

        assert runtime_paths.timeout_flagged() is False

    def test_clears_stale_admin_socket(self, runtime_paths: RuntimePaths) -> None:
        runtime_paths.socket_dir.mkdir(parents=True)
        (runtime_paths.socket_dir / "old.sock").touch()
        (runtime_paths.socket_dir / "upterm.log").touch()

        runtime_paths.prepare()

        assert runtime_paths.find_socket() is None
        assert (runtime_paths.socket_dir / "upterm.log").exists()

    def test_is_repeatable(self, runtime_paths: RuntimePaths) -> None:
        runtime_paths.prepare()
        runtime_paths.prepare()

        assert runtime_paths.runtime_dir.is_dir()


class TestObservations:
    def test_no_socket_before_upterm_starts(self, runtime_paths: RuntimePaths) -> None:
        assert runtime_paths.find_socket() is None
        assert runtime_paths.socket_exists() is False

    def test_finds_first_socket(self, runtime_paths: RuntimePaths) -> None:
        runtime_paths.socket_dir.mkdir(parents=True)
        (runtime_paths.socket_dir / "b.sock").touch()
        (runtime_paths.socket_dir / "a.sock").touch()
        (runtime_paths.socket_dir / "upterm.log").touch()

        assert runtime_paths.find_socket() == runtime_paths.socket_dir / "a.sock"

    def test_finds_either_continue_file(self, runtime_paths: RuntimePaths) -> None:
        assert runtime_paths.find_continue_file() is None

        workspace_file = runtime_paths.continue_files[1]
        workspace_file.touch()

        assert runtime_paths.find_continue_file() == workspace_file

    def test_root_continue_file_checked_first(
        self, runtime_paths: RuntimePaths
    ) -> None:
        for path in runtime_paths.continue_files:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()

        assert runtime_paths.find_continue_file() == runtime_paths.continue_files[0]
