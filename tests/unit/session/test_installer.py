# pyright: reportArgumentType=false
"""Tests for the upterm/tmux dependency installer."""

import io
import os
import tarfile
import zipfile
from pathlib import Path

import httpx
import pytest
from pytest_mock import MockerFixture

from tests.conftest import FakeShell, LogCapture
from upterm_action.exceptions import (
    DependencyInstallError,
    UnsupportedArchitectureError,
)
from upterm_action.runtime import Architecture, OSFamily, PlatformProfile
from upterm_action.session import (
    DependencyInstaller,
    HttpArchiveFetcher,
    extract_binary,
    install_plan,
    release_url,
)

UPTERM_BINARY = b"#!/bin/sh\necho upterm\n"


def _tar_gz(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _zip(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buffer.getvalue()


class RecordingFetcher:
    """ArchiveFetcher writing a canned archive and recording URLs."""

    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.urls: list[str] = []

    def fetch(self, url: str, destination: Path) -> Path:
        self.urls.append(url)
        _ = destination.write_bytes(self.payload)
        return destination


class FakeWhich:
    """shutil.which stand-in backed by a mutable set of installed tools."""

    def __init__(self, *installed: str) -> None:
        self.installed = set(installed)

    def __call__(self, name: str) -> str | None:
        return f"/usr/local/bin/{name}" if name in self.installed else None


class TestInstallPlan:
    def test_linux(self) -> None:
        plan = install_plan(OSFamily.LINUX, Architecture.AMD64)

        assert plan.archive_name == "upterm_linux_amd64.tar.gz"
        assert plan.binary_name == "upterm"
        assert "apt-get -y install tmux" in plan.multiplexer_install

    def test_darwin(self) -> None:
        plan = install_plan(OSFamily.DARWIN, Architecture.ARM64)

        assert plan.archive_name == "upterm_darwin_arm64.tar.gz"
        assert plan.multiplexer_install == "brew install tmux"

    def test_windows(self) -> None:
        plan = install_plan(OSFamily.WINDOWS, Architecture.AMD64)

        assert plan.archive_name == "upterm_windows_amd64.zip"
        assert plan.binary_name == "upterm.exe"
        assert plan.multiplexer_install.startswith("pacman ")

    def test_every_family_has_a_plan(self) -> None:
        for family in OSFamily:
            for architecture in Architecture:
                assert install_plan(family, architecture).archive_name


class TestReleaseUrl:
    def test_latest(self) -> None:
        assert release_url("upterm_linux_amd64.tar.gz") == (
            "https://github.com/owenthereal/upterm/releases/latest/download/"
            "upterm_linux_amd64.tar.gz"
        )

    def test_pinned_version(self) -> None:
        assert release_url("upterm_linux_amd64.tar.gz", "v0.14.3") == (
            "https://github.com/owenthereal/upterm/releases/download/v0.14.3/"
            "upterm_linux_amd64.tar.gz"
        )


class TestExtractBinary:
    def test_tar_gz(self, tmp_path: Path) -> None:
        archive = tmp_path / "upterm_linux_amd64.tar.gz"
        _ = archive.write_bytes(
            _tar_gz({"LICENSE": b"MIT", "upterm": UPTERM_BINARY})
        )

        binary = extract_binary(archive, "upterm", tmp_path / "out")

        assert binary == tmp_path / "out" / "upterm"
        assert binary.read_bytes() == UPTERM_BINARY
        assert os.access(binary, os.X_OK)
        assert not (tmp_path / "out" / "LICENSE").exists()

    def test_nested_member_moved_to_destination(self, tmp_path: Path) -> None:
        archive = tmp_path / "upterm.tar.gz"
        _ = archive.write_bytes(_tar_gz({"dist/upterm": UPTERM_BINARY}))

        binary = extract_binary(archive, "upterm", tmp_path / "out")

        assert binary == tmp_path / "out" / "upterm"

    def test_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "upterm_windows_amd64.zip"
        _ = archive.write_bytes(_zip({"upterm.exe": UPTERM_BINARY}))

        binary = extract_binary(archive, "upterm.exe", tmp_path / "out")

        assert binary.read_bytes() == UPTERM_BINARY

    def test_missing_binary(self, tmp_path: Path) -> None:
        archive = tmp_path / "upterm.tar.gz"
        _ = archive.write_bytes(_tar_gz({"README.md": b"hi"}))

        with pytest.raises(FileNotFoundError, match="upterm not found"):
            _ = extract_binary(archive, "upterm", tmp_path / "out")


class TestHttpArchiveFetcher:
    def test_streams_response_to_file(self, tmp_path: Path) -> None:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, content=b"archive-bytes")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        fetcher = HttpArchiveFetcher(client)

        path = fetcher.fetch("https://example.test/upterm.tar.gz", tmp_path / "a")

        assert path.read_bytes() == b"archive-bytes"
        assert requested == ["https://example.test/upterm.tar.gz"]

    def test_http_error_raised(self, tmp_path: Path) -> None:
        client = httpx.Client(
            transport=httpx.MockTransport(lambda _request: httpx.Response(404))
        )

        with pytest.raises(httpx.HTTPStatusError):
            _ = HttpArchiveFetcher(client).fetch(
                "https://example.test/x", tmp_path / "a"
            )

    def test_retries_connect_errors(self, tmp_path: Path) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) < 3:
                msg = "connection reset"
                raise httpx.ConnectError(msg, request=request)
            return httpx.Response(200, content=b"ok")

        client = httpx.Client(transport=httpx.MockTransport(handler))

        fetcher = HttpArchiveFetcher(client)
        path = fetcher.fetch("https://example.test/x", tmp_path / "a")

        assert path.read_bytes() == b"ok"
        assert len(attempts) == 3


class TestDependencyInstaller:
    @pytest.fixture
    def environ(self) -> dict[str, str]:
        return {"PATH": "/usr/bin"}

    def _installer(  # noqa: PLR0913
        self,
        shell: FakeShell,
        log: LogCapture,
        *,
        fetcher: RecordingFetcher,
        which: FakeWhich,
        environ: dict[str, str],
        profile: PlatformProfile | None = None,
    ) -> DependencyInstaller:
        return DependencyInstaller(
            profile or PlatformProfile(OSFamily.LINUX, "x64"),
            shell,
            log.logger,
            fetcher=fetcher,
            which=which,
            environ=environ,
        )

    def test_installs_missing_tools(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fetcher = RecordingFetcher(_tar_gz({"upterm": UPTERM_BINARY}))
        installer = self._installer(
            fake_shell, log_capture, fetcher=fetcher, which=FakeWhich(), environ=environ
        )

        install_dir = installer.install()

        assert install_dir is not None
        assert (install_dir / "upterm").is_file()
        assert not (install_dir / "upterm_linux_amd64.tar.gz").exists()
        assert environ["PATH"] == f"{install_dir}{os.pathsep}/usr/bin"
        assert fetcher.urls == [
            "https://github.com/owenthereal/upterm/releases/latest/download/"
            "upterm_linux_amd64.tar.gz"
        ]
        assert fake_shell.commands == [
            "sudo apt-get update && sudo apt-get -y install tmux"
        ]

    def test_second_run_makes_no_calls(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fetcher = RecordingFetcher(_tar_gz({"upterm": UPTERM_BINARY}))
        which = FakeWhich()
        installer = self._installer(
            fake_shell, log_capture, fetcher=fetcher, which=which, environ=environ
        )
        _ = installer.install()
        which.installed.update({"upterm", "tmux"})
        calls_after_first_run = (len(fetcher.urls), len(fake_shell.commands))

        assert installer.install() is None
        assert (len(fetcher.urls), len(fake_shell.commands)) == calls_after_first_run

    def test_already_installed_makes_no_calls(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fetcher = RecordingFetcher(b"")
        installer = self._installer(
            fake_shell,
            log_capture,
            fetcher=fetcher,
            which=FakeWhich("upterm", "tmux"),
            environ=environ,
        )

        assert installer.install() is None
        assert fetcher.urls == []
        assert fake_shell.commands == []
        assert environ == {"PATH": "/usr/bin"}

    def test_uses_pinned_version_and_platform(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fetcher = RecordingFetcher(_tar_gz({"upterm": UPTERM_BINARY}))
        installer = DependencyInstaller(
            PlatformProfile(OSFamily.DARWIN, "arm64"),
            fake_shell,
            log_capture.logger,
            version="v0.14.3",
            fetcher=fetcher,
            which=FakeWhich("tmux"),
            environ=environ,
        )

        _ = installer.install()

        assert fetcher.urls == [
            "https://github.com/owenthereal/upterm/releases/download/v0.14.3/"
            "upterm_darwin_arm64.tar.gz"
        ]
        assert fake_shell.commands == []

    def test_unsupported_architecture_before_any_download(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fetcher = RecordingFetcher(b"")
        installer = self._installer(
            fake_shell,
            log_capture,
            fetcher=fetcher,
            which=FakeWhich(),
            environ=environ,
            profile=PlatformProfile(OSFamily.LINUX, "ppc64le"),
        )

        with pytest.raises(UnsupportedArchitectureError):
            _ = installer.install()

        assert fetcher.urls == []
        assert fake_shell.commands == []

    def test_package_manager_failure_is_wrapped(
        self, fake_shell: FakeShell, log_capture: LogCapture, environ: dict[str, str]
    ) -> None:
        fake_shell.on("apt-get", exit_code=100, stderr="E: Unable to lock")
        installer = self._installer(
            fake_shell,
            log_capture,
            fetcher=RecordingFetcher(b""),
            which=FakeWhich("upterm"),
            environ=environ,
        )

        with pytest.raises(DependencyInstallError) as exc_info:
            _ = installer.install()

        assert exc_info.value.os_family is OSFamily.LINUX
        message = str(exc_info.value)
        assert message.startswith("Failed to install dependencies on Linux:")
        assert "Unable to lock" in message

    def test_download_failure_is_wrapped(
        self,
        fake_shell: FakeShell,
        log_capture: LogCapture,
        environ: dict[str, str],
        mocker: MockerFixture,
    ) -> None:
        fetcher = mocker.Mock()
        fetcher.fetch.side_effect = httpx.ConnectError("unreachable")
        installer = DependencyInstaller(
            PlatformProfile(OSFamily.WINDOWS, "x64"),
            fake_shell,
            log_capture.logger,
            fetcher=fetcher,
            which=FakeWhich(),
            environ=environ,
        )

        with pytest.raises(DependencyInstallError) as exc_info:
            _ = installer.install()

        assert exc_info.value.os_family is OSFamily.WINDOWS
        assert "on Windows" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
