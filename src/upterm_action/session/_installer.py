"""Dependency installation for upterm and tmux.

The installer is idempotent: it looks for existing binaries before doing
anything, so a second run on a prepared host makes no network or package
manager calls.
"""

import os
import shutil
import stat
import tarfile
import tempfile
import zipfile
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, final, runtime_checkable

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from upterm_action.exceptions import CommandError, DependencyInstallError
from upterm_action.runtime import (
    Architecture,
    OSFamily,
    PlatformProfile,
    map_architecture,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from upterm_action.utils import ShellRunner

RELEASES_URL = "https://github.com/owenthereal/upterm/releases"
DOWNLOAD_TIMEOUT_SECONDS = 60.0

type WhichFunc = Callable[[str], str | None]


@dataclass(frozen=True, slots=True)
class InstallPlan:
    """Platform-specific install details.

    Attributes:
        archive_name: Release asset name for upterm.
        binary_name: Executable name inside the archive.
        multiplexer_install: Shell command installing tmux.
    """

    archive_name: str
    binary_name: str
    multiplexer_install: str


def install_plan(os_family: OSFamily, architecture: Architecture) -> InstallPlan:
    """Return the install plan for a platform."""
    match os_family:
        case OSFamily.LINUX:
            return InstallPlan(
                archive_name=f"upterm_linux_{architecture}.tar.gz",
                binary_name="upterm",
                multiplexer_install=(
                    "sudo apt-get update && sudo apt-get -y install tmux"
                ),
            )
        case OSFamily.DARWIN:
            return InstallPlan(
                archive_name=f"upterm_darwin_{architecture}.tar.gz",
                binary_name="upterm",
                multiplexer_install="brew install tmux",
            )
        case OSFamily.WINDOWS:
            return InstallPlan(
                archive_name=f"upterm_windows_{architecture}.zip",
                binary_name="upterm.exe",
                multiplexer_install="pacman -S --noconfirm --needed tmux",
            )


def release_url(archive_name: str, version: str = "latest") -> str:
    """Return the download URL of a release asset.

    Args:
        archive_name: Release asset file name.
        version: Release tag, or "latest".
    """
    if version == "latest":
        return f"{RELEASES_URL}/latest/download/{archive_name}"
    return f"{RELEASES_URL}/download/{version}/{archive_name}"


@runtime_checkable
class ArchiveFetcher(Protocol):
    """Protocol for downloading a release archive to a local file."""

    def fetch(self, url: str, destination: Path) -> Path:
        """Download url into destination and return the written path."""
        ...


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    reraise=True,
)
def _download(client: httpx.Client, url: str, destination: Path) -> None:
    with client.stream("GET", url) as response:
        _ = response.raise_for_status()
        with destination.open("wb") as f:
            for chunk in response.iter_bytes():
                _ = f.write(chunk)


@final
class HttpArchiveFetcher:
    """Downloads archives with httpx, retrying transient connection errors."""

    __slots__ = ("_client",)

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client

    def fetch(self, url: str, destination: Path) -> Path:
        """Download url into destination.

        Raises:
            httpx.HTTPError: If the download fails after retries.
        """
        if self._client is not None:
            _download(self._client, url, destination)
            return destination

        with httpx.Client(
            follow_redirects=True, timeout=DOWNLOAD_TIMEOUT_SECONDS
        ) as client:
            _download(client, url, destination)
        return destination


def extract_binary(archive: Path, binary_name: str, destination: Path) -> Path:
    """Extract a single executable from a .tar.gz or .zip archive.

    Args:
        archive: Archive file.
        binary_name: Base name of the executable to extract.
        destination: Directory to extract into.

    Returns:
        Path of the extracted executable.

    Raises:
        FileNotFoundError: If the archive does not contain the binary.
    """
    if archive.name.endswith(".zip"):
        with zipfile.ZipFile(archive) as zf:
            member = next(
                (n for n in zf.namelist() if Path(n).name == binary_name), None
            )
            if member is None:
                msg = f"{binary_name} not found in {archive.name}"
                raise FileNotFoundError(msg)
            extracted = Path(zf.extract(member, destination))
    else:
        with tarfile.open(archive, "r:gz") as tf:
            tar_member = next(
                (m for m in tf.getmembers() if Path(m.name).name == binary_name),
                None,
            )
            if tar_member is None:
                msg = f"{binary_name} not found in {archive.name}"
                raise FileNotFoundError(msg)
            tf.extract(tar_member, destination, filter="data")
            extracted = destination / tar_member.name

    target = destination / binary_name
    if extracted != target:
        _ = extracted.replace(target)
    target.chmod(target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return target


@final
class DependencyInstaller:
    """Installs the upterm binary and tmux for the current platform."""

    __slots__ = (
        "_environ",
        "_fetcher",
        "_logger",
        "_profile",
        "_shell",
        "_version",
        "_which",
    )

    def __init__(  # noqa: PLR0913
        self,
        profile: PlatformProfile,
        shell: "ShellRunner",  # noqa: UP037
        logger: "FilteringBoundLogger",  # noqa: UP037
        *,
        version: str = "latest",
        fetcher: ArchiveFetcher | None = None,
        which: WhichFunc = shutil.which,
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        """Initialize the installer.

        Args:
            profile: Host platform profile.
            shell: Shell runner for package manager commands.
            logger: Action logger.
            version: upterm release tag, or "latest".
            fetcher: Archive downloader; httpx-based by default.
            which: Executable lookup used for the idempotence checks.
            environ: Environment whose PATH receives the install directory.
        """
        self._profile = profile
        self._shell = shell
        self._logger = logger
        self._version = version
        self._fetcher: ArchiveFetcher = fetcher or HttpArchiveFetcher()
        self._which = which
        self._environ: MutableMapping[str, str] = (
            os.environ if environ is None else environ
        )

    def install(self) -> Path | None:
        """Install upterm and tmux if they are missing.

        Returns:
            The directory upterm was extracted into, or None if upterm was
            already installed.

        Raises:
            UnsupportedArchitectureError: Before any download, if the CPU
                architecture has no upterm release.
            DependencyInstallError: If any install step fails.
        """
        self._logger.debug("Installing dependencies")
        architecture = map_architecture(self._profile.machine)
        plan = install_plan(self._profile.os_family, architecture)

        try:
            install_dir = self._install_upterm(plan)
            self._ensure_multiplexer(plan)
        except (
            CommandError,
            httpx.HTTPError,
            OSError,
            tarfile.TarError,
            zipfile.BadZipFile,
        ) as e:
            family = self._profile.os_family
            msg = f"Failed to install dependencies on {family.display_name}: {e}"
            raise DependencyInstallError(msg, os_family=family, cause=e) from e

        self._logger.debug("Installed dependencies successfully")
        return install_dir

    def _install_upterm(self, plan: InstallPlan) -> Path | None:
        existing = self._which("upterm")
        if existing is not None:
            self._logger.debug(f"upterm already installed at {existing}")
            return None

        url = release_url(plan.archive_name, self._version)
        install_dir = Path(tempfile.mkdtemp(prefix="upterm-"))
        archive = install_dir / plan.archive_name
        self._logger.debug(f"Downloading {url}")

        _ = self._fetcher.fetch(url, archive)
        binary = extract_binary(archive, plan.binary_name, install_dir)
        archive.unlink(missing_ok=True)

        self._prepend_path(binary.parent)
        self._logger.debug(f"Installed upterm to {binary}")
        return binary.parent

    def _ensure_multiplexer(self, plan: InstallPlan) -> None:
        if self._which("tmux") is not None:
            self._logger.debug("tmux already installed")
            return
        _ = self._shell.run(plan.multiplexer_install)

    def _prepend_path(self, directory: Path) -> None:
        current = self._environ.get("PATH", "")
        self._environ["PATH"] = (
            f"{directory}{os.pathsep}{current}" if current else str(directory)
        )
