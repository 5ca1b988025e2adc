"""Small filesystem helpers used by the provisioner and diagnostics."""

from collections import deque
from pathlib import Path

DEFAULT_TAIL_LINES: int = 50


def append_text(path: Path, text: str) -> None:
    """Append text to a file, creating it and its parent directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        _ = f.write(text)


def tail_file(path: Path, lines: int = DEFAULT_TAIL_LINES) -> str:
    """Return the last lines of a text file.

    Args:
        path: File to read.
        lines: Number of trailing lines to keep.

    Returns:
        The trailing lines joined with newlines.

    Raises:
        OSError: If the file cannot be read.
    """
    with path.open(encoding="utf-8", errors="replace") as f:
        kept = deque(f, maxlen=lines)
    return "".join(kept).rstrip("\n")


def describe_directory(path: Path) -> str:
    """Return an `ls -la` style listing of a directory.

    Raises:
        OSError: If the directory cannot be listed.
    """
    entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    if not entries:
        return "(empty)"
    rows: list[str] = []
    for entry in entries:
        kind = "socket" if entry.is_socket() else "dir" if entry.is_dir() else "file"
        size = entry.stat().st_size if entry.is_file() else 0
        rows.append(f"{kind:<6} {size:>10} {entry.name}")
    return "\n".join(rows)
