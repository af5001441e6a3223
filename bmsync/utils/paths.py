# bmsync Path Utilities
# Project-relative paths, name sanitizing, atomic writes and tree walking

import os
import re
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def ensure_dir(path: Path) -> Path:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path.

    Returns:
        The path that was ensured.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    Uses a temporary file and atomic rename. Bytes are written verbatim,
    strings are encoded without newline translation.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    if isinstance(content, str):
        content = content.encode(encoding)

    # Create temp file in same directory for atomic rename
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def relative_posix(root: Path, path: Path) -> str:
    """
    Get path relative to root with '/' separators on every platform.

    Args:
        root: Project root.
        path: Absolute or root-joined path.

    Returns:
        Relative POSIX-style path string.
    """
    return os.path.relpath(path, root).replace(os.sep, "/")


def sanitize_name(name: str) -> str:
    """
    Turn a remote display/internal name into a stable file name stem.

    Lower-cases, collapses every run of non-alphanumeric characters into one
    hyphen and strips leading/trailing hyphens.

    Args:
        name: Raw name.

    Returns:
        Sanitized name, or "unnamed" when nothing alphanumeric remains.
    """
    sanitized = _NON_ALNUM.sub("-", name.lower()).strip("-")
    return sanitized or "unnamed"


def walk_files(
    directory: Path,
    *,
    on_error: Callable[[Path, OSError], None] | None = None,
) -> Iterator[Path]:
    """
    Yield regular files below directory in directory-enumeration order.

    Entries whose name starts with "." are skipped, files and directories
    alike. Results are not sorted.

    Args:
        directory: Directory to walk.
        on_error: Called with (path, error) for directories that cannot be listed.

    Yields:
        File paths.
    """
    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        if on_error is not None:
            on_error(directory, e)
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file()
        except OSError as e:
            if on_error is not None:
                on_error(Path(entry.path), e)
            continue

        if is_dir:
            yield from walk_files(Path(entry.path), on_error=on_error)
        elif is_file:
            yield Path(entry.path)
