# bmsync Conditional Writer
# Writes files only when their content differs from the cached digest

from pathlib import Path
from typing import Any

from bmsync.sync.cache import HashCache
from bmsync.utils.jsonio import JSON_INDENT, dump_json
from bmsync.utils.paths import ensure_dir


class ConditionalWriter:
    """
    Hash-aware file writer bound to a HashCache.

    The bytes hashed are exactly the bytes written, so a file written once
    is skipped on every later call with the same content.
    """

    def __init__(self, cache: HashCache):
        self.cache = cache

    def write_file_if_changed(
        self,
        project_root: Path,
        path: Path,
        content: str | bytes,
        encoding: str = "utf-8",
    ) -> bool:
        """
        Write content to path unless the cache says it is already there.

        Args:
            project_root: Project root directory.
            path: Target file path.
            content: Text or bytes to write.
            encoding: Encoding used for text content.

        Returns:
            True if the file was written, False if skipped.
        """
        data = content.encode(encoding) if isinstance(content, str) else content

        if not self.cache.should_write(project_root, path, data):
            return False

        path = Path(path)
        if not path.is_absolute():
            path = Path(project_root) / path

        ensure_dir(path.parent)
        path.write_bytes(data)
        self.cache.update_hash(project_root, path, data)
        return True

    def write_json_if_changed(
        self,
        project_root: Path,
        path: Path,
        data: Any,
        spaces: int = JSON_INDENT,
    ) -> bool:
        """Serialize data in canonical JSON form and write it if changed."""
        return self.write_file_if_changed(project_root, path, dump_json(data, spaces=spaces))
