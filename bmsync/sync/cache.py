# bmsync Hash Cache
# Persistent map of project-relative paths to content digests

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from bmsync.logger import get_logger
from bmsync.sync.changes import ChangeReport, classify_changes
from bmsync.sync.layout import CACHE_DIR, CACHE_FILE
from bmsync.utils.hashing import content_hash
from bmsync.utils.jsonio import dump_json
from bmsync.utils.paths import atomic_write, ensure_dir, relative_posix

CACHE_VERSION = "1.0.0"


@dataclass
class CacheStats:
    """Statistics about a loaded cache."""

    total_files: int = 0


class HashCache:
    """
    Hash cache of one project.

    Lives at <project>/.bizmanage/file-hashes.json. Entries change only in
    memory until save() is called, so callers batch a whole run and persist
    once at the end.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("cache")
        self.version = CACHE_VERSION
        self.hashes: dict[str, str] = {}
        self._project_root: Optional[Path] = None
        self._cache_path: Optional[Path] = None

    @property
    def project_root(self) -> Optional[Path]:
        """Root of the project the cache was initialized for."""
        return self._project_root

    @property
    def cache_path(self) -> Optional[Path]:
        """Location of the cache file, once initialized."""
        return self._cache_path

    def initialize(self, project_root: Path) -> None:
        """
        Load the cache for a project.

        Creates the .bizmanage directory. A missing cache file gives an empty
        cache; an unreadable or malformed one is logged and also gives an
        empty cache. Calling again with the same root does nothing.

        Args:
            project_root: Project root directory.
        """
        project_root = Path(project_root)
        if self._project_root is not None and self._project_root == project_root:
            return

        cache_dir = ensure_dir(project_root / CACHE_DIR)
        self._project_root = project_root
        self._cache_path = cache_dir / CACHE_FILE
        self.version = CACHE_VERSION
        self.hashes = {}

        if not self._cache_path.exists():
            self.logger.debug("Initialized new hash cache")
            return

        try:
            with open(self._cache_path, encoding="utf-8") as f:
                data = json.load(f)
            self.version, self.hashes = self._parse(data)
            self.logger.debug("Loaded hash cache with %d entries", len(self.hashes))
        except (OSError, ValueError) as e:
            self.logger.warning("Failed to load hash cache, starting empty: %s", e)
            self.version = CACHE_VERSION
            self.hashes = {}

    @staticmethod
    def _parse(data: Any) -> tuple[str, dict[str, str]]:
        if not isinstance(data, dict):
            raise ValueError("cache root is not an object")
        hashes = data.get("hashes", {})
        if not isinstance(hashes, dict):
            raise ValueError("'hashes' is not an object")
        for key, value in hashes.items():
            if not isinstance(value, str):
                raise ValueError(f"digest for {key!r} is not a string")
        version = data.get("version", CACHE_VERSION)
        return str(version), dict(hashes)

    def _ensure(self, project_root: Path) -> None:
        if self._project_root is None or self._project_root != Path(project_root):
            self.initialize(project_root)

    def _relative(self, project_root: Path, path: Path) -> str:
        path = Path(path)
        if not path.is_absolute():
            path = Path(project_root) / path
        return relative_posix(Path(project_root), path)

    @staticmethod
    def digest(content: str | bytes) -> str:
        """SHA-256 hex digest of content (strings are UTF-8 encoded)."""
        return content_hash(content)

    def get_hash(self, rel_path: str) -> Optional[str]:
        """Cached digest for a relative path, or None."""
        return self.hashes.get(rel_path)

    def should_write(self, project_root: Path, path: Path, content: str | bytes) -> bool:
        """
        Check whether content differs from what the cache recorded.

        Args:
            project_root: Project root directory.
            path: Target file (absolute or relative to project_root).
            content: Content that would be written.

        Returns:
            False only when the cached digest equals the digest of content.
        """
        self._ensure(project_root)
        rel_path = self._relative(project_root, path)
        if self.hashes.get(rel_path) == self.digest(content):
            self.logger.debug("Unchanged, skipping write: %s", rel_path)
            return False
        return True

    def update_hash(self, project_root: Path, path: Path, content: str | bytes) -> None:
        """Record the digest of content for path. Not persisted until save()."""
        self._ensure(project_root)
        self.hashes[self._relative(project_root, path)] = self.digest(content)

    def get_changes(self, project_root: Path) -> ChangeReport:
        """Classify the project tree against this cache."""
        self._ensure(project_root)
        return classify_changes(Path(project_root), self.hashes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"version": self.version, "hashes": self.hashes}

    def save(self) -> None:
        """
        Persist the cache.

        Does nothing before initialize(). Write failures are logged, never
        raised.
        """
        if self._cache_path is None:
            return

        try:
            atomic_write(self._cache_path, dump_json(self.to_dict()))
            self.logger.debug("Saved hash cache with %d entries", len(self.hashes))
        except OSError as e:
            self.logger.error("Failed to save hash cache: %s", e)

    def clear(self) -> None:
        """Remove every entry and persist immediately."""
        self.version = CACHE_VERSION
        self.hashes = {}
        self.save()
        self.logger.info("Cleared hash cache")

    def stats(self) -> CacheStats:
        """Get statistics about the cache."""
        return CacheStats(total_files=len(self.hashes))
