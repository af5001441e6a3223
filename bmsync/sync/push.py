# bmsync Push Reconciler
# Sends changed (or all) local customizations to the remote

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from bmsync.exceptions import ItemLoadError
from bmsync.logger import get_logger
from bmsync.sync.cache import HashCache
from bmsync.sync.changes import scan_tracked_files
from bmsync.sync.item import ItemKind, LoadedItem, item_key, kind_for_file, load_item
from bmsync.sync.layout import SRC_DIR
from bmsync.utils.paths import relative_posix

if TYPE_CHECKING:
    from bmsync.remote import Remote


@dataclass
class PushError:
    """Failure to load or send one item."""

    file: str
    type: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "type": self.type, "message": self.message}


@dataclass
class PushResult:
    """Outcome of a push run."""

    success: bool = True
    pushed_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    errors: list[PushError] = field(default_factory=list)
    attempted: int = 0

    @property
    def nothing_to_do(self) -> bool:
        """True when no item needed pushing."""
        return self.success and self.attempted == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "pushed_files": self.pushed_files,
            "skipped_files": self.skipped_files,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class _Candidate:
    kind: ItemKind
    key: Path
    paths: list[Path] = field(default_factory=list)


class PushReconciler:
    """
    Pushes local customizations to the remote.

    Digests advance only for items the remote accepted, so anything that
    failed is still reported as changed on the next run.
    """

    def __init__(
        self,
        project_root: Path,
        remote: Remote,
        cache: Optional[HashCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.project_root = Path(project_root)
        self.remote = remote
        self.logger = logger or get_logger("push")
        self.cache = cache or HashCache()

    def _discover(self, all_files: bool) -> tuple[list[Path], list[Path]]:
        """Return (paths to push, recognized tracked paths left alone)."""
        if all_files:
            paths = [path for _, path in scan_tracked_files(self.project_root, logger=self.logger)]
            return paths, []

        report = self.cache.get_changes(self.project_root)
        pending = [self.project_root / rel for rel in report.changed_and_new()]
        pending_set = set(pending)
        untouched = [
            path
            for _, path in scan_tracked_files(self.project_root, logger=self.logger)
            if path not in pending_set
        ]
        return pending, untouched

    def _group(self, paths: list[Path]) -> list[_Candidate]:
        candidates: dict[tuple[ItemKind, Path], _Candidate] = {}
        for path in paths:
            kind = kind_for_file(self.project_root, path)
            if kind is None:
                self.logger.debug("Ignoring unrecognized file %s", relative_posix(self.project_root, path))
                continue
            key = item_key(kind, path)
            candidate = candidates.setdefault((kind, key), _Candidate(kind=kind, key=key))
            candidate.paths.append(path)
        return list(candidates.values())

    def _push_one(self, candidate: _Candidate, result: PushResult) -> Optional[LoadedItem]:
        first_file = relative_posix(self.project_root, candidate.paths[0])
        try:
            loaded = load_item(candidate.kind, candidate.key)
        except ItemLoadError as e:
            result.success = False
            result.errors.append(PushError(file=first_file, type=candidate.kind.value, message=str(e)))
            self.logger.error("Cannot load %s: %s", first_file, e)
            return None

        try:
            self.remote.send(loaded.item)
        except Exception as e:
            result.success = False
            result.errors.append(PushError(file=first_file, type=candidate.kind.value, message=str(e)))
            self.logger.error("Failed to push %s: %s", first_file, e)
            return None

        for path, data in loaded.raw_files.items():
            self.cache.update_hash(self.project_root, path, data)
            result.pushed_files.append(relative_posix(self.project_root, path))
        self.logger.info("Pushed %s %s", candidate.kind.value, loaded.item.label)
        return loaded

    def run(self, all_files: bool = False) -> PushResult:
        """
        Push changed and new files, or every tracked file with all_files.

        Args:
            all_files: Push everything regardless of the cache.

        Returns:
            PushResult. A project without src/ gives a failed result with a
            single "project" error.
        """
        result = PushResult()

        if not (self.project_root / SRC_DIR).is_dir():
            result.success = False
            result.errors.append(
                PushError(
                    file=str(self.project_root),
                    type="project",
                    message="Not a valid project - src directory not found",
                )
            )
            return result

        self.cache.initialize(self.project_root)
        pending, untouched = self._discover(all_files)
        candidates = self._group(pending)

        if not candidates:
            self.logger.info("No changed files to push")
        else:
            self.logger.info("Pushing %d items", len(candidates))

        touched: set[Path] = set()
        for candidate in candidates:
            result.attempted += 1
            loaded = self._push_one(candidate, result)
            if loaded is not None:
                touched.update(loaded.raw_files)

        for path in untouched:
            if path in touched or kind_for_file(self.project_root, path) is None:
                continue
            result.skipped_files.append(relative_posix(self.project_root, path))

        if candidates:
            self.cache.save()

        return result
