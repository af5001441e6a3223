# bmsync Change Classifier
# Compares the live project tree against the hash cache

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from bmsync.logger import get_logger
from bmsync.sync.layout import SRC_DIR, TRACKED_CATEGORIES, category_for_path
from bmsync.utils.hashing import file_hash
from bmsync.utils.paths import relative_posix, walk_files


@dataclass
class ChangeTotals:
    """Bucket sizes of a change report."""

    changed: int = 0
    new: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.changed + self.new + self.deleted


@dataclass
class ChangeReport:
    """
    Classification of tracked files against the hash cache.

    Each bucket maps a category name to relative paths in discovery order.
    Categories without entries in a bucket are absent from it.
    """

    changed: dict[str, list[str]] = field(default_factory=dict)
    new: dict[str, list[str]] = field(default_factory=dict)
    deleted: dict[str, list[str]] = field(default_factory=dict)
    total: ChangeTotals = field(default_factory=ChangeTotals)

    @property
    def has_changes(self) -> bool:
        """Check if anything differs from the cache."""
        return self.total.total > 0

    def changed_and_new(self) -> list[str]:
        """All changed and new paths, changed first, each in category order."""
        paths: list[str] = []
        for bucket in (self.changed, self.new):
            for category in TRACKED_CATEGORIES:
                paths.extend(bucket.get(category, []))
        return paths

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "changed": self.changed,
            "new": self.new,
            "deleted": self.deleted,
            "total": {
                "changed": self.total.changed,
                "new": self.total.new,
                "deleted": self.total.deleted,
            },
        }


def _add(bucket: dict[str, list[str]], category: str, path: str) -> None:
    bucket.setdefault(category, []).append(path)


def scan_tracked_files(
    project_root: Path,
    logger: Optional[logging.Logger] = None,
) -> Iterator[tuple[str, Path]]:
    """
    Enumerate every tracked file of a project.

    Walks src/objects, src/backend, src/reports and src/pages in that order.
    Missing category folders are skipped silently; unreadable ones are logged.

    Args:
        project_root: Project root directory.
        logger: Logger for enumeration errors.

    Yields:
        (category, absolute path) pairs.
    """
    log = logger or get_logger("changes")
    src = project_root / SRC_DIR

    def on_error(path: Path, error: OSError) -> None:
        log.warning("Cannot read directory %s: %s", path, error)

    for category in TRACKED_CATEGORIES:
        directory = src / category
        if not directory.is_dir():
            continue
        for path in walk_files(directory, on_error=on_error):
            yield category, path


def classify_changes(
    project_root: Path,
    hashes: Mapping[str, str],
    logger: Optional[logging.Logger] = None,
) -> ChangeReport:
    """
    Classify every tracked file as changed, new or deleted.

    A file without a cached digest is new, a file whose digest differs is
    changed, and a cached path that was not enumerated is deleted. Files that
    cannot be read are skipped and never reported as deleted.

    Args:
        project_root: Project root directory.
        hashes: Cached relative path -> digest map.
        logger: Logger for read errors.

    Returns:
        ChangeReport for the project.
    """
    log = logger or get_logger("changes")
    report = ChangeReport()
    seen: set[str] = set()

    for category, path in scan_tracked_files(project_root, logger=log):
        rel_path = relative_posix(project_root, path)
        seen.add(rel_path)

        try:
            digest = file_hash(path)
        except OSError as e:
            log.warning("Cannot read %s: %s", rel_path, e)
            continue

        cached = hashes.get(rel_path)
        if cached is None:
            _add(report.new, category, rel_path)
        elif cached != digest:
            _add(report.changed, category, rel_path)

    for rel_path in hashes:
        if rel_path in seen:
            continue
        category = category_for_path(rel_path)
        if category is None:
            continue
        _add(report.deleted, category, rel_path)

    report.total = ChangeTotals(
        changed=sum(len(paths) for paths in report.changed.values()),
        new=sum(len(paths) for paths in report.new.values()),
        deleted=sum(len(paths) for paths in report.deleted.values()),
    )
    log.debug(
        "Change scan: %d changed, %d new, %d deleted",
        report.total.changed,
        report.total.new,
        report.total.deleted,
    )
    return report
