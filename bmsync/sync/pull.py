# bmsync Pull Reconciler
# Fetches every category from the remote and writes what changed

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from bmsync.exceptions import PullFetchError, RemoteError
from bmsync.logger import get_logger
from bmsync.sync.cache import HashCache
from bmsync.sync.item import CustomizationItem, ItemKind
from bmsync.sync.writer import ConditionalWriter

if TYPE_CHECKING:
    from bmsync.remote import Remote

# Pull categories in processing order, with the item kind each one holds.
PULL_CATEGORIES: dict[str, ItemKind] = {
    "objects": ItemKind.OBJECT,
    "fields": ItemKind.FIELD,
    "actions": ItemKind.ACTION,
    "backend": ItemKind.BACKEND_SCRIPT,
    "reports": ItemKind.REPORT,
    "pages": ItemKind.PAGE,
}

# Categories listed per object, so they need the object listing first.
PER_OBJECT_CATEGORIES = ("fields", "actions")


@dataclass
class PullItemError:
    """Failure to write one item."""

    message: str
    item: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "item": self.item}


@dataclass
class CategoryPullResult:
    """Outcome of pulling one category."""

    category: str
    success: bool = True
    item_count: int = 0
    written: int = 0
    unchanged: int = 0
    errors: list[PullItemError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "success": self.success,
            "item_count": self.item_count,
            "written": self.written,
            "unchanged": self.unchanged,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class PullResult:
    """Outcome of a whole pull run."""

    success: bool = True
    categories: list[CategoryPullResult] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return sum(c.item_count for c in self.categories)

    @property
    def files_written(self) -> int:
        return sum(c.written for c in self.categories)

    @property
    def files_unchanged(self) -> int:
        return sum(c.unchanged for c in self.categories)

    def get(self, category: str) -> Optional[CategoryPullResult]:
        """Result for a category, if it was processed."""
        for result in self.categories:
            if result.category == category:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "total_items": self.total_items,
            "files_written": self.files_written,
            "categories": [c.to_dict() for c in self.categories],
        }


class PullReconciler:
    """
    Pulls remote customizations into a project.

    Files are written only when their content differs from the cache. The
    cache is saved once per run, also when the run fails part way, so files
    already written keep their digests.
    """

    def __init__(
        self,
        project_root: Path,
        remote: Remote,
        cache: Optional[HashCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize pull reconciler.

        Args:
            project_root: Project root directory.
            remote: Remote to fetch from.
            cache: Hash cache to use. A new one is created if omitted.
            logger: Logger, defaults to bmsync.pull.
        """
        self.project_root = Path(project_root)
        self.remote = remote
        self.logger = logger or get_logger("pull")
        self.cache = cache or HashCache()
        self.writer = ConditionalWriter(self.cache)

    def _fetch(
        self,
        category: str,
        kind: ItemKind,
        result: PullResult,
        object_name: Optional[str] = None,
    ) -> list[CustomizationItem]:
        try:
            return self.remote.fetch(kind, object_name)
        except RemoteError as e:
            result.success = False
            category_result = result.get(category)
            if category_result is not None:
                category_result.success = False
            self.logger.error("Failed to fetch %s: %s", category, e)
            raise PullFetchError(category, str(e), partial_result=result) from e

    def _write_items(self, category_result: CategoryPullResult, items: Iterable[CustomizationItem]) -> None:
        for item in items:
            try:
                written, unchanged = item.write(self.writer, self.project_root)
            except Exception as e:
                category_result.success = False
                category_result.errors.append(PullItemError(message=f"{item.label}: {e}", item=item.label))
                self.logger.error("Failed to write %s %s: %s", item.kind.value, item.label, e)
                continue
            category_result.item_count += 1
            category_result.written += written
            category_result.unchanged += unchanged

    def run(self, only: Optional[Iterable[str]] = None) -> PullResult:
        """
        Pull all categories, or the subset named in only.

        Args:
            only: Category names to pull (see PULL_CATEGORIES). None pulls all.

        Returns:
            PullResult with one entry per processed category.

        Raises:
            PullFetchError: If listing a category fails. Carries the partial result.
            ValueError: If only names an unknown category.
        """
        selected = list(PULL_CATEGORIES) if only is None else list(only)
        unknown = [c for c in selected if c not in PULL_CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown pull categories: {', '.join(unknown)}")

        result = PullResult()
        self.cache.initialize(self.project_root)

        try:
            objects: list[CustomizationItem] = []
            if any(c in selected for c in ("objects", *PER_OBJECT_CATEGORIES)):
                objects = self._fetch("objects", ItemKind.OBJECT, result)

            for category, kind in PULL_CATEGORIES.items():
                if category not in selected:
                    continue

                category_result = CategoryPullResult(category=category)
                result.categories.append(category_result)

                if category == "objects":
                    items = objects
                elif category in PER_OBJECT_CATEGORIES:
                    items = []
                    for obj in objects:
                        items.extend(self._fetch(category, kind, result, object_name=obj.name))
                else:
                    items = self._fetch(category, kind, result)

                self._write_items(category_result, items)
                if not category_result.success:
                    result.success = False

                self.logger.info(
                    "%s: %d items, %d files written, %d unchanged",
                    category,
                    category_result.item_count,
                    category_result.written,
                    category_result.unchanged,
                )
        finally:
            self.cache.save()

        return result
