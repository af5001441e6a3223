# bmsync Exceptions
# Error types raised across the sync engine

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bmsync.sync.pull import PullResult


class BmsyncError(Exception):
    """Base class for all bmsync errors."""


class ProjectError(BmsyncError):
    """Project directory or project configuration is missing or invalid."""


class RemoteError(BmsyncError):
    """A request to the remote platform failed."""

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class ItemLoadError(BmsyncError):
    """A customization item could not be assembled from its files."""


class PullFetchError(BmsyncError):
    """
    Listing a category from the remote failed during pull.

    Fatal for the pull run. Categories processed before the failure keep
    their results in partial_result.
    """

    def __init__(self, category: str, message: str, partial_result: PullResult | None = None):
        super().__init__(f"Failed to fetch {category}: {message}")
        self.category = category
        self.partial_result = partial_result
