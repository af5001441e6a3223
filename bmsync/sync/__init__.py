# bmsync Sync Module
# Hash cache, change detection and the pull/push reconcilers

from bmsync.sync.cache import CACHE_VERSION, CacheStats, HashCache
from bmsync.sync.changes import ChangeReport, ChangeTotals, classify_changes, scan_tracked_files
from bmsync.sync.item import (
    ActionItem,
    BackendScriptItem,
    CustomizationItem,
    FieldItem,
    ItemFiles,
    ItemKind,
    ObjectItem,
    PageItem,
    ReportItem,
    load_item,
)
from bmsync.sync.layout import PathKind, classify_path
from bmsync.sync.pull import CategoryPullResult, PullItemError, PullReconciler, PullResult
from bmsync.sync.push import PushError, PushReconciler, PushResult
from bmsync.sync.writer import ConditionalWriter

__all__ = [
    # Cache
    "CACHE_VERSION",
    "CacheStats",
    "HashCache",
    # Changes
    "ChangeReport",
    "ChangeTotals",
    "classify_changes",
    "scan_tracked_files",
    # Writer
    "ConditionalWriter",
    # Items
    "ItemKind",
    "ItemFiles",
    "CustomizationItem",
    "ObjectItem",
    "FieldItem",
    "ActionItem",
    "BackendScriptItem",
    "ReportItem",
    "PageItem",
    "load_item",
    "PathKind",
    "classify_path",
    # Pull
    "PullReconciler",
    "PullResult",
    "CategoryPullResult",
    "PullItemError",
    # Push
    "PushReconciler",
    "PushResult",
    "PushError",
]
