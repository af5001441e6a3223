"""bmsync - sync platform customizations with a local project tree.

Pulls table definitions, fields, actions, backend scripts, reports and pages
from the platform REST API into src/ and pushes local edits back, using a
content-hash cache to skip unchanged files.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "HashCache",
    "ChangeReport",
    "PullReconciler",
    "PullResult",
    "PushReconciler",
    "PushResult",
    "HttpRemote",
    "BmsyncError",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("HashCache", "ChangeReport", "PullReconciler", "PullResult", "PushReconciler", "PushResult"):
        from bmsync import sync

        return getattr(sync, name)
    if name == "HttpRemote":
        from bmsync.remote import HttpRemote

        return HttpRemote
    if name == "BmsyncError":
        from bmsync.exceptions import BmsyncError

        return BmsyncError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
