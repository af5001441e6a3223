# bmsync Utilities Module
# Helper functions for hashing, paths and JSON text

from bmsync.utils.hashing import content_hash, file_hash
from bmsync.utils.jsonio import JSON_INDENT, JSON_TRAILING_NEWLINE, dump_json, load_json
from bmsync.utils.paths import (
    atomic_write,
    ensure_dir,
    relative_posix,
    sanitize_name,
    walk_files,
)

__all__ = [
    # Hashing
    "content_hash",
    "file_hash",
    # JSON
    "JSON_INDENT",
    "JSON_TRAILING_NEWLINE",
    "dump_json",
    "load_json",
    # Paths
    "atomic_write",
    "ensure_dir",
    "relative_posix",
    "sanitize_name",
    "walk_files",
]
