# bmsync Project Layout
# On-disk layout of a project and path-shape classification

from enum import Enum

SRC_DIR = "src"
CACHE_DIR = ".bizmanage"
CACHE_FILE = "file-hashes.json"
PROJECT_CONFIG_FILE = "bizmanage.config.json"

OBJECTS_DIR = "objects"
BACKEND_DIR = "backend"
REPORTS_DIR = "reports"
PAGES_DIR = "pages"

# Change report categories, in reporting order. Each is a folder under src/.
TRACKED_CATEGORIES: tuple[str, ...] = (OBJECTS_DIR, BACKEND_DIR, REPORTS_DIR, PAGES_DIR)

OBJECT_DEFINITION_FILE = "definition.json"
ACTIONS_DIR = "actions"
FIELDS_DIR = "fields"
METADATA_SUFFIX = ".meta.json"


class PathKind(str, Enum):
    """Customization kind a tracked file belongs to, judged from its path."""

    OBJECT = "object"
    ACTION = "action"
    FIELD = "field"
    BACKEND_SCRIPT = "backend-script"
    REPORT = "report"
    PAGE = "page"
    UNRECOGNIZED = "unrecognized"


def _segment(name: str) -> str:
    return f"/{name}/"


# Evaluated top to bottom, first match wins. Actions and fields come before
# object definitions, so an action or field saved as "definition.json" keeps
# its kind. All object rules come before the flat folders.
_PATH_RULES: tuple[tuple[PathKind, tuple[str, ...], str | None], ...] = (
    (PathKind.ACTION, (_segment(OBJECTS_DIR), _segment(ACTIONS_DIR)), None),
    (PathKind.FIELD, (_segment(OBJECTS_DIR), _segment(FIELDS_DIR)), None),
    (PathKind.OBJECT, (_segment(OBJECTS_DIR),), f"/{OBJECT_DEFINITION_FILE}"),
    (PathKind.BACKEND_SCRIPT, (_segment(BACKEND_DIR),), None),
    (PathKind.REPORT, (_segment(REPORTS_DIR),), None),
    (PathKind.PAGE, (_segment(PAGES_DIR),), None),
)


def classify_path(relative_path: str) -> PathKind:
    """
    Map a project-relative path to the customization kind it holds.

    Args:
        relative_path: Path relative to the project root ('/' or OS separators).

    Returns:
        The matching PathKind, or PathKind.UNRECOGNIZED.
    """
    normalized = "/" + relative_path.replace("\\", "/").lstrip("/")

    for kind, segments, suffix in _PATH_RULES:
        if not all(segment in normalized for segment in segments):
            continue
        if suffix is not None and not normalized.endswith(suffix):
            continue
        return kind

    return PathKind.UNRECOGNIZED


def category_for_path(relative_path: str) -> str | None:
    """
    Attribute a relative path to a change report category.

    Uses substring matching on "/<category>/", so a path like
    "src/objects/reports/definition.json" lands in "objects" because
    categories are checked in TRACKED_CATEGORIES order.

    Returns:
        Category name, or None when the path is outside every tracked folder.
    """
    normalized = "/" + relative_path.replace("\\", "/").lstrip("/")
    for category in TRACKED_CATEGORIES:
        if _segment(category) in normalized:
            return category
    return None
