# bmsync Customization Items
# One dataclass per customization kind, with its on-disk file layout

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Optional

from pydantic import ValidationError

from bmsync.exceptions import ItemLoadError
from bmsync.models import (
    ActionMetadata,
    BackendScriptMetadata,
    FieldDefinition,
    ObjectDefinition,
    PageMetadata,
    Payload,
    ReportMetadata,
)
from bmsync.sync.layout import (
    ACTIONS_DIR,
    BACKEND_DIR,
    FIELDS_DIR,
    METADATA_SUFFIX,
    OBJECT_DEFINITION_FILE,
    OBJECTS_DIR,
    PAGES_DIR,
    REPORTS_DIR,
    SRC_DIR,
    PathKind,
    classify_path,
)
from bmsync.sync.writer import ConditionalWriter
from bmsync.utils.paths import relative_posix, sanitize_name


class ItemKind(str, Enum):
    """Customization kinds known to the remote platform."""

    OBJECT = "object"
    FIELD = "field"
    ACTION = "action"
    BACKEND_SCRIPT = "backend-script"
    REPORT = "report"
    PAGE = "page"

    @classmethod
    def from_path_kind(cls, path_kind: PathKind) -> Optional["ItemKind"]:
        """Map a PathKind to an ItemKind, None for unrecognized paths."""
        if path_kind == PathKind.UNRECOGNIZED:
            return None
        return cls(path_kind.value)


# Action code file extension by action type. Anything else is plain text.
ACTION_CODE_EXTENSIONS: dict[str, str] = {
    "custom-script": ".js",
    "javascript": ".js",
    "configuration": ".json",
    "http": ".json",
    "link": ".json",
}
DEFAULT_ACTION_EXTENSION = ".txt"

# Order in which an action's code file is looked up on disk.
ACTION_CODE_LOOKUP = (".js", ".json", ".txt")


def action_code_extension(action_type: Optional[str]) -> str:
    """File extension for the code of an action of the given type."""
    return ACTION_CODE_EXTENSIONS.get(action_type or "", DEFAULT_ACTION_EXTENSION)


@dataclass
class ItemFiles:
    """Files making up one item: a metadata file and an optional content file."""

    metadata: Path
    content: Optional[Path] = None

    def all(self) -> list[Path]:
        """Metadata and content paths that apply, content first."""
        return [p for p in (self.content, self.metadata) if p is not None]


class CustomizationItem:
    """Common behaviour of the item dataclasses."""

    kind: ClassVar[ItemKind]

    @property
    def label(self) -> str:
        """Short human readable identifier."""
        name = getattr(self, "name", "")
        object_name = getattr(self, "object_name", None)
        return f"{object_name}/{name}" if object_name else name

    def files(self, project_root: Path) -> ItemFiles:
        raise NotImplementedError

    def metadata_data(self) -> dict[str, Any]:
        raise NotImplementedError

    def content_text(self) -> Optional[str]:
        return None

    def to_payload(self) -> dict[str, Any]:
        """Request body for sending this item to the remote."""
        return self.metadata_data()

    def write(self, writer: ConditionalWriter, project_root: Path) -> tuple[int, int]:
        """
        Write the item's files through the conditional writer.

        Content is written before metadata.

        Returns:
            (written, unchanged) file counts.
        """
        files = self.files(project_root)
        written = unchanged = 0

        content = self.content_text()
        if files.content is not None and content is not None:
            if writer.write_file_if_changed(project_root, files.content, content):
                written += 1
            else:
                unchanged += 1

        if writer.write_json_if_changed(project_root, files.metadata, self.metadata_data()):
            written += 1
        else:
            unchanged += 1

        return written, unchanged


def _objects_dir(project_root: Path, object_name: str) -> Path:
    return project_root / SRC_DIR / OBJECTS_DIR / sanitize_name(object_name)


@dataclass
class ObjectItem(CustomizationItem):
    """Table/object definition."""

    kind: ClassVar[ItemKind] = ItemKind.OBJECT

    name: str
    definition: ObjectDefinition = field(default_factory=ObjectDefinition)

    def files(self, project_root: Path) -> ItemFiles:
        return ItemFiles(metadata=_objects_dir(project_root, self.name) / OBJECT_DEFINITION_FILE)

    def metadata_data(self) -> dict[str, Any]:
        return self.definition.to_json_data()


@dataclass
class FieldItem(CustomizationItem):
    """Custom field of an object."""

    kind: ClassVar[ItemKind] = ItemKind.FIELD

    object_name: str
    name: str
    definition: FieldDefinition = field(default_factory=FieldDefinition)

    def files(self, project_root: Path) -> ItemFiles:
        fields_dir = _objects_dir(project_root, self.object_name) / FIELDS_DIR
        return ItemFiles(metadata=fields_dir / f"{sanitize_name(self.name)}.json")

    def metadata_data(self) -> dict[str, Any]:
        return self.definition.to_json_data()

    def to_payload(self) -> dict[str, Any]:
        return {"table_name": self.object_name, **self.metadata_data()}


@dataclass
class ActionItem(CustomizationItem):
    """
    Object action.

    Code is optional. Its file extension follows the action type unless the
    item was loaded from a file with a different extension.
    """

    kind: ClassVar[ItemKind] = ItemKind.ACTION

    object_name: str
    name: str
    metadata: ActionMetadata = field(default_factory=ActionMetadata)
    code: Optional[str] = None
    code_extension: Optional[str] = None

    @property
    def extension(self) -> str:
        return self.code_extension or action_code_extension(self.metadata.type)

    def files(self, project_root: Path) -> ItemFiles:
        actions_dir = _objects_dir(project_root, self.object_name) / ACTIONS_DIR
        stem = sanitize_name(self.name)
        return ItemFiles(
            metadata=actions_dir / f"{stem}{METADATA_SUFFIX}",
            content=actions_dir / f"{stem}{self.extension}" if self.code is not None else None,
        )

    def metadata_data(self) -> dict[str, Any]:
        return self.metadata.to_json_data()

    def content_text(self) -> Optional[str]:
        return self.code

    def to_payload(self) -> dict[str, Any]:
        payload = {"table_name": self.object_name, **self.metadata_data()}
        if self.code is not None:
            payload["custom_script"] = self.code
        return payload


@dataclass
class BackendScriptItem(CustomizationItem):
    """Backend script: JavaScript code plus metadata."""

    kind: ClassVar[ItemKind] = ItemKind.BACKEND_SCRIPT

    name: str
    code: str = ""
    metadata: BackendScriptMetadata = field(default_factory=BackendScriptMetadata)

    def files(self, project_root: Path) -> ItemFiles:
        stem = sanitize_name(self.name)
        directory = project_root / SRC_DIR / BACKEND_DIR
        return ItemFiles(metadata=directory / f"{stem}{METADATA_SUFFIX}", content=directory / f"{stem}.js")

    def metadata_data(self) -> dict[str, Any]:
        return self.metadata.to_json_data()

    def content_text(self) -> Optional[str]:
        return self.code

    def to_payload(self) -> dict[str, Any]:
        return {**self.metadata_data(), "script": self.code}


@dataclass
class ReportItem(CustomizationItem):
    """Custom report: SQL query plus metadata."""

    kind: ClassVar[ItemKind] = ItemKind.REPORT

    name: str
    sql: str = ""
    metadata: ReportMetadata = field(default_factory=ReportMetadata)

    def files(self, project_root: Path) -> ItemFiles:
        stem = sanitize_name(self.name)
        directory = project_root / SRC_DIR / REPORTS_DIR
        return ItemFiles(metadata=directory / f"{stem}{METADATA_SUFFIX}", content=directory / f"{stem}.sql")

    def metadata_data(self) -> dict[str, Any]:
        return self.metadata.to_json_data()

    def content_text(self) -> Optional[str]:
        return self.sql

    def to_payload(self) -> dict[str, Any]:
        return {**self.metadata_data(), "query": self.sql}


@dataclass
class PageItem(CustomizationItem):
    """Custom page: HTML plus metadata."""

    kind: ClassVar[ItemKind] = ItemKind.PAGE

    name: str
    html: str = ""
    metadata: PageMetadata = field(default_factory=PageMetadata)

    def files(self, project_root: Path) -> ItemFiles:
        stem = sanitize_name(self.name)
        directory = project_root / SRC_DIR / PAGES_DIR
        return ItemFiles(metadata=directory / f"{stem}{METADATA_SUFFIX}", content=directory / f"{stem}.html")

    def metadata_data(self) -> dict[str, Any]:
        return self.metadata.to_json_data()

    def content_text(self) -> Optional[str]:
        return self.html

    def to_payload(self) -> dict[str, Any]:
        return {**self.metadata_data(), "content": self.html}


# Content extension of the kinds whose content file is mandatory.
REQUIRED_CONTENT_EXTENSIONS: dict[ItemKind, str] = {
    ItemKind.BACKEND_SCRIPT: ".js",
    ItemKind.REPORT: ".sql",
    ItemKind.PAGE: ".html",
}

SPLIT_KINDS = (ItemKind.ACTION, ItemKind.BACKEND_SCRIPT, ItemKind.REPORT, ItemKind.PAGE)


def item_key(kind: ItemKind, path: Path) -> Path:
    """
    Path identifying the item a file belongs to.

    Split kinds pair "<stem>.meta.json" with "<stem>.<ext>", so both map to
    "<dir>/<stem>". Other kinds are one file per item.
    """
    if kind not in SPLIT_KINDS:
        return path
    name = path.name
    if name.endswith(METADATA_SUFFIX):
        stem = name[: -len(METADATA_SUFFIX)]
    else:
        stem = path.stem
    return path.parent / stem


@dataclass
class LoadedItem:
    """An item read back from disk, with the exact bytes of each of its files."""

    item: CustomizationItem
    raw_files: dict[Path, bytes]


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise ItemLoadError(f"Cannot read {path.name}: {e.strerror or e}") from e


def _parse_json(path: Path, data: bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ItemLoadError(f"Invalid JSON in {path.name}: {e}") from e
    if not isinstance(parsed, dict):
        raise ItemLoadError(f"Expected a JSON object in {path.name}")
    return parsed


def _decode(path: Path, data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ItemLoadError(f"Cannot decode {path.name} as UTF-8: {e}") from e


def _validate(model: type[Payload], path: Path, data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ItemLoadError(f"Invalid metadata in {path.name}: {e.error_count()} validation error(s)") from e


def _object_name(object_dir: Path) -> str:
    """
    Internal name of the object owning a directory.

    Taken from the sibling definition.json when it names one, since the
    directory name is sanitized and may differ from the table's internal name.
    """
    definition_path = object_dir / OBJECT_DEFINITION_FILE
    if not definition_path.is_file():
        return object_dir.name
    data = _parse_json(definition_path, _read_bytes(definition_path))
    return _name_from(data, "internal_name") or object_dir.name


def _name_from(data: Any, *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key) if isinstance(data, dict) else getattr(data, key, None)
        if isinstance(value, str) and value:
            return value
    return None


def load_item(kind: ItemKind, key: Path) -> LoadedItem:
    """
    Assemble an item from the files on disk.

    Names are read from the metadata the remote wrote, falling back to the
    file or directory name when the metadata has none.

    Args:
        kind: Item kind.
        key: Item key as returned by item_key().

    Returns:
        LoadedItem holding the item and the raw bytes of every file used.

    Raises:
        ItemLoadError: If a mandatory file is missing or unreadable, or
            metadata does not parse.
    """
    raw: dict[Path, bytes] = {}

    if kind == ItemKind.OBJECT:
        raw[key] = _read_bytes(key)
        definition = _validate(ObjectDefinition, key, _parse_json(key, raw[key]))
        name = _name_from(definition, "internal_name") or key.parent.name
        return LoadedItem(ObjectItem(name=name, definition=definition), raw)

    if kind == ItemKind.FIELD:
        raw[key] = _read_bytes(key)
        definition = _validate(FieldDefinition, key, _parse_json(key, raw[key]))
        # <obj>/fields/<field>.json
        item = FieldItem(
            object_name=_object_name(key.parent.parent),
            name=_name_from(definition, "internal_name", "name") or key.stem,
            definition=definition,
        )
        return LoadedItem(item, raw)

    name = key.name
    metadata_path = key.parent / f"{name}{METADATA_SUFFIX}"
    if not metadata_path.is_file():
        raise ItemLoadError(f"Missing metadata file {metadata_path.name}")
    raw[metadata_path] = _read_bytes(metadata_path)
    metadata_data = _parse_json(metadata_path, raw[metadata_path])

    if kind == ItemKind.ACTION:
        metadata = _validate(ActionMetadata, metadata_path, metadata_data)
        code: Optional[str] = None
        extension: Optional[str] = None
        for candidate in ACTION_CODE_LOOKUP:
            code_path = key.parent / f"{name}{candidate}"
            if code_path.is_file():
                raw[code_path] = _read_bytes(code_path)
                code = _decode(code_path, raw[code_path])
                extension = candidate
                break
        # <obj>/actions/<name>
        item = ActionItem(
            object_name=_object_name(key.parent.parent),
            name=_name_from(metadata, "action_name", "title") or name,
            metadata=metadata,
            code=code,
            code_extension=extension,
        )
        return LoadedItem(item, raw)

    content_path = key.parent / f"{name}{REQUIRED_CONTENT_EXTENSIONS[kind]}"
    if not content_path.is_file():
        raise ItemLoadError(f"Missing content file {content_path.name}")
    raw[content_path] = _read_bytes(content_path)
    content = _decode(content_path, raw[content_path])

    if kind == ItemKind.BACKEND_SCRIPT:
        metadata = _validate(BackendScriptMetadata, metadata_path, metadata_data)
        item = BackendScriptItem(name=_name_from(metadata, "name") or name, code=content, metadata=metadata)
        return LoadedItem(item, raw)
    if kind == ItemKind.REPORT:
        metadata = _validate(ReportMetadata, metadata_path, metadata_data)
        item = ReportItem(name=_name_from(metadata, "internal_name") or name, sql=content, metadata=metadata)
        return LoadedItem(item, raw)

    metadata = _validate(PageMetadata, metadata_path, metadata_data)
    item = PageItem(name=_name_from(metadata, "url") or name, html=content, metadata=metadata)
    return LoadedItem(item, raw)


def kind_for_file(project_root: Path, path: Path) -> Optional[ItemKind]:
    """ItemKind of a tracked file, or None when its path matches no rule."""
    return ItemKind.from_path_kind(classify_path(relative_posix(project_root, path)))
