# bmsync Project
# Project directory layout and bizmanage.config.json

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bmsync import __version__
from bmsync.exceptions import ProjectError
from bmsync.logger import get_logger
from bmsync.sync.layout import PROJECT_CONFIG_FILE, SRC_DIR, TRACKED_CATEGORIES
from bmsync.utils.jsonio import dump_json, load_json
from bmsync.utils.paths import atomic_write, ensure_dir

logger = get_logger("project")


class InstanceRef(BaseModel):
    """Instance a project was pulled from."""

    url: str
    alias: str = "default"


class ProjectInfo(BaseModel):
    """Descriptive project data and sync timestamps."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    last_pull: Optional[str] = Field(default=None, alias="lastPull")
    last_push: Optional[str] = Field(default=None, alias="lastPush")


class ProjectConfig(BaseModel):
    """Contents of bizmanage.config.json."""

    version: str = __version__
    instance: InstanceRef
    project: ProjectInfo

    def to_json_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def config_path(project_root: Path) -> Path:
    """Location of the project configuration file."""
    return Path(project_root) / PROJECT_CONFIG_FILE


def is_valid_project(project_root: Path) -> bool:
    """A project has both a configuration file and a src/ directory."""
    project_root = Path(project_root)
    return config_path(project_root).is_file() and (project_root / SRC_DIR).is_dir()


def init_project(
    project_root: Path,
    *,
    name: str,
    instance_url: str,
    alias: str = "default",
    description: Optional[str] = None,
) -> ProjectConfig:
    """
    Create the project layout and configuration file.

    Creates src/ with one folder per tracked category. An existing
    configuration file is overwritten.

    Args:
        project_root: Project root directory (created if missing).
        name: Project name.
        instance_url: Instance the project syncs with.
        alias: Instance alias from the user configuration.
        description: Optional description.

    Returns:
        The written ProjectConfig.
    """
    project_root = Path(project_root)
    for category in TRACKED_CATEGORIES:
        ensure_dir(project_root / SRC_DIR / category)

    config = ProjectConfig(
        instance=InstanceRef(url=instance_url, alias=alias),
        project=ProjectInfo(name=name, description=description, created_at=_now()),
    )
    write_project_config(project_root, config)
    logger.info("Project initialized at %s", project_root)
    return config


def read_project_config(project_root: Path) -> Optional[ProjectConfig]:
    """
    Read the project configuration.

    Returns:
        ProjectConfig, or None if the file does not exist.

    Raises:
        ProjectError: If the file cannot be read or is invalid.
    """
    path = config_path(project_root)
    if not path.exists():
        return None

    try:
        return ProjectConfig.model_validate(load_json(path))
    except (OSError, ValueError) as e:
        # ValidationError is a ValueError
        detail = f"{e.error_count()} validation error(s)" if isinstance(e, ValidationError) else str(e)
        raise ProjectError(f"Invalid project configuration: {detail}") from e


def write_project_config(project_root: Path, config: ProjectConfig) -> Path:
    """Write bizmanage.config.json in the canonical JSON form."""
    path = config_path(project_root)
    atomic_write(path, dump_json(config.to_json_data()))
    return path


def touch_project_config(project_root: Path, *, pulled: bool = False, pushed: bool = False) -> ProjectConfig:
    """
    Stamp lastPull and/or lastPush with the current time.

    Raises:
        ProjectError: If there is no valid project configuration.
    """
    config = read_project_config(project_root)
    if config is None:
        raise ProjectError("Project configuration not found")

    now = _now()
    if pulled:
        config.project.last_pull = now
    if pushed:
        config.project.last_push = now
    write_project_config(project_root, config)
    return config
