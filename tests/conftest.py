# bmsync Test Fixtures
# Pytest fixtures for bmsync tests

import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Optional

import pytest
import yaml

from bmsync.exceptions import RemoteError
from bmsync.models import (
    ActionMetadata,
    BackendScriptMetadata,
    FieldDefinition,
    ObjectDefinition,
    PageMetadata,
    ReportMetadata,
)
from bmsync.project import init_project
from bmsync.sync.item import (
    ActionItem,
    BackendScriptItem,
    CustomizationItem,
    FieldItem,
    ItemKind,
    ObjectItem,
    PageItem,
    ReportItem,
)


class FakeRemote:
    """
    In-memory Remote.

    items holds what fetch() returns per kind. Kinds in fail_fetch raise on
    fetch; items whose label is in fail_send raise on send. Usable as a
    context manager in place of HttpRemote.
    """

    def __init__(self, items: Optional[dict[ItemKind, list[CustomizationItem]]] = None):
        self.items: dict[ItemKind, list[CustomizationItem]] = items or {}
        self.fail_fetch: set[ItemKind] = set()
        self.fail_send: set[str] = set()
        self.ping_error: Optional[RemoteError] = None
        self.fetch_calls: list[tuple[ItemKind, Optional[str]]] = []
        self.sent: list[CustomizationItem] = []

    def __enter__(self) -> "FakeRemote":
        return self

    def __exit__(self, *args: object) -> None:
        pass

    def ping(self) -> bool:
        if self.ping_error is not None:
            raise self.ping_error
        return True

    def fetch(self, kind: ItemKind, object_name: Optional[str] = None) -> list[CustomizationItem]:
        self.fetch_calls.append((kind, object_name))
        if kind in self.fail_fetch:
            raise RemoteError(f"{kind.value} listing unavailable", status=500)
        items = self.items.get(kind, [])
        if object_name is not None:
            items = [i for i in items if getattr(i, "object_name", None) == object_name]
        return list(items)

    def send(self, item: CustomizationItem) -> None:
        if item.label in self.fail_send:
            raise RemoteError(f"rejected {item.label}", status=400)
        self.sent.append(item)


def sample_items() -> dict[ItemKind, list[CustomizationItem]]:
    """One or two items of every kind."""
    return {
        ItemKind.OBJECT: [
            ObjectItem(
                name="customers",
                definition=ObjectDefinition(internal_name="customers", display_name="Customers"),
            ),
        ],
        ItemKind.FIELD: [
            FieldItem(
                object_name="customers",
                name="vat_number",
                definition=FieldDefinition(internal_name="vat_number", display_name="VAT", type="text"),
            ),
        ],
        ItemKind.ACTION: [
            ActionItem(
                object_name="customers",
                name="validate_vat",
                metadata=ActionMetadata(title="Validate VAT", action_name="validate_vat", type="custom-script"),
                code="return record.vat_number != null;\n",
            ),
            ActionItem(
                object_name="customers",
                name="open_site",
                metadata=ActionMetadata(title="Open site", action_name="open_site", type="link"),
            ),
        ],
        ItemKind.BACKEND_SCRIPT: [
            BackendScriptItem(
                name="Nightly Sync",
                code="console.log('sync');\n",
                metadata=BackendScriptMetadata(name="Nightly Sync", crontab="0 2 * * *"),
            ),
        ],
        ItemKind.REPORT: [
            ReportItem(
                name="q3_revenue",
                sql="SELECT 1;\n",
                metadata=ReportMetadata(internal_name="q3_revenue", display_name="Q3 Revenue"),
            ),
        ],
        ItemKind.PAGE: [
            PageItem(
                name="welcome",
                html="<h1>Welcome</h1>\n",
                metadata=PageMetadata(name="Welcome", url="welcome"),
            ),
        ],
    }


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("BMSYNC_CONFIG", raising=False)
    monkeypatch.delenv("BMSYNC_API_KEY", raising=False)
    return home


@pytest.fixture
def project(temp_dir: Path) -> Path:
    """Create an initialized, empty project."""
    root = temp_dir / "project"
    init_project(root, name="project", instance_url="https://acme.example.com", alias="default")
    return root


@pytest.fixture
def remote() -> FakeRemote:
    """Fake remote serving one or two items of every kind."""
    return FakeRemote(sample_items())


@pytest.fixture
def sample_config() -> dict:
    """Sample user configuration for testing."""
    return {
        "default_alias": "default",
        "instances": {
            "default": {
                "url": "https://acme.example.com",
                "api_key": "secret-key",
                "timeout": 10,
                "request_delay_ms": 0,
            },
            "staging": {
                "url": "https://staging.example.com/",
                "api_key": "staging-key",
            },
        },
        "push_endpoints": {
            "backend-script": "/restapi/scripts/{name}",
        },
        "output": {
            "verbose": False,
            "colored": False,
        },
    }


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Write sample config to the default location."""
    config_dir = temp_home / ".config" / "bmsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"
    config_path.write_text(yaml.dump(sample_config), encoding="utf-8")
    return config_path
