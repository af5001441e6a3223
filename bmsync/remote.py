# bmsync Remote
# Narrow fetch/send interface to the platform and its httpx implementation

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Protocol, TypeVar

import httpx
from pydantic import ValidationError

from bmsync.exceptions import RemoteError
from bmsync.logger import get_logger
from bmsync.models import (
    ActionMetadata,
    BackendScriptMetadata,
    FieldDefinition,
    ObjectDefinition,
    PageMetadata,
    Payload,
    ReportMetadata,
)
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

DEFAULT_TIMEOUT = 30.0

TABLES_ENDPOINT = "/restapi/customization/tables"
FIELDS_ENDPOINT = "/restapi/customization/fields/{object_name}"
ACTIONS_ENDPOINT = "/restapi/customization/actions/{object_name}"
BACKEND_SCRIPTS_ENDPOINT = "/restapi/be-scripts/list"
REPORTS_ENDPOINT = "/restapi/c-reports/list-with-sql"
PAGES_ENDPOINT = "/restapi/admin/custom-pages"
PING_ENDPOINT = "/restapi/ping"
OBJECT_PUSH_ENDPOINT = "/restapi/customization/view-by-internal-name"

# Server-managed keys dropped from table definitions.
TABLE_META_KEYS = ("id", "created_by", "updated_by", "created_at", "updated_at")


class Remote(Protocol):
    """What the reconcilers need from the platform."""

    def fetch(self, kind: ItemKind, object_name: Optional[str] = None) -> list[CustomizationItem]:
        """List all items of a kind. Fields and actions are listed per object."""
        ...

    def send(self, item: CustomizationItem) -> None:
        """Transmit one item. Raises RemoteError on failure."""
        ...


def _without(data: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in keys}


PayloadT = TypeVar("PayloadT", bound=Payload)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


class HttpRemote:
    """
    Remote backed by the platform REST API.

    Every request carries the x-api-key header. With request_delay_ms set,
    consecutive requests are spaced at least that far apart.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        request_delay_ms: int = 0,
        push_endpoints: Optional[dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url.rstrip("/")
        self.request_delay = max(request_delay_ms, 0) / 1000.0
        self.push_endpoints = dict(push_endpoints or {})
        self.logger = logger or get_logger("remote")
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self.client = httpx.Client(
            base_url=self.url,
            headers={"x-api-key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> HttpRemote:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _pace(self) -> None:
        if self.request_delay <= 0:
            return
        now = time.monotonic()
        if self._last_request is not None:
            wait = self.request_delay - (now - self._last_request)
            if wait > 0:
                self.logger.debug("Waiting %.0fms before next request", wait * 1000)
                self._sleep(wait)
        self._last_request = time.monotonic()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        self._pace()
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise RemoteError(f"{method} {path} failed: {_error_message(response)}", status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(f"{method} {path} returned invalid JSON", status=response.status_code) from e

    def _get_list(self, path: str, **kwargs: Any) -> list[dict[str, Any]]:
        data = self._request("GET", path, **kwargs)
        if not isinstance(data, list):
            raise RemoteError(f"GET {path} did not return a list")
        return [entry for entry in data if isinstance(entry, dict)]

    def ping(self) -> bool:
        """
        Test connection and authentication.

        Returns:
            True if the ping endpoint answered successfully.

        Raises:
            RemoteError: With status 401/403 for rejected API keys, or
                on transport failure.
        """
        self._request("GET", PING_ENDPOINT)
        return True

    # Fetching

    def _parse(self, model: type[PayloadT], data: dict[str, Any], what: str) -> Optional[PayloadT]:
        """Validate one remote entry. Entries that do not validate are logged and skipped."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self.logger.warning("Skipping %s: %d validation error(s)", what, e.error_count())
            self.logger.debug("Rejected %s: %s", what, e)
            return None

    def list_tables(self) -> list[dict[str, Any]]:
        """List tables with their custom fields."""
        tables = self._get_list(TABLES_ENDPOINT, params={"custom_fields": "true"})
        self.logger.debug("Fetched %d tables", len(tables))
        return tables

    def fetch_table_definition(self, internal_name: str) -> dict[str, Any]:
        """Full definition of one table, without server-managed keys."""
        data = self._request("GET", TABLES_ENDPOINT, params={"internal_name": internal_name})
        table = data[0] if isinstance(data, list) and data else data
        if not isinstance(table, dict):
            raise RemoteError(f"No table definition found for {internal_name}")
        return _without(table, TABLE_META_KEYS)

    def fetch(self, kind: ItemKind, object_name: Optional[str] = None) -> list[CustomizationItem]:
        """
        List all items of a kind.

        Args:
            kind: Item kind to list.
            object_name: Owning object, required for fields and actions.

        Returns:
            Items in the order the platform returned them. Entries that fail
            validation are logged and left out.

        Raises:
            RemoteError: If a request fails.
        """
        if kind in (ItemKind.FIELD, ItemKind.ACTION) and not object_name:
            raise ValueError(f"{kind.value} listing needs an object name")

        if kind == ItemKind.OBJECT:
            return self._fetch_objects()
        if kind == ItemKind.FIELD:
            return self._fetch_fields(object_name)
        if kind == ItemKind.ACTION:
            return self._fetch_actions(object_name)
        if kind == ItemKind.BACKEND_SCRIPT:
            return self._fetch_backend_scripts()
        if kind == ItemKind.REPORT:
            return self._fetch_reports()
        return self._fetch_pages()

    def _fetch_objects(self) -> list[CustomizationItem]:
        items: list[CustomizationItem] = []
        for table in self.list_tables():
            name = table.get("internal_name")
            if not name:
                self.logger.warning("Skipping table without internal_name: %s", table.get("display_name"))
                continue
            definition = self._parse(ObjectDefinition, self.fetch_table_definition(name), f"table {name}")
            if definition is not None:
                items.append(ObjectItem(name=name, definition=definition))
        return items

    def _fetch_fields(self, object_name: str) -> list[CustomizationItem]:
        items: list[CustomizationItem] = []
        for entry in self._get_list(FIELDS_ENDPOINT.format(object_name=object_name)):
            definition = self._parse(FieldDefinition, _without(entry, ("id",)), f"field of {object_name}")
            if definition is None:
                continue
            name = definition.internal_name or entry.get("name") or "unknown"
            items.append(FieldItem(object_name=object_name, name=str(name), definition=definition))
        self.logger.debug("Fetched %d fields for %s", len(items), object_name)
        return items

    def _fetch_actions(self, object_name: str) -> list[CustomizationItem]:
        data = self._request("GET", ACTIONS_ENDPOINT.format(object_name=object_name))
        menus = data.get("menus", []) if isinstance(data, dict) else []

        items: list[CustomizationItem] = []
        for entry in menus:
            if not isinstance(entry, dict):
                continue
            data = _without(entry, ("id", "custom_script"))
            metadata = self._parse(ActionMetadata, data, f"action of {object_name}")
            if metadata is None:
                continue
            code = None
            if entry.get("type") == "custom-script" and entry.get("custom_script"):
                code = entry["custom_script"]
            items.append(
                ActionItem(
                    object_name=object_name,
                    name=metadata.action_name or metadata.title or "unnamed",
                    metadata=metadata,
                    code=code,
                )
            )
        self.logger.debug("Fetched %d actions for %s", len(items), object_name)
        return items

    def _fetch_backend_scripts(self) -> list[CustomizationItem]:
        items: list[CustomizationItem] = []
        for entry in self._get_list(BACKEND_SCRIPTS_ENDPOINT):
            data = {k: v for k, v in entry.items() if k not in ("id", "script") and not k.startswith("last_run")}
            metadata = self._parse(BackendScriptMetadata, data, "backend script")
            if metadata is None:
                continue
            items.append(
                BackendScriptItem(
                    name=metadata.name or "unnamed",
                    code=entry.get("script") or "",
                    metadata=metadata,
                )
            )
        self.logger.debug("Fetched %d backend scripts", len(items))
        return items

    def _fetch_reports(self) -> list[CustomizationItem]:
        items: list[CustomizationItem] = []
        for entry in self._get_list(REPORTS_ENDPOINT):
            if not entry.get("internal_name"):
                self.logger.warning("Skipping report without internal_name: %s", entry.get("display_name"))
                continue
            metadata = self._parse(ReportMetadata, _without(entry, ("id", "query")), "report")
            if metadata is None:
                continue
            items.append(ReportItem(name=entry["internal_name"], sql=entry.get("query") or "", metadata=metadata))
        self.logger.debug("Fetched %d reports", len(items))
        return items

    def _fetch_pages(self) -> list[CustomizationItem]:
        items: list[CustomizationItem] = []
        for entry in self._get_list(PAGES_ENDPOINT, params={"latest_only": "true"}):
            if not entry.get("url"):
                self.logger.warning("Skipping page without url: %s", entry.get("name"))
                continue
            metadata = self._parse(PageMetadata, _without(entry, ("id", "content")), "page")
            if metadata is None:
                continue
            items.append(PageItem(name=entry["url"], html=entry.get("content") or "", metadata=metadata))
        self.logger.debug("Fetched %d pages", len(items))
        return items

    # Sending

    def endpoint_for(self, item: CustomizationItem) -> str:
        """
        Push endpoint for an item.

        Object definitions have a built-in endpoint. Other kinds need an entry
        in push_endpoints; "{name}" and "{object_name}" are substituted.

        Raises:
            RemoteError: If no endpoint is configured for the item's kind.
        """
        if item.kind == ItemKind.OBJECT:
            return OBJECT_PUSH_ENDPOINT
        template = self.push_endpoints.get(item.kind.value)
        if not template:
            raise RemoteError(f"No push endpoint configured for {item.kind.value}")
        return template.format(
            name=getattr(item, "name", ""),
            object_name=getattr(item, "object_name", ""),
        )

    def send(self, item: CustomizationItem) -> None:
        """Transmit one item. Raises RemoteError on failure."""
        endpoint = self.endpoint_for(item)
        self.logger.debug("Sending %s %s to %s", item.kind.value, item.label, endpoint)
        self._request("POST", endpoint, json=item.to_payload())
