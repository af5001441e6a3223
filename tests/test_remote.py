# Tests for bmsync.remote
# HttpRemote against an httpx mock transport

import json

import httpx
import pytest

from bmsync.exceptions import RemoteError
from bmsync.models import ObjectDefinition, PageMetadata
from bmsync.remote import HttpRemote
from bmsync.sync.item import ItemKind, ObjectItem, PageItem
from bmsync.sync.pull import PullReconciler


class Recorder:
    """Routes requests by path and records them."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)


def _remote(routes, **kwargs):
    recorder = Recorder(routes)
    remote = HttpRemote(
        "https://acme.example.com/",
        "secret-key",
        transport=httpx.MockTransport(recorder),
        **kwargs,
    )
    return remote, recorder


def _tables(request):
    if request.url.params.get("internal_name") == "customers":
        return httpx.Response(
            200,
            json=[{"id": 7, "internal_name": "customers", "display_name": "Customers", "created_at": "x"}],
        )
    return httpx.Response(200, json=[{"internal_name": "customers"}, {"display_name": "No name"}])


class TestRequests:
    """Tests for headers, errors and pacing."""

    def test_api_key_header(self):
        remote, recorder = _remote({("GET", "/restapi/ping"): {"ok": True}})
        assert remote.ping() is True
        assert recorder.requests[0].headers["x-api-key"] == "secret-key"
        assert str(recorder.requests[0].url) == "https://acme.example.com/restapi/ping"

    def test_error_status_and_message(self):
        remote, _ = _remote(
            {("GET", "/restapi/ping"): lambda r: httpx.Response(401, json={"message": "Invalid API key"})}
        )
        with pytest.raises(RemoteError, match="Invalid API key") as exc_info:
            remote.ping()
        assert exc_info.value.status == 401

    def test_error_without_body(self):
        remote, _ = _remote({("GET", "/restapi/ping"): lambda r: httpx.Response(500)})
        with pytest.raises(RemoteError, match="HTTP 500"):
            remote.ping()

    def test_transport_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        remote, _ = _remote({("GET", "/restapi/ping"): fail})
        with pytest.raises(RemoteError, match="connection refused") as exc_info:
            remote.ping()
        assert exc_info.value.status is None

    def test_invalid_json(self):
        remote, _ = _remote({("GET", "/restapi/ping"): lambda r: httpx.Response(200, content=b"<html>")})
        with pytest.raises(RemoteError, match="invalid JSON"):
            remote.ping()

    def test_request_pacing(self):
        waits = []
        remote, _ = _remote({("GET", "/restapi/ping"): {}}, request_delay_ms=200, sleep=waits.append)
        remote.ping()
        remote.ping()
        assert len(waits) == 1
        assert 0 < waits[0] <= 0.2

    def test_no_pacing_by_default(self):
        waits = []
        remote, _ = _remote({("GET", "/restapi/ping"): {}}, sleep=waits.append)
        remote.ping()
        remote.ping()
        assert waits == []

    def test_context_manager_closes_client(self):
        remote, _ = _remote({})
        with remote:
            pass
        assert remote.client.is_closed


class TestFetch:
    """Tests for listing each kind."""

    def test_objects(self):
        remote, recorder = _remote({("GET", "/restapi/customization/tables"): _tables})
        items = remote.fetch(ItemKind.OBJECT)

        assert len(items) == 1
        assert items[0].name == "customers"
        assert items[0].definition.to_json_data() == {"internal_name": "customers", "display_name": "Customers"}
        assert recorder.requests[0].url.params["custom_fields"] == "true"

    def test_fields(self):
        remote, _ = _remote(
            {
                ("GET", "/restapi/customization/fields/customers"): [
                    {"id": 1, "internal_name": "vat", "type": "text"},
                ]
            }
        )
        items = remote.fetch(ItemKind.FIELD, "customers")
        assert items[0].object_name == "customers"
        assert items[0].name == "vat"
        assert items[0].definition.to_json_data() == {"internal_name": "vat", "type": "text"}

    def test_invalid_entries_skipped(self, caplog):
        remote, _ = _remote(
            {
                ("GET", "/restapi/customization/fields/customers"): [
                    {"internal_name": 42},
                    {"id": 2, "internal_name": "vat", "type": "text"},
                ],
                ("GET", "/restapi/admin/custom-pages"): [{"url": "home", "name": ["not", "a", "string"]}],
            }
        )

        assert [i.name for i in remote.fetch(ItemKind.FIELD, "customers")] == ["vat"]
        assert remote.fetch(ItemKind.PAGE) == []
        assert "Skipping field of customers: 1 validation error(s)" in caplog.text
        assert "Skipping page" in caplog.text

    def test_fields_need_object_name(self):
        remote, _ = _remote({})
        with pytest.raises(ValueError):
            remote.fetch(ItemKind.FIELD)

    def test_actions(self):
        remote, _ = _remote(
            {
                ("GET", "/restapi/customization/actions/customers"): {
                    "menus": [
                        {"id": 1, "action_name": "check", "type": "custom-script", "custom_script": "go();"},
                        {"id": 2, "title": "Site", "type": "link", "url": "https://x"},
                    ]
                }
            }
        )
        items = remote.fetch(ItemKind.ACTION, "customers")

        assert [i.name for i in items] == ["check", "Site"]
        assert items[0].code == "go();"
        assert items[0].metadata.to_json_data() == {"action_name": "check", "type": "custom-script"}
        assert items[1].code is None
        assert items[1].metadata.to_json_data() == {"title": "Site", "type": "link", "url": "https://x"}

    def test_backend_scripts_drop_run_state(self):
        remote, _ = _remote(
            {
                ("GET", "/restapi/be-scripts/list"): [
                    {"id": 3, "name": "job", "script": "x();", "crontab": "* * * * *", "last_run_at": "t"},
                ]
            }
        )
        item = remote.fetch(ItemKind.BACKEND_SCRIPT)[0]
        assert item.code == "x();"
        assert item.metadata.to_json_data() == {"name": "job", "crontab": "* * * * *"}

    def test_reports_without_internal_name_skipped(self, caplog):
        remote, _ = _remote(
            {
                ("GET", "/restapi/c-reports/list-with-sql"): [
                    {"id": 1, "internal_name": "q3", "query": "SELECT 1;"},
                    {"id": 2, "display_name": "Broken"},
                ]
            }
        )
        items = remote.fetch(ItemKind.REPORT)
        assert [i.name for i in items] == ["q3"]
        assert items[0].sql == "SELECT 1;"
        assert "Skipping report" in caplog.text

    def test_pages(self):
        routes = {
            ("GET", "/restapi/admin/custom-pages"): [
                {"id": 1, "name": "Home", "url": "home", "content": "<p/>"},
                {"id": 2, "name": "Draft"},
            ]
        }
        remote, recorder = _remote(routes)
        items = remote.fetch(ItemKind.PAGE)

        assert [i.name for i in items] == ["home"]
        assert items[0].html == "<p/>"
        assert recorder.requests[0].url.params["latest_only"] == "true"

    def test_non_list_response(self):
        remote, _ = _remote({("GET", "/restapi/be-scripts/list"): {"items": []}})
        with pytest.raises(RemoteError, match="did not return a list"):
            remote.fetch(ItemKind.BACKEND_SCRIPT)



class TestPullOverHttp:
    """Pulling through HttpRemote."""

    def test_invalid_field_does_not_abort_pull(self, project):
        remote, _ = _remote(
            {
                ("GET", "/restapi/customization/tables"): _tables,
                ("GET", "/restapi/customization/fields/customers"): [
                    {"internal_name": 42},
                    {"internal_name": "vat", "type": "text"},
                ],
            }
        )

        result = PullReconciler(project, remote).run(only=["objects", "fields"])

        assert result.success
        assert result.get("fields").item_count == 1
        fields_dir = project / "src" / "objects" / "customers" / "fields"
        assert sorted(p.name for p in fields_dir.iterdir()) == ["vat.json"]

class TestSend:
    """Tests for pushing items."""

    def test_object_endpoint_built_in(self):
        remote, recorder = _remote({("POST", "/restapi/customization/view-by-internal-name"): {}})
        remote.send(ObjectItem(name="customers", definition=ObjectDefinition(internal_name="customers")))

        request = recorder.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"internal_name": "customers"}

    def test_configured_endpoint(self):
        remote, recorder = _remote(
            {("POST", "/restapi/pages/home"): {}},
            push_endpoints={"page": "/restapi/pages/{name}"},
        )
        remote.send(PageItem(name="home", html="<p/>", metadata=PageMetadata(url="home")))
        assert json.loads(recorder.requests[0].content) == {"url": "home", "content": "<p/>"}

    def test_missing_endpoint(self):
        remote, recorder = _remote({})
        with pytest.raises(RemoteError, match="No push endpoint configured for page"):
            remote.send(PageItem(name="home"))
        assert recorder.requests == []

    def test_rejected_push(self):
        remote, _ = _remote(
            {("POST", "/restapi/pages/home"): lambda r: httpx.Response(422, json={"message": "bad html"})},
            push_endpoints={"page": "/restapi/pages/{name}"},
        )
        with pytest.raises(RemoteError, match="bad html") as exc_info:
            remote.send(PageItem(name="home", html="<", metadata=PageMetadata()))
        assert exc_info.value.status == 422
