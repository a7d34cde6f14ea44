import itertools
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from zotero_web_mcp.clients.zotero.api_client import ZoteroAPIClient
from zotero_web_mcp.clients.zotero.rate_limiter import RateLimiter

LIBRARY_PREFIX = "/users/12345"


class FakeClock:
    """Monotonic clock plus sleep that advances it instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeZoteroAPI:
    """
    In-memory stand-in for one user library on the Zotero Web API.

    Enforces If-Unmodified-Since-Version on writes and bumps the library
    version on every successful write.
    """

    def __init__(self, library_version: int = 100):
        self.library_version = library_version
        self.items: dict[str, dict[str, Any]] = {}
        self.collections: dict[str, dict[str, Any]] = {}
        self.files: dict[str, bytes] = {}
        self.fulltext: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self._keys = (f"NEW{n:05d}" for n in itertools.count(1))

    # -------------------- Fixtures --------------------

    def add_item(self, key: str, version: int = 1, **data: Any) -> dict[str, Any]:
        data.setdefault("itemType", "journalArticle")
        data.setdefault("title", f"Title {key}")
        data.setdefault("tags", [])
        data.setdefault("collections", [])
        self.items[key] = {
            "key": key,
            "version": version,
            "meta": {},
            "data": {"key": key, "version": version, **data},
        }
        return self.items[key]

    def add_attachment(
        self,
        key: str,
        content: bytes,
        version: int = 1,
        link_mode: str = "imported_file",
        filename: str = "paper.pdf",
    ) -> dict[str, Any]:
        self.files[key] = content
        return self.add_item(
            key,
            version=version,
            itemType="attachment",
            linkMode=link_mode,
            filename=filename,
            contentType="application/pdf",
        )

    def add_collection(self, key: str, name: str, parent: str | bool = False, version: int = 1):
        self.collections[key] = {
            "key": key,
            "version": version,
            "meta": {"numItems": 0, "numCollections": 0},
            "data": {"key": key, "version": version, "name": name, "parentCollection": parent},
        }
        return self.collections[key]

    def requests_to(self, method: str, suffix: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method and r.url.path == f"{LIBRARY_PREFIX}{suffix}"
        ]

    # -------------------- Transport --------------------

    def _response(self, status: int, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        headers.setdefault("Last-Modified-Version", str(self.library_version))
        return httpx.Response(status, headers=headers, **kwargs)

    def _precondition(self, request: httpx.Request, current: int) -> httpx.Response | None:
        sent = request.headers.get("If-Unmodified-Since-Version")
        if sent is None:
            return self._response(428, text="If-Unmodified-Since-Version not provided")
        if int(sent) != current:
            return self._response(412, text=f"Object has been modified since {sent}")
        return None

    def _bump(self, obj: dict[str, Any]) -> None:
        self.library_version += 1
        obj["version"] = self.library_version
        obj["data"]["version"] = self.library_version

    def _list(self, request: httpx.Request, items: list[dict[str, Any]]) -> httpx.Response:
        params = request.url.params
        if "tag" in params:
            items = [
                i for i in items
                if any(t["tag"] == params["tag"] for t in i["data"]["tags"])
            ]
        if "itemType" in params:
            items = [i for i in items if i["data"]["itemType"] == params["itemType"]]
        if "q" in params:
            items = [i for i in items if params["q"].lower() in i["data"]["title"].lower()]

        if params.get("format") and params.get("format") != "json":
            keys = [k for k in params.get("itemKey", "").split(",") if k]
            if params["format"] == "csljson":
                return self._response(200, json={"items": [{"id": k} for k in keys]})
            body = "\n".join(f"@article{{{k}}}" for k in keys if k)
            return self._response(200, text=body, headers={"Content-Type": "text/plain"})

        start = int(params.get("start", 0))
        limit = int(params.get("limit", 25))
        return self._response(
            200,
            json=items[start : start + limit],
            headers={"Total-Results": str(len(items))},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/items/new":
            return self._response(
                200,
                json={
                    "itemType": request.url.params["itemType"],
                    "title": "",
                    "creators": [{"creatorType": "author", "firstName": "", "lastName": ""}],
                    "date": "",
                    "DOI": "",
                    "tags": [],
                    "collections": [],
                    "relations": {},
                },
            )

        assert path.startswith(LIBRARY_PREFIX), path
        parts = [p for p in path[len(LIBRARY_PREFIX) :].split("/") if p]
        method = request.method
        live = [i for i in self.items.values() if not i["data"].get("deleted")]

        if parts[0] == "items":
            if parts == ["items"] and method == "GET":
                return self._list(request, live)
            if parts == ["items", "top"]:
                return self._list(
                    request, [i for i in live if not i["data"].get("parentItem")]
                )
            if parts == ["items", "trash"]:
                trashed = [i for i in self.items.values() if i["data"].get("deleted")]
                return self._list(request, trashed)
            if parts == ["items"] and method == "POST":
                failed = self._precondition(request, self.library_version)
                if failed is not None:
                    return failed
                submitted = json.loads(request.content)
                success = {}
                for index, data in enumerate(submitted):
                    key = next(self._keys)
                    self.add_item(key, **{k: v for k, v in data.items() if k not in ("key", "version")})
                    self._bump(self.items[key])
                    success[str(index)] = key
                return self._response(
                    200, json={"success": success, "unchanged": {}, "failed": {}}
                )

            key = parts[1]
            if key not in self.items:
                return self._response(404, text="Item not found")
            item = self.items[key]

            if len(parts) == 2 and method == "GET":
                return self._response(200, json=item)
            if len(parts) == 2 and method == "PATCH":
                failed = self._precondition(request, item["version"])
                if failed is not None:
                    return failed
                item["data"].update(json.loads(request.content))
                self._bump(item)
                return self._response(204)
            if parts[2] == "children":
                children = [i for i in self.items.values() if i["data"].get("parentItem") == key]
                return self._response(200, json=children)
            if parts[2] == "fulltext":
                if key not in self.fulltext:
                    return self._response(404, text="Not found")
                return self._response(200, json=self.fulltext[key])
            if parts[2] == "file":
                return self._response(
                    200,
                    content=self.files[key],
                    headers={"Content-Type": "application/pdf"},
                )

        if parts[0] == "collections":
            if parts == ["collections"] and method == "GET":
                top = [c for c in self.collections.values() if not c["data"]["parentCollection"]]
                return self._response(200, json=top)
            if parts == ["collections"] and method == "POST":
                failed = self._precondition(request, self.library_version)
                if failed is not None:
                    return failed
                data = json.loads(request.content)[0]
                key = next(self._keys)
                self.add_collection(key, data["name"], data.get("parentCollection", False))
                self._bump(self.collections[key])
                return self._response(200, json={"success": {"0": key}, "failed": {}})

            key = parts[1]
            if key not in self.collections:
                return self._response(404, text="Collection not found")
            collection = self.collections[key]

            if len(parts) == 2 and method == "GET":
                return self._response(200, json=collection)
            if len(parts) == 2 and method == "PUT":
                failed = self._precondition(request, collection["version"])
                if failed is not None:
                    return failed
                collection["data"] = json.loads(request.content)
                self._bump(collection)
                return self._response(204)
            if len(parts) == 2 and method == "DELETE":
                failed = self._precondition(request, collection["version"])
                if failed is not None:
                    return failed
                del self.collections[key]
                self.library_version += 1
                return self._response(204)
            if parts[2] == "items":
                members = [i for i in live if key in i["data"]["collections"]]
                if parts[3:] == ["top"]:
                    members = [i for i in members if not i["data"].get("parentItem")]
                return self._list(request, members)
            if parts[2] == "collections":
                subs = [c for c in self.collections.values() if c["data"]["parentCollection"] == key]
                return self._response(200, json=subs)

        return self._response(400, text=f"Unhandled {method} {path}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_api():
    return FakeZoteroAPI()


@pytest.fixture
def make_client(tmp_path, clock):
    """Build a ZoteroAPIClient whose HTTP goes to ``handler``."""

    def factory(handler, interval: float = 1.0) -> ZoteroAPIClient:
        return ZoteroAPIClient(
            api_key="test-key",
            library_id="12345",
            rate_limiter=RateLimiter(interval, clock=clock, sleep=clock.sleep),
            cache_dir=str(tmp_path / "cache"),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return factory


@pytest.fixture
def api_client(make_client, fake_api):
    return make_client(fake_api)


@pytest.fixture
def mock_ctx():
    """Fixture for the FastMCP tool Context."""
    ctx = MagicMock()
    ctx.error = AsyncMock()
    ctx.info = AsyncMock()
    return ctx
