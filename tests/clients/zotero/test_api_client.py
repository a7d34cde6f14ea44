"""Tests for ZoteroAPIClient request plumbing, versions and search."""

import httpx
import pytest

from zotero_web_mcp.clients.zotero.api_client import ZoteroAPIClient
from zotero_web_mcp.models.common import SearchMode
from zotero_web_mcp.models.zotero import SearchParams
from zotero_web_mcp.utils.errors import (
    APIConnectionError,
    NotFoundError,
    RateLimitError,
    VersionConflictError,
    WriteFailedError,
    ZoteroAPIError,
)


def _reply(status=200, json=None, headers=None, text=None):
    def handler(request):
        if json is not None:
            return httpx.Response(status, json=json, headers=headers or {})
        return httpx.Response(status, text=text or "", headers=headers or {})

    return handler


class TestHeadersAndPaths:
    @pytest.mark.asyncio
    async def test_auth_and_version_headers_on_every_request(self, api_client, fake_api):
        fake_api.add_item("ITEM1")

        await api_client.get_item("ITEM1")

        request = fake_api.requests[-1]
        assert request.headers["Zotero-API-Key"] == "test-key"
        assert request.headers["Zotero-API-Version"] == "3"
        assert "If-Unmodified-Since-Version" not in request.headers

    @pytest.mark.asyncio
    async def test_group_library_path(self, clock, tmp_path):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json=[])

        client = ZoteroAPIClient(
            "key",
            "777",
            library_type="group",
            cache_dir=str(tmp_path),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        client.rate_limiter.min_interval = 0

        await client.get_tags()

        assert seen == ["/groups/777/tags"]

    @pytest.mark.asyncio
    async def test_api_key_is_never_logged(self, api_client, fake_api, caplog):
        fake_api.add_item("ITEM1")

        with caplog.at_level("DEBUG", logger="zotero_web_mcp"):
            await api_client.get_item("ITEM1")

        assert "test-key" not in caplog.text


class TestLibraryVersion:
    @pytest.mark.asyncio
    async def test_tracks_maximum_regardless_of_order(self, make_client):
        versions = iter([50, 80, 60, 10])

        def handler(request):
            return httpx.Response(
                200, json=[], headers={"Last-Modified-Version": str(next(versions))}
            )

        client = make_client(handler)
        seen = []
        for _ in range(4):
            await client.get_tags()
            seen.append(client.library_version)

        assert seen == [50, 80, 80, 80]

    @pytest.mark.asyncio
    async def test_seeded_by_one_item_request(self, api_client, fake_api):
        version = await api_client.get_library_version()

        assert version == 100
        request = fake_api.requests[-1]
        assert request.url.path == "/users/12345/items"
        assert request.url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_cached_version_skips_request(self, api_client, fake_api):
        await api_client.get_library_version()
        count = len(fake_api.requests)

        await api_client.get_library_version()

        assert len(fake_api.requests) == count

    @pytest.mark.asyncio
    async def test_defaults_to_zero_without_header(self, make_client):
        client = make_client(_reply(json=[]))

        assert await client.get_library_version() == 0


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_requests_are_spaced(self, api_client, fake_api, clock):
        fake_api.add_item("ITEM1")
        start = clock.now

        for _ in range(3):
            await api_client.get_item("ITEM1")

        assert clock.now - start >= 2 * 1.0

    @pytest.mark.asyncio
    async def test_429_uses_retry_after(self, make_client):
        client = make_client(_reply(429, headers={"Retry-After": "12"}, text="slow down"))

        with pytest.raises(RateLimitError) as exc_info:
            await client.get_tags()

        assert exc_info.value.retry_after == 12
        assert exc_info.value.status_code == 429
        assert "12 seconds" in str(exc_info.value)
        assert client.rate_limiter.backoff_remaining == pytest.approx(12)

    @pytest.mark.asyncio
    async def test_429_falls_back_to_backoff_then_default(self, make_client):
        client = make_client(_reply(429, headers={"Backoff": "7"}))
        with pytest.raises(RateLimitError) as exc_info:
            await client.get_tags()
        assert exc_info.value.retry_after == 7

        client = make_client(_reply(429))
        with pytest.raises(RateLimitError) as exc_info:
            await client.get_tags()
        assert exc_info.value.retry_after == 5

    @pytest.mark.asyncio
    async def test_429_with_zero_retry_after(self, make_client):
        client = make_client(_reply(429, headers={"Retry-After": "0", "Backoff": "7"}))

        with pytest.raises(RateLimitError) as exc_info:
            await client.get_tags()

        assert exc_info.value.retry_after == 0
        assert client.rate_limiter.backoff_remaining == pytest.approx(7)

    @pytest.mark.asyncio
    async def test_backoff_header_delays_next_request(self, make_client, clock):
        client = make_client(_reply(json=[], headers={"Backoff": "30"}))

        await client.get_tags()
        before = clock.now
        await client.get_tags()

        assert clock.now - before >= 30


class TestErrors:
    @pytest.mark.asyncio
    async def test_404_is_not_found(self, api_client):
        with pytest.raises(NotFoundError) as exc_info:
            await api_client.get_item("MISSING")

        assert exc_info.value.status_code == 404
        assert "Item not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_412_is_version_conflict(self, make_client):
        client = make_client(_reply(412, text="Item has been modified"))

        with pytest.raises(VersionConflictError) as exc_info:
            await client.delete_collection("COLL1")

        assert isinstance(exc_info.value, ZoteroAPIError)

    @pytest.mark.asyncio
    async def test_other_status_carries_code_and_body(self, make_client):
        client = make_client(_reply(403, text="Forbidden"))

        with pytest.raises(ZoteroAPIError) as exc_info:
            await client.get_tags()

        assert exc_info.value.status_code == 403
        assert str(exc_info.value) == "Zotero API error (403): Forbidden"

    @pytest.mark.asyncio
    async def test_transport_failure_is_connection_error(self, make_client, clock):
        def handler(request):
            raise httpx.ConnectError("boom")

        client = make_client(handler)

        with pytest.raises(APIConnectionError):
            await client.get_tags()
        assert client.rate_limiter.last_request_at == clock.now


class TestSearch:
    @pytest.mark.asyncio
    async def test_pagination_over_thirty_items(self, api_client, fake_api):
        for n in range(30):
            fake_api.add_item(f"ITEM{n:04d}")

        first = await api_client.search_items(SearchParams(limit=25, start=0))
        second = await api_client.search_items(SearchParams(limit=25, start=25))

        assert len(first.items) == 25
        assert first.total_results == 30
        assert len(second.items) == 5
        assert {i.key for i in first.items}.isdisjoint({i.key for i in second.items})

    @pytest.mark.asyncio
    async def test_query_parameters(self, api_client, fake_api):
        await api_client.search_items(
            SearchParams(
                query="neural",
                qmode=SearchMode.EVERYTHING,
                item_type="book",
                tag="ml",
                include_trashed=True,
            )
        )

        request = fake_api.requests[-1]
        assert request.url.path == "/users/12345/items/top"
        params = request.url.params
        assert params["q"] == "neural"
        assert params["qmode"] == "everything"
        assert params["itemType"] == "book"
        assert params["tag"] == "ml"
        assert params["includeTrashed"] == "1"
        assert params["sort"] == "dateModified"
        assert params["direction"] == "desc"

    @pytest.mark.asyncio
    async def test_unset_filters_are_not_sent(self, api_client, fake_api):
        await api_client.search_items()

        params = fake_api.requests[-1].url.params
        for name in ("q", "qmode", "itemType", "tag", "includeTrashed"):
            assert name not in params

    @pytest.mark.asyncio
    async def test_collection_scope_and_children(self, api_client, fake_api):
        fake_api.add_collection("COLL1", "Reading")

        await api_client.search_items(SearchParams(collection_key="COLL1"))
        assert fake_api.requests[-1].url.path == "/users/12345/collections/COLL1/items/top"

        await api_client.search_items(SearchParams(include_children=True))
        assert fake_api.requests[-1].url.path == "/users/12345/items"

    @pytest.mark.asyncio
    async def test_total_defaults_to_page_size(self, make_client):
        client = make_client(_reply(json=[{"key": "A", "data": {}}, {"key": "B", "data": {}}]))

        result = await client.search_items()

        assert result.total_results == 2

    @pytest.mark.asyncio
    async def test_recent_and_trash_sorting(self, api_client, fake_api):
        await api_client.get_recent_items(5)
        recent = fake_api.requests[-1]
        assert recent.url.path == "/users/12345/items/top"
        assert recent.url.params["sort"] == "dateAdded"
        assert recent.url.params["limit"] == "5"

        await api_client.get_trash_items()
        trash = fake_api.requests[-1]
        assert trash.url.path == "/users/12345/items/trash"
        assert trash.url.params["sort"] == "dateModified"
        assert trash.url.params["direction"] == "desc"


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_sends_library_version(self, api_client, fake_api):
        key = await api_client.create_item({"itemType": "book", "title": "Dune"})

        post = fake_api.requests_to("POST", "/items")[-1]
        assert post.headers["If-Unmodified-Since-Version"] == "100"
        assert post.headers["Content-Type"] == "application/json"
        assert fake_api.items[key]["data"]["title"] == "Dune"
        assert api_client.library_version == 101

    @pytest.mark.asyncio
    async def test_create_failure_reports_message(self, make_client):
        client = make_client(
            _reply(
                json={"success": {}, "failed": {"0": {"code": 400, "message": "Invalid field"}}},
                headers={"Last-Modified-Version": "5"},
            )
        )

        with pytest.raises(WriteFailedError, match="Failed to create item: Invalid field"):
            await client.create_item({"itemType": "book"})

    @pytest.mark.asyncio
    async def test_create_with_neither_success_nor_failure(self, make_client):
        client = make_client(
            _reply(json={"success": {}, "unchanged": {}, "failed": {}},
                   headers={"Last-Modified-Version": "5"})
        )

        with pytest.raises(WriteFailedError, match="Unknown error creating item"):
            await client.create_item({"itemType": "book"})

    @pytest.mark.asyncio
    async def test_stale_library_version_conflicts(self, api_client, fake_api):
        await api_client.get_library_version()
        fake_api.library_version = 150

        with pytest.raises(VersionConflictError):
            await api_client.create_item({"itemType": "book"})

        assert api_client.library_version == 150


@pytest.mark.asyncio
async def test_context_manager_closes_client(make_client):
    client = make_client(_reply(json=[]))

    async with client:
        await client.get_tags()

    assert client._client is None
