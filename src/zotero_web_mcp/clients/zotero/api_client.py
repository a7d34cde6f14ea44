"""
Zotero Web API client.

Async client over httpx that talks to the Zotero Web API v3 directly so
it can honor the API's concurrency and rate-limiting contracts:

- ``Last-Modified-Version`` is tracked per client and sent back as
  ``If-Unmodified-Since-Version`` on writes.
- ``Backoff`` / ``Retry-After`` extend the client's rate limiter.
- 429 responses raise ``RateLimitError``; the client never retries.

API docs: https://www.zotero.org/support/dev/web_api/v3/basics
"""

from dataclasses import dataclass
from functools import lru_cache
import json
import logging
from typing import Any, Literal

import httpx

from zotero_web_mcp.clients.zotero.attachment_cache import AttachmentCache
from zotero_web_mcp.clients.zotero.rate_limiter import (
    DEFAULT_REQUEST_INTERVAL,
    RateLimiter,
)
from zotero_web_mcp.models.zotero import (
    DOWNLOADABLE_LINK_MODES,
    DownloadResult,
    FulltextPage,
    LibraryIdentity,
    SavedSearch,
    SearchParams,
    SearchResult,
    TagSummary,
    WriteResponse,
    ZoteroCollection,
    ZoteroItem,
)
from zotero_web_mcp.settings import DEFAULT_API_BASE_URL, get_settings
from zotero_web_mcp.utils.errors import (
    APIConnectionError,
    ConfigurationError,
    InvalidOperationError,
    NotFoundError,
    RateLimitError,
    VersionConflictError,
    WriteFailedError,
    ZoteroAPIError,
)

logger = logging.getLogger(__name__)

API_VERSION = "3"

# Request timeouts in seconds
REQUEST_TIMEOUT = 30.0
DOWNLOAD_TIMEOUT = 120.0

# Wait advised for a 429 without Retry-After or Backoff
DEFAULT_RATE_LIMIT_WAIT = 5

# Client-side fulltext paging bounds
FULLTEXT_DEFAULT_LIMIT = 10000
FULLTEXT_MIN_LIMIT = 1000
FULLTEXT_MAX_LIMIT = 50000

# Most item keys the API accepts in one itemKey filter
EXPORT_BATCH_SIZE = 50


def _int_header(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass
class ResponseMeta:
    """Protocol headers the client cares about."""

    total_results: int | None = None
    last_modified_version: int | None = None
    backoff: int | None = None
    retry_after: int | None = None

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> "ResponseMeta":
        return cls(
            total_results=_int_header(headers, "Total-Results"),
            last_modified_version=_int_header(headers, "Last-Modified-Version"),
            backoff=_int_header(headers, "Backoff"),
            retry_after=_int_header(headers, "Retry-After"),
        )


@dataclass
class APIResponse:
    """Decoded body plus protocol headers."""

    status_code: int
    data: Any
    meta: ResponseMeta


class ZoteroAPIClient:
    """
    Client for one Zotero library over the Web API.

    Owns the library version counter and the rate limiter; use one
    instance per library.
    """

    def __init__(
        self,
        api_key: str,
        library_id: str | int,
        library_type: Literal["user", "group"] = "user",
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        request_interval: float = DEFAULT_REQUEST_INTERVAL,
        timeout: float = REQUEST_TIMEOUT,
        download_timeout: float = DOWNLOAD_TIMEOUT,
        cache: AttachmentCache | None = None,
        cache_dir: str | None = None,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Zotero Web API client.

        Args:
            api_key: Zotero API key
            library_id: User or group ID
            library_type: "user" or "group"
            base_url: API root (default: https://api.zotero.org)
            request_interval: Minimum seconds between requests
            timeout: Request timeout in seconds
            download_timeout: Timeout for attachment downloads
            cache: Attachment cache (default: one under cache_dir)
            cache_dir: Cache root override
            rate_limiter: Pre-built limiter (mainly for tests)
            http_client: Pre-built HTTP client (mainly for tests)
        """
        self.api_key = api_key
        self.library = LibraryIdentity(
            library_type=library_type, library_id=str(library_id)
        )
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.download_timeout = download_timeout
        self.rate_limiter = rate_limiter or RateLimiter(request_interval)
        self.cache = cache or AttachmentCache(self.library, cache_dir)
        self.library_version: int | None = None
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ZoteroAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------- Request Plumbing --------------------

    def _library_path(self, suffix: str = "") -> str:
        return f"{self.library.path}{suffix}"

    def _headers(self, version: int | None = None, has_body: bool = False) -> dict[str, str]:
        headers = {
            "Zotero-API-Key": self.api_key,
            "Zotero-API-Version": API_VERSION,
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        if version is not None:
            headers["If-Unmodified-Since-Version"] = str(version)
        return headers

    def _observe_version(self, version: int | None) -> None:
        """Track the highest library version seen; never move backwards."""
        if version is None:
            return
        if self.library_version is None or version > self.library_version:
            self.library_version = version

    def _process_response(self, response: httpx.Response) -> ResponseMeta:
        """Apply protocol headers to client state and raise on errors."""
        meta = ResponseMeta.from_headers(response.headers)

        self._observe_version(meta.last_modified_version)

        if meta.backoff:
            self.rate_limiter.extend_backoff(meta.backoff)

        if response.status_code == 429:
            if meta.retry_after is not None:
                wait = meta.retry_after
            elif meta.backoff is not None:
                wait = meta.backoff
            else:
                wait = DEFAULT_RATE_LIMIT_WAIT
            self.rate_limiter.extend_backoff(wait)
            raise RateLimitError(wait, response.text)

        return meta

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        status = response.status_code
        body = response.text
        if status == 404:
            raise NotFoundError(status, body)
        if status == 412:
            raise VersionConflictError(status, body)
        raise ZoteroAPIError(status, body)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        version: int | None = None,
        raw: bool = False,
    ) -> APIResponse:
        """
        Send one request through the rate limiter.

        Args:
            method: HTTP method
            path: Path below the API root
            params: Query parameters; None values are dropped
            json: JSON body
            version: Sent as If-Unmodified-Since-Version
            raw: Always return the body as text

        Returns:
            APIResponse with decoded body and protocol headers
        """
        client = await self._get_client()
        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = self._headers(version=version, has_body=json is not None)

        await self.rate_limiter.acquire()
        logger.debug(f"{method} {path} {query}")

        try:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                params=query,
                json=json,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise APIConnectionError(
                f"Could not reach the Zotero Web API ({type(e).__name__}: {e})",
                suggestion="Check your network connection and try again",
            ) from e

        meta = self._process_response(response)
        self._raise_for_status(response)

        data: Any = None
        if response.content:
            content_type = response.headers.get("Content-Type", "")
            if not raw and "application/json" in content_type:
                data = response.json()
            else:
                data = response.text

        return APIResponse(status_code=response.status_code, data=data, meta=meta)

    # -------------------- Library Version --------------------

    async def get_library_version(self) -> int:
        """
        Current library version, fetched once if never seen.

        Issues a one-item request when no response has carried a version yet.
        """
        if self.library_version is not None:
            return self.library_version

        await self._request("GET", self._library_path("/items"), params={"limit": 1})
        if self.library_version is None:
            self.library_version = 0
        return self.library_version

    def _parse_write_response(self, data: Any, what: str) -> str:
        """Return the key created at submission index 0, or raise."""
        result = WriteResponse.model_validate(data or {})

        if result.success:
            return result.success.get("0") or next(iter(result.success.values()))

        if result.failed:
            failure = result.failed.get("0") or next(iter(result.failed.values()))
            raise WriteFailedError(
                f"Failed to create {what}: {failure.message}",
                suggestion=f"Zotero error code {failure.code}" if failure.code else None,
            )

        raise WriteFailedError(f"Unknown error creating {what}")

    # -------------------- Search Methods --------------------

    async def search_items(self, params: SearchParams | None = None) -> SearchResult:
        """
        Search items in the library.

        ``include_children`` selects the ``/items`` endpoint instead of
        ``/items/top``; ``collection_key`` scopes either to a collection.

        Returns:
            SearchResult with Total-Results (or the page size if absent)
        """
        params = params or SearchParams()

        if params.collection_key:
            path = self._library_path(f"/collections/{params.collection_key}/items")
        else:
            path = self._library_path("/items")
        if not params.include_children:
            path += "/top"

        response = await self._request(
            "GET",
            path,
            params={
                "q": params.query,
                "qmode": params.qmode.value if params.query else None,
                "itemType": params.item_type,
                "tag": params.tag,
                "limit": params.limit,
                "start": params.start,
                "sort": params.sort,
                "direction": params.direction.value,
                "includeTrashed": 1 if params.include_trashed else None,
            },
        )

        items = [ZoteroItem.model_validate(i) for i in response.data or []]
        total = response.meta.total_results
        return SearchResult(
            items=items,
            total_results=total if total is not None else len(items),
        )

    async def get_recent_items(self, limit: int = 10) -> list[ZoteroItem]:
        """Top-level items, most recently added first."""
        response = await self._request(
            "GET",
            self._library_path("/items/top"),
            params={"limit": limit, "sort": "dateAdded", "direction": "desc"},
        )
        return [ZoteroItem.model_validate(i) for i in response.data or []]

    async def get_trash_items(self, limit: int = 25) -> list[ZoteroItem]:
        """Items in the trash, most recently modified first."""
        response = await self._request(
            "GET",
            self._library_path("/items/trash"),
            params={"limit": limit, "sort": "dateModified", "direction": "desc"},
        )
        return [ZoteroItem.model_validate(i) for i in response.data or []]

    async def get_saved_searches(self) -> list[SavedSearch]:
        """Saved searches defined in the library."""
        response = await self._request("GET", self._library_path("/searches"))
        return [SavedSearch.model_validate(s) for s in response.data or []]

    # -------------------- Item Methods --------------------

    async def get_item(self, item_key: str) -> ZoteroItem:
        """
        Get a single item by key.

        Raises:
            NotFoundError: If item not found
        """
        response = await self._request("GET", self._library_path(f"/items/{item_key}"))
        return ZoteroItem.model_validate(response.data)

    async def get_item_children(self, item_key: str) -> list[ZoteroItem]:
        """Child attachments and notes of an item."""
        response = await self._request(
            "GET", self._library_path(f"/items/{item_key}/children")
        )
        return [ZoteroItem.model_validate(i) for i in response.data or []]

    async def get_item_template(self, item_type: str) -> dict[str, Any]:
        """Empty field skeleton for a new item of ``item_type``."""
        response = await self._request(
            "GET", "/items/new", params={"itemType": item_type}
        )
        return response.data

    async def create_item(self, item_data: dict[str, Any]) -> str:
        """
        Create an item.

        Returns:
            Key of the new item

        Raises:
            WriteFailedError: If the API rejects the item
        """
        library_version = await self.get_library_version()
        response = await self._request(
            "POST",
            self._library_path("/items"),
            json=[item_data],
            version=library_version,
        )
        key = self._parse_write_response(response.data, "item")
        logger.info(f"Created item {key}")
        return key

    async def _patch_item(
        self, item_key: str, version: int, changes: dict[str, Any]
    ) -> int | None:
        response = await self._request(
            "PATCH",
            self._library_path(f"/items/{item_key}"),
            json=changes,
            version=version,
        )
        return response.meta.last_modified_version

    async def update_item(self, item_key: str, changes: dict[str, Any]) -> int | None:
        """
        Apply a partial update to an item.

        Reads the item first and sends its version as the write
        precondition.

        Returns:
            The item's new version, if the server reported one

        Raises:
            VersionConflictError: If the item changed since it was read
        """
        item = await self.get_item(item_key)
        return await self._patch_item(item_key, item.version, changes)

    async def delete_item(self, item_key: str) -> int | None:
        """Move an item to the trash."""
        return await self.update_item(item_key, {"deleted": 1})

    async def add_tags_to_item(self, item_key: str, tags: list[str]) -> list[str]:
        """
        Add tags to an item, keeping existing ones.

        Returns:
            The item's tag names after the merge
        """
        item = await self.get_item(item_key)
        merged = list(item.data.get("tags", []))
        names = {t.get("tag") for t in merged}

        added = []
        for tag in tags:
            if tag and tag not in names:
                merged.append({"tag": tag})
                names.add(tag)
                added.append(tag)

        if added:
            await self._patch_item(item_key, item.version, {"tags": merged})
        return [t["tag"] for t in merged if t.get("tag")]

    async def add_item_to_collection(self, item_key: str, collection_key: str) -> bool:
        """
        Add an item to a collection.

        Returns:
            False if the item was already a member
        """
        item = await self.get_item(item_key)
        collections = item.collections
        if collection_key in collections:
            return False

        collections.append(collection_key)
        await self._patch_item(item_key, item.version, {"collections": collections})
        return True

    async def get_item_fulltext(
        self,
        item_key: str,
        offset: int = 0,
        limit: int = FULLTEXT_DEFAULT_LIMIT,
    ) -> FulltextPage | None:
        """
        Get one page of an item's indexed full text.

        Returns:
            FulltextPage, or None when the item has no indexed text
        """
        try:
            response = await self._request(
                "GET", self._library_path(f"/items/{item_key}/fulltext")
            )
        except NotFoundError:
            return None

        data = response.data or {}
        content = data.get("content") or ""
        total = len(content)

        limit = max(FULLTEXT_MIN_LIMIT, min(limit, FULLTEXT_MAX_LIMIT))
        offset = max(0, min(offset, total))
        end = min(offset + limit, total)
        has_more = end < total

        return FulltextPage(
            item_key=item_key,
            content=content[offset:end],
            offset=offset,
            limit=limit,
            total_length=total,
            has_more=has_more,
            next_offset=end if has_more else None,
            indexed_pages=data.get("indexedPages"),
            total_pages=data.get("totalPages"),
            indexed_chars=data.get("indexedChars"),
            total_chars=data.get("totalChars"),
        )

    # -------------------- Collection Methods --------------------

    async def get_collections(self, parent_key: str | None = None) -> list[ZoteroCollection]:
        """Top-level collections, or the sub-collections of ``parent_key``."""
        if parent_key:
            path = self._library_path(f"/collections/{parent_key}/collections")
        else:
            path = self._library_path("/collections")
        response = await self._request("GET", path, params={"limit": 100})
        return [ZoteroCollection.model_validate(c) for c in response.data or []]

    async def get_collection(self, collection_key: str) -> ZoteroCollection:
        """Get a single collection by key."""
        response = await self._request(
            "GET", self._library_path(f"/collections/{collection_key}")
        )
        return ZoteroCollection.model_validate(response.data)

    async def get_collection_items(
        self, collection_key: str, limit: int = 25
    ) -> SearchResult:
        """Top-level items directly in a collection."""
        return await self.search_items(
            SearchParams(collection_key=collection_key, limit=limit)
        )

    async def create_collection(self, name: str, parent_key: str | None = None) -> str:
        """
        Create a collection.

        Returns:
            Key of the new collection
        """
        library_version = await self.get_library_version()
        payload: dict[str, Any] = {"name": name}
        if parent_key:
            payload["parentCollection"] = parent_key

        response = await self._request(
            "POST",
            self._library_path("/collections"),
            json=[payload],
            version=library_version,
        )
        key = self._parse_write_response(response.data, "collection")
        logger.info(f"Created collection {key} ({name})")
        return key

    async def update_collection(
        self,
        collection_key: str,
        name: str | None = None,
        parent_key: str | Literal[False] | None = None,
    ) -> int | None:
        """
        Rename or move a collection.

        Args:
            collection_key: Collection to change
            name: New name (None keeps the current one)
            parent_key: New parent key, False to move to the top level,
                None to keep the current parent

        Returns:
            The collection's new version, if the server reported one
        """
        collection = await self.get_collection(collection_key)

        data = dict(collection.data)
        if name is not None:
            data["name"] = name
        if parent_key is not None:
            data["parentCollection"] = parent_key or False

        response = await self._request(
            "PUT",
            self._library_path(f"/collections/{collection_key}"),
            json=data,
            version=collection.version,
        )
        return response.meta.last_modified_version

    async def delete_collection(self, collection_key: str) -> None:
        """Delete a collection. Items in it stay in the library."""
        collection = await self.get_collection(collection_key)
        await self._request(
            "DELETE",
            self._library_path(f"/collections/{collection_key}"),
            version=collection.version,
        )
        logger.info(f"Deleted collection {collection_key}")

    # -------------------- Tag Methods --------------------

    async def get_tags(self, limit: int = 50) -> list[TagSummary]:
        """Tags in the library with their kind."""
        response = await self._request(
            "GET", self._library_path("/tags"), params={"limit": limit}
        )
        return [
            TagSummary(
                tag=t.get("tag", ""),
                type=(t.get("meta") or {}).get("type", 0),
                num_items=(t.get("meta") or {}).get("numItems"),
            )
            for t in response.data or []
        ]

    # -------------------- Export Methods --------------------

    async def export_items(
        self,
        item_keys: list[str],
        format: str,
        style: str | None = None,
    ) -> str:
        """
        Export items in a citation format.

        Keys are sent at most EXPORT_BATCH_SIZE per request. Text formats
        are joined batch by batch; csljson batches are merged into one
        ``items`` array.

        Args:
            item_keys: Keys to export
            format: bibtex, ris, csljson, bibliography, coins, refer or tei
            style: CSL style, used only with the bibliography format

        Returns:
            The exported text, uninterpreted when a single batch suffices
        """
        chunks: list[str] = []
        for start in range(0, len(item_keys), EXPORT_BATCH_SIZE):
            batch = item_keys[start : start + EXPORT_BATCH_SIZE]
            params: dict[str, Any] = {
                "itemKey": ",".join(batch),
                "format": format,
                "limit": len(batch),
            }
            if style and format == "bibliography":
                params["style"] = style

            response = await self._request(
                "GET", self._library_path("/items"), params=params, raw=True
            )
            chunks.append(response.data or "")

        if len(chunks) == 1:
            return chunks[0]
        if format == "csljson":
            items: list[Any] = []
            for chunk in chunks:
                if chunk.strip():
                    items.extend(json.loads(chunk).get("items", []))
            return json.dumps({"items": items}, ensure_ascii=False, indent=2)
        return "\n".join(chunk.rstrip("\n") for chunk in chunks if chunk)

    # -------------------- Attachment Methods --------------------

    async def download_attachment(
        self, item_key: str, force: bool = False
    ) -> DownloadResult:
        """
        Download an attachment's file into the local cache.

        A cache entry recorded for the attachment's current version is
        returned without any download unless ``force`` is set.

        Raises:
            InvalidOperationError: Not an attachment, or not stored on the server
        """
        item = await self.get_item(item_key)
        data = item.data

        if item.item_type != "attachment":
            raise InvalidOperationError(
                f"Item {item_key} is not an attachment (itemType: {item.item_type})"
            )

        link_mode = data.get("linkMode")
        if link_mode not in DOWNLOADABLE_LINK_MODES:
            raise InvalidOperationError(
                f"Unsupported link mode '{link_mode}' for attachment {item_key}",
                suggestion=(
                    "Only stored files (imported_file, imported_url) can be downloaded"
                ),
            )

        filename = data.get("filename")
        if not filename:
            raise InvalidOperationError(f"Attachment {item_key} has no filename")

        if not force and await self.cache.is_valid(item_key, item.version):
            path = await self.cache.get_cached_file_path(item_key)
            meta = await self.cache.get_meta(item_key)
            if path is not None and meta is not None:
                logger.info(f"Cache hit for attachment {item_key} v{item.version}")
                return DownloadResult(
                    item_key=item_key,
                    path=path,
                    filename=meta.filename,
                    content_type=meta.content_type,
                    size=meta.size,
                    version=meta.version,
                    from_cache=True,
                )

        client = await self._get_client()
        path_suffix = self._library_path(f"/items/{item_key}/file")

        await self.rate_limiter.acquire()
        logger.debug(f"GET {path_suffix} (download)")

        try:
            async with client.stream(
                "GET",
                f"{self.base_url}{path_suffix}",
                headers=self._headers(),
                timeout=self.download_timeout,
            ) as response:
                if not response.is_success:
                    await response.aread()
                self._process_response(response)
                self._raise_for_status(response)

                content_type = data.get("contentType") or response.headers.get(
                    "Content-Type", ""
                )
                content_length = _int_header(response.headers, "Content-Length")
                expected = None if response.headers.get("Content-Encoding") else content_length

                path = await self.cache.save_from_stream(
                    item_key,
                    filename,
                    response.aiter_bytes(),
                    version=item.version,
                    content_type=content_type,
                    expected_size=expected,
                )
        except httpx.TransportError as e:
            raise APIConnectionError(
                f"Download of attachment {item_key} failed ({type(e).__name__}: {e})",
                suggestion="Check your network connection and try again",
            ) from e

        meta = await self.cache.get_meta(item_key)
        return DownloadResult(
            item_key=item_key,
            path=path,
            filename=path.name,
            content_type=content_type,
            size=meta.size if meta else 0,
            version=item.version,
            from_cache=False,
        )

    async def clear_attachment_cache(self, item_key: str | None = None) -> None:
        """Clear one attachment's cache entry, or the whole library cache."""
        if item_key:
            await self.cache.invalidate(item_key)
        else:
            await self.cache.clear_all()


@lru_cache(maxsize=1)
def get_zotero_client() -> ZoteroAPIClient:
    """
    Get a configured Zotero client using environment variables.

    Environment Variables:
        ZOTERO_API_KEY: API key for web access
        ZOTERO_USER_ID: User library ID
        ZOTERO_GROUP_ID: Group library ID (optional, takes precedence)
        ZOTERO_MCP_CACHE_DIR: Attachment cache root (optional)

    Returns:
        Configured ZoteroAPIClient

    Raises:
        ConfigurationError: If required config is missing
    """
    settings = get_settings()

    if not settings.api_key:
        raise ConfigurationError(
            "ZOTERO_API_KEY is required for web API access",
            suggestion="Create a key at https://www.zotero.org/settings/keys",
        )

    if not settings.user_id:
        raise ConfigurationError(
            "ZOTERO_USER_ID is required for web API access",
            suggestion="Your user ID is shown at https://www.zotero.org/settings/keys",
        )

    return ZoteroAPIClient(
        api_key=settings.api_key,
        library_id=settings.library_id,  # type: ignore[arg-type]
        library_type=settings.library_type,  # type: ignore[arg-type]
        base_url=settings.api_base_url,
        request_interval=settings.request_interval,
        timeout=settings.request_timeout,
        download_timeout=settings.download_timeout,
        cache_dir=settings.cache_dir,
    )
