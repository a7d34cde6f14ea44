"""Offset-based paging over search results."""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING, Any

from zotero_web_mcp.models.zotero import SearchParams

if TYPE_CHECKING:
    from zotero_web_mcp.clients.zotero.api_client import ZoteroAPIClient

# Largest page the Zotero API returns
MAX_PAGE_SIZE = 100


async def iter_offset_batches(
    fetch_page: Callable[[int, int], Awaitable[list[Any]]],
    *,
    batch_size: int,
    start: int = 0,
) -> AsyncIterator[tuple[int, list[Any]]]:
    """
    Yield paged results using offset + limit semantics.

    Stops when:
    - page is empty, or
    - returned page size is smaller than requested batch_size.
    """
    offset = start
    while True:
        page = await fetch_page(offset, batch_size)
        if not page:
            return

        yield offset, page

        if len(page) < batch_size:
            return

        offset += batch_size


async def collect_item_keys(
    client: "ZoteroAPIClient",
    search: SearchParams | None = None,
    limit: int | None = None,
) -> list[str]:
    """
    Keys of every item matching ``search``, fetched 100 at a time.

    Args:
        client: Library client
        search: Filter (query, tag, collection_key, ...); paging fields ignored
        limit: Stop after this many keys; None fetches everything

    Returns:
        Item keys in server order
    """
    search = search or SearchParams()
    keys: list[str] = []
    total: int | None = None

    async def fetch_page(offset: int, size: int) -> list[Any]:
        nonlocal total
        if total is not None and offset >= total:
            return []
        page = search.model_copy(update={"start": offset, "limit": size})
        result = await client.search_items(page)
        total = result.total_results
        return result.items

    async for _, items in iter_offset_batches(fetch_page, batch_size=MAX_PAGE_SIZE):
        for item in items:
            keys.append(item.key)
            if limit is not None and len(keys) >= limit:
                return keys

    return keys
