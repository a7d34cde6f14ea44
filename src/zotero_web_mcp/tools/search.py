"""
Search and read tools for Zotero Web MCP.

Provides tools for querying the library:
- search_items: Keyword / type / tag / collection search with paging
- get_item: Full item record
- get_recent_items: Recently added items
- get_item_children: Attachments and notes of an item
- get_item_fulltext: Indexed full text, paged by characters
- get_trash_items: Items in the trash
- get_saved_searches: Saved searches
"""

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.models.inputs import (
    GetFulltextInput,
    GetItemInput,
    GetRecentItemsInput,
    GetTrashItemsInput,
    SearchItemsInput,
)
from zotero_web_mcp.models.responses import (
    ChildrenResponse,
    FulltextResponse,
    ItemDetailResponse,
    ItemListResponse,
    SavedSearchesResponse,
    SearchResponse,
)
from zotero_web_mcp.models.zotero import SearchParams
from zotero_web_mcp.utils.errors import handle_error
from zotero_web_mcp.utils.helpers import child_summary, item_summary

READ_ONLY = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=True,
)


def _read_only(title: str) -> ToolAnnotations:
    return READ_ONLY.model_copy(update={"title": title})


def register_search_tools(mcp: FastMCP) -> None:
    """Register all search and read tools with the MCP server."""

    @mcp.tool(name="search_items", annotations=_read_only("Search Zotero Library"))
    async def search_items(params: SearchItemsInput, ctx: Context) -> SearchResponse:
        """
        Search for items in the Zotero library.

        Matches titles, creators and years by default; use qmode
        'everything' to include full text. Results are top-level items
        sorted by modification date, newest first.

        Args:
            params: Search parameters containing:
                - query (str): Search keywords
                - item_type (str): Filter by item type
                - tag (str): Filter by tag
                - collection_key (str): Restrict to one collection
                - limit (int): Page size (1-100, default 25)
                - start (int): Pagination offset

        Returns:
            SearchResponse: One page of item summaries with the total count.
        """
        try:
            client = get_zotero_client()
            result = await client.search_items(
                SearchParams(
                    query=params.query,
                    qmode=params.qmode,
                    item_type=params.item_type,
                    tag=params.tag,
                    collection_key=params.collection_key,
                    limit=params.limit,
                    start=params.start,
                )
            )

            count = len(result.items)
            next_start = params.start + count
            has_more = count > 0 and next_start < result.total_results
            return SearchResponse(
                total=result.total_results,
                count=count,
                start=params.start,
                has_more=has_more,
                next_start=next_start if has_more else None,
                items=[item_summary(i) for i in result.items],
            )

        except Exception as e:
            await ctx.error(f"Search failed: {str(e)}")
            return SearchResponse(success=False, error=handle_error(e, "search_items"))

    @mcp.tool(name="get_item", annotations=_read_only("Get Item"))
    async def get_item(params: GetItemInput, ctx: Context) -> ItemDetailResponse:
        """
        Get the full record of a Zotero item.

        Args:
            params: Parameters containing item_key.

        Returns:
            ItemDetailResponse: Item key, version and every field.
        """
        try:
            item = await get_zotero_client().get_item(params.item_key)
            return ItemDetailResponse(key=item.key, version=item.version, data=item.data)

        except Exception as e:
            await ctx.error(f"Failed to get item {params.item_key}: {str(e)}")
            return ItemDetailResponse(
                success=False,
                error=handle_error(e, "get_item"),
                key=params.item_key,
            )

    @mcp.tool(name="get_recent_items", annotations=_read_only("Get Recent Items"))
    async def get_recent_items(
        params: GetRecentItemsInput, ctx: Context
    ) -> ItemListResponse:
        """
        Get the most recently added top-level items.

        Args:
            params: Parameters containing limit (1-50, default 10).
        """
        try:
            items = await get_zotero_client().get_recent_items(params.limit)
            return ItemListResponse(
                count=len(items), items=[item_summary(i) for i in items]
            )

        except Exception as e:
            await ctx.error(f"Failed to get recent items: {str(e)}")
            return ItemListResponse(
                success=False, error=handle_error(e, "get_recent_items")
            )

    @mcp.tool(name="get_item_children", annotations=_read_only("Get Item Children"))
    async def get_item_children(params: GetItemInput, ctx: Context) -> ChildrenResponse:
        """
        Get attachments and notes under an item.

        Args:
            params: Parameters containing the parent item_key.
        """
        try:
            children = await get_zotero_client().get_item_children(params.item_key)
            return ChildrenResponse(
                parent_key=params.item_key,
                count=len(children),
                children=[child_summary(c) for c in children],
            )

        except Exception as e:
            await ctx.error(f"Failed to get children of {params.item_key}: {str(e)}")
            return ChildrenResponse(
                success=False,
                error=handle_error(e, "get_item_children"),
                parent_key=params.item_key,
            )

    @mcp.tool(name="get_item_fulltext", annotations=_read_only("Get Item Full Text"))
    async def get_item_fulltext(
        params: GetFulltextInput, ctx: Context
    ) -> FulltextResponse:
        """
        Get a page of an item's indexed full text.

        Long documents are returned in chunks. When has_more is true,
        call again with offset set to next_offset.

        Args:
            params: Parameters containing:
                - item_key (str): Usually an attachment key
                - offset (int): Character offset (default 0)
                - limit (int): Characters per page (1000-50000, default 10000)

        Returns:
            FulltextResponse: The chunk plus paging and indexing stats.
        """
        try:
            page = await get_zotero_client().get_item_fulltext(
                params.item_key, offset=params.offset, limit=params.limit
            )
            if page is None:
                return FulltextResponse(
                    success=False,
                    item_key=params.item_key,
                    message="No full-text content available for this item",
                )

            return FulltextResponse(**page.model_dump())

        except Exception as e:
            await ctx.error(f"Failed to get full text of {params.item_key}: {str(e)}")
            return FulltextResponse(
                success=False,
                error=handle_error(e, "get_item_fulltext"),
                item_key=params.item_key,
            )

    @mcp.tool(name="get_trash_items", annotations=_read_only("Get Trash Items"))
    async def get_trash_items(
        params: GetTrashItemsInput, ctx: Context
    ) -> ItemListResponse:
        """
        List items in the trash, most recently modified first.

        Args:
            params: Parameters containing limit (1-100, default 25).
        """
        try:
            items = await get_zotero_client().get_trash_items(params.limit)
            return ItemListResponse(
                count=len(items), items=[item_summary(i) for i in items]
            )

        except Exception as e:
            await ctx.error(f"Failed to get trash items: {str(e)}")
            return ItemListResponse(
                success=False, error=handle_error(e, "get_trash_items")
            )

    @mcp.tool(name="get_saved_searches", annotations=_read_only("Get Saved Searches"))
    async def get_saved_searches(ctx: Context) -> SavedSearchesResponse:
        """List the library's saved searches with their conditions."""
        try:
            searches = await get_zotero_client().get_saved_searches()
            return SavedSearchesResponse(
                count=len(searches),
                searches=[
                    {"key": s.key, "name": s.name, "conditions": s.conditions}
                    for s in searches
                ],
            )

        except Exception as e:
            await ctx.error(f"Failed to get saved searches: {str(e)}")
            return SavedSearchesResponse(
                success=False, error=handle_error(e, "get_saved_searches")
            )
