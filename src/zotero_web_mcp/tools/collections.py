"""
Collection management tools for Zotero Web MCP.
"""

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.models.common import BaseResponse
from zotero_web_mcp.models.inputs import (
    CreateCollectionInput,
    DeleteCollectionInput,
    GetCollectionInput,
    GetCollectionItemsInput,
    ListCollectionsInput,
    UpdateCollectionInput,
)
from zotero_web_mcp.models.responses import (
    CollectionResponse,
    CollectionsResponse,
    KeyResponse,
    SearchResponse,
)
from zotero_web_mcp.utils.errors import handle_error
from zotero_web_mcp.utils.helpers import collection_summary, item_summary


def register_collection_tools(mcp: FastMCP) -> None:
    """Register collection management tools."""

    @mcp.tool(
        name="list_collections",
        annotations=ToolAnnotations(
            title="List Collections",
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def list_collections(
        params: ListCollectionsInput, ctx: Context
    ) -> CollectionsResponse:
        """
        List top-level collections, or the sub-collections of parent_key.

        Args:
            params: Parameters including optional parent_key.
        """
        try:
            collections = await get_zotero_client().get_collections(params.parent_key)
            return CollectionsResponse(
                count=len(collections),
                collections=[collection_summary(c) for c in collections],
            )

        except Exception as e:
            await ctx.error(f"Failed to list collections: {str(e)}")
            return CollectionsResponse(
                success=False, error=handle_error(e, "list_collections")
            )

    @mcp.tool(
        name="get_collection",
        annotations=ToolAnnotations(
            title="Get Collection",
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def get_collection(
        params: GetCollectionInput, ctx: Context
    ) -> CollectionResponse:
        """Get a collection's name, parent and item counts."""
        try:
            collection = await get_zotero_client().get_collection(params.collection_key)
            return CollectionResponse(collection=collection_summary(collection))

        except Exception as e:
            await ctx.error(f"Failed to get collection: {str(e)}")
            return CollectionResponse(
                success=False,
                error=handle_error(e, "get_collection"),
                collection_key=params.collection_key,
            )

    @mcp.tool(
        name="get_collection_items",
        annotations=ToolAnnotations(
            title="Get Collection Items",
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def get_collection_items(
        params: GetCollectionItemsInput, ctx: Context
    ) -> SearchResponse:
        """
        List top-level items directly in a collection.

        Args:
            params: Parameters including collection_key and limit (1-100).
        """
        try:
            result = await get_zotero_client().get_collection_items(
                params.collection_key, limit=params.limit
            )
            count = len(result.items)
            has_more = count < result.total_results
            return SearchResponse(
                total=result.total_results,
                count=count,
                has_more=has_more,
                next_start=count if has_more else None,
                items=[item_summary(i) for i in result.items],
            )

        except Exception as e:
            await ctx.error(f"Failed to get collection items: {str(e)}")
            return SearchResponse(
                success=False,
                error=handle_error(e, "get_collection_items"),
                collection_key=params.collection_key,
            )

    @mcp.tool(
        name="create_collection",
        annotations=ToolAnnotations(
            title="Create Collection",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def create_collection(
        params: CreateCollectionInput, ctx: Context
    ) -> KeyResponse:
        """
        Create a new collection in Zotero.

        Args:
            params: Parameters including name and optional parent_key.

        Returns:
            KeyResponse: Key of the created collection.
        """
        try:
            key = await get_zotero_client().create_collection(
                params.name, parent_key=params.parent_key
            )
            return KeyResponse(
                key=key, message=f"Collection '{params.name}' created with key: {key}"
            )

        except Exception as e:
            await ctx.error(f"Failed to create collection: {str(e)}")
            return KeyResponse(
                success=False,
                error=handle_error(e, "create_collection"),
                key="",
                name=params.name,
            )

    @mcp.tool(
        name="update_collection",
        annotations=ToolAnnotations(
            title="Update Collection",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def update_collection(
        params: UpdateCollectionInput, ctx: Context
    ) -> KeyResponse:
        """
        Rename a collection or move it under another parent.

        Args:
            params: Parameters including collection_key, optional new name,
                    and optional parent_key (false moves it to the top level).
        """
        try:
            version = await get_zotero_client().update_collection(
                params.collection_key,
                name=params.name,
                parent_key=params.parent_key,
            )
            return KeyResponse(
                key=params.collection_key,
                version=version,
                message=f"Collection {params.collection_key} updated",
            )

        except Exception as e:
            await ctx.error(f"Failed to update collection: {str(e)}")
            return KeyResponse(
                success=False,
                error=handle_error(e, "update_collection"),
                key=params.collection_key,
            )

    @mcp.tool(
        name="delete_collection",
        annotations=ToolAnnotations(
            title="Delete Collection",
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def delete_collection(
        params: DeleteCollectionInput, ctx: Context
    ) -> BaseResponse:
        """
        Delete a collection.

        Items in the collection are not deleted. This cannot be undone via API.

        Args:
            params: Parameters including collection_key.
        """
        try:
            await get_zotero_client().delete_collection(params.collection_key)
            return BaseResponse(message=f"Collection {params.collection_key} deleted")

        except Exception as e:
            await ctx.error(f"Failed to delete collection: {str(e)}")
            return BaseResponse(
                success=False,
                error=handle_error(e, "delete_collection"),
                collection_key=params.collection_key,
            )
