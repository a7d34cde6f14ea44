"""
Item write tools for Zotero Web MCP.

Provides tools for changing library contents:
- create_item: Create an item from its fields
- create_item_by_identifier: Create an item from a DOI / ISBN / PMID / arXiv ID
- update_item: Change an item's fields
- delete_item: Move an item to the trash
- add_item_to_collection: File an item into a collection
- check_translation_server: Probe the metadata lookup server
"""

from typing import Any

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.translation import get_translation_client
from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.models.inputs import (
    AddToCollectionInput,
    CreateItemByIdentifierInput,
    CreateItemInput,
    DeleteItemInput,
    UpdateItemInput,
)
from zotero_web_mcp.models.responses import (
    CreateItemResponse,
    KeyResponse,
    TranslationServerStatusResponse,
)
from zotero_web_mcp.utils.errors import handle_error


def build_item_data(template: dict[str, Any], params: CreateItemInput) -> dict[str, Any]:
    """
    Fill an item template from tool input.

    Fields the caller left out are dropped from the template rather than
    sent empty.
    """
    overrides: dict[str, Any] = {
        name: getattr(params, name) for name in CreateItemInput.model_fields
        if name not in ("item_type", "creators", "tags", "collections")
    }
    overrides["creators"] = (
        [c.to_zotero() for c in params.creators] if params.creators else None
    )
    overrides["tags"] = [{"tag": t} for t in params.tags] if params.tags else None
    overrides["collections"] = params.collections or None

    item_data = {**template, **overrides}
    return {k: v for k, v in item_data.items() if v is not None}


def register_item_tools(mcp: FastMCP) -> None:
    """Register all item write tools with the MCP server."""

    @mcp.tool(
        name="create_item",
        annotations=ToolAnnotations(
            title="Create Item",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def create_item(params: CreateItemInput, ctx: Context) -> CreateItemResponse:
        """
        Create a new item in the Zotero library manually.

        Starts from the server's template for item_type, so only fields
        valid for that type should be given.

        Args:
            params: Item type, title, and optional creators, date, DOI, url,
                    abstractNote, publicationTitle, volume, issue, pages,
                    tags and collections.

        Returns:
            CreateItemResponse: Key of the new item.
        """
        try:
            client = get_zotero_client()
            template = await client.get_item_template(params.item_type)
            key = await client.create_item(build_item_data(template, params))
            return CreateItemResponse(
                key=key,
                title=params.title,
                item_type=params.item_type,
                message=f"Item created successfully with key: {key}",
            )

        except Exception as e:
            await ctx.error(f"Failed to create item: {str(e)}")
            return CreateItemResponse(
                success=False,
                error=handle_error(e, "create_item"),
                key="",
                title=params.title,
                item_type=params.item_type,
            )

    @mcp.tool(
        name="create_item_by_identifier",
        annotations=ToolAnnotations(
            title="Create Item by Identifier",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=False,
            openWorldHint=True,
        ),
    )
    async def create_item_by_identifier(
        params: CreateItemByIdentifierInput, ctx: Context
    ) -> CreateItemResponse:
        """
        Create a new item by DOI, ISBN, PMID, or arXiv ID.

        Requires a running Zotero translation server. The first metadata
        match is used; extra tags are appended to the ones it carries.

        Args:
            params: Parameters including identifier, optional tags and
                    collection keys.
        """
        try:
            candidates = await get_translation_client().search(params.identifier)
            if not candidates:
                return CreateItemResponse(
                    success=False,
                    error=f"No metadata found for identifier: {params.identifier}",
                    key="",
                    identifier=params.identifier,
                )

            item_data = dict(candidates[0])
            if params.tags:
                item_data["tags"] = list(item_data.get("tags") or []) + [
                    {"tag": t} for t in params.tags
                ]
            if params.collections:
                item_data["collections"] = params.collections

            key = await get_zotero_client().create_item(item_data)
            return CreateItemResponse(
                key=key,
                title=item_data.get("title"),
                item_type=item_data.get("itemType"),
                message=f"Item created successfully from {params.identifier}",
            )

        except Exception as e:
            await ctx.error(f"Failed to create item from {params.identifier}: {str(e)}")
            return CreateItemResponse(
                success=False,
                error=handle_error(e, "create_item_by_identifier"),
                key="",
                identifier=params.identifier,
            )

    @mcp.tool(
        name="update_item",
        annotations=ToolAnnotations(
            title="Update Item",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def update_item(params: UpdateItemInput, ctx: Context) -> KeyResponse:
        """
        Update fields of an existing item. Fields not given are left as is.

        Fails with a version conflict if the item was changed elsewhere
        between the read and the write; fetch it again and retry.
        """
        try:
            changes = params.field_values()
            version = await get_zotero_client().update_item(params.item_key, changes)
            return KeyResponse(
                key=params.item_key,
                version=version,
                message=f"Updated {', '.join(changes)} on {params.item_key}",
            )

        except Exception as e:
            await ctx.error(f"Failed to update item {params.item_key}: {str(e)}")
            return KeyResponse(
                success=False,
                error=handle_error(e, "update_item"),
                key=params.item_key,
            )

    @mcp.tool(
        name="delete_item",
        annotations=ToolAnnotations(
            title="Delete Item",
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def delete_item(params: DeleteItemInput, ctx: Context) -> KeyResponse:
        """
        Move an item to the trash.

        The item stays retrievable and can be restored from the trash in
        Zotero.
        """
        try:
            version = await get_zotero_client().delete_item(params.item_key)
            return KeyResponse(
                key=params.item_key,
                version=version,
                message=f"Item {params.item_key} moved to trash",
            )

        except Exception as e:
            await ctx.error(f"Failed to delete item {params.item_key}: {str(e)}")
            return KeyResponse(
                success=False,
                error=handle_error(e, "delete_item"),
                key=params.item_key,
            )

    @mcp.tool(
        name="add_item_to_collection",
        annotations=ToolAnnotations(
            title="Add Item to Collection",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def add_item_to_collection(
        params: AddToCollectionInput, ctx: Context
    ) -> KeyResponse:
        """Add an item to a collection. Already-filed items are left alone."""
        try:
            added = await get_zotero_client().add_item_to_collection(
                params.item_key, params.collection_key
            )
            message = (
                f"Item {params.item_key} added to collection {params.collection_key}"
                if added
                else f"Item {params.item_key} is already in collection {params.collection_key}"
            )
            return KeyResponse(key=params.item_key, message=message, added=added)

        except Exception as e:
            await ctx.error(f"Failed to add {params.item_key} to collection: {str(e)}")
            return KeyResponse(
                success=False,
                error=handle_error(e, "add_item_to_collection"),
                key=params.item_key,
                collection_key=params.collection_key,
            )

    @mcp.tool(
        name="check_translation_server",
        annotations=ToolAnnotations(
            title="Check Translation Server",
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def check_translation_server(ctx: Context) -> TranslationServerStatusResponse:
        """Check whether the translation server used by create_item_by_identifier is up."""
        client = get_translation_client()
        available = await client.is_available()
        message = (
            "Translation server is available"
            if available
            else "Translation server is not reachable. Start it with: "
            "docker run -d -p 1969:1969 zotero/translation-server"
        )
        return TranslationServerStatusResponse(
            url=client.base_url, available=available, message=message
        )
