"""
Tag tools for Zotero Web MCP.
"""

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.models.inputs import AddTagsInput, ListTagsInput
from zotero_web_mcp.models.responses import TagsResponse, TagsUpdateResponse
from zotero_web_mcp.utils.errors import handle_error


def register_tag_tools(mcp: FastMCP) -> None:
    """Register tag tools."""

    @mcp.tool(
        name="list_tags",
        annotations=ToolAnnotations(
            title="List Tags",
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def list_tags(params: ListTagsInput, ctx: Context) -> TagsResponse:
        """
        List tags in the library.

        Each tag is reported with its kind: 'user' for manually added
        tags, 'automatic' for tags added on import.
        """
        try:
            tags = await get_zotero_client().get_tags(params.limit)
            return TagsResponse(
                count=len(tags),
                tags=[
                    {"tag": t.tag, "type": t.kind, "num_items": t.num_items}
                    for t in tags
                ],
            )

        except Exception as e:
            await ctx.error(f"Failed to list tags: {str(e)}")
            return TagsResponse(success=False, error=handle_error(e, "list_tags"))

    @mcp.tool(
        name="add_tags_to_item",
        annotations=ToolAnnotations(
            title="Add Tags to Item",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def add_tags_to_item(
        params: AddTagsInput, ctx: Context
    ) -> TagsUpdateResponse:
        """
        Add tags to an item. Existing tags are kept and duplicates skipped.

        Args:
            params: Parameters including item_key and tags.

        Returns:
            TagsUpdateResponse: The item's full tag list after the update.
        """
        try:
            tags = await get_zotero_client().add_tags_to_item(params.item_key, params.tags)
            return TagsUpdateResponse(
                key=params.item_key,
                tags=tags,
                message=f"Item {params.item_key} now has {len(tags)} tags",
            )

        except Exception as e:
            await ctx.error(f"Failed to add tags to {params.item_key}: {str(e)}")
            return TagsUpdateResponse(
                success=False,
                error=handle_error(e, "add_tags_to_item"),
                key=params.item_key,
            )
