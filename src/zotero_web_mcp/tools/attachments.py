"""
Attachment tools for Zotero Web MCP.
"""

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.models.common import BaseResponse
from zotero_web_mcp.models.inputs import ClearCacheInput, DownloadAttachmentInput
from zotero_web_mcp.models.responses import DownloadResponse
from zotero_web_mcp.utils.errors import handle_error
from zotero_web_mcp.utils.helpers import format_file_size


def register_attachment_tools(mcp: FastMCP) -> None:
    """Register attachment download and cache tools."""

    @mcp.tool(
        name="download_attachment",
        annotations=ToolAnnotations(
            title="Download Attachment",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def download_attachment(
        params: DownloadAttachmentInput, ctx: Context
    ) -> DownloadResponse:
        """
        Download an attachment's file to the local cache and return its path.

        Only files stored in Zotero (imported_file, imported_url link modes)
        can be downloaded. A cached copy for the attachment's current
        version is reused unless force is set.

        Args:
            params: Parameters including item_key (the attachment key) and force.

        Returns:
            DownloadResponse: Local path, size and whether it came from cache.
        """
        try:
            result = await get_zotero_client().download_attachment(
                params.item_key, force=params.force
            )
            source = "cache" if result.from_cache else "Zotero"
            return DownloadResponse(
                item_key=result.item_key,
                path=str(result.path),
                filename=result.filename,
                content_type=result.content_type,
                size=result.size,
                file_size=format_file_size(result.size),
                version=result.version,
                from_cache=result.from_cache,
                message=f"{result.filename} ready (from {source})",
            )

        except Exception as e:
            await ctx.error(f"Failed to download attachment {params.item_key}: {str(e)}")
            return DownloadResponse(
                success=False,
                error=handle_error(e, "download_attachment"),
                item_key=params.item_key,
            )

    @mcp.tool(
        name="clear_attachment_cache",
        annotations=ToolAnnotations(
            title="Clear Attachment Cache",
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=False,
        ),
    )
    async def clear_attachment_cache(
        params: ClearCacheInput, ctx: Context
    ) -> BaseResponse:
        """
        Remove downloaded attachment files from the local cache.

        Clears one attachment when item_key is given, otherwise every cached
        file for the configured library. Nothing in Zotero is changed.
        """
        try:
            await get_zotero_client().clear_attachment_cache(params.item_key)
            target = params.item_key or "all attachments"
            return BaseResponse(message=f"Cleared cache for {target}")

        except Exception as e:
            await ctx.error(f"Failed to clear attachment cache: {str(e)}")
            return BaseResponse(
                success=False,
                error=handle_error(e, "clear_attachment_cache"),
                item_key=params.item_key,
            )
