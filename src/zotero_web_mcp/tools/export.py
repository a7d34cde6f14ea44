"""
Export tools for Zotero Web MCP.
"""

import asyncio
from datetime import datetime
from pathlib import Path
import tempfile

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations

from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.clients.zotero.pagination import collect_item_keys
from zotero_web_mcp.models.inputs import ExportInput
from zotero_web_mcp.models.responses import ExportResponse
from zotero_web_mcp.models.zotero import SearchParams
from zotero_web_mcp.utils.errors import handle_error
from zotero_web_mcp.utils.helpers import format_file_size


def default_export_path(extension: str) -> Path:
    """``<tmp>/zotero-export-<timestamp><ext>``"""
    timestamp = int(datetime.now().timestamp() * 1000)
    return Path(tempfile.gettempdir()) / f"zotero-export-{timestamp}{extension}"


def _write_export(path: Path, content: str) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode("utf-8")
    path.write_bytes(data)
    return len(data)


def register_export_tools(mcp: FastMCP) -> None:
    """Register export tools."""

    @mcp.tool(
        name="export_bibliography",
        annotations=ToolAnnotations(
            title="Export Bibliography",
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=True,
        ),
    )
    async def export_bibliography(params: ExportInput, ctx: Context) -> ExportResponse:
        """
        Export items as formatted bibliography or citation data.

        Selection methods (use ONE):
        - item_keys: Export specific items by their keys
        - collection_key: Export all items in a collection
        - tag: Export all items with a specific tag
        - query: Export items matching a search query
        - export_all: Export the entire library

        Formats: bibtex, ris, csljson, bibliography (use 'style', e.g. apa,
        chicago-author-date, ieee), coins, refer, tei.

        The export is always written to a file to keep large exports out
        of the conversation; the response reports the path and size.
        """
        fmt = params.format.value
        try:
            if not params.has_selection:
                return ExportResponse(
                    success=False,
                    error=(
                        "Please provide one of: item_keys, collection_key, tag, "
                        "query, or set export_all=true"
                    ),
                    format=fmt,
                )

            client = get_zotero_client()
            limit = None if params.export_all else params.limit

            if params.item_keys:
                keys = params.item_keys
            elif params.collection_key:
                keys = await collect_item_keys(
                    client, SearchParams(collection_key=params.collection_key), limit
                )
            elif params.tag:
                keys = await collect_item_keys(client, SearchParams(tag=params.tag), limit)
            elif params.query:
                keys = await collect_item_keys(
                    client, SearchParams(query=params.query), limit
                )
            else:
                keys = await collect_item_keys(client, None, limit)

            if not keys:
                return ExportResponse(
                    success=False,
                    error="No items found matching the criteria",
                    format=fmt,
                )

            content = await client.export_items(keys, fmt, style=params.style)

            path = (
                Path(params.output_path).expanduser()
                if params.output_path
                else default_export_path(params.format.extension)
            )
            size = await asyncio.to_thread(_write_export, path, content)

            await ctx.info(f"Exported {len(keys)} items to {path}")
            return ExportResponse(
                file_path=str(path),
                item_count=len(keys),
                format=fmt,
                file_size=format_file_size(size),
            )

        except Exception as e:
            await ctx.error(f"Export failed: {str(e)}")
            return ExportResponse(
                success=False,
                error=handle_error(e, "export_bibliography"),
                format=fmt,
            )
