"""MCP server entry point for zotero-web-mcp."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastmcp import FastMCP

from zotero_web_mcp.clients.translation import get_translation_client
from zotero_web_mcp.clients.zotero import get_zotero_client
from zotero_web_mcp.settings import get_settings
from zotero_web_mcp.tools import register_all_tools
from zotero_web_mcp.utils.logging_config import initialize_logging

logger = logging.getLogger(__name__)

INSTRUCTIONS = """
Tools for a Zotero library accessed through the Zotero Web API.

- Use search_items / get_collection_items to find item keys, then get_item
  for full records.
- Writes (update_item, delete_item, add_tags_to_item, ...) fail with a
  version conflict if the item changed elsewhere; fetch it again and retry.
- If a tool reports a rate limit, wait the advised number of seconds.
- create_item_by_identifier needs a Zotero translation server; use
  check_translation_server to see whether one is running.
"""


async def close_clients() -> None:
    """Close any client built during this process."""
    if get_zotero_client.cache_info().currsize:
        await get_zotero_client().close()
    if get_translation_client.cache_info().currsize:
        await get_translation_client().close()


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Manage server startup and shutdown lifecycle."""
    settings = get_settings()
    logger.info(
        f"Starting {settings.server_name} v{settings.server_version} "
        f"({settings.library_type} library {settings.library_id or '<unset>'})"
    )
    try:
        yield {}
    finally:
        await close_clients()
        logger.info("Shut down Zotero Web MCP server")


mcp = FastMCP(
    get_settings().server_name,
    instructions=INSTRUCTIONS,
    lifespan=server_lifespan,
)
register_all_tools(mcp)


def run() -> None:
    """Run the Zotero Web MCP server over stdio."""
    initialize_logging()
    mcp.run()


if __name__ == "__main__":
    run()
