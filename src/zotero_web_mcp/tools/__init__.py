"""
MCP Tools for Zotero Web MCP.

This module registers all tools with the FastMCP server.
"""

from fastmcp import FastMCP

from .attachments import register_attachment_tools
from .collections import register_collection_tools
from .export import register_export_tools
from .items import register_item_tools
from .search import register_search_tools
from .tags import register_tag_tools


def register_all_tools(mcp: FastMCP) -> None:
    """
    Register all Zotero Web MCP tools.

    Args:
        mcp: FastMCP server instance
    """
    register_search_tools(mcp)
    register_item_tools(mcp)
    register_collection_tools(mcp)
    register_tag_tools(mcp)
    register_export_tools(mcp)
    register_attachment_tools(mcp)


__all__ = [
    "register_all_tools",
    "register_search_tools",
    "register_item_tools",
    "register_collection_tools",
    "register_tag_tools",
    "register_export_tools",
    "register_attachment_tools",
]
