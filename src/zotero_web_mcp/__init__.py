"""
Zotero Web MCP.

A Model Context Protocol server for Zotero libraries over the Zotero Web API.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("zotero-web-mcp")
except PackageNotFoundError:
    __version__ = "unknown"

from .server import mcp, run

__all__ = ["__version__", "mcp", "run"]
