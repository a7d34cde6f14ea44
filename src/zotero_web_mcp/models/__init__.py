"""Pydantic models for Zotero Web MCP resources, tool inputs and outputs."""

from .common import BaseInput, BaseResponse, ExportFormat, SearchMode, SortDirection
from .zotero import (
    CacheMeta,
    DownloadResult,
    FulltextPage,
    LibraryIdentity,
    SavedSearch,
    SearchParams,
    SearchResult,
    TagSummary,
    WriteResponse,
    ZoteroCollection,
    ZoteroItem,
)

__all__ = [
    # Common
    "BaseInput",
    "BaseResponse",
    "ExportFormat",
    "SearchMode",
    "SortDirection",
    # Zotero resources
    "LibraryIdentity",
    "ZoteroItem",
    "ZoteroCollection",
    "SavedSearch",
    "TagSummary",
    "SearchParams",
    "SearchResult",
    "WriteResponse",
    "FulltextPage",
    "CacheMeta",
    "DownloadResult",
]
