"""
Models for Zotero Web API resources.

Items keep their ``data`` payload as an open mapping so that fields the
client does not know about round-trip untouched through updates.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from zotero_web_mcp.models.common import SearchMode, SortDirection

# Link modes whose binary is stored on the Zotero server
DOWNLOADABLE_LINK_MODES = ("imported_file", "imported_url")


class LibraryIdentity(BaseModel):
    """A user or group library; fixed for the lifetime of a client."""

    model_config = ConfigDict(frozen=True)

    library_type: Literal["user", "group"] = "user"
    library_id: str

    @property
    def path(self) -> str:
        """URL prefix for every library-scoped endpoint."""
        return f"/{self.library_type}s/{self.library_id}"

    @property
    def cache_prefix(self) -> str:
        return f"{self.library_type}_{self.library_id}"


class ZoteroItem(BaseModel):
    """A Zotero item as returned by the Web API (``format=json``)."""

    model_config = ConfigDict(extra="allow")

    key: str
    version: int = 0
    library: dict[str, Any] | None = None
    links: dict[str, Any] | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def item_type(self) -> str:
        return self.data.get("itemType", "")

    @property
    def title(self) -> str:
        return self.data.get("title", "")

    @property
    def tags(self) -> list[str]:
        """Tag names in server order."""
        return [t["tag"] for t in self.data.get("tags", []) if t.get("tag")]

    @property
    def collections(self) -> list[str]:
        return list(self.data.get("collections", []))

    @property
    def is_trashed(self) -> bool:
        return bool(self.data.get("deleted"))


class ZoteroCollection(BaseModel):
    """A Zotero collection (folder)."""

    model_config = ConfigDict(extra="allow")

    key: str
    version: int = 0
    library: dict[str, Any] | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.data.get("name", "")

    @property
    def parent_key(self) -> str | None:
        """Parent collection key, or None for a top-level collection."""
        return self.data.get("parentCollection") or None


class SavedSearch(BaseModel):
    """A saved search. Read-only from this client."""

    model_config = ConfigDict(extra="allow")

    key: str
    version: int = 0
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.data.get("name", "")

    @property
    def conditions(self) -> list[dict[str, Any]]:
        return list(self.data.get("conditions", []))


class TagSummary(BaseModel):
    """A tag name with its kind."""

    tag: str = Field(..., description="Tag name")
    type: int = Field(default=0, description="Tag type (0=user, nonzero=automatic)")
    num_items: int | None = Field(default=None, description="Items carrying the tag")

    @property
    def kind(self) -> Literal["user", "automatic"]:
        return "user" if self.type == 0 else "automatic"


class SearchParams(BaseModel):
    """Filter for searchItems."""

    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    qmode: SearchMode = SearchMode.TITLE_CREATOR_YEAR
    item_type: str | None = None
    tag: str | None = None
    collection_key: str | None = None
    limit: int = Field(default=25, ge=1, le=100)
    start: int = Field(default=0, ge=0)
    sort: str = "dateModified"
    direction: SortDirection = SortDirection.DESC
    include_children: bool = False
    include_trashed: bool = False


class SearchResult(BaseModel):
    """One page of search results."""

    items: list[ZoteroItem] = Field(default_factory=list)
    total_results: int = 0


class WriteFailure(BaseModel):
    code: int = 0
    message: str = ""


class WriteResponse(BaseModel):
    """Multi-object write response, keyed by submission index."""

    model_config = ConfigDict(extra="allow")

    success: dict[str, str] = Field(default_factory=dict)
    successful: dict[str, Any] = Field(default_factory=dict)
    unchanged: dict[str, str] = Field(default_factory=dict)
    failed: dict[str, WriteFailure] = Field(default_factory=dict)


class FulltextPage(BaseModel):
    """A client-side page over an item's indexed full text."""

    item_key: str
    content: str
    offset: int
    limit: int
    total_length: int
    has_more: bool
    next_offset: int | None = None
    indexed_pages: int | None = None
    total_pages: int | None = None
    indexed_chars: int | None = None
    total_chars: int | None = None


class CacheMeta(BaseModel):
    """Sidecar record stored next to a cached attachment binary."""

    model_config = ConfigDict(populate_by_name=True)

    item_key: str | None = Field(default=None, alias="itemKey")
    version: int
    filename: str
    content_type: str = Field(default="", alias="contentType")
    size: int = 0
    downloaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="downloadedAt"
    )


class DownloadResult(BaseModel):
    """Where an attachment binary ended up and whether it came from cache."""

    item_key: str
    path: Path
    filename: str
    content_type: str = ""
    size: int = 0
    version: int
    from_cache: bool = False
