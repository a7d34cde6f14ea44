"""
Structured tool responses.

Every response derives from ``BaseResponse``; failures carry
``success=False`` plus the key or identifier that failed.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from zotero_web_mcp.models.common import BaseResponse


class ItemSummary(BaseModel):
    """Compact view of an item for listings."""

    key: str = Field(..., description="Zotero item key")
    title: str = Field(default="(No title)", description="Item title")
    item_type: str = Field(default="", description="Item type")
    creators: str = Field(default="(No authors)", description="Formatted creator names")
    date: str = Field(default="", description="Publication date")


class ChildSummary(BaseModel):
    """Attachment or note under a parent item."""

    key: str = Field(..., description="Child item key")
    item_type: str = Field(..., description="attachment or note")
    title: str | None = Field(default=None, description="Attachment title")
    content_type: str | None = Field(default=None, description="Attachment MIME type")
    link_mode: str | None = Field(default=None, description="Attachment link mode")
    filename: str | None = Field(default=None, description="Stored filename")
    note: str | None = Field(default=None, description="Plain-text note preview")


class CollectionSummary(BaseModel):
    key: str = Field(..., description="Collection key")
    name: str = Field(..., description="Collection name")
    parent_key: str | None = Field(default=None, description="Parent collection key")
    num_items: int | None = Field(default=None, description="Items in the collection")
    num_collections: int | None = Field(default=None, description="Sub-collections")


# -------------------- Read responses --------------------


class SearchResponse(BaseResponse):
    """One page of items."""

    total: int = Field(default=0, description="Total number of matching items")
    count: int = Field(default=0, description="Number of items in this response")
    start: int = Field(default=0, description="Current offset")
    has_more: bool = Field(default=False, description="Whether more results are available")
    next_start: int | None = Field(default=None, description="Offset for next page")
    items: list[ItemSummary] = Field(default_factory=list)


class ItemListResponse(BaseResponse):
    """Unpaged list of items."""

    count: int = Field(default=0)
    items: list[ItemSummary] = Field(default_factory=list)


class ItemDetailResponse(BaseResponse):
    """Full item record."""

    key: str = Field(..., description="Zotero item key")
    version: int | None = Field(default=None, description="Item version")
    data: dict[str, Any] = Field(default_factory=dict, description="Item fields")


class ChildrenResponse(BaseResponse):
    parent_key: str = Field(..., description="Parent item key")
    count: int = Field(default=0)
    children: list[ChildSummary] = Field(default_factory=list)


class FulltextResponse(BaseResponse):
    """One page of an item's indexed full text."""

    item_key: str = Field(..., description="Item key")
    content: str | None = Field(default=None, description="Text of this page")
    offset: int = Field(default=0)
    limit: int | None = Field(default=None)
    total_length: int = Field(default=0, description="Full text length in characters")
    has_more: bool = Field(default=False)
    next_offset: int | None = Field(default=None)
    indexed_pages: int | None = Field(default=None)
    total_pages: int | None = Field(default=None)
    indexed_chars: int | None = Field(default=None)
    total_chars: int | None = Field(default=None)


class SavedSearchesResponse(BaseResponse):
    count: int = Field(default=0)
    searches: list[dict[str, Any]] = Field(default_factory=list)


class CollectionsResponse(BaseResponse):
    count: int = Field(default=0)
    collections: list[CollectionSummary] = Field(default_factory=list)


class CollectionResponse(BaseResponse):
    collection: CollectionSummary | None = Field(default=None)


class TagsResponse(BaseResponse):
    count: int = Field(default=0)
    tags: list[dict[str, Any]] = Field(default_factory=list)


# -------------------- Write responses --------------------


class KeyResponse(BaseResponse):
    """Result of a write that targets or creates one object."""

    model_config = ConfigDict(extra="allow")

    key: str = Field(..., description="Item or collection key")
    version: int | None = Field(default=None, description="New version, if reported")


class CreateItemResponse(KeyResponse):
    title: str | None = Field(default=None)
    item_type: str | None = Field(default=None)


class TagsUpdateResponse(KeyResponse):
    tags: list[str] = Field(default_factory=list, description="Tags after the update")


# -------------------- Export / attachments --------------------


class ExportResponse(BaseResponse):
    """Where an export was written."""

    file_path: str | None = Field(default=None)
    item_count: int = Field(default=0)
    format: str = Field(..., description="Export format")
    file_size: str | None = Field(default=None, description="Human-readable size")


class DownloadResponse(BaseResponse):
    item_key: str = Field(..., description="Attachment key")
    path: str | None = Field(default=None, description="Local file path")
    filename: str | None = Field(default=None)
    content_type: str | None = Field(default=None)
    size: int | None = Field(default=None, description="Size in bytes")
    file_size: str | None = Field(default=None, description="Human-readable size")
    version: int | None = Field(default=None)
    from_cache: bool = Field(default=False)


class TranslationServerStatusResponse(BaseResponse):
    url: str = Field(..., description="Translation server base URL")
    available: bool = Field(default=False)
