"""
Pydantic input models for the MCP tools.
"""

from typing import Literal

from pydantic import Field, model_validator

from zotero_web_mcp.models.common import BaseInput, ExportFormat, SearchMode

# -------------------- Search & Read --------------------


class SearchItemsInput(BaseInput):
    """Input for searching items."""

    query: str | None = Field(default=None, description="Search keywords")
    qmode: SearchMode = Field(
        default=SearchMode.TITLE_CREATOR_YEAR,
        description="'titleCreatorYear' (fast) or 'everything' (includes full text)",
    )
    item_type: str | None = Field(
        default=None, description="Filter by item type (e.g., journalArticle, book)"
    )
    tag: str | None = Field(default=None, description="Filter by tag")
    collection_key: str | None = Field(
        default=None, description="Filter by collection key"
    )
    limit: int = Field(
        default=25, ge=1, le=100, description="Number of results (default 25, max 100)"
    )
    start: int = Field(default=0, ge=0, description="Pagination offset")


class GetItemInput(BaseInput):
    """Input for retrieving a single item."""

    item_key: str = Field(..., min_length=1, description="The unique key of the item")


class GetRecentItemsInput(BaseInput):
    """Input for recently added items."""

    limit: int = Field(
        default=10, ge=1, le=50, description="Number of items (default 10, max 50)"
    )


class GetTrashItemsInput(BaseInput):
    """Input for listing the trash."""

    limit: int = Field(
        default=25, ge=1, le=100, description="Number of items (default 25, max 100)"
    )


class GetFulltextInput(BaseInput):
    """Input for paging through an item's full text."""

    item_key: str = Field(
        ..., min_length=1, description="Item key (usually an attachment key)"
    )
    offset: int = Field(default=0, ge=0, description="Character offset to start from")
    limit: int = Field(
        default=10000,
        ge=1000,
        le=50000,
        description="Characters per page (default 10000, 1000-50000)",
    )


# -------------------- Collections --------------------


class ListCollectionsInput(BaseInput):
    """Input for listing collections."""

    parent_key: str | None = Field(
        default=None, description="Parent collection key to list only sub-collections"
    )


class GetCollectionInput(BaseInput):
    """Input for retrieving a single collection."""

    collection_key: str = Field(..., min_length=1, description="The collection key")


class GetCollectionItemsInput(BaseInput):
    """Input for listing the items in a collection."""

    collection_key: str = Field(..., min_length=1, description="The collection key")
    limit: int = Field(
        default=25, ge=1, le=100, description="Number of results (default 25, max 100)"
    )


class CreateCollectionInput(BaseInput):
    """Input for creating a new collection."""

    name: str = Field(
        ..., min_length=1, max_length=255, description="Name of the new collection"
    )
    parent_key: str | None = Field(
        default=None,
        description="Parent collection key. If None, creates a top-level collection.",
    )


class UpdateCollectionInput(BaseInput):
    """Input for renaming or moving a collection."""

    collection_key: str = Field(..., min_length=1, description="Collection to update")
    name: str | None = Field(
        default=None, min_length=1, max_length=255, description="New name"
    )
    parent_key: str | Literal[False] | None = Field(
        default=None,
        description="New parent collection key, or false to move to the top level",
    )


class DeleteCollectionInput(BaseInput):
    """Input for deleting a collection."""

    collection_key: str = Field(..., min_length=1, description="Collection to delete")


# -------------------- Tags --------------------


class ListTagsInput(BaseInput):
    """Input for listing tags."""

    limit: int = Field(
        default=50, ge=1, le=100, description="Number of tags (default 50)"
    )


class AddTagsInput(BaseInput):
    """Input for adding tags to an item."""

    item_key: str = Field(..., min_length=1, description="The key of the item")
    tags: list[str] = Field(..., min_length=1, description="Tags to add")


# -------------------- Create / Update --------------------


class CreatorInput(BaseInput):
    """A creator on a new item."""

    creator_type: str = Field(
        default="author", description="author, editor, translator, etc."
    )
    first_name: str | None = Field(default=None, description="First name")
    last_name: str | None = Field(default=None, description="Last name")
    name: str | None = Field(
        default=None, description="Full name (for institutional authors)"
    )

    def to_zotero(self) -> dict[str, str]:
        if self.name:
            return {"creatorType": self.creator_type, "name": self.name}
        return {
            "creatorType": self.creator_type,
            "firstName": self.first_name or "",
            "lastName": self.last_name or "",
        }


class ItemFieldsInput(BaseInput):
    """Bibliographic fields shared by create and update."""

    title: str | None = Field(default=None, description="Title")
    date: str | None = Field(default=None, description="Publication date")
    DOI: str | None = Field(default=None, description="DOI")
    url: str | None = Field(default=None, description="URL")
    abstractNote: str | None = Field(default=None, description="Abstract")
    publicationTitle: str | None = Field(
        default=None, description="Journal or publication name"
    )
    volume: str | None = Field(default=None, description="Volume number")
    issue: str | None = Field(default=None, description="Issue number")
    pages: str | None = Field(default=None, description="Page range")

    def field_values(self) -> dict[str, str]:
        """Bibliographic fields that were actually given."""
        return {
            name: value
            for name, value in self.model_dump(include=set(ItemFieldsInput.model_fields)).items()
            if value is not None
        }


class CreateItemInput(ItemFieldsInput):
    """Input for creating an item by hand."""

    item_type: str = Field(
        ..., min_length=1, description="Item type (e.g., journalArticle, book, webpage)"
    )
    title: str = Field(..., min_length=1, description="Title of the item")
    creators: list[CreatorInput] | None = Field(
        default=None, description="List of creators"
    )
    tags: list[str] | None = Field(default=None, description="Tags to add")
    collections: list[str] | None = Field(
        default=None, description="Collection keys to add the item to"
    )


class CreateItemByIdentifierInput(BaseInput):
    """Input for creating an item from a DOI / ISBN / PMID / arXiv ID."""

    identifier: str = Field(
        ..., min_length=1, description="DOI, ISBN, PMID, or arXiv ID"
    )
    tags: list[str] | None = Field(default=None, description="Additional tags to add")
    collections: list[str] | None = Field(
        default=None, description="Collection keys to add the item to"
    )


class UpdateItemInput(ItemFieldsInput):
    """Input for updating an item's fields."""

    item_key: str = Field(..., min_length=1, description="The key of the item to update")

    @model_validator(mode="after")
    def _require_change(self) -> "UpdateItemInput":
        if not self.field_values():
            raise ValueError("At least one field to update must be provided")
        return self


class DeleteItemInput(BaseInput):
    """Input for moving an item to the trash."""

    item_key: str = Field(..., min_length=1, description="The key of the item to delete")


class AddToCollectionInput(BaseInput):
    """Input for adding an item to a collection."""

    item_key: str = Field(..., min_length=1, description="The key of the item")
    collection_key: str = Field(..., min_length=1, description="The key of the collection")


# -------------------- Export --------------------


class ExportInput(BaseInput):
    """
    Input for exporting a bibliography.

    Exactly one selection method applies, checked in order: item_keys,
    collection_key, tag, query, export_all.
    """

    item_keys: list[str] | None = Field(
        default=None, description="Specific item keys to export"
    )
    collection_key: str | None = Field(
        default=None, description="Export all items in this collection"
    )
    tag: str | None = Field(default=None, description="Export all items with this tag")
    query: str | None = Field(
        default=None, description="Export items matching this search query"
    )
    export_all: bool = Field(
        default=False,
        description="Export entire library (may be slow for large libraries)",
    )
    format: ExportFormat = Field(..., description="Export format")
    style: str | None = Field(
        default=None,
        description="Citation style for bibliography format (e.g., apa, ieee)",
    )
    limit: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Maximum items to export (default 100, ignored when export_all)",
    )
    output_path: str | None = Field(
        default=None,
        description="File to write. Defaults to <tmp>/zotero-export-<timestamp><ext>",
    )

    @property
    def has_selection(self) -> bool:
        return bool(
            self.item_keys
            or self.collection_key
            or self.tag
            or self.query
            or self.export_all
        )


# -------------------- Attachments --------------------


class DownloadAttachmentInput(BaseInput):
    """Input for downloading an attachment into the local cache."""

    item_key: str = Field(..., min_length=1, description="Attachment item key")
    force: bool = Field(
        default=False, description="Download again even if a fresh copy is cached"
    )


class ClearCacheInput(BaseInput):
    """Input for clearing the attachment cache."""

    item_key: str | None = Field(
        default=None,
        description="Attachment key to clear. If omitted, clears the whole library cache.",
    )
