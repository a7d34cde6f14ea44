"""
Common helper functions for Zotero Web MCP.
"""

import re

from zotero_web_mcp.models.responses import ChildSummary, CollectionSummary, ItemSummary
from zotero_web_mcp.models.zotero import ZoteroCollection, ZoteroItem

# Precompiled regex for HTML tag removal
_HTML_TAG_PATTERN = re.compile(r"<.*?>")

# Characters of a note shown in child listings
NOTE_PREVIEW_LENGTH = 200


def format_creators(creators: list[dict[str, str]]) -> str:
    """
    Format creator names into a string.

    Args:
        creators: List of creator objects from Zotero.
            Each creator may have 'firstName' and 'lastName' keys,
            or a single 'name' key for organizations/single-name authors.

    Returns:
        Semicolon-separated string of creator names in "Last, First" format.
        Returns "No authors listed" if no valid creators found.

    Examples:
        >>> format_creators([{"firstName": "Albert", "lastName": "Einstein"}])
        'Einstein, Albert'
        >>> format_creators([{"lastName": "Plato"}])
        'Plato'
        >>> format_creators([])
        'No authors listed'
    """
    names = []
    for creator in creators:
        if creator.get("name"):
            names.append(creator["name"])
        elif creator.get("lastName") and creator.get("firstName"):
            names.append(f"{creator['lastName']}, {creator['firstName']}")
        elif creator.get("lastName"):
            names.append(creator["lastName"])
    return "; ".join(names) if names else "No authors listed"


def clean_html(raw_html: str) -> str:
    """
    Remove HTML tags from a string.

    Examples:
        >>> clean_html("<p>Hello <b>world</b></p>")
        'Hello world'
    """
    return re.sub(_HTML_TAG_PATTERN, "", raw_html)


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length, preserving word boundaries.

    Args:
        text: Text to truncate.
        max_length: Maximum length of the result (including suffix).
        suffix: Suffix to append if text is truncated.
    """
    if len(text) <= max_length:
        return text

    truncate_at = max_length - len(suffix)
    last_space = text.rfind(" ", 0, truncate_at)

    if last_space > 0:
        return text[:last_space] + suffix
    return text[:truncate_at] + suffix


def format_file_size(size: int) -> str:
    """
    Human-readable byte count.

    Examples:
        >>> format_file_size(512)
        '512 B'
        >>> format_file_size(2048)
        '2.0 KB'
        >>> format_file_size(3 * 1024 * 1024)
        '3.00 MB'
    """
    if size > 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MB"
    if size > 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size} B"


def item_summary(item: ZoteroItem) -> ItemSummary:
    """Compact listing view of an item."""
    data = item.data
    return ItemSummary(
        key=item.key,
        title=data.get("title") or "(No title)",
        item_type=item.item_type,
        creators=format_creators(data.get("creators", [])),
        date=data.get("date") or "",
    )


def child_summary(item: ZoteroItem) -> ChildSummary:
    """Listing view of an attachment or note."""
    data = item.data
    note = data.get("note")
    return ChildSummary(
        key=item.key,
        item_type=item.item_type,
        title=data.get("title"),
        content_type=data.get("contentType"),
        link_mode=data.get("linkMode"),
        filename=data.get("filename"),
        note=truncate_text(clean_html(note), NOTE_PREVIEW_LENGTH) if note else None,
    )


def collection_summary(collection: ZoteroCollection) -> CollectionSummary:
    meta = collection.meta
    return CollectionSummary(
        key=collection.key,
        name=collection.name,
        parent_key=collection.parent_key,
        num_items=meta.get("numItems"),
        num_collections=meta.get("numCollections"),
    )
