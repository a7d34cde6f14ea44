"""
Clients for Zotero Web MCP.

- ZoteroAPIClient: Zotero Web API v3 (items, collections, tags, attachments)
- TranslationClient: Zotero translation server (identifier lookup)
"""

from .translation import TranslationClient, get_translation_client
from .zotero import ZoteroAPIClient, get_zotero_client

__all__ = [
    "ZoteroAPIClient",
    "get_zotero_client",
    "TranslationClient",
    "get_translation_client",
]
