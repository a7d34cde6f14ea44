"""Zotero Web API client with its rate limiter and attachment cache."""

from .api_client import ZoteroAPIClient, get_zotero_client
from .attachment_cache import AttachmentCache, get_cache_dir
from .rate_limiter import RateLimiter

__all__ = [
    "ZoteroAPIClient",
    "get_zotero_client",
    "AttachmentCache",
    "get_cache_dir",
    "RateLimiter",
]
