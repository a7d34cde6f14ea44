"""
Utility functions and helpers for Zotero Web MCP.
"""

from .errors import (
    ConfigurationError,
    InvalidOperationError,
    NotFoundError,
    RateLimitError,
    TranslationServerError,
    VersionConflictError,
    ZoteroAPIError,
    ZoteroMCPError,
    handle_error,
)
from .logging_config import initialize_logging, setup_logging

__all__ = [
    "ZoteroMCPError",
    "ConfigurationError",
    "ZoteroAPIError",
    "NotFoundError",
    "VersionConflictError",
    "RateLimitError",
    "InvalidOperationError",
    "TranslationServerError",
    "handle_error",
    "initialize_logging",
    "setup_logging",
]
