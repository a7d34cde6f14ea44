"""
Unified error handling for Zotero Web MCP.
"""

import logging

logger = logging.getLogger(__name__)


class ZoteroMCPError(Exception):
    """Base exception for Zotero Web MCP errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message


class ConfigurationError(ZoteroMCPError):
    """Configuration error."""

    pass


class APIConnectionError(ZoteroMCPError):
    """Error connecting to the Zotero Web API."""

    pass


class InvalidOperationError(ZoteroMCPError):
    """The requested operation does not apply to the target resource."""

    pass


class WriteFailedError(ZoteroMCPError):
    """A write was accepted by the API but reported as failed (or not at all)."""

    pass


# -------------------- Zotero Web API --------------------


class ZoteroAPIError(ZoteroMCPError):
    """Non-success HTTP status returned by the Zotero Web API."""

    def __init__(
        self,
        status_code: int,
        body: str = "",
        message: str | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(
            message or f"Zotero API error ({status_code}): {body}",
            suggestion=suggestion,
        )
        self.status_code = status_code
        self.body = body


class NotFoundError(ZoteroAPIError):
    """Resource not found (HTTP 404)."""

    pass


class VersionConflictError(ZoteroAPIError):
    """
    Write precondition failed (HTTP 412).

    The object or library changed on the server since the version sent in
    If-Unmodified-Since-Version. Re-read and retry.
    """

    pass


class RateLimitError(ZoteroAPIError):
    """Too many requests (HTTP 429). Carries the advised wait in seconds."""

    def __init__(self, retry_after: int, body: str = ""):
        super().__init__(
            429,
            body,
            message=f"Rate limited. Please wait {retry_after} seconds.",
        )
        self.retry_after = retry_after


# -------------------- Translation Server --------------------


class TranslationServerError(ZoteroMCPError):
    """Error returned by the Zotero translation server."""

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        status_code: int | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(message, suggestion=suggestion)
        self.identifier = identifier
        self.status_code = status_code


class TranslatorNotFoundError(TranslationServerError):
    """No translator can handle the identifier (HTTP 501)."""

    pass


class TranslationServerUnavailableError(TranslationServerError):
    """The translation server could not be reached."""

    pass


def handle_error(error: Exception, operation: str = "operation") -> str:
    """
    Handle errors consistently across all tools.

    Args:
        error: The exception that occurred
        operation: Name of the operation that failed

    Returns:
        User-friendly error message
    """
    logger.error(f"Error in {operation}: {str(error)}")

    if isinstance(error, RateLimitError):
        return f"Error: {error} Retry the request after the wait."

    if isinstance(error, VersionConflictError):
        return (
            f"Error: {error}. The object was modified by another client; "
            "fetch it again and retry."
        )

    if isinstance(error, ZoteroAPIError):
        return f"Error: {format_api_error(error.status_code, error.body)}"

    if isinstance(error, ZoteroMCPError):
        return f"Error: {error}"

    error_str = str(error).lower()
    error_type = type(error).__name__

    if "connection" in error_str or "timeout" in error_str or "timed out" in error_str:
        return (
            "Error: Could not connect to the Zotero Web API. "
            "Please check your network connection and try again."
        )

    return f"Error in {operation}: {error_type} - {str(error)}"


def format_api_error(status_code: int, message: str = "") -> str:
    """Format an API error with appropriate message."""
    error_messages = {
        400: "Bad request. Please check your input parameters.",
        403: "Access denied. Check that ZOTERO_API_KEY has the required permissions.",
        404: "Resource not found. Please check the item or collection key.",
        409: "Library locked. Please try again shortly.",
        412: "Version conflict. The object was modified since it was read.",
        413: "Request too large.",
        429: "Rate limit exceeded. Please wait before making more requests.",
        500: "Zotero server error. Please try again later.",
        503: "Zotero service unavailable. Please try again later.",
    }

    default_message = f"API error (status {status_code})"
    base_message = error_messages.get(status_code, default_message)

    if message:
        return f"{base_message} Details: {message}"
    return base_message
