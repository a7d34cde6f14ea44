"""
Common Pydantic models and enums used across all tools.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SearchMode(str, Enum):
    """Search mode for keyword search."""

    TITLE_CREATOR_YEAR = "titleCreatorYear"
    EVERYTHING = "everything"


class SortDirection(str, Enum):
    """Sort direction for list endpoints."""

    ASC = "asc"
    DESC = "desc"


class ExportFormat(str, Enum):
    """Export formats supported by the Zotero Web API."""

    BIBTEX = "bibtex"
    RIS = "ris"
    CSLJSON = "csljson"
    BIBLIOGRAPHY = "bibliography"
    COINS = "coins"
    REFER = "refer"
    TEI = "tei"

    @property
    def extension(self) -> str:
        return FORMAT_EXTENSIONS[self]


FORMAT_EXTENSIONS = {
    ExportFormat.BIBTEX: ".bib",
    ExportFormat.RIS: ".ris",
    ExportFormat.CSLJSON: ".json",
    ExportFormat.BIBLIOGRAPHY: ".txt",
    ExportFormat.COINS: ".html",
    ExportFormat.REFER: ".txt",
    ExportFormat.TEI: ".xml",
}


class BaseInput(BaseModel):
    """Base class for all tool input models."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


class BaseResponse(BaseModel):
    """
    Base class for all tool responses.

    Failures are reported as ``success=False`` with a human-readable
    ``error`` instead of raising out of the tool.
    """

    model_config = ConfigDict(extra="allow")

    success: bool = Field(default=True, description="Whether the operation succeeded")
    error: str | None = Field(
        default=None, description="Error message if operation failed"
    )
    message: str | None = Field(default=None, description="Human-readable summary")
