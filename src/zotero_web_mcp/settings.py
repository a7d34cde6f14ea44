"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from importlib.metadata import version as _pkg_version

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://api.zotero.org"
DEFAULT_TRANSLATION_SERVER_URL = "http://localhost:1969"


def _get_version() -> str:
    try:
        return _pkg_version("zotero-web-mcp")
    except Exception:
        return "0.0.0"


class ZoteroSettings(BaseSettings):
    """Zotero Web MCP settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ZOTERO_",
        extra="ignore",
        populate_by_name=True,
    )

    # Server metadata
    server_name: str = Field(default="zotero-web-mcp")
    server_version: str = Field(default_factory=_get_version)

    # Library identity and credentials
    api_key: str | None = Field(default=None)
    user_id: str | None = Field(default=None)
    group_id: str | None = Field(default=None)

    # Zotero Web API
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    request_interval: float = Field(default=1.0, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    download_timeout: float = Field(default=120.0, gt=0)

    # Attachment cache
    cache_dir: str | None = Field(
        default=None,
        validation_alias="ZOTERO_MCP_CACHE_DIR",
    )

    # Translation server
    translation_server_url: str = Field(
        default=DEFAULT_TRANSLATION_SERVER_URL,
        validation_alias="TRANSLATION_SERVER_URL",
    )

    @property
    def library_type(self) -> str:
        return "group" if self.group_id else "user"

    @property
    def library_id(self) -> str | None:
        return self.group_id or self.user_id


@lru_cache(maxsize=1)
def get_settings() -> ZoteroSettings:
    """Get the process-wide settings instance."""
    return ZoteroSettings()
