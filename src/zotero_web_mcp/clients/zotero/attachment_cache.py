"""
On-disk cache for downloaded attachment files.

Layout::

    <cache root>/files/<libraryType>_<libraryId>/<itemKey>/<filename>
    <cache root>/files/<libraryType>_<libraryId>/<itemKey>/.meta.json

An entry is fresh while its recorded version equals the attachment item's
current server version and the binary is still on disk. Binaries and
sidecars are written to a temporary file and promoted with ``os.replace``,
so a reader never sees a half-written entry as valid.
"""

import asyncio
from collections.abc import AsyncIterator
import json
import logging
import os
from pathlib import Path
import platform
import shutil
import tempfile

from pydantic import ValidationError

from zotero_web_mcp.models.zotero import CacheMeta, LibraryIdentity

logger = logging.getLogger(__name__)

CACHE_APP_NAME = "zotero-mcp"
META_FILENAME = ".meta.json"
TEMP_SUFFIX = ".downloading"
META_TEMP_SUFFIX = ".meta-tmp"


def get_cache_dir(override: str | os.PathLike | None = None) -> Path:
    """
    Resolve the cache root directory.

    Priority order:
    1. Explicit override (ZOTERO_MCP_CACHE_DIR)
    2. $XDG_CACHE_HOME/zotero-mcp
    3. Platform default
    """
    if override:
        return Path(override).expanduser()

    env_override = os.getenv("ZOTERO_MCP_CACHE_DIR")
    if env_override:
        return Path(env_override).expanduser()

    xdg = os.getenv("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg) / CACHE_APP_NAME

    system = platform.system()
    if system == "Darwin":
        return Path.home() / "Library" / "Caches" / CACHE_APP_NAME
    if system == "Windows":
        base = os.getenv("LOCALAPPDATA") or tempfile.gettempdir()
        return Path(base) / CACHE_APP_NAME / "cache"
    return Path.home() / ".cache" / CACHE_APP_NAME


def _safe_filename(filename: str) -> str:
    """Strip directory components so a filename cannot escape its entry."""
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", "..") or name == META_FILENAME:
        raise ValueError(f"Invalid attachment filename: {filename!r}")
    return name


class AttachmentCache:
    """Library-scoped store of attachment binaries plus metadata sidecars."""

    def __init__(
        self,
        library: LibraryIdentity,
        cache_dir: str | os.PathLike | None = None,
    ):
        self.library = library
        self.cache_dir = get_cache_dir(cache_dir)

    @property
    def library_dir(self) -> Path:
        return self.cache_dir / "files" / self.library.cache_prefix

    def item_dir(self, item_key: str) -> Path:
        return self.library_dir / item_key

    def meta_path(self, item_key: str) -> Path:
        return self.item_dir(item_key) / META_FILENAME

    # -------------------- Reads --------------------

    def _read_meta(self, item_key: str) -> CacheMeta | None:
        try:
            raw = self.meta_path(item_key).read_text(encoding="utf-8")
            return CacheMeta.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError):
            return None

    async def get_meta(self, item_key: str) -> CacheMeta | None:
        """Sidecar for ``item_key``, or None if absent or unreadable."""
        return await asyncio.to_thread(self._read_meta, item_key)

    async def get_cached_file_path(self, item_key: str) -> Path | None:
        """Path of the cached binary, or None if there is no usable entry."""
        meta = await self.get_meta(item_key)
        if meta is None:
            return None
        path = self.item_dir(item_key) / meta.filename
        if not await asyncio.to_thread(path.is_file):
            return None
        return path

    async def is_valid(self, item_key: str, expected_version: int) -> bool:
        """True only if the sidecar version matches and the binary exists."""
        meta = await self.get_meta(item_key)
        if meta is None or meta.version != expected_version:
            return False
        path = self.item_dir(item_key) / meta.filename
        try:
            return await asyncio.to_thread(path.is_file)
        except OSError:
            return False

    # -------------------- Writes --------------------

    def _prepare_entry(self, item_key: str) -> Path:
        item_dir = self.item_dir(item_key)
        item_dir.mkdir(parents=True, exist_ok=True)
        # Old sidecar goes first; the new one is written last.
        self.meta_path(item_key).unlink(missing_ok=True)
        return item_dir

    def _open_temp(self, item_dir: Path, filename: str) -> tuple[int, Path]:
        fd, tmp = tempfile.mkstemp(dir=item_dir, prefix=f".{filename}.", suffix=TEMP_SUFFIX)
        return fd, Path(tmp)

    def _promote(self, item_key: str, tmp_path: Path, filename: str, meta: CacheMeta) -> Path:
        item_dir = self.item_dir(item_key)
        final_path = item_dir / filename
        os.replace(tmp_path, final_path)

        # In-flight temps belong to concurrent writers and are left alone.
        for stale in item_dir.iterdir():
            if stale.name in (filename, META_FILENAME):
                continue
            if stale.name.endswith((TEMP_SUFFIX, META_TEMP_SUFFIX)):
                continue
            stale.unlink(missing_ok=True)

        fd, meta_tmp = tempfile.mkstemp(dir=item_dir, prefix=".meta.", suffix=META_TEMP_SUFFIX)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(meta.model_dump_json(by_alias=True, indent=2))
        os.replace(meta_tmp, self.meta_path(item_key))
        return final_path

    def _write_bytes(self, item_key: str, filename: str, content: bytes, meta: CacheMeta) -> Path:
        item_dir = self._prepare_entry(item_key)
        fd, tmp_path = self._open_temp(item_dir, filename)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            return self._promote(item_key, tmp_path, filename, meta)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    async def save(
        self,
        item_key: str,
        filename: str,
        content: bytes,
        version: int,
        content_type: str = "",
    ) -> Path:
        """
        Store ``content`` as the cached binary for ``item_key``.

        Overwrites any existing entry, whatever its version.

        Returns:
            Path of the cached file
        """
        filename = _safe_filename(filename)
        meta = CacheMeta(
            item_key=item_key,
            version=version,
            filename=filename,
            content_type=content_type,
            size=len(content),
        )
        path = await asyncio.to_thread(self._write_bytes, item_key, filename, content, meta)
        logger.info(f"Cached attachment {item_key} v{version} ({len(content)} bytes)")
        return path

    async def save_from_stream(
        self,
        item_key: str,
        filename: str,
        chunks: AsyncIterator[bytes],
        version: int,
        content_type: str = "",
        expected_size: int | None = None,
    ) -> Path:
        """
        Stream a download into the cache.

        Chunks go to a temporary file that is promoted only after the
        stream completes. On any failure the temporary file is removed and
        the error propagates.
        """
        filename = _safe_filename(filename)
        item_dir = await asyncio.to_thread(self._prepare_entry, item_key)
        fd, tmp_path = await asyncio.to_thread(self._open_temp, item_dir, filename)

        size = 0
        try:
            f = os.fdopen(fd, "wb")
            try:
                async for chunk in chunks:
                    await asyncio.to_thread(f.write, chunk)
                    size += len(chunk)
            finally:
                await asyncio.to_thread(f.close)

            if expected_size is not None and size != expected_size:
                raise OSError(
                    f"Incomplete download for {item_key}: "
                    f"got {size} of {expected_size} bytes"
                )

            meta = CacheMeta(
                item_key=item_key,
                version=version,
                filename=filename,
                content_type=content_type,
                size=size,
            )
            path = await asyncio.to_thread(self._promote, item_key, tmp_path, filename, meta)
        except BaseException:
            await self.cleanup_temp(tmp_path)
            raise

        logger.info(f"Cached attachment {item_key} v{version} ({size} bytes)")
        return path

    async def cleanup_temp(self, tmp_path: Path) -> None:
        """Remove a partial download."""
        await asyncio.to_thread(tmp_path.unlink, True)

    # -------------------- Invalidation --------------------

    async def invalidate(self, item_key: str) -> None:
        """Remove one item's cache entry. Missing entries are ignored."""
        await asyncio.to_thread(shutil.rmtree, self.item_dir(item_key), True)
        logger.info(f"Invalidated attachment cache for {item_key}")

    async def clear_all(self) -> None:
        """Remove every cached attachment for this library."""
        await asyncio.to_thread(shutil.rmtree, self.library_dir, True)
        logger.info(f"Cleared attachment cache at {self.library_dir}")
