"""Download cache for plugin files.

Layout of a cache root:

    <root>/
      index.json                               # CacheIndex, pretty-printed JSON
      data/
        <source>-<plugin>-<version>.CACHED     # one file per cached version
      http_cache/                              # API responses, see Session

Every put/delete rewrites index.json before returning. Data files are fully
written and synced before the index refers to them, and an index entry is dropped
before its data file is overwritten.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO
from urllib.parse import quote

from .._files import validate_file_name
from ..errors import CacheError
from ..models.cache import CachedPlugin, CachedVersionFile
from ._index import CACHE_INDEX_FILE_NAME, CacheIndex, _atomic_write
from ._rwlock import RWLock

if TYPE_CHECKING:
    from datetime import timedelta
    from types import TracebackType

    from ..models.version import PluginApiType

logger = logging.getLogger(__name__)

CACHE_DATA_DIRECTORY_NAME = "data"

# Cached API responses, managed by the HTTP client rather than the index.
HTTP_CACHE_DIRECTORY_NAME = "http_cache"


def create_cache(path: Path) -> None:
    """Initialize path as a cache root. Existing index and data are left alone."""
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
        if not (path / CACHE_INDEX_FILE_NAME).is_file():
            CacheIndex.create_in_dir(path)
        (path / CACHE_DATA_DIRECTORY_NAME).mkdir(exist_ok=True)
    except OSError as e:
        raise CacheError(f"Could not create cache at {path}: {e}", path=path) from e


def cache_file_name(plugin_name: str, version_identifier: str, source_api: PluginApiType) -> str:
    """Name of the data file for one cached version.

    Plugin names and identifiers are percent-encoded with '-' escaped too, so distinct
    (source, plugin, version) triples never share a name.
    """
    return f"{source_api}-{_escape(plugin_name)}-{_escape(version_identifier)}.CACHED"


def _escape(component: str) -> str:
    return quote(component, safe="").replace("-", "%2D")


@dataclass
class CachedFile:
    """A fresh cache hit: its metadata and an open handle to its bytes.

    Use as a context manager, or call close().
    """

    meta: CachedVersionFile
    file: BinaryIO

    def read_bytes(self) -> bytes:
        data = self.file.read()
        self.file.seek(0)
        return data

    def copy_to_directory(self, directory: Path) -> int:
        """Copy the cached bytes to directory/<original file name>. Returns bytes copied."""
        file_name = self.meta.original_file_name
        if not validate_file_name(file_name, directory):
            raise CacheError(f"Cached file name {file_name!r} is not a safe file name")
        out_path = Path(directory) / file_name
        try:
            with out_path.open("wb") as out:
                shutil.copyfileobj(self.file, out)
                copied = out.tell()
            # leave the handle reusable
            self.file.seek(0)
        except OSError as e:
            raise CacheError(f"Error copying cached plugin file: {e}", path=out_path) from e
        return copied

    def close(self) -> None:
        self.file.close()

    def __enter__(self) -> CachedFile:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class DownloadCache:
    """Handle to a cache root. Safe to share between threads within one process.

    There is no cross-process locking: two pluginstall processes writing the same
    cache root can lose each other's index updates.
    """

    def __init__(self, path: Path, index: CacheIndex) -> None:
        self.path = Path(path)
        self.data_path = self.path / CACHE_DATA_DIRECTORY_NAME
        self.http_cache_path = self.path / HTTP_CACHE_DIRECTORY_NAME
        self._index = index
        self._lock = RWLock()

    @classmethod
    def open(cls, path: Path) -> DownloadCache:
        """Open an existing cache root (see create_cache).

        Raises:
            CacheError: The root, its data directory or its index is missing or unreadable.
            IndexParseError: index.json is corrupt. The file is left untouched.
        """
        path = Path(path)
        if not path.is_dir():
            raise CacheError(f"Cache directory not found: {path}", path=path)
        data_path = path / CACHE_DATA_DIRECTORY_NAME
        if not data_path.is_dir():
            raise CacheError(f"Cache data directory not found: {data_path}", path=data_path)
        index_path = path / CACHE_INDEX_FILE_NAME
        try:
            index = CacheIndex.open(index_path)
        except OSError as e:
            raise CacheError(f"Could not read cache index {index_path}: {e}", path=index_path) from e
        logger.debug("opened cache at %s (%d plugins)", path, len(index.plugins))
        return cls(path, index)

    def metadata(self, plugin_name: str, version_identifier: str) -> CachedVersionFile | None:
        """Index entry for a version, stale or not. Does not touch the data file."""
        with self._lock.read():
            return self._index.lookup(plugin_name, version_identifier)

    def get(self, plugin_name: str, version_identifier: str) -> CachedFile | None:
        """Open the cached file for a version, or None if it is not cached.

        A stale entry is deleted (index and data file) and reported as not cached.
        """
        with self._lock.read():
            meta = self._index.lookup(plugin_name, version_identifier)
            if meta is None:
                return None
            if not meta.is_outdated():
                # opened under the lock so a concurrent delete cannot unlink it first
                return CachedFile(meta=meta, file=self._open_data_file(meta))

        logger.debug("evicting stale cache entry %s/%s", plugin_name, version_identifier)
        self._evict_if_outdated(plugin_name, version_identifier)
        return None

    def _open_data_file(self, meta: CachedVersionFile) -> BinaryIO:
        file_path = self.data_path / meta.cache_file_name
        try:
            return file_path.open("rb")
        except OSError as e:
            raise CacheError(f"Could not open cached file {file_path}: {e}", path=file_path) from e

    def put(
        self,
        plugin_name: str,
        version_identifier: str,
        original_file_name: str,
        source_api: PluginApiType,
        ttl: timedelta | None,
        data: bytes,
    ) -> CachedVersionFile:
        """Cache data for a version, replacing any earlier copy. Returns the new index entry."""
        name = cache_file_name(plugin_name, version_identifier, source_api)
        file_path = self.data_path / name
        meta = CachedVersionFile(
            original_file_name=original_file_name,
            cache_file_name=name,
            ttl=ttl,
            added=datetime.now(timezone.utc),
        )

        with self._lock.write():
            # the old entry must be gone from disk before its bytes are replaced
            self._drop_entry(plugin_name, version_identifier)
            try:
                _atomic_write(file_path, data)
            except OSError as e:
                raise CacheError(f"Could not write cached file {file_path}: {e}", path=file_path) from e

            plugins = self._index.snapshot()
            plugin = plugins.setdefault(plugin_name, CachedPlugin(source_api=source_api))
            plugin.source_api = source_api
            plugin.versions[version_identifier] = meta
            self._replace_index(plugins)

        logger.debug("cached %d bytes for %s/%s as %s", len(data), plugin_name, version_identifier, name)
        return meta.model_copy()

    def delete(self, plugin_name: str, version_identifier: str) -> CachedVersionFile | None:
        """Remove a cached version. Returns its metadata, or None if it was not cached.

        Raises CacheError if the index referenced a data file that does not exist.
        """
        with self._lock.write():
            return self._remove(plugin_name, version_identifier)

    def _evict_if_outdated(self, plugin_name: str, version_identifier: str) -> None:
        with self._lock.write():
            # a put may have refreshed the entry since it was read
            meta = self._index.lookup(plugin_name, version_identifier)
            if meta is not None and meta.is_outdated():
                self._remove(plugin_name, version_identifier)

    def _drop_entry(self, plugin_name: str, version_identifier: str) -> CachedVersionFile | None:
        # caller holds the write lock; the data file is left alone
        plugins = self._index.snapshot()
        plugin = plugins.get(plugin_name)
        if plugin is None:
            return None
        removed = plugin.versions.pop(version_identifier, None)
        if removed is None:
            return None
        if not plugin.versions:
            del plugins[plugin_name]
        self._replace_index(plugins)
        return removed

    def _remove(self, plugin_name: str, version_identifier: str) -> CachedVersionFile | None:
        # caller holds the write lock
        removed = self._drop_entry(plugin_name, version_identifier)
        if removed is None:
            return None

        file_path = self.data_path / removed.cache_file_name
        try:
            file_path.unlink()
        except OSError as e:
            raise CacheError(f"Could not delete cached file {file_path}: {e}", path=file_path) from e
        return removed

    def _replace_index(self, plugins: dict[str, CachedPlugin]) -> None:
        try:
            self._index.replace(plugins)
        except OSError as e:
            raise CacheError(
                f"Could not write cache index {self._index.path}: {e}", path=self._index.path
            ) from e
