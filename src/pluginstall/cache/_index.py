"""The cache index: which cache data file holds which plugin version."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import ValidationError

from ..errors import IndexParseError
from ..models.cache import CachedPlugin, CachedVersionFile, CacheIndexFile

CACHE_INDEX_FILE_NAME = "index.json"


def _atomic_write(path: Path, data: bytes) -> None:
    """Replace path with data so readers see either the old or the new file, never a mix."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        with tmp.open("wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class CacheIndex:
    """In-memory copy of index.json. Callers serialize access to it."""

    def __init__(self, path: Path, plugins: dict[str, CachedPlugin] | None = None) -> None:
        self.path = Path(path)
        self.plugins: dict[str, CachedPlugin] = plugins if plugins is not None else {}

    @classmethod
    def open(cls, path: Path) -> CacheIndex:
        """Load an index file.

        Raises:
            OSError: The file could not be read (FileNotFoundError if absent).
            IndexParseError: The file is not a valid index. Never replaced by an empty index.
        """
        path = Path(path)
        raw = path.read_bytes()
        try:
            contents = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexParseError(
                f"Cache index {path} is not UTF-8 (byte {e.start})", path=path, pos=e.start
            ) from e
        try:
            data = json.loads(contents)
        except json.JSONDecodeError as e:
            raise IndexParseError(
                f"Invalid JSON in cache index {path} at line {e.lineno} column {e.colno}: {e.msg}",
                path=path,
                lineno=e.lineno,
                colno=e.colno,
                pos=e.pos,
            ) from e
        try:
            index_file = CacheIndexFile.model_validate(data)
        except ValidationError as e:
            raise IndexParseError(f"Invalid cache index {path}: {e}", path=path) from e
        return cls(path, index_file.root)

    @classmethod
    def create_in_dir(cls, directory: Path) -> CacheIndex:
        """Write an empty index into directory, overwriting any existing index file."""
        index = cls(Path(directory) / CACHE_INDEX_FILE_NAME)
        index.sync_to_disk()
        return index

    def lookup(self, plugin_name: str, version_identifier: str) -> CachedVersionFile | None:
        plugin = self.plugins.get(plugin_name)
        if plugin is None:
            return None
        meta = plugin.versions.get(version_identifier)
        return meta.model_copy() if meta is not None else None

    def snapshot(self) -> dict[str, CachedPlugin]:
        """Deep copy of the plugin map, to be mutated and passed to replace()."""
        return {name: plugin.model_copy(deep=True) for name, plugin in self.plugins.items()}

    def replace(self, plugins: dict[str, CachedPlugin]) -> None:
        """Persist plugins, then adopt them. On failure the in-memory index is unchanged."""
        _atomic_write(self.path, _serialize(plugins))
        self.plugins = plugins

    def sync_to_disk(self) -> None:
        _atomic_write(self.path, _serialize(self.plugins))


def _serialize(plugins: dict[str, CachedPlugin]) -> bytes:
    return CacheIndexFile(plugins).model_dump_json(indent=2, by_alias=True).encode("utf-8")
