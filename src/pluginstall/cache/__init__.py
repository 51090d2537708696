"""On-disk cache of downloaded plugin files."""

from ._cache import (
    CACHE_DATA_DIRECTORY_NAME,
    HTTP_CACHE_DIRECTORY_NAME,
    CachedFile,
    DownloadCache,
    cache_file_name,
    create_cache,
)
from ._index import CACHE_INDEX_FILE_NAME, CacheIndex

__all__ = [
    "CACHE_DATA_DIRECTORY_NAME",
    "CACHE_INDEX_FILE_NAME",
    "HTTP_CACHE_DIRECTORY_NAME",
    "CacheIndex",
    "CachedFile",
    "DownloadCache",
    "cache_file_name",
    "create_cache",
]
