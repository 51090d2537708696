"""Defaults for paths, the Spiget API and HTTP behaviour."""

from __future__ import annotations

from pathlib import Path

DEFAULT_MANIFEST_FILE_NAME = "pluginstall.manifest.toml"

# Per-manifest caches live in subdirectories of this directory in the user's home.
DEFAULT_CACHE_DIRECTORY_NAME = ".pluginstall_cache"

SPIGET_API_BASE_URL = "https://api.spiget.org/v2/"
SPIGOT_RESOURCE_PAGE = "https://www.spigotmc.org/resources/{resource_id}"

USER_AGENT = "pluginstall (github PersonBelowRocks/pluginstall)"

DEFAULT_REQUEST_TIMEOUT = 30.0

DEFAULT_VERSIONS_LIMIT = 10


def default_cache_path(manifest_name: str) -> Path:
    """Cache root for a manifest when --cache is not given."""
    return Path.home() / DEFAULT_CACHE_DIRECTORY_NAME / manifest_name
