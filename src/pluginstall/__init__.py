"""pluginstall: download Minecraft server plugins declared in a manifest, through a local cache."""

__version__ = "0.1.0"

from .api import SpigetClient, SpigetPlugin
from .cache import CachedFile, DownloadCache, cache_file_name, create_cache
from .download import DownloadReport, DownloadSpec, download, download_plugin
from .errors import (
    ApiDeserializationError,
    ApiNotFoundError,
    ApiTransportError,
    CacheError,
    DownloadError,
    FetchError,
    IndexParseError,
    InvalidVersionSpecError,
    LoadError,
    PluginNotFoundError,
    PluginstallError,
    UnexpectedStatusError,
    UnsafeFileNameError,
    UnsupportedSourceError,
    VersionNotFoundError,
)
from .loaders import load_manifest, lookup_plugin, parse_manifest
from .models import (
    CachedPlugin,
    CachedVersionFile,
    HangarSource,
    JenkinsSource,
    Manifest,
    ManifestMeta,
    PluginApiType,
    PluginDetails,
    PluginSource,
    PluginVersion,
    SpigetSource,
    VersionSpec,
)
from .resolver import Resolution, ResolvedPlugin, open_plugin, resolve
from .session import Session

__all__ = [
    "ApiDeserializationError",
    "ApiNotFoundError",
    "ApiTransportError",
    "CacheError",
    "CachedFile",
    "CachedPlugin",
    "CachedVersionFile",
    "DownloadCache",
    "DownloadError",
    "DownloadReport",
    "DownloadSpec",
    "FetchError",
    "HangarSource",
    "IndexParseError",
    "InvalidVersionSpecError",
    "JenkinsSource",
    "LoadError",
    "Manifest",
    "ManifestMeta",
    "PluginApiType",
    "PluginDetails",
    "PluginNotFoundError",
    "PluginSource",
    "PluginVersion",
    "PluginstallError",
    "Resolution",
    "ResolvedPlugin",
    "Session",
    "SpigetClient",
    "SpigetPlugin",
    "SpigetSource",
    "UnexpectedStatusError",
    "UnsafeFileNameError",
    "UnsupportedSourceError",
    "VersionNotFoundError",
    "VersionSpec",
    "__version__",
    "cache_file_name",
    "create_cache",
    "download",
    "download_plugin",
    "load_manifest",
    "lookup_plugin",
    "open_plugin",
    "parse_manifest",
    "resolve",
]
