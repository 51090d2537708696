from .cache import CachedPlugin, CachedVersionFile, CacheIndexFile
from .manifest import (
    HangarSource,
    JenkinsSource,
    Manifest,
    ManifestMeta,
    PluginSource,
    SpigetSource,
)
from .spiget import SpigetResourceDetails, SpigetResourceFile, SpigetResourceVersion
from .version import PluginApiType, PluginDetails, PluginVersion, VersionSpec

__all__ = [
    "CacheIndexFile",
    "CachedPlugin",
    "CachedVersionFile",
    "HangarSource",
    "JenkinsSource",
    "Manifest",
    "ManifestMeta",
    "PluginApiType",
    "PluginDetails",
    "PluginSource",
    "PluginVersion",
    "SpigetResourceDetails",
    "SpigetResourceFile",
    "SpigetResourceVersion",
    "SpigetSource",
    "VersionSpec",
]
