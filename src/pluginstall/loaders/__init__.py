from .manifest import load_manifest, lookup_plugin, parse_manifest

__all__ = [
    "load_manifest",
    "lookup_plugin",
    "parse_manifest",
]
