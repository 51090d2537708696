from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ..errors import LoadError, PluginNotFoundError
from ..models.manifest import Manifest

if TYPE_CHECKING:
    from pathlib import Path

    from ..models.manifest import PluginSource


def load_manifest(path: Path) -> Manifest:
    """Load and validate a pluginstall manifest file."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LoadError(f"Manifest file not found: {path}", path=path) from e
    except OSError as e:
        raise LoadError(f"Could not read manifest {path}: {e}", path=path) from e
    return parse_manifest(text, path=path)


def parse_manifest(text: str, path: Path | None = None) -> Manifest:
    where = path or "<string>"
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise LoadError(f"Invalid TOML in {where}: {e}", path=path) from e
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise LoadError(f"Invalid manifest {where}: {e}", path=path) from e


def lookup_plugin(manifest: Manifest, name: str) -> PluginSource:
    """Return the source a manifest plugin is bound to."""
    try:
        return manifest.plugins[name]
    except KeyError:
        raise PluginNotFoundError(name) from None
