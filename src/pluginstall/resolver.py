"""Turn a VersionSpec into one concrete version of a manifest plugin."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .api.spiget import SpigetPlugin
from .config import DEFAULT_VERSIONS_LIMIT
from .errors import (
    ApiNotFoundError,
    InvalidVersionSpecError,
    PluginNotFoundError,
    UnsupportedSourceError,
    VersionNotFoundError,
)
from .models.manifest import HangarSource, JenkinsSource, SpigetSource

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .api.spiget import SpigetClient
    from .models.manifest import PluginSource
    from .models.version import PluginApiType, PluginDetails, PluginVersion, VersionSpec

logger = logging.getLogger(__name__)

_NO_DATE = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Resolution:
    """A resolved version and whether it came from the "latest" lookup."""

    version: PluginVersion
    latest: bool


@dataclass
class ResolvedPlugin:
    """A manifest plugin opened against its remote API."""

    manifest_name: str
    api_type: PluginApiType
    handle: SpigetPlugin

    @property
    def details(self) -> PluginDetails:
        return self.handle.plugin_details()


def open_plugin(api: SpigetClient, manifest_name: str, source: PluginSource) -> ResolvedPlugin:
    """Open a manifest plugin against its remote API.

    Raises:
        PluginNotFoundError: The API does not know the plugin's resource.
        UnsupportedSourceError: The source type has no client yet.
    """
    if isinstance(source, SpigetSource):
        try:
            handle = SpigetPlugin.open(api, manifest_name, source.resource_id)
        except ApiNotFoundError as e:
            raise PluginNotFoundError(manifest_name) from e
        return ResolvedPlugin(manifest_name=manifest_name, api_type="spiget", handle=handle)
    if isinstance(source, HangarSource):
        raise UnsupportedSourceError(manifest_name, source.type)
    if isinstance(source, JenkinsSource):
        raise UnsupportedSourceError(manifest_name, source.type)
    raise UnsupportedSourceError(manifest_name, type(source).__name__)


def parse_spiget_identifier(value: str) -> int:
    """Spiget version identifiers are unsigned integers."""
    if not value.isascii() or not value.isdigit():
        raise InvalidVersionSpecError(
            f"Invalid Spiget version identifier {value!r}: expected an unsigned integer"
        )
    return int(value)


def check_version_spec(manifest_name: str, source: PluginSource, spec: VersionSpec) -> None:
    """Reject a spec that can never resolve for source, without any I/O.

    Raises:
        InvalidVersionSpecError: The identifier is malformed for the source's API.
        UnsupportedSourceError: The source type has no client yet.
    """
    if not isinstance(source, SpigetSource):
        raise UnsupportedSourceError(manifest_name, source.type)
    if spec.kind == "identifier":
        parse_spiget_identifier(str(spec.value))


def newest_with_name(versions: Iterable[PluginVersion], name: str) -> PluginVersion | None:
    """The most recently published version whose display name is exactly `name`.

    Versions without a publish date lose to dated ones; among equals the first wins.
    """
    best: PluginVersion | None = None
    for version in versions:
        if version.version_name != name:
            continue
        if best is None or _date_key(version) > _date_key(best):
            best = version
    return best


def _date_key(version: PluginVersion) -> datetime:
    return version.publish_date or _NO_DATE


def version_from_spec(
    plugin: ResolvedPlugin,
    spec: VersionSpec,
    limit: int = DEFAULT_VERSIONS_LIMIT,
) -> PluginVersion | None:
    """Find the version matching spec, or None if there is none.

    Raises:
        InvalidVersionSpecError: The identifier cannot be an identifier for this API.
        FetchError: The API request failed for any reason other than not-found.
    """
    handle = plugin.handle
    api = handle.api

    if spec.is_latest:
        try:
            return handle.to_plugin_version(api.latest_version(handle.resource_id))
        except ApiNotFoundError:
            return None

    if spec.kind == "identifier":
        wanted = parse_spiget_identifier(str(spec.value))
        try:
            version = api.resource_version(handle.resource_id, wanted)
        except ApiNotFoundError:
            return None
        if version.id != wanted:
            logger.warning(
                "Spiget returned version %s when asked for version %s of resource %s",
                version.id,
                wanted,
                handle.resource_id,
            )
            return None
        return handle.to_plugin_version(version)

    if not handle.versions:
        handle.fetch_versions(limit)
    return newest_with_name(handle.general_versions(), str(spec.value))


def resolve(
    plugin: ResolvedPlugin,
    spec: VersionSpec,
    limit: int = DEFAULT_VERSIONS_LIMIT,
) -> Resolution:
    """Like version_from_spec, but a missing version raises VersionNotFoundError."""
    logger.debug("resolving version %r of %s", str(spec), plugin.manifest_name)
    version = version_from_spec(plugin, spec, limit=limit)
    if version is None:
        raise VersionNotFoundError(plugin.manifest_name, spec)
    return Resolution(version=version, latest=spec.is_latest)
