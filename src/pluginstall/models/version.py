"""API-independent plugin and version types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

# The closed set of remote APIs a manifest plugin can be sourced from.
PluginApiType = Literal["spiget", "hangar", "jenkins"]


@dataclass(frozen=True)
class VersionSpec:
    """What version of a plugin the user asked for.

    Build with VersionSpec.name(...), VersionSpec.identifier(...) or VersionSpec.latest().
    """

    kind: Literal["name", "identifier", "latest"]
    value: str | None = None

    @classmethod
    def name(cls, value: str) -> VersionSpec:
        return cls("name", value)

    @classmethod
    def identifier(cls, value: str) -> VersionSpec:
        return cls("identifier", value)

    @classmethod
    def latest(cls) -> VersionSpec:
        return cls("latest")

    @property
    def is_latest(self) -> bool:
        return self.kind == "latest"

    def __str__(self) -> str:
        if self.kind == "latest":
            return "latest"
        return str(self.value)


class PluginVersion(BaseModel):
    """A concrete, downloadable version of a plugin.

    Two versions may share a version_name but never a version_identifier.
    """

    model_config = ConfigDict(frozen=True)
    version_identifier: str
    version_name: str
    download_url: str  # may redirect to the real file
    publish_date: datetime | None = None


class PluginDetails(BaseModel):
    """Details of a manifest plugin as known by its remote API."""

    manifest_name: str
    page_url: str
    plugin_type: PluginApiType
