"""Models for the pluginstall.manifest.toml file."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from .._files import validate_file_name


class SpigetSource(BaseModel):
    """A plugin published on SpigotMC, fetched through the Spiget API."""

    model_config = ConfigDict(extra="forbid")
    type: Literal["spiget"]
    resource_id: PositiveInt


class HangarSource(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["hangar"]
    slug: str


class JenkinsSource(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["jenkins"]
    url: str


# Discriminated union of every supported source
PluginSource = Annotated[
    SpigetSource | HangarSource | JenkinsSource,
    Field(discriminator="type"),
]


class ManifestMeta(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str  # also the default cache directory name

    @field_validator("name")
    @classmethod
    def _plain_directory_name(cls, name: str) -> str:
        if not validate_file_name(name):
            raise ValueError(f"manifest name {name!r} must be a plain directory name")
        return name


class Manifest(BaseModel):
    """Root of a manifest file. Plugins are keyed by their manifest name."""

    model_config = ConfigDict(extra="forbid")
    meta: ManifestMeta
    plugins: dict[str, PluginSource] = Field(default_factory=dict, alias="plugin")
