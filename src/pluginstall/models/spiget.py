"""Response models for the Spiget API (https://spiget.org/documentation)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SpigetResourceFile(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    type: str | None = None
    size: float | None = None
    size_unit: str | None = Field(None, alias="sizeUnit")
    url: str | None = None
    external_url: str | None = Field(None, alias="externalUrl")


class SpigetResourceDetails(BaseModel):
    """GET /resources/{id}"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    id: int
    name: str | None = None
    tag: str | None = None
    file: SpigetResourceFile | None = None
    tested_versions: list[str] = Field(default_factory=list, alias="testedVersions")


class SpigetResourceVersion(BaseModel):
    """A single entry of GET /resources/{id}/versions."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    id: int
    uuid: str | None = None
    name: str
    release_date: datetime = Field(alias="releaseDate")  # unix seconds on the wire
    downloads: int = 0
