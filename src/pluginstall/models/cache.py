"""Models for the download cache index (index.json)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_serializer,
    field_validator,
)

from .version import PluginApiType  # noqa: TC001


class CachedVersionFile(BaseModel):
    """A cached download of one plugin version."""

    model_config = ConfigDict(populate_by_name=True)
    original_file_name: str = Field(alias="file_name")
    cache_file_name: str  # name of the file in the cache data directory
    ttl: timedelta | None = None  # seconds on disk
    added: datetime  # UTC

    @field_validator("added")
    @classmethod
    def _assume_utc(cls, added: datetime) -> datetime:
        if added.tzinfo is None:
            return added.replace(tzinfo=timezone.utc)
        return added

    @field_serializer("ttl")
    def _serialize_ttl(self, ttl: timedelta | None) -> float | None:
        return None if ttl is None else ttl.total_seconds()

    def is_outdated(self, now: datetime | None = None) -> bool:
        """True iff a TTL is set and now >= added + ttl.

        An expiry instant that overflows counts as outdated.
        """
        if self.ttl is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        try:
            expiry = self.added + self.ttl
        except OverflowError:
            return True
        return now >= expiry


class CachedPlugin(BaseModel):
    """All cached versions of one manifest plugin, keyed by version identifier."""

    source_api: PluginApiType
    versions: dict[str, CachedVersionFile] = Field(default_factory=dict)


class CacheIndexFile(RootModel[dict[str, CachedPlugin]]):
    """Root of index.json: manifest plugin name -> cached versions."""

    root: dict[str, CachedPlugin] = Field(default_factory=dict)
