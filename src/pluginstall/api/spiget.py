"""Client for the Spiget API, a JSON mirror of SpigotMC resources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config import SPIGET_API_BASE_URL, SPIGOT_RESOURCE_PAGE
from ..models.spiget import SpigetResourceDetails, SpigetResourceVersion
from ..models.version import PluginDetails, PluginVersion
from ._http import get_json

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class SpigetClient:
    """Stateless wrapper around the Spiget endpoints. Never retries.

    Every call raises a FetchError subclass on failure; a 404 is ApiNotFoundError.
    """

    def __init__(self, client: httpx.Client, base_url: str = SPIGET_API_BASE_URL) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}"

    def resource_details(self, resource_id: int) -> SpigetResourceDetails:
        return get_json(
            self._client, self._url(f"resources/{resource_id}"), SpigetResourceDetails
        )

    def resource_versions(self, resource_id: int, limit: int) -> list[SpigetResourceVersion]:
        """Up to `limit` versions, most recently released first."""
        return get_json(
            self._client,
            self._url(f"resources/{resource_id}/versions"),
            list[SpigetResourceVersion],
            params={"size": limit, "sort": "-releaseDate"},
        )

    def resource_version(self, resource_id: int, version_id: int) -> SpigetResourceVersion:
        return get_json(
            self._client,
            self._url(f"resources/{resource_id}/versions/{version_id}"),
            SpigetResourceVersion,
        )

    def latest_version(self, resource_id: int) -> SpigetResourceVersion:
        return get_json(
            self._client,
            self._url(f"resources/{resource_id}/versions/latest"),
            SpigetResourceVersion,
        )

    def download_url(self, resource_id: int, version_id: int) -> str:
        """URL of the (heavily rate-limited) download proxy. No request is made."""
        return self._url(f"resources/{resource_id}/versions/{version_id}/download/proxy")


class SpigetPlugin:
    """A Spiget resource bound to a manifest plugin name.

    `versions` starts empty and is filled by fetch_versions().
    """

    def __init__(self, api: SpigetClient, manifest_name: str, details: SpigetResourceDetails) -> None:
        self.api = api
        self.manifest_name = manifest_name
        self.details = details
        self.versions: list[SpigetResourceVersion] = []

    @classmethod
    def open(cls, api: SpigetClient, manifest_name: str, resource_id: int) -> SpigetPlugin:
        """Fetch the resource details. Raises ApiNotFoundError for an unknown resource."""
        return cls(api, manifest_name, api.resource_details(resource_id))

    @property
    def resource_id(self) -> int:
        return self.details.id

    def page_url(self) -> str:
        return SPIGOT_RESOURCE_PAGE.format(resource_id=self.resource_id)

    def plugin_details(self) -> PluginDetails:
        return PluginDetails(
            manifest_name=self.manifest_name,
            page_url=self.page_url(),
            plugin_type="spiget",
        )

    def fetch_versions(self, limit: int) -> list[PluginVersion]:
        """Fetch up to `limit` versions (newest first) and remember them."""
        self.versions = self.api.resource_versions(self.resource_id, limit)
        return self.general_versions()

    def general_versions(self) -> list[PluginVersion]:
        return [self.to_plugin_version(v) for v in self.versions]

    def to_plugin_version(self, version: SpigetResourceVersion) -> PluginVersion:
        return PluginVersion(
            version_identifier=str(version.id),
            version_name=version.name,
            download_url=self.api.download_url(self.resource_id, version.id),
            publish_date=version.release_date,
        )
