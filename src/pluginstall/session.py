"""The per-invocation context shared by every component that does I/O."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import hishel
import httpx

from .api.spiget import SpigetClient
from .config import DEFAULT_REQUEST_TIMEOUT, SPIGET_API_BASE_URL, USER_AGENT

if TYPE_CHECKING:
    from types import TracebackType

    from .cache import DownloadCache

logger = logging.getLogger(__name__)

# Request extension that keeps a response out of the HTTP cache. Downloaded plugin
# files are stored by DownloadCache instead.
NO_HTTP_CACHE = {"cache_disabled": True}


def http_cache_transport(cache: DownloadCache) -> hishel.CacheTransport:
    """A transport that caches API responses under the cache root, following cache-control."""
    storage = hishel.FileStorage(base_path=cache.http_cache_path)
    controller = hishel.Controller(cacheable_methods=["GET"], allow_stale=False)
    return hishel.CacheTransport(
        transport=httpx.HTTPTransport(),
        storage=storage,
        controller=controller,
    )


@dataclass
class Session:
    """One HTTP client, the API clients built on it, and the download cache.

    Build once with Session.create() and pass it down; close it when done.
    """

    client: httpx.Client
    spiget: SpigetClient
    cache: DownloadCache

    @classmethod
    def create(
        cls,
        cache: DownloadCache,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        spiget_base_url: str = SPIGET_API_BASE_URL,
        http_cache: bool = True,
    ) -> Session:
        transport = http_cache_transport(cache) if http_cache else None
        if transport is not None:
            logger.debug("caching API responses in %s", cache.http_cache_path)
        client = httpx.Client(
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )
        return cls(client=client, spiget=SpigetClient(client, spiget_base_url), cache=cache)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
