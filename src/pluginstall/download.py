"""Downloading plugin files: cache first, then the remote API, writing through to the cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from email.message import Message
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel

from ._files import validate_file_name
from .api._http import check_status
from .errors import DownloadError, FetchError, UnsafeFileNameError
from .loaders.manifest import lookup_plugin
from .resolver import check_version_spec, open_plugin, resolve
from .session import NO_HTTP_CACHE

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models.manifest import Manifest
    from .models.version import PluginApiType, PluginVersion, VersionSpec
    from .session import Session

logger = logging.getLogger(__name__)


class DownloadReport(BaseModel):
    """Details of a successful download."""

    download_size: int  # bytes written to file_path
    cached: bool  # served from the download cache instead of the API
    file_path: Path


@dataclass(frozen=True)
class DownloadSpec:
    """One version of one manifest plugin to download."""

    plugin_name: str  # manifest name, used as the cache key
    version: PluginVersion
    api_type: PluginApiType


def check_download_dir(download_dir: Path) -> None:
    if not download_dir.is_dir():
        raise DownloadError(f"'{download_dir}' is not a valid directory path", stage="write")


def download(
    session: Session,
    manifest: Manifest,
    plugin_name: str,
    spec: VersionSpec,
    download_dir: Path,
) -> DownloadReport:
    """Resolve spec for a manifest plugin and put the file in download_dir.

    The version spec and the download directory are checked before any request is made.
    """
    source = lookup_plugin(manifest, plugin_name)
    check_version_spec(plugin_name, source, spec)
    check_download_dir(download_dir)
    plugin = open_plugin(session.spiget, plugin_name, source)
    resolution = resolve(plugin, spec)
    return download_plugin(
        session,
        DownloadSpec(plugin_name=plugin_name, version=resolution.version, api_type=plugin.api_type),
        download_dir,
    )


def download_plugin(session: Session, spec: DownloadSpec, download_dir: Path) -> DownloadReport:
    """Download an already resolved version into download_dir."""
    check_download_dir(download_dir)
    version_ident = spec.version.version_identifier

    logger.debug("checking cache for %s/%s", spec.plugin_name, version_ident)
    cached_file = session.cache.get(spec.plugin_name, version_ident)
    if cached_file is not None:
        logger.debug("retrieving file from cache")
        with cached_file:
            copied = cached_file.copy_to_directory(download_dir)
        return DownloadReport(
            download_size=copied,
            cached=True,
            file_path=download_dir / cached_file.meta.original_file_name,
        )

    return _fetch_remote(session, spec, download_dir)


def _fetch_remote(session: Session, spec: DownloadSpec, download_dir: Path) -> DownloadReport:
    url = spec.version.download_url
    logger.debug("downloading %s", url)
    try:
        response = session.client.get(url, extensions=NO_HTTP_CACHE)
    except httpx.HTTPError as e:
        raise DownloadError(f"Error downloading plugin from {url}: {e}", stage="fetch") from e
    try:
        check_status(response)
    except FetchError as e:
        raise DownloadError(f"Error downloading plugin: {e}", stage="fetch") from e

    file_name = response_file_name(response.headers, download_dir)
    ttl = response_ttl(response.headers)
    data = response.content
    logger.debug("read %d bytes of response data", len(data))

    session.cache.put(
        spec.plugin_name,
        spec.version.version_identifier,
        file_name,
        spec.api_type,
        ttl,
        data,
    )
    logger.debug("cached downloaded file")

    file_path = download_dir / file_name
    try:
        file_path.write_bytes(data)
    except OSError as e:
        raise DownloadError(f"Could not write download data to {file_path}: {e}", stage="write") from e
    logger.debug("wrote %s", file_path)

    return DownloadReport(download_size=len(data), cached=False, file_path=file_path)


def content_disposition_file_name(header: str) -> str | None:
    """The file name of a content-disposition header value, taken as-is.

    Handles both `filename` and RFC 5987 `filename*`. Returns None if there is none.
    The result is NOT validated; see validate_file_name().
    """
    msg = Message()
    msg["content-disposition"] = header
    return msg.get_filename()


def response_file_name(headers: Mapping[str, str], download_dir: Path | None = None) -> str:
    """The validated file name a response wants to be saved as."""
    header = headers.get("content-disposition")
    if header is None:
        raise DownloadError("Response is missing the 'content-disposition' header", stage="headers")
    file_name = content_disposition_file_name(header)
    if not file_name:
        raise DownloadError(
            f"Could not get a file name from the 'content-disposition' header: {header!r}",
            stage="headers",
        )
    if not validate_file_name(file_name, download_dir):
        raise UnsafeFileNameError(file_name)
    return file_name


def response_ttl(headers: Mapping[str, str]) -> timedelta | None:
    """How long a response may be cached for, from its cache-control header.

    None if there is no header, no max-age, or the header forbids storing the response.
    """
    header = headers.get("cache-control")
    if header is None:
        return None

    directives: dict[str, str | None] = {}
    for part in header.split(","):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        directives[key.strip().lower()] = value.strip().strip('"') if sep else None

    if "no-store" in directives or "no-cache" in directives:
        return None
    if "max-age" not in directives:
        return None

    max_age = directives["max-age"]
    if max_age is None or not max_age.isascii() or not max_age.isdigit():
        raise DownloadError(f"Invalid 'cache-control' header: {header!r}", stage="headers")
    try:
        return timedelta(seconds=int(max_age))
    except OverflowError as e:
        raise DownloadError(f"Invalid 'cache-control' max-age: {max_age}", stage="headers") from e
