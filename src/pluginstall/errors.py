from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from .models.version import VersionSpec


class PluginstallError(Exception):
    """Base class for every error reported to the user by pluginstall."""


class LoadError(PluginstallError):
    """Raised when loading the manifest file fails.

    Attributes:
        path: The file that could not be loaded, if applicable.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class FetchError(PluginstallError):
    """Raised when a request to a remote plugin API fails.

    Attributes:
        url: The URL that failed, if applicable.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        self.url = url
        super().__init__(message)


class ApiNotFoundError(FetchError):
    """The API answered 404 for a resource or version."""


class UnexpectedStatusError(FetchError):
    """The API answered with a status code that the client does not handle."""

    def __init__(self, status_code: int, url: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(f"Unexpected response status {status_code} from {url}", url=url)


class ApiTransportError(FetchError):
    """Network or TLS failure before a response was received."""


class ApiDeserializationError(FetchError):
    """The response body was not the JSON the client expected."""


class CacheError(PluginstallError):
    """Raised when the download cache cannot be read or written.

    Attributes:
        path: The cache file or directory involved, if applicable.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class IndexParseError(CacheError):
    """The cache index file exists but is not a valid index.

    Attributes:
        lineno: 1-based line of the offending input (0 if unknown).
        colno: 1-based column of the offending input (0 if unknown).
        pos: Character offset of the offending input (0 if unknown).
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        lineno: int = 0,
        colno: int = 0,
        pos: int = 0,
    ) -> None:
        self.lineno = lineno
        self.colno = colno
        self.pos = pos
        super().__init__(message, path=path)


class PluginNotFoundError(PluginstallError):
    """Raised when a plugin name is not declared in the manifest."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Could not find a plugin with the name '{name}' in the manifest")


class VersionNotFoundError(PluginstallError):
    """Raised when no version of a plugin matches the requested version spec."""

    def __init__(self, plugin: str, spec: VersionSpec) -> None:
        self.plugin = plugin
        self.spec = spec
        super().__init__(f"Could not find the version '{spec}' for the plugin '{plugin}'")


class InvalidVersionSpecError(PluginstallError):
    """Raised for a version spec the user wrote that can never be valid."""


class UnsupportedSourceError(PluginstallError):
    """Raised when a manifest plugin uses a source type that cannot be resolved yet."""

    def __init__(self, plugin: str, source_type: str) -> None:
        self.plugin = plugin
        self.source_type = source_type
        super().__init__(f"Plugin '{plugin}' uses the '{source_type}' source, which is not supported yet")


class DownloadError(PluginstallError):
    """Raised when downloading a plugin file fails.

    Attributes:
        stage: The download step that failed ("fetch", "headers" or "write").
    """

    def __init__(self, message: str, stage: str) -> None:
        self.stage = stage
        super().__init__(message)


class UnsafeFileNameError(DownloadError):
    """The server suggested a file name that is not a plain file name."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(
            f"Invalid file name {file_name!r} specified by the 'content-disposition' header",
            stage="headers",
        )
