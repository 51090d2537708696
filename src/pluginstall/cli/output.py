"""Rendering command results as JSON or human-readable text."""

from __future__ import annotations

import sys
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel, Field

from ..download import DownloadReport  # noqa: TC001
from ..models.version import PluginApiType, PluginDetails, PluginVersion  # noqa: TC001

if TYPE_CHECKING:
    from typing import TextIO

ANSI_GREEN = "\033[32m"
ANSI_BRIGHT_GREEN = "\033[92m"
ANSI_YELLOW = "\033[33m"
ANSI_RED = "\033[91m"
ANSI_RESET = "\033[0m"


class DataDisplay(Protocol):
    """A whole command result that can be written as JSON or as text."""

    def to_json(self) -> str: ...
    def render(self, color: bool) -> str: ...


def _colorize(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{ANSI_RESET}" if enabled else text


def format_size(num_bytes: int) -> str:
    """1536 -> '1.54 kB' (decimal units)."""
    if num_bytes < 1000:
        return f"{num_bytes} B"
    size = float(num_bytes)
    for unit in ("kB", "MB", "GB"):
        size /= 1000
        if size < 1000:
            return f"{size:.2f} {unit}"
    return f"{size / 1000:.2f} TB"


def render_table(headers: list[str], rows: list[list[str]]) -> str:
    """Pipe-delimited table with every column padded to its widest cell."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells: list[str]) -> str:
        return "|" + "|".join(f" {cell.ljust(widths[i])} " for i, cell in enumerate(cells)) + "|"

    header = line(headers)
    out = [header, "-" * len(header)]
    out.extend(line(row) for row in rows)
    return "\n".join(out)


class VersionsOutput(BaseModel):
    details: PluginDetails
    versions: list[PluginVersion]
    time_format: str = Field("%Y-%m-%d", exclude=True)
    write_download_urls: bool = Field(False, exclude=True)

    def to_json(self) -> str:
        return self.model_dump_json()

    def render(self, color: bool) -> str:
        headers = ["Version Name", "Version Date", "Version Identifier"]
        if self.write_download_urls:
            headers.append("Download URL")
        rows = []
        for version in self.versions:
            date = version.publish_date.strftime(self.time_format) if version.publish_date else ""
            row = [version.version_name, date, version.version_identifier]
            if self.write_download_urls:
                row.append(version.download_url)
            rows.append(row)
        return render_table(headers, rows)


class InfoOutput(BaseModel):
    details: PluginDetails
    version: PluginVersion
    latest: bool  # whether version was resolved as the latest version

    def to_json(self) -> str:
        return self.model_dump_json()

    def render(self, color: bool) -> str:
        published = self.version.publish_date.isoformat() if self.version.publish_date else "---"
        latest = " (latest)" if self.latest else ""
        return (
            f"{self.details.plugin_type} plugin "
            f"'{_colorize(self.details.manifest_name, ANSI_BRIGHT_GREEN, color)}' "
            f"({_colorize(self.details.page_url, ANSI_BRIGHT_GREEN, color)})\n"
            f"Version '{_colorize(self.version.version_name, ANSI_BRIGHT_GREEN, color)}' "
            f"(ID {_colorize(self.version.version_identifier, ANSI_BRIGHT_GREEN, color)}){latest} "
            f"was published {_colorize(published, ANSI_BRIGHT_GREEN, color)}"
        )


class DownloadOutput(BaseModel):
    report: DownloadReport
    download_path: Path

    def to_json(self) -> str:
        return self.model_dump_json()

    def render(self, color: bool) -> str:
        cached = (
            _colorize("cached", ANSI_GREEN, color)
            if self.report.cached
            else _colorize("not cached", ANSI_YELLOW, color)
        )
        size = _colorize(format_size(self.report.download_size), ANSI_GREEN, color)
        return (
            f"Downloaded plugin to '{_colorize(str(self.report.file_path), ANSI_GREEN, color)}'\n"
            f"Download size: {size} ({cached})"
        )


class ListedPlugin(BaseModel):
    name: str
    type: PluginApiType


class ListOutput(BaseModel):
    manifest_name: str
    plugins: list[ListedPlugin]

    def to_json(self) -> str:
        return self.model_dump_json()

    def render(self, color: bool) -> str:
        rows = [[p.name, p.type] for p in self.plugins]
        return f"Manifest '{self.manifest_name}'\n" + render_table(["Plugin", "Source"], rows)


class CliOutput:
    """Writes command results to stdout and errors to stderr.

    Results are JSON when json=True, text otherwise. Errors are always text on stderr.
    """

    def __init__(
        self,
        json: bool = False,
        newline: bool = True,
        color: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.json = json
        self.newline = newline
        self.color = color and not json
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr

    def display(self, data: DataDisplay) -> None:
        text = data.to_json() if self.json else data.render(self.color)
        self._stdout.write(text)
        if self.newline:
            self._stdout.write("\n")
        self._stdout.flush()

    def error(self, message: str) -> None:
        self._stderr.write(_colorize(f"error: {message}", ANSI_RED, self.color) + "\n")
        self._stderr.flush()
