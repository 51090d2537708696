"""CLI entrypoint for pluginstall."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__
from ..cache import DownloadCache, create_cache
from ..config import (
    DEFAULT_MANIFEST_FILE_NAME,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_VERSIONS_LIMIT,
    default_cache_path,
)
from ..download import download
from ..errors import CacheError, InvalidVersionSpecError, PluginstallError
from ..loaders.manifest import load_manifest, lookup_plugin
from ..models.version import VersionSpec
from ..resolver import check_version_spec, open_plugin, resolve
from ..session import Session
from .output import (
    CliOutput,
    DownloadOutput,
    InfoOutput,
    ListedPlugin,
    ListOutput,
    VersionsOutput,
)

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"invalid positive integer: {value!r}")
    return number


def _add_version_spec_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-V",
        "--version-name",
        metavar="VERSION_NAME",
        help="Name of the version. If several versions share it, the most recent one is used",
    )
    group.add_argument(
        "-I",
        "--version-ident",
        metavar="VERSION_IDENTIFIER",
        help="Unique identifier of the version",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="pluginstall",
        description="Inspect and download plugins declared in a pluginstall manifest.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-m",
        "--manifest",
        type=Path,
        default=Path(DEFAULT_MANIFEST_FILE_NAME),
        help=f"Path to the manifest file (default: {DEFAULT_MANIFEST_FILE_NAME})",
    )
    parser.add_argument(
        "--cache",
        type=Path,
        default=None,
        help="Download cache directory (default: ~/.pluginstall_cache/<manifest name>, created if missing)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help=f"Per-request HTTP timeout in seconds (default: {DEFAULT_REQUEST_TIMEOUT:g})",
    )
    parser.add_argument(
        "--no-http-cache",
        action="store_true",
        help="Always send API requests instead of reusing cached responses",
    )
    parser.add_argument("--json", action="store_true", help="Write JSON instead of human readable output")
    parser.add_argument(
        "--no-newline", action="store_true", help="Don't write a newline at the end of the output"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List the plugins in the manifest")

    versions = subparsers.add_parser("versions", help="List versions of a plugin")
    versions.add_argument("plugin_name", metavar="PLUGIN_NAME", help="Name of the plugin in the manifest")
    versions.add_argument(
        "-L",
        "--limit",
        type=_positive_int,
        default=DEFAULT_VERSIONS_LIMIT,
        help=f"Number of versions to list (default: {DEFAULT_VERSIONS_LIMIT})",
    )
    versions.add_argument(
        "-d",
        "--download-url",
        action="store_true",
        help="Show the download URL of each version in human readable output",
    )
    versions.add_argument(
        "-F",
        "--time-format",
        default="%Y-%m-%d",
        help="strftime format for release dates (default: %%Y-%%m-%%d)",
    )

    info = subparsers.add_parser("info", help="Show information about a plugin version")
    info.add_argument("plugin_name", metavar="PLUGIN_NAME", help="Name of the plugin in the manifest")
    _add_version_spec_args(info)

    dl = subparsers.add_parser("download", help="Download a plugin version")
    dl.add_argument("plugin_name", metavar="PLUGIN_NAME", help="Name of the plugin in the manifest")
    dl.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=Path("."),
        metavar="PATH",
        help="Directory to download the file into (default: working directory)",
    )
    _add_version_spec_args(dl)

    return parser


def version_spec_from_args(version_name: str | None, version_ident: str | None) -> VersionSpec:
    """The version the user asked for; latest if neither option was given."""
    if version_name is not None and version_ident is not None:
        raise InvalidVersionSpecError("You cannot specify both a version name and a version identifier")
    if version_ident is not None:
        return VersionSpec.identifier(version_ident)
    if version_name is not None:
        return VersionSpec.name(version_name)
    return VersionSpec.latest()


def open_cache(cache_path: Path | None, manifest_name: str) -> DownloadCache:
    """Open the download cache, bootstrapping it where that is allowed.

    The default cache is created on first use. A --cache directory must already exist.
    """
    if cache_path is None:
        cache_path = default_cache_path(manifest_name)
    elif not cache_path.is_dir():
        raise CacheError(f"Cache directory not found: {cache_path}", path=cache_path)
    create_cache(cache_path)
    return DownloadCache.open(cache_path)


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s]: %(message)s",
    )
    if not args.verbose:
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)

    output = CliOutput(json=args.json, newline=not args.no_newline, color=sys.stdout.isatty())

    try:
        return _run(args, output)
    except InvalidVersionSpecError as exc:
        output.error(str(exc))
        return 2
    except PluginstallError as exc:
        output.error(str(exc))
        return 1


def _run(args: argparse.Namespace, output: CliOutput) -> int:
    manifest = load_manifest(args.manifest)
    logger.debug("loaded manifest '%s' with %d plugins", manifest.meta.name, len(manifest.plugins))

    if args.command == "list":
        output.display(
            ListOutput(
                manifest_name=manifest.meta.name,
                plugins=[ListedPlugin(name=name, type=src.type) for name, src in manifest.plugins.items()],
            )
        )
        return 0

    source = lookup_plugin(manifest, args.plugin_name)
    spec = VersionSpec.latest()
    if args.command in ("info", "download"):
        spec = version_spec_from_args(args.version_name, args.version_ident)
        check_version_spec(args.plugin_name, source, spec)

    cache = open_cache(args.cache, manifest.meta.name)
    with Session.create(cache, timeout=args.timeout, http_cache=not args.no_http_cache) as session:
        if args.command == "versions":
            plugin = open_plugin(session.spiget, args.plugin_name, source)
            versions = plugin.handle.fetch_versions(args.limit)
            output.display(
                VersionsOutput(
                    details=plugin.details,
                    versions=versions,
                    time_format=args.time_format,
                    write_download_urls=args.download_url,
                )
            )
        elif args.command == "info":
            plugin = open_plugin(session.spiget, args.plugin_name, source)
            resolution = resolve(plugin, spec)
            output.display(
                InfoOutput(details=plugin.details, version=resolution.version, latest=resolution.latest)
            )
        elif args.command == "download":
            report = download(session, manifest, args.plugin_name, spec, args.out_dir)
            output.display(DownloadOutput(report=report, download_path=args.out_dir))
    return 0
