from __future__ import annotations

from pathlib import Path, PurePosixPath, PureWindowsPath


def validate_file_name(candidate: str, directory: Path | None = None) -> bool:
    """Return True if candidate is a bare file name that is safe to create in directory.

    Valid: "somefile.jar", ".hello.txt", ".lots.of.dots".
    Invalid: "", ".", "..", "/invalid.json", "sub/dir/file", "directory/", "..\\evil",
    "C:evil", anything with a NUL byte, and names of existing directories in `directory`.
    """
    if not candidate or "\x00" in candidate:
        return False
    if candidate in (".", ".."):
        return False
    # both flavours, so a Windows-style name is rejected on POSIX as well
    for flavour in (PurePosixPath, PureWindowsPath):
        path = flavour(candidate)
        if path.anchor or path.name != candidate:
            return False
    if directory is not None and (directory / candidate).is_dir():
        return False
    return True
