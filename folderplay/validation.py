"""Filesystem precondition checks for folders and move destinations."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Union

from .errors import (
    DestinationNotFound,
    DestinationPermissionDenied,
    FolderAccessDenied,
    FolderNotFound,
)

SEEK_SECONDS_MIN = 1
SEEK_SECONDS_MAX = 60
_SUSPICIOUS_FRAGMENTS = ("~", "//")

PathLike = Union[str, Path]


def validate_folder(path: PathLike) -> Path:
    """Return the folder as a Path, raising if it cannot be scanned."""
    folder = Path(path)
    if not folder.is_dir():
        raise FolderNotFound(folder)
    if not os.access(folder, os.R_OK | os.X_OK):
        raise FolderAccessDenied(folder)
    return folder


def is_secure_path(path: PathLike) -> bool:
    """Reject destinations with parent references, home shortcuts or doubled separators."""
    raw = str(path)
    if not raw:
        return False
    if ".." in Path(raw).parts:
        return False
    normalised = os.path.normpath(raw)
    return not any(
        fragment in raw or fragment in normalised for fragment in _SUSPICIOUS_FRAGMENTS
    )


def validate_destination(path: PathLike) -> Path:
    """Return the destination as a Path, raising if a file cannot be moved there."""
    if not is_secure_path(path):
        raise DestinationPermissionDenied(path, reason="Unsafe destination path")
    destination = Path(path)
    if not destination.is_dir():
        raise DestinationNotFound(destination)
    if not os.access(destination, os.W_OK | os.X_OK):
        raise DestinationPermissionDenied(destination)
    return destination


def clamp_seek_seconds(value: float) -> int:
    """Clamp to the allowed seek step; infinities clamp to the nearest bound."""
    seconds = float(value)
    if math.isnan(seconds):
        raise ValueError("seek seconds must be a number")
    return int(round(max(SEEK_SECONDS_MIN, min(SEEK_SECONDS_MAX, seconds))))
