"""Media directory helpers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Collection, Dict, Iterable, List, Optional

from .errors import FolderAccessDenied, ScanSuperseded
from .settings import DEFAULT_VIDEO_EXTENSIONS
from .validation import validate_folder

SUPPORTED_EXTENSIONS = frozenset(DEFAULT_VIDEO_EXTENSIONS)

_logger = logging.getLogger("folderplay.scan")


@dataclass(frozen=True)
class MediaEntry:
    """Represents a video file discovered in the selected folder."""

    path: Path
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name


def is_supported_video(path: Path, extensions: Collection[str] = SUPPORTED_EXTENSIONS) -> bool:
    """Return True if the path has a supported video extension."""
    return path.suffix.lower() in extensions


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _iter_candidates(
    root: Path,
    recurse: bool,
    is_current: Callable[[], bool],
) -> Iterable[os.DirEntry]:
    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as listing:
                children = list(listing)
        except OSError as exc:
            if directory == root:
                raise FolderAccessDenied(root) from exc
            _logger.warning("Skipping unreadable directory %s: %s", directory, exc)
            continue
        for child in children:
            if not is_current():
                raise ScanSuperseded(str(root))
            if _is_hidden(child.name):
                continue
            try:
                if child.is_dir(follow_symlinks=False):
                    if recurse:
                        pending.append(Path(child.path))
                    continue
                if child.is_file(follow_symlinks=False):
                    yield child
            except OSError as exc:
                _logger.warning("Error checking %s: %s", child.path, exc)


def scan_media(
    directory: Path,
    recurse: bool = True,
    extensions: Collection[str] = SUPPORTED_EXTENSIONS,
    is_current: Optional[Callable[[], bool]] = None,
) -> List[MediaEntry]:
    """Return the videos below ``directory`` sorted by full path.

    ``is_current`` is polled during the walk; once it reports False the
    scan stops with ``ScanSuperseded`` and nothing is returned.
    """
    root = Path(os.path.abspath(validate_folder(directory)))
    check = is_current or (lambda: True)
    found: Dict[str, MediaEntry] = {}
    for candidate in _iter_candidates(root, recurse, check):
        path = Path(candidate.path)
        if not is_supported_video(path, extensions):
            continue
        try:
            size = candidate.stat(follow_symlinks=False).st_size
        except OSError as exc:
            _logger.warning("Unable to stat %s: %s", path, exc)
            continue
        found.setdefault(str(path), MediaEntry(path=path, size_bytes=max(0, size)))
    if not check():
        raise ScanSuperseded(str(root))
    entries = sorted(found.values(), key=lambda entry: str(entry.path))
    _logger.info("Scan of %s found %d videos", root, len(entries))
    return entries
