"""Move and trash operations on video files."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from send2trash import send2trash

from .errors import (
    DeleteFailed,
    DestinationNotFound,
    DestinationPermissionDenied,
    MoveFailedUnknown,
)
from .validation import validate_destination


class FileMutator:
    """Wrap filesystem mutations and translate OS errors into user-facing ones."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("folderplay.fileops")

    def move(self, source: Path, destination_dir: Path) -> Path:
        """Move ``source`` into ``destination_dir`` and return the new path."""
        destination = validate_destination(destination_dir)
        target = destination / source.name
        if target.exists():
            raise MoveFailedUnknown(source.name, f"'{target}' already exists.")
        try:
            if not self._link_into_place(source, target):
                shutil.move(str(source), str(target))
        except FileExistsError as exc:
            raise MoveFailedUnknown(source.name, f"'{target}' already exists.") from exc
        except PermissionError as exc:
            self._discard_partial(source, target)
            raise DestinationPermissionDenied(destination) from exc
        except FileNotFoundError as exc:
            self._discard_partial(source, target)
            if not destination.is_dir():
                raise DestinationNotFound(destination) from exc
            raise MoveFailedUnknown(source.name, exc.strerror or exc) from exc
        except (OSError, shutil.Error) as exc:
            self._discard_partial(source, target)
            raise MoveFailedUnknown(source.name, exc) from exc
        self._logger.info("Moved %s to %s", source, target)
        return target

    def _link_into_place(self, source: Path, target: Path) -> bool:
        """Hard-link then unlink; ``os.link`` never replaces an existing target.

        Returns False when linking is unsupported here (another filesystem,
        or one without hard links) so the caller falls back to copying.
        """
        try:
            os.link(source, target)
        except FileExistsError:
            raise
        except OSError as exc:
            self._logger.debug("Hard link %s -> %s unavailable: %s", source, target, exc)
            return False
        os.unlink(source)
        return True

    def _discard_partial(self, source: Path, target: Path) -> None:
        # Only a copy that failed midway leaves both files behind.
        if source.exists() and target.exists():
            try:
                target.unlink()
            except OSError as exc:
                self._logger.warning("Could not remove partial copy %s: %s", target, exc)
            else:
                self._logger.info("Removed partial copy %s", target)

    def trash(self, source: Path) -> None:
        """Send ``source`` to the platform trash."""
        try:
            send2trash(str(source))
        except OSError as exc:
            raise DeleteFailed(source.name, exc) from exc
        self._logger.info("Moved %s to trash", source)
