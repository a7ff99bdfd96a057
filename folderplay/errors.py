"""Error taxonomy surfaced to the user as a dismissible notice."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class PlayerError(Exception):
    """Base class for every user-facing failure."""

    recovery_suggestion: Optional[str] = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FolderNotFound(PlayerError):
    recovery_suggestion = (
        "The folder may have been moved or deleted. Please select a different folder."
    )

    def __init__(self, path: PathLike) -> None:
        super().__init__(
            f"Folder Not Found: The folder at '{path}' does not exist or has been moved."
        )
        self.path = str(path)


class FolderAccessDenied(PlayerError):
    recovery_suggestion = "Try selecting a different folder or check the folder permissions."

    def __init__(self, path: PathLike) -> None:
        super().__init__(
            f"Access Denied: Unable to access folder at '{path}'. Please check permissions."
        )
        self.path = str(path)


class NoVideosFound(PlayerError):
    recovery_suggestion = "Make sure the folder contains supported video files."

    def __init__(self, folder: Optional[PathLike] = None) -> None:
        super().__init__("No videos found in the selected folder.")
        self.folder = str(folder) if folder is not None else None


class DestinationNotFound(PlayerError):
    recovery_suggestion = "Set a move location in the settings or create the destination folder."

    def __init__(self, destination: Optional[PathLike]) -> None:
        if destination is None:
            super().__init__("Move Failed: No destination set.")
        else:
            super().__init__(f"Move Failed: Destination folder '{destination}' does not exist.")
        self.destination = str(destination) if destination is not None else None


class DestinationPermissionDenied(PlayerError):
    recovery_suggestion = "Check that you have write permissions for the destination folder."

    def __init__(self, target: PathLike, reason: str = "Permission denied") -> None:
        super().__init__(f"Move Failed: {reason} when trying to move to '{target}'.")
        self.target = str(target)


class MoveFailedUnknown(PlayerError):
    recovery_suggestion = (
        "Try closing other apps that might be using this file, or restart the app."
    )

    def __init__(self, filename: str, detail: object) -> None:
        super().__init__(f"Move Failed: Unable to move '{filename}'. {detail}")
        self.filename = filename


class DeleteFailed(PlayerError):
    recovery_suggestion = (
        "Try closing other apps that might be using this file, or restart the app."
    )

    def __init__(self, filename: str, detail: object) -> None:
        super().__init__(f"Delete Failed: Unable to delete '{filename}'. {detail}")
        self.filename = filename


class InvalidVideoFile(PlayerError):
    recovery_suggestion = "This file may be corrupted or in an unsupported format."

    def __init__(self, filename: str) -> None:
        super().__init__(f"Invalid Video: '{filename}' is not a valid video file.")
        self.filename = filename


class PlayerInitializationFailed(PlayerError):
    recovery_suggestion = "Try skipping to the next video. The file may be corrupted."

    def __init__(self, filename: str) -> None:
        super().__init__(f"Playback Error: Unable to play '{filename}'.")
        self.filename = filename


class ScanSuperseded(Exception):
    """A newer scan started; the running one stops without publishing."""


__all__ = [
    "DeleteFailed",
    "DestinationNotFound",
    "DestinationPermissionDenied",
    "FolderAccessDenied",
    "FolderNotFound",
    "InvalidVideoFile",
    "MoveFailedUnknown",
    "NoVideosFound",
    "PlayerError",
    "PlayerInitializationFailed",
    "ScanSuperseded",
]
