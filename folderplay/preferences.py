"""Persistent user preferences."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .sorting import SortMode
from .validation import clamp_seek_seconds


class EndOfPlaybackPolicy(str, Enum):
    STOP = "stop"
    REPLAY = "replay"
    NEXT = "next"


@dataclass(frozen=True)
class Preferences:
    """User choices that survive a restart."""

    sort_mode: SortMode = SortMode.NAME
    end_of_playback: EndOfPlaybackPolicy = EndOfPlaybackPolicy.NEXT
    seek_forward_seconds: int = 10
    seek_backward_seconds: int = 10
    muted: bool = False
    pause_on_focus_loss: bool = True
    auto_resume_on_focus: bool = False
    move_destination: Optional[str] = None
    include_subfolders: bool = True
    last_folder: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sort_mode"] = self.sort_mode.value
        data["end_of_playback"] = self.end_of_playback.value
        return data


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


def _strict_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {value!r}")
    return value


def _strict_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return int(value)


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "sort_mode": SortMode,
    "end_of_playback": EndOfPlaybackPolicy,
    "seek_forward_seconds": _strict_int,
    "seek_backward_seconds": _strict_int,
    "muted": _strict_bool,
    "pause_on_focus_loss": _strict_bool,
    "auto_resume_on_focus": _strict_bool,
    "move_destination": _optional_str,
    "include_subfolders": _strict_bool,
    "last_folder": _optional_str,
}

_FIELD_NAMES = tuple(field.name for field in fields(Preferences))


class PreferencesStore:
    """Thread-safe JSON backed preference storage.

    Every mutation rewrites all fields. Nothing is written while
    ``is_loading`` is set.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.RLock()
        self._logger = logging.getLogger("folderplay.preferences")
        self._loading = False
        self._prefs = Preferences()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def current(self) -> Preferences:
        with self._lock:
            return self._prefs

    # Persistence --------------------------------------------------------

    def load(self) -> Preferences:
        """Read preferences from disk, falling back to defaults per field."""
        with self._lock:
            self._loading = True
            try:
                self._prefs = self._read()
            finally:
                self._loading = False
            return self._prefs

    def _read(self) -> Preferences:
        if not self._path.exists():
            self._logger.info("No preferences at %s, using defaults", self._path)
            return Preferences()
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            self._logger.warning("Failed to read preferences %s: %s", self._path, exc)
            return Preferences()
        if not isinstance(raw, dict):
            self._logger.warning("Ignoring malformed preferences in %s", self._path)
            return Preferences()
        values: Dict[str, Any] = {}
        for name in _FIELD_NAMES:
            if name not in raw:
                continue
            try:
                values[name] = _COERCERS[name](raw[name])
            except (TypeError, ValueError) as exc:
                self._logger.warning("Invalid preference %s=%r (%s); using default", name, raw[name], exc)
        return Preferences(**values)

    def save(self, prefs: Optional[Preferences] = None) -> None:
        """Write every field to disk."""
        with self._lock:
            if prefs is not None:
                self._prefs = prefs
            if self._loading:
                self._logger.debug("Skipping save while loading preferences")
                return
            self._persist_unlocked()

    def _persist_unlocked(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".preferences", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._prefs.to_dict(), handle, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # Mutation -----------------------------------------------------------

    def update(self, **changes: Any) -> Preferences:
        """Apply field changes, clamping seek seconds, and re-save everything."""
        unknown = set(changes) - set(_FIELD_NAMES)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}")
        for name in ("seek_forward_seconds", "seek_backward_seconds"):
            if name in changes:
                changes[name] = clamp_seek_seconds(changes[name])
        for name in ("sort_mode", "end_of_playback", "move_destination", "last_folder"):
            if name in changes:
                changes[name] = _COERCERS[name](changes[name])
        with self._lock:
            updated = replace(self._prefs, **changes)
            self.save(updated)
            self._logger.debug("Preferences updated: %s", ", ".join(sorted(changes)))
            return updated

    def set_sort_mode(self, mode: SortMode) -> Preferences:
        return self.update(sort_mode=SortMode(mode))

    def set_end_of_playback(self, policy: EndOfPlaybackPolicy) -> Preferences:
        return self.update(end_of_playback=EndOfPlaybackPolicy(policy))

    def set_seek_forward_seconds(self, seconds: float) -> Preferences:
        return self.update(seek_forward_seconds=seconds)

    def set_seek_backward_seconds(self, seconds: float) -> Preferences:
        return self.update(seek_backward_seconds=seconds)

    def set_muted(self, muted: bool) -> Preferences:
        return self.update(muted=bool(muted))

    def set_pause_on_focus_loss(self, enabled: bool) -> Preferences:
        return self.update(pause_on_focus_loss=bool(enabled))

    def set_auto_resume_on_focus(self, enabled: bool) -> Preferences:
        return self.update(auto_resume_on_focus=bool(enabled))

    def set_move_destination(self, path: Optional[str]) -> Preferences:
        return self.update(move_destination=path)

    def set_include_subfolders(self, enabled: bool) -> Preferences:
        return self.update(include_subfolders=bool(enabled))

    def set_last_folder(self, path: Optional[str]) -> Preferences:
        return self.update(last_folder=path)
