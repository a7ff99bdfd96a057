"""Application core: owns the playlist, playback state and background work."""

from __future__ import annotations

import functools
import logging
import queue
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from .errors import (
    DestinationNotFound,
    FolderAccessDenied,
    NoVideosFound,
    PlayerError,
    PlayerInitializationFailed,
    ScanSuperseded,
)
from .file_ops import FileMutator
from .media_catalog import MediaEntry, scan_media
from .playback import PlaybackError, Subscription
from .playlist import Playlist
from .preferences import EndOfPlaybackPolicy, PreferencesStore
from .settings import AppConfig
from .sorting import SortMode, sort_entries
from .validation import validate_destination, validate_folder

Completion = Callable[[Any, Optional[BaseException]], None]


@dataclass
class ErrorNotice:
    """The single user-facing error slot."""

    message: str = ""
    recovery_suggestion: Optional[str] = None
    visible: bool = False


@dataclass
class ApplicationState:
    """Observable state rendered by the interactive front end."""

    selected_folder: Optional[Path] = None
    is_scanning: bool = False
    is_sorting: bool = False
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    error: ErrorNotice = field(default_factory=ErrorNotice)


class ApplicationCore:
    """Single-writer controller for scanning, sorting, navigation and file actions.

    Every public method must be called from the owning thread. Background
    jobs and player callbacks never touch state directly: they post a
    callable onto ``_results`` which the owning thread runs from
    ``process_pending`` (or ``drain`` in tests).
    """

    def __init__(
        self,
        config: AppConfig,
        preferences: PreferencesStore,
        player: Any,
        files: Optional[FileMutator] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.preferences = preferences
        self.player = player
        self.files = files or FileMutator()
        self.playlist = Playlist()
        self.state = ApplicationState()
        self._logger = logging.getLogger("folderplay")
        self._playback_logger = logging.getLogger("folderplay.playback")
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.scan_workers, thread_name_prefix="folderplay"
        )
        self._rng = rng or random.Random()
        self._results: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._outstanding = 0
        self._generation_lock = threading.Lock()
        self._scan_generation = 0
        self._playback_token = 0
        self._subscriptions: List[Subscription] = []
        self._paused_by_focus = False
        self._pending_mutations: Set[Path] = set()

    def initialise(self) -> None:
        """Load preferences; a remembered folder is selected but not scanned."""
        prefs = self.preferences.load()
        if prefs.last_folder:
            self.state.selected_folder = Path(prefs.last_folder)
        self.player.set_muted(prefs.muted)
        self._logger.info(
            "Initialised (sort=%s, end=%s, folder=%s)",
            prefs.sort_mode.value,
            prefs.end_of_playback.value,
            self.state.selected_folder or "-",
        )

    def shutdown(self) -> None:
        self._stop_playback()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.player.release()

    # Background work ----------------------------------------------------

    def _post(self, callback: Callable[[], None]) -> None:
        """Hand a callable to the owning thread; safe from any thread."""
        self._results.put(callback)

    def _submit(self, job: Callable[[], Any], on_done: Completion) -> None:
        self._outstanding += 1

        def _run() -> None:
            try:
                result = job()
            except Exception as exc:
                self._post(functools.partial(self._complete, on_done, None, exc))
            else:
                self._post(functools.partial(self._complete, on_done, result, None))

        self._executor.submit(_run)

    def _complete(self, on_done: Completion, result: Any, error: Optional[BaseException]) -> None:
        self._outstanding -= 1
        on_done(result, error)

    @property
    def has_pending_work(self) -> bool:
        return self._outstanding > 0

    def process_pending(self) -> int:
        """Run every queued completion without blocking."""
        processed = 0
        while True:
            try:
                callback = self._results.get_nowait()
            except queue.Empty:
                return processed
            callback()
            processed += 1

    def drain(self, timeout: float = 5.0) -> int:
        """Block until all submitted jobs have completed and been applied."""
        deadline = time.monotonic() + timeout
        processed = self.process_pending()
        while self._outstanding:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"{self._outstanding} background jobs still running")
            try:
                callback = self._results.get(timeout=remaining)
            except queue.Empty:
                continue
            callback()
            processed += 1
        return processed + self.process_pending()

    # Errors -------------------------------------------------------------

    def report_error(self, error: PlayerError) -> None:
        self._logger.warning("%s", error.message)
        self.state.error = ErrorNotice(
            message=error.message,
            recovery_suggestion=error.recovery_suggestion,
            visible=True,
        )

    def dismiss_error(self) -> None:
        self.state.error.visible = False

    # Scanning -----------------------------------------------------------

    def select_folder(self, path: Path) -> bool:
        """Remember ``path`` and scan it."""
        try:
            folder = validate_folder(Path(path).expanduser())
        except PlayerError as exc:
            self.report_error(exc)
            return False
        self.state.selected_folder = folder
        self.preferences.set_last_folder(str(folder))
        return self.start_scan() is not None

    def _is_current_scan(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._scan_generation

    def start_scan(self) -> Optional[int]:
        """Scan the selected folder, superseding any scan still running."""
        folder = self.state.selected_folder
        if folder is None:
            return None
        with self._generation_lock:
            self._scan_generation += 1
            generation = self._scan_generation
        prefs = self.preferences.current
        extensions = self.config.video_extensions
        self._stop_playback()
        self.playlist.clear()
        self.state.is_scanning = True
        self._logger.info("Scan %d started for %s", generation, folder)

        def _job() -> List[MediaEntry]:
            entries = scan_media(
                folder,
                recurse=prefs.include_subfolders,
                extensions=extensions,
                is_current=lambda: self._is_current_scan(generation),
            )
            return sort_entries(prefs.sort_mode, entries, self._rng)

        def _done(
            mode: SortMode, entries: Optional[List[MediaEntry]], error: Optional[BaseException]
        ) -> None:
            if not self._is_current_scan(generation):
                self._logger.debug("Discarding results of superseded scan %d", generation)
                return
            latest = self.preferences.current.sort_mode
            if error is None and entries and latest is not mode:
                # Sort mode changed mid-scan; adopt only once ordered by the new mode.
                self._logger.info("Scan %d re-sorting by %s", generation, latest.value)
                self._submit(
                    lambda: sort_entries(latest, entries, self._rng),
                    functools.partial(_done, latest),
                )
                return
            self.state.is_scanning = False
            if error is not None:
                self._handle_scan_error(folder, error)
                return
            if not entries:
                self.report_error(NoVideosFound(folder))
                return
            self.playlist.replace(entries)
            self._logger.info("Scan %d adopted %d videos", generation, len(self.playlist))
            self._play_current()

        self._submit(_job, functools.partial(_done, prefs.sort_mode))
        return generation

    def _handle_scan_error(self, folder: Path, error: BaseException) -> None:
        if isinstance(error, ScanSuperseded):
            return
        if isinstance(error, PlayerError):
            self.report_error(error)
        elif isinstance(error, OSError):
            self._logger.error("Scan of %s failed", folder, exc_info=error)
            self.report_error(FolderAccessDenied(folder))
        else:
            self._logger.error("Unexpected scan failure for %s", folder, exc_info=error)

    # Sorting ------------------------------------------------------------

    def set_sort_mode(self, mode: SortMode) -> bool:
        mode = SortMode(mode)
        self.preferences.set_sort_mode(mode)
        return self.apply_sort(mode)

    def apply_sort(self, mode: Optional[SortMode] = None) -> bool:
        """Reorder the playlist keeping the current entry selected.

        Returns False when the request is dropped because a size sort is
        still in flight or there is nothing to sort.
        """
        mode = SortMode(mode or self.preferences.current.sort_mode)
        if self.state.is_sorting:
            self._logger.info("Sort by %s ignored; another sort is in progress", mode.value)
            return False
        if self.playlist.is_empty:
            return False
        if not mode.runs_in_background:
            self.playlist.reorder(sort_entries(mode, self.playlist.entries, self._rng))
            return True

        self.state.is_sorting = True
        snapshot = self.playlist.entries
        with self._generation_lock:
            generation = self._scan_generation

        def _done(ordered: Optional[List[MediaEntry]], error: Optional[BaseException]) -> None:
            self.state.is_sorting = False
            if error is not None:
                self._logger.error("Sort by %s failed", mode.value, exc_info=error)
                return
            if not self._is_current_scan(generation):
                self._logger.debug("Discarding sort computed for a previous scan")
                return
            self.playlist.reorder(ordered or [])

        self._submit(lambda: sort_entries(mode, snapshot), _done)
        return True

    # Navigation ---------------------------------------------------------

    def next(self) -> None:
        if self.playlist.next():
            self._play_current()

    def previous(self) -> None:
        if self.playlist.previous():
            self._play_current()

    def random(self) -> None:
        if self.playlist.random(self._rng):
            self._play_current()

    def play_at(self, index: int) -> bool:
        if not self.playlist.select(index):
            return False
        self._play_current()
        return True

    # Playback -----------------------------------------------------------

    def _detach_observers(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []

    def _stop_playback(self) -> None:
        self._detach_observers()
        self._playback_token += 1
        self.player.stop()
        self.state.is_playing = False
        self.state.current_time = 0.0
        self.state.duration = 0.0

    def _play_current(self) -> None:
        """Stop whatever is playing, then load and start the current entry."""
        self._stop_playback()
        self._paused_by_focus = False
        entry = self.playlist.current
        if entry is None:
            return
        token = self._playback_token
        try:
            self.player.load(entry.path)
            self.player.set_muted(self.preferences.current.muted)
            self._subscriptions = [
                self.player.on_end_reached(
                    lambda: self._post(lambda: self._on_end_reached(token))
                ),
                self.player.periodic_progress(
                    lambda position, length: self._post(
                        lambda: self._on_progress(token, position, length)
                    ),
                    self.config.progress_interval,
                ),
            ]
            self.player.play()
        except PlaybackError as exc:
            self._playback_logger.error("Failed to start %s: %s", entry.path, exc)
            self._detach_observers()
            self.report_error(PlayerInitializationFailed(entry.name))
            return
        self.state.is_playing = True
        self._playback_logger.info("Playing %s", entry.path)

    def _on_progress(self, token: int, position_ms: int, length_ms: int) -> None:
        if token != self._playback_token:
            return
        self.state.current_time = position_ms / 1000.0
        if length_ms > 0:
            self.state.duration = length_ms / 1000.0

    def _on_end_reached(self, token: int) -> None:
        if token != self._playback_token:
            return
        self.handle_playback_ended()

    def handle_playback_ended(self) -> None:
        policy = self.preferences.current.end_of_playback
        self._playback_logger.debug("Playback ended; policy=%s", policy.value)
        if policy is EndOfPlaybackPolicy.STOP:
            self.state.is_playing = False
        elif policy is EndOfPlaybackPolicy.REPLAY:
            self._play_current()
        else:
            self.next()

    def pause(self) -> None:
        if self.playlist.current is None:
            return
        self.player.pause()
        self.state.is_playing = False

    def resume(self) -> None:
        entry = self.playlist.current
        if entry is None:
            return
        try:
            self.player.play()
        except PlaybackError as exc:
            self._playback_logger.error("Failed to resume %s: %s", entry.path, exc)
            self.report_error(PlayerInitializationFailed(entry.name))
            return
        self.state.is_playing = True

    def toggle_play_pause(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.resume()

    def seek_forward(self) -> None:
        if self.playlist.current is None:
            return
        step_ms = self.preferences.current.seek_forward_seconds * 1000
        target = self.player.get_time_ms() + step_ms
        length = self.player.get_length_ms()
        self.player.seek_ms(min(target, length) if length > 0 else target)

    def seek_backward(self) -> None:
        if self.playlist.current is None:
            return
        step_ms = self.preferences.current.seek_backward_seconds * 1000
        self.player.seek_ms(max(0, self.player.get_time_ms() - step_ms))

    def seek_to_fraction(self, fraction: float) -> None:
        if self.playlist.current is None or self.state.duration <= 0:
            return
        fraction = max(0.0, min(1.0, float(fraction)))
        self.player.seek_ms(int(self.state.duration * fraction * 1000))

    def toggle_mute(self) -> bool:
        muted = not self.preferences.current.muted
        self.preferences.set_muted(muted)
        self.player.set_muted(muted)
        return muted

    def focus_lost(self) -> None:
        if self.preferences.current.pause_on_focus_loss and self.state.is_playing:
            self.pause()
            self._paused_by_focus = True

    def focus_gained(self) -> None:
        if self._paused_by_focus and self.preferences.current.auto_resume_on_focus:
            self.resume()
        self._paused_by_focus = False

    # File actions -------------------------------------------------------

    def move_current(self) -> bool:
        """Move the current video to the configured destination folder."""
        entry = self.playlist.current
        if entry is None:
            return False
        destination = self.preferences.current.move_destination
        if not destination:
            self.report_error(DestinationNotFound(None))
            return False
        try:
            destination_dir = validate_destination(destination)
        except PlayerError as exc:
            self.report_error(exc)
            return False
        return self._mutate(entry, lambda: self.files.move(entry.path, destination_dir))

    def trash_current(self) -> bool:
        """Send the current video to the trash."""
        entry = self.playlist.current
        if entry is None:
            return False
        return self._mutate(entry, lambda: self.files.trash(entry.path))

    def _mutate(self, entry: MediaEntry, job: Callable[[], Any]) -> bool:
        if entry.path in self._pending_mutations:
            return False
        # The player must release the file before it is moved.
        self.pause()
        self._pending_mutations.add(entry.path)

        def _done(_result: Any, error: Optional[BaseException]) -> None:
            self._pending_mutations.discard(entry.path)
            if error is None:
                self._remove_entry(entry.path)
            elif isinstance(error, PlayerError):
                self.report_error(error)
            else:
                self._logger.error("Unexpected failure handling %s", entry.path, exc_info=error)

        self._submit(job, _done)
        return True

    def _remove_entry(self, path: Path) -> None:
        index = self.playlist.index_of(path)
        if index is None:
            return
        was_current = index == self.playlist.current_index
        self.playlist.remove_at(index)
        if self.playlist.is_empty:
            self._stop_playback()
            self._logger.info("Playlist is empty")
        elif was_current:
            self._play_current()

    # Settings -----------------------------------------------------------

    def update_preferences(self, **changes: Any) -> None:
        """Apply preference changes and propagate the ones with live effects."""
        sort_mode = changes.pop("sort_mode", None)
        if changes:
            prefs = self.preferences.update(**changes)
            if "muted" in changes:
                self.player.set_muted(prefs.muted)
        if sort_mode is not None:
            self.set_sort_mode(sort_mode)

    # Status -------------------------------------------------------------

    def status(self) -> Dict[str, Any]:
        entry = self.playlist.current
        return {
            "selected_folder": str(self.state.selected_folder) if self.state.selected_folder else None,
            "is_scanning": self.state.is_scanning,
            "is_sorting": self.state.is_sorting,
            "is_playing": self.state.is_playing,
            "current_index": self.playlist.current_index,
            "count": len(self.playlist),
            "current": _entry_to_dict(entry) if entry else None,
            "current_time": self.state.current_time,
            "duration": self.state.duration,
            "error": {
                "message": self.state.error.message,
                "recovery_suggestion": self.state.error.recovery_suggestion,
                "visible": self.state.error.visible,
            },
        }

    def list_media(self) -> List[Dict[str, Any]]:
        return [_entry_to_dict(entry) for entry in self.playlist.entries]


def _entry_to_dict(entry: MediaEntry) -> Dict[str, Any]:
    return {
        "name": entry.name,
        "path": str(entry.path),
        "size_bytes": entry.size_bytes,
    }
