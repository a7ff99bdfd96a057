"""VLC playback controller for desktop environments."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional

import vlc

from .playback import PlaybackError, ProgressTicker, Subscription
from .settings import AppConfig


class VLCError(PlaybackError):
    """Base exception for VLC control issues."""


class VLCController:
    """Play one video at a time via libVLC bindings."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._logger = logging.getLogger("folderplay.playback")
        self._media_lock = threading.RLock()
        self._callbacks_lock = threading.Lock()
        self._instance, self._player = self._build_vlc_stack()
        self._media: Optional[vlc.Media] = None
        self._current_path: Optional[Path] = None
        self._end_callbacks: Dict[int, Callable[[], None]] = {}
        self._next_callback_id = 0
        self._player.event_manager().event_attach(
            vlc.EventType.MediaPlayerEndReached, self._on_end_reached
        )

    # Internal helpers -------------------------------------------------

    def _build_vlc_stack(self) -> tuple[vlc.Instance, vlc.MediaPlayer]:
        """Instantiate libVLC objects for playback."""
        instance = vlc.Instance(self._config.vlc_options or ["--quiet"])
        if instance is None:
            raise VLCError("libVLC could not be initialised")
        return instance, instance.media_player_new()

    def _on_end_reached(self, _event: object) -> None:
        # Runs on a libVLC thread; callbacks are expected to hand off.
        with self._callbacks_lock:
            callbacks: List[Callable[[], None]] = list(self._end_callbacks.values())
        for callback in callbacks:
            try:
                callback()
            except Exception:
                self._logger.exception("End-of-media callback failed")

    # Media handling ----------------------------------------------------

    def load(self, path: Path) -> None:
        """Replace the current media with ``path`` without starting it."""
        with self._media_lock:
            try:
                media = self._instance.media_new_path(str(path))
            except Exception as exc:  # pragma: no cover - libVLC exceptions are opaque
                raise VLCError(f"Unable to open {path.name}: {exc}") from exc
            if media is None:
                raise VLCError(f"Unable to open {path.name}")
            self._player.set_media(media)
            if self._media is not None:
                self._media.release()
            self._media = media
            self._current_path = path
            self._logger.info("Loaded %s", path)

    # Playback controls -------------------------------------------------

    def play(self) -> None:
        with self._media_lock:
            if self._player.play() == -1:
                name = self._current_path.name if self._current_path else "<none>"
                raise VLCError(f"libVLC refused to play {name}")

    def pause(self) -> None:
        with self._media_lock:
            self._player.set_pause(1)

    def stop(self) -> None:
        with self._media_lock:
            self._player.stop()

    def seek_ms(self, position_ms: int) -> None:
        with self._media_lock:
            self._player.set_time(max(0, int(position_ms)))

    def get_time_ms(self) -> int:
        return max(0, self._player.get_time())

    def get_length_ms(self) -> int:
        return max(0, self._player.get_length())

    def set_muted(self, muted: bool) -> None:
        with self._media_lock:
            self._player.audio_set_mute(bool(muted))

    # Observers ---------------------------------------------------------

    def on_end_reached(self, callback: Callable[[], None]) -> Subscription:
        with self._callbacks_lock:
            callback_id = self._next_callback_id
            self._next_callback_id += 1
            self._end_callbacks[callback_id] = callback

        def _detach() -> None:
            with self._callbacks_lock:
                self._end_callbacks.pop(callback_id, None)

        return Subscription(_detach)

    def periodic_progress(
        self, callback: Callable[[int, int], None], interval: float
    ) -> Subscription:
        ticker = ProgressTicker(
            lambda: callback(self.get_time_ms(), self.get_length_ms()),
            interval,
            self._logger,
        )
        return ticker.as_subscription()

    def release(self) -> None:
        """Release libVLC objects, ignoring errors."""
        with self._media_lock:
            with self._callbacks_lock:
                self._end_callbacks.clear()
            for obj in (self._player, self._media, self._instance):
                if obj is None:
                    continue
                try:
                    obj.release()
                except Exception:
                    self._logger.debug("Ignoring libVLC release failure", exc_info=True)
            self._media = None
