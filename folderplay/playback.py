"""Subscription handles and the periodic progress ticker used by the player."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional


class PlaybackError(Exception):
    """Raised by a player when media cannot be opened or started."""


class Subscription:
    """Handle returned by player observers; ``cancel`` detaches exactly once."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel = cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._cancel()


class ProgressTicker:
    """Call ``callback`` every ``interval`` seconds until stopped."""

    def __init__(
        self,
        callback: Callable[[], None],
        interval: float,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._callback = callback
        self._interval = interval
        self._logger = logger or logging.getLogger("folderplay.playback")
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="ProgressTicker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._callback()
            except Exception:  # pragma: no cover - defensive logging
                self._logger.exception("Progress callback failed")

    def as_subscription(self) -> Subscription:
        self.start()
        return Subscription(self.stop)
