"""FastAPI app factory for folderplay."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from .core import ApplicationCore
from .preferences import EndOfPlaybackPolicy
from .sorting import SortMode

# Keyboard shortcuts of the desktop front end, mapped onto core operations.
KEY_BINDINGS: Dict[str, str] = {
    "left": "previous",
    "right": "next",
    "space": "toggle_play_pause",
    "delete": "trash_current",
    "r": "random",
    "m": "move_current",
    ",": "seek_backward",
    ".": "seek_forward",
}

_logger = logging.getLogger("folderplay.api")


class FolderRequest(BaseModel):
    path: str = Field(min_length=1)


class SortRequest(BaseModel):
    mode: SortMode


class SeekRequest(BaseModel):
    fraction: float = Field(ge=0.0, le=1.0)


class PlayRequest(BaseModel):
    index: int = Field(ge=0)


class SettingsRequest(BaseModel):
    sort_mode: Optional[SortMode] = None
    end_of_playback: Optional[EndOfPlaybackPolicy] = None
    seek_forward_seconds: Optional[float] = None
    seek_backward_seconds: Optional[float] = None
    muted: Optional[bool] = None
    pause_on_focus_loss: Optional[bool] = None
    auto_resume_on_focus: Optional[bool] = None
    move_destination: Optional[str] = None
    include_subfolders: Optional[bool] = None

    @field_validator("seek_forward_seconds", "seek_backward_seconds")
    @classmethod
    def _drop_nan(cls, value: Optional[float]) -> Optional[float]:
        # NaN has no clamp target; treat it as not provided.
        if value is not None and math.isnan(value):
            return None
        return value


class OperationResponse(BaseModel):
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


async def _pump(core: ApplicationCore, interval: float) -> None:
    """Apply background results on the event loop, the core's owning thread."""
    while True:
        try:
            core.process_pending()
        except Exception:  # pragma: no cover - defensive logging
            _logger.exception("Failed to apply background result")
        await asyncio.sleep(interval)


def create_app(core: ApplicationCore, pump_interval: float = 0.05) -> FastAPI:
    """Instantiate the FastAPI app with routes and dependencies."""

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        core.initialise()
        pump = asyncio.create_task(_pump(core, pump_interval))
        try:
            yield
        finally:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump
            core.shutdown()

    app = FastAPI(title="folderplay", version="1.0.0", lifespan=lifespan)

    def _preferences_dict() -> Dict[str, Any]:
        return core.preferences.current.to_dict()

    def _done(message: str, success: bool = True) -> OperationResponse:
        return OperationResponse(success=success, message=message, details=core.status())

    @app.get("/api/status")
    async def status() -> Dict[str, Any]:
        return core.status()

    @app.get("/api/playlist")
    async def playlist() -> Dict[str, Any]:
        return {
            "current_index": core.playlist.current_index,
            "videos": core.list_media(),
        }

    @app.post("/api/folder", response_model=OperationResponse)
    async def select_folder(payload: FolderRequest) -> OperationResponse:
        started = core.select_folder(payload.path)
        return _done("Scan started" if started else "Folder rejected", started)

    @app.post("/api/folder/rescan", response_model=OperationResponse)
    async def rescan() -> OperationResponse:
        generation = core.start_scan()
        if generation is None:
            raise HTTPException(status_code=409, detail="No folder selected")
        return _done("Scan started")

    @app.post("/api/control/next", response_model=OperationResponse)
    async def next_video() -> OperationResponse:
        core.next()
        return _done("Advanced to next video")

    @app.post("/api/control/previous", response_model=OperationResponse)
    async def previous_video() -> OperationResponse:
        core.previous()
        return _done("Moved to previous video")

    @app.post("/api/control/random", response_model=OperationResponse)
    async def random_video() -> OperationResponse:
        core.random()
        return _done("Picked a random video")

    @app.post("/api/control/play", response_model=OperationResponse)
    async def play_index(payload: PlayRequest) -> OperationResponse:
        if not core.play_at(payload.index):
            raise HTTPException(status_code=404, detail="Video not found")
        return _done("Playing selected video")

    @app.post("/api/control/play-pause", response_model=OperationResponse)
    async def play_pause() -> OperationResponse:
        core.toggle_play_pause()
        return _done("Toggled play/pause")

    @app.post("/api/control/seek-forward", response_model=OperationResponse)
    async def seek_forward() -> OperationResponse:
        core.seek_forward()
        return _done("Seeked forward")

    @app.post("/api/control/seek-backward", response_model=OperationResponse)
    async def seek_backward() -> OperationResponse:
        core.seek_backward()
        return _done("Seeked backward")

    @app.post("/api/control/seek", response_model=OperationResponse)
    async def seek(payload: SeekRequest) -> OperationResponse:
        core.seek_to_fraction(payload.fraction)
        return _done("Seeked")

    @app.post("/api/control/mute", response_model=OperationResponse)
    async def toggle_mute() -> OperationResponse:
        muted = core.toggle_mute()
        return _done("Muted" if muted else "Unmuted")

    @app.post("/api/playlist/sort", response_model=OperationResponse)
    async def sort(payload: SortRequest) -> OperationResponse:
        applied = core.set_sort_mode(payload.mode)
        return _done(f"Sort set to {payload.mode.value}", applied)

    @app.post("/api/files/move", response_model=OperationResponse)
    async def move_current() -> OperationResponse:
        started = core.move_current()
        return _done("Move started" if started else "Move not started", started)

    @app.post("/api/files/trash", response_model=OperationResponse)
    async def trash_current() -> OperationResponse:
        started = core.trash_current()
        return _done("Trash started" if started else "Trash not started", started)

    @app.post("/api/focus/lost", response_model=OperationResponse)
    async def focus_lost() -> OperationResponse:
        core.focus_lost()
        return _done("Focus lost")

    @app.post("/api/focus/gained", response_model=OperationResponse)
    async def focus_gained() -> OperationResponse:
        core.focus_gained()
        return _done("Focus gained")

    @app.post("/api/error/dismiss", response_model=OperationResponse)
    async def dismiss_error() -> OperationResponse:
        core.dismiss_error()
        return _done("Error dismissed")

    @app.get("/api/settings")
    async def get_settings() -> Dict[str, Any]:
        return _preferences_dict()

    @app.post("/api/settings")
    async def update_settings(payload: SettingsRequest) -> Dict[str, Any]:
        changes = {
            name: value
            for name, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or name == "move_destination"
        }
        core.update_preferences(**changes)
        return _preferences_dict()

    @app.post("/api/keys/{key}", response_model=OperationResponse)
    async def press_key(key: str) -> OperationResponse:
        action = KEY_BINDINGS.get(key.lower())
        if action is None:
            raise HTTPException(status_code=404, detail=f"Unbound key: {key}")
        getattr(core, action)()
        return _done(f"Handled {key}")

    return app
