import random
from pathlib import Path

import pytest

from folderplay import file_ops
from folderplay.core import ApplicationCore
from folderplay.playback import PlaybackError, Subscription
from folderplay.preferences import PreferencesStore
from folderplay.settings import config_from_mapping


class FakePlayer:
    """In-memory stand-in for the VLC controller."""

    def __init__(self):
        self.loaded = None
        self.loads = []
        self.playing = False
        self.muted = False
        self.pause_calls = 0
        self.time_ms = 0
        self.length_ms = 60_000
        self.end_callbacks = []
        self.progress_callbacks = []
        self.broken = set()
        self.released = False

    def load(self, path):
        if Path(path).name in self.broken:
            raise PlaybackError(f"cannot open {path}")
        self.loaded = Path(path)
        self.loads.append(Path(path).name)
        self.time_ms = 0

    def play(self):
        self.playing = True

    def pause(self):
        self.pause_calls += 1
        self.playing = False

    def stop(self):
        self.playing = False

    def release(self):
        self.released = True

    def seek_ms(self, position_ms):
        self.time_ms = position_ms

    def get_time_ms(self):
        return self.time_ms

    def get_length_ms(self):
        return self.length_ms

    def set_muted(self, muted):
        self.muted = muted

    def on_end_reached(self, callback):
        self.end_callbacks.append(callback)
        return Subscription(lambda: self.end_callbacks.remove(callback))

    def periodic_progress(self, callback, interval):
        self.progress_callbacks.append(callback)
        return Subscription(lambda: self.progress_callbacks.remove(callback))

    def finish(self):
        for callback in list(self.end_callbacks):
            callback()

    def tick(self, position_ms, length_ms):
        for callback in list(self.progress_callbacks):
            callback(position_ms, length_ms)


def make_video(folder: Path, name: str, size: int = 0) -> Path:
    path = folder / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def config(tmp_path):
    return config_from_mapping(
        {
            "log_directory": str(tmp_path / "logs"),
            "preferences_path": str(tmp_path / "state" / "preferences.json"),
            "progress_interval": 0.05,
            "scan_workers": 2,
        }
    )


@pytest.fixture
def store(config):
    return PreferencesStore(config.preferences_path)


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def trashed(monkeypatch):
    """Replace send2trash with an unlink that records what was trashed."""
    removed = []

    def fake_send2trash(path):
        Path(path).unlink()
        removed.append(Path(path).name)

    monkeypatch.setattr(file_ops, "send2trash", fake_send2trash)
    return removed


@pytest.fixture
def core(config, store, player, trashed):
    app_core = ApplicationCore(config, store, player, rng=random.Random(7))
    app_core.initialise()
    yield app_core
    app_core.shutdown()


@pytest.fixture
def library(tmp_path):
    folder = tmp_path / "library"
    folder.mkdir()
    make_video(folder, "b.mp4", 300)
    make_video(folder, "a.mp4", 100)
    make_video(folder, "c.mp4", 200)
    return folder


@pytest.fixture
def loaded_core(core, library):
    assert core.select_folder(library)
    core.drain()
    return core
