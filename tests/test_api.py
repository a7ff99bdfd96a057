import random
import time

import pytest
from fastapi.testclient import TestClient

from folderplay.api import KEY_BINDINGS, create_app
from folderplay.core import ApplicationCore
from folderplay.preferences import PreferencesStore

from conftest import FakePlayer


@pytest.fixture
def api_player():
    return FakePlayer()


@pytest.fixture
def client(config, api_player, trashed):
    core = ApplicationCore(
        config, PreferencesStore(config.preferences_path), api_player, rng=random.Random(3)
    )
    app = create_app(core, pump_interval=0.01)
    with TestClient(app) as test_client:
        yield test_client


def _wait_for(client, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        status = client.get("/api/status").json()
        if predicate(status):
            return status
        time.sleep(0.02)
    raise AssertionError("condition not reached before timeout")


@pytest.fixture
def scanned(client, library):
    response = client.post("/api/folder", json={"path": str(library)})
    assert response.status_code == 200
    assert response.json()["success"] is True
    _wait_for(client, lambda status: status["count"] == 3 and not status["is_scanning"])
    return client


def test_status_before_any_folder(client):
    status = client.get("/api/status").json()
    assert status["count"] == 0
    assert status["current"] is None
    assert status["selected_folder"] is None


def test_select_folder_scans_and_plays(scanned, api_player):
    playlist = scanned.get("/api/playlist").json()
    assert [video["name"] for video in playlist["videos"]] == ["a.mp4", "b.mp4", "c.mp4"]
    assert playlist["current_index"] == 0
    assert api_player.loads == ["a.mp4"]


def test_missing_folder_is_rejected(client, tmp_path):
    body = client.post("/api/folder", json={"path": str(tmp_path / "gone")}).json()
    assert body["success"] is False
    assert body["details"]["error"]["visible"] is True


def test_rescan_without_folder_conflicts(client):
    assert client.post("/api/folder/rescan").status_code == 409


def test_keys_drive_navigation(scanned, api_player):
    body = scanned.post("/api/keys/right").json()
    assert body["details"]["current"]["name"] == "b.mp4"
    body = scanned.post("/api/keys/left").json()
    assert body["details"]["current"]["name"] == "a.mp4"
    assert scanned.post("/api/keys/q").status_code == 404


def test_key_bindings_target_core_methods():
    for action in KEY_BINDINGS.values():
        assert callable(getattr(ApplicationCore, action))


def test_play_index_out_of_range(scanned):
    assert scanned.post("/api/control/play", json={"index": 7}).status_code == 404
    body = scanned.post("/api/control/play", json={"index": 2}).json()
    assert body["details"]["current_index"] == 2


def test_seek_fraction_is_validated(scanned):
    assert scanned.post("/api/control/seek", json={"fraction": 1.5}).status_code == 422


def test_settings_are_clamped_and_persisted(client, config):
    body = client.post("/api/settings", json={"seek_forward_seconds": 500, "muted": True}).json()
    assert body["seek_forward_seconds"] == 60
    assert body["muted"] is True
    assert PreferencesStore(config.preferences_path).load().seek_forward_seconds == 60


def test_settings_can_clear_move_destination(client):
    client.post("/api/settings", json={"move_destination": "/srv/keep"})
    body = client.post("/api/settings", json={"move_destination": None}).json()
    assert body["move_destination"] is None


def test_sort_endpoint_reorders_playlist(scanned):
    body = scanned.post("/api/playlist/sort", json={"mode": "size_descending"}).json()
    assert body["success"] is True
    _wait_for(scanned, lambda status: not status["is_sorting"])
    names = [video["name"] for video in scanned.get("/api/playlist").json()["videos"]]
    assert names == ["b.mp4", "c.mp4", "a.mp4"]
    assert scanned.get("/api/settings").json()["sort_mode"] == "size_descending"


def test_move_without_destination_shows_error(scanned):
    body = scanned.post("/api/files/move").json()
    assert body["success"] is False
    assert body["details"]["error"]["message"] == "Move Failed: No destination set."
    dismissed = scanned.post("/api/error/dismiss").json()
    assert dismissed["details"]["error"]["visible"] is False


def test_trash_removes_current(scanned, trashed):
    assert scanned.post("/api/files/trash").json()["success"] is True
    _wait_for(scanned, lambda status: status["count"] == 2)
    assert trashed == ["a.mp4"]


def test_infinite_seek_setting_is_clamped(client):
    response = client.post(
        "/api/settings",
        content='{"seek_forward_seconds": Infinity, "seek_backward_seconds": -Infinity}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json()["seek_forward_seconds"] == 60
    assert response.json()["seek_backward_seconds"] == 1


def test_nan_seek_setting_is_ignored(client):
    response = client.post(
        "/api/settings",
        content='{"seek_forward_seconds": NaN}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json()["seek_forward_seconds"] == 10
