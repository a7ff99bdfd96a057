import json

import pytest

from folderplay.preferences import EndOfPlaybackPolicy, Preferences, PreferencesStore
from folderplay.sorting import SortMode


def test_load_without_file_uses_defaults(store):
    prefs = store.load()
    assert prefs == Preferences()
    assert prefs.sort_mode is SortMode.NAME
    assert prefs.end_of_playback is EndOfPlaybackPolicy.NEXT
    assert prefs.seek_forward_seconds == 10
    assert prefs.include_subfolders is True
    assert prefs.move_destination is None
    assert not store.path.exists()


def test_save_and_load_cycle(store, config):
    prefs = Preferences(
        sort_mode=SortMode.SIZE_DESCENDING,
        end_of_playback=EndOfPlaybackPolicy.REPLAY,
        seek_forward_seconds=25,
        seek_backward_seconds=15,
        muted=True,
        pause_on_focus_loss=False,
        auto_resume_on_focus=True,
        move_destination="/srv/keep",
        include_subfolders=False,
        last_folder="/srv/videos",
    )
    store.save(prefs)

    assert PreferencesStore(config.preferences_path).load() == prefs


def test_every_mutation_rewrites_all_fields(store):
    store.load()
    store.set_muted(True)

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert set(data) == set(Preferences().to_dict())
    assert data["muted"] is True
    assert data["sort_mode"] == "name"


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, 1),
        (-5, 1),
        (1, 1),
        (30, 30),
        (60, 60),
        (61, 60),
        (500, 60),
        (float("inf"), 60),
        (float("-inf"), 1),
    ],
)
def test_seek_seconds_are_clamped_on_mutation(store, value, expected):
    store.set_seek_forward_seconds(value)
    store.set_seek_backward_seconds(value)
    assert store.current.seek_forward_seconds == expected
    assert store.current.seek_backward_seconds == expected


def test_seek_seconds_are_not_clamped_on_load(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text('{"seek_forward_seconds": 120}', encoding="utf-8")
    assert store.load().seek_forward_seconds == 120


def test_invalid_fields_fall_back_individually(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(
        json.dumps({"sort_mode": "sideways", "muted": "yes", "seek_backward_seconds": 20}),
        encoding="utf-8",
    )
    prefs = store.load()
    assert prefs.sort_mode is SortMode.NAME
    assert prefs.muted is False
    assert prefs.seek_backward_seconds == 20


def test_corrupt_file_falls_back_to_defaults(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() == Preferences()


def test_no_save_happens_while_loading(store, monkeypatch):
    seen = []
    real_read = store._read

    def read_and_save():
        seen.append(store.is_loading)
        store.save(Preferences(muted=True))
        return real_read()

    monkeypatch.setattr(store, "_read", read_and_save)
    store.load()

    assert seen == [True]
    assert store.is_loading is False
    assert not store.path.exists()


def test_empty_destination_is_stored_as_none(store):
    store.set_move_destination("/srv/keep")
    store.set_move_destination("")
    assert store.current.move_destination is None


def test_update_accepts_enum_values_as_strings(store):
    store.update(sort_mode="size_ascending", end_of_playback="stop")
    assert store.current.sort_mode is SortMode.SIZE_ASCENDING
    assert store.current.end_of_playback is EndOfPlaybackPolicy.STOP


def test_update_rejects_unknown_fields(store):
    with pytest.raises(ValueError):
        store.update(volume=3)
