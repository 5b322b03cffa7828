from __future__ import annotations

from pathlib import Path

import pytest

from tripwatch.exceptions import TripwatchStorageError
from tripwatch.state.storage import AlertCounterStore, JsonFileStorage, MemoryStorage


@pytest.mark.parametrize("stored", [None, "", "abc", "-4", "1.5", " "])
def test_unusable_alert_count_reads_as_zero(stored: str | None) -> None:
    initial = {} if stored is None else {"alert_count": stored}
    store = AlertCounterStore(MemoryStorage(initial))
    assert store.get_alert_count() == 0
    assert store.get("alert_count") == 0


def test_increment_persists_stringified_count() -> None:
    storage = MemoryStorage({"alert_count": "4"})
    store = AlertCounterStore(storage)

    assert store.increment_alert_count() == 5
    assert storage.get_item("alert_count") == "5"


def test_negative_count_is_rejected() -> None:
    store = AlertCounterStore()
    with pytest.raises(ValueError):
        store.set_alert_count(-1)


def test_sound_flag_defaults_to_enabled() -> None:
    storage = MemoryStorage()
    store = AlertCounterStore(storage)
    assert store.get_sound_enabled() is True

    store.set_sound_enabled(False)
    assert storage.get_item("sound_enabled") == "false"
    assert store.get("sound_enabled") is False

    store.set("sound_enabled", True)
    assert storage.get_item("sound_enabled") == "true"


def test_unknown_keys_are_rejected() -> None:
    store = AlertCounterStore()
    with pytest.raises(KeyError):
        store.get("access_token")
    with pytest.raises(KeyError):
        store.set("access_token", "x")


def test_json_file_storage_survives_reload(tmp_path: Path) -> None:
    path = tmp_path / "state" / "operator.json"
    first = AlertCounterStore(JsonFileStorage(path))
    first.increment_alert_count()
    first.increment_alert_count()
    first.set_sound_enabled(False)

    reloaded = AlertCounterStore(JsonFileStorage(path))
    assert reloaded.get_alert_count() == 2
    assert reloaded.get_sound_enabled() is False


def test_corrupt_json_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "operator.json"
    path.write_text("{not json", encoding="utf-8")
    store = AlertCounterStore(JsonFileStorage(path))

    assert store.get_alert_count() == 0
    assert store.get_sound_enabled() is True
    assert store.increment_alert_count() == 1


def test_json_file_storage_write_failure_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    storage = JsonFileStorage(blocker / "operator.json")

    with pytest.raises(TripwatchStorageError):
        storage.set_item("alert_count", "1")
