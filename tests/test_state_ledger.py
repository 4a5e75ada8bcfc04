"""Durable store, trash ledger, and state repository tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from swipeclean.state import (
    DEFAULT_STATE_DIRNAME,
    JsonKeyValueStore,
    LedgerWriteError,
    StateError,
    StateRepository,
    TrashLedger,
)


def test_initialize_creates_expected_structure(tmp_path: Path) -> None:
    """Ensure initialize prepares the collection state directories.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository()

    directory = repo.initialize(tmp_path)

    assert directory == tmp_path / DEFAULT_STATE_DIRNAME
    assert (directory / "system-trash").is_dir()
    assert (directory / "thumbnails").is_dir()
    assert repo.log_path(tmp_path) == directory / "swipeclean.log"


def test_ledger_survives_reopening(tmp_path: Path) -> None:
    """Ensure staged ids are read back by a fresh ledger over the same file.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    repo = StateRepository()
    ledger = repo.open_ledger(tmp_path)
    ledger.add(42)
    ledger.add(7)
    ledger.remove(7)

    reopened = repo.open_ledger(tmp_path)

    assert reopened.get_trashed_ids() == {42}


def test_ids_are_stored_as_sorted_strings(tmp_path: Path) -> None:
    store = JsonKeyValueStore(tmp_path / "ledger.json")
    ledger = TrashLedger(store)

    ledger.add(10)
    ledger.add(2)

    payload = json.loads(store.path.read_text(encoding="utf-8"))
    assert payload["entries"]["trashed_photo_ids"] == ["2", "10"]
    assert payload["version"] == 1


def test_clear_removes_only_given_ids(tmp_path: Path) -> None:
    ledger = TrashLedger(JsonKeyValueStore(tmp_path / "ledger.json"))
    for item_id in (1, 2, 3):
        ledger.add(item_id)

    ledger.clear([1, 3, 99])

    assert ledger.get_trashed_ids() == {2}


def test_custom_key_keeps_other_entries(tmp_path: Path) -> None:
    store = JsonKeyValueStore(tmp_path / "ledger.json")
    store.put("unrelated", {"keep": True})
    ledger = TrashLedger(store, key="staged")

    ledger.add(5)

    assert store.get("unrelated") == {"keep": True}
    assert store.get("staged") == ["5"]


def test_malformed_entries_are_ignored(tmp_path: Path) -> None:
    store = JsonKeyValueStore(tmp_path / "ledger.json")
    store.put("trashed_photo_ids", ["1", "not-a-number", None, "3"])

    assert TrashLedger(store).get_trashed_ids() == {1, 3}


def test_non_list_value_reads_as_empty(tmp_path: Path) -> None:
    store = JsonKeyValueStore(tmp_path / "ledger.json")
    store.put("trashed_photo_ids", "oops")

    assert TrashLedger(store).get_trashed_ids() == set()


def test_corrupt_store_raises_state_error(tmp_path: Path) -> None:
    path = tmp_path / "ledger.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StateError):
        TrashLedger(JsonKeyValueStore(path)).get_trashed_ids()


def test_write_failure_is_wrapped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = JsonKeyValueStore(tmp_path / "ledger.json")
    ledger = TrashLedger(store)

    def _fail(*_args, **_kwargs) -> None:
        raise OSError("no space left on device")

    monkeypatch.setattr("swipeclean.state.store.os.replace", _fail)

    with pytest.raises(LedgerWriteError):
        ledger.add(1)

    assert not store.path.exists()
    assert list(tmp_path.iterdir()) == []
