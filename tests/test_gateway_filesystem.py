"""Filesystem gateway tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from swipeclean.catalog import item_id_for
from swipeclean.gateway import (
    AuthorizationOutcome,
    Done,
    FilesystemGateway,
    Intent,
    PendingAuthorization,
    UnknownAuthorizationError,
)


def _photo(root: Path, name: str) -> Path:
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(name.encode("utf-8"))
    return path


@pytest.fixture
def collection(tmp_path: Path) -> Path:
    root = tmp_path / "photos"
    root.mkdir()
    return root.resolve()


def _gateway(root: Path, **kwargs) -> FilesystemGateway:
    kwargs.setdefault("require_authorization", False)
    return FilesystemGateway(root, root / ".swipeclean" / "system-trash", **kwargs)


def test_trash_moves_files_and_records_expiry(collection: Path) -> None:
    photo = _photo(collection, "album/beach.jpg")
    gateway = _gateway(collection, retention_days=30)

    done = gateway.execute(Intent.TRASH, [photo])

    assert isinstance(done, Done)
    assert done.succeeded
    assert not photo.exists()
    items = gateway.list_trashed()
    assert len(items) == 1
    assert items[0].id == item_id_for(Path("album/beach.jpg"))
    assert items[0].locator.parent == gateway.trash_dir
    assert items[0].expires_at is not None


def test_restore_moves_file_back(collection: Path) -> None:
    photo = _photo(collection, "beach.jpg")
    gateway = _gateway(collection)
    gateway.execute(Intent.TRASH, [photo])
    trashed = gateway.list_trashed()

    done = gateway.execute(Intent.RESTORE, [item.locator for item in trashed])

    assert isinstance(done, Done) and done.succeeded
    assert photo.read_bytes() == b"beach.jpg"
    assert gateway.list_trashed() == []


def test_delete_from_trash_drops_index_entry(collection: Path) -> None:
    photo = _photo(collection, "beach.jpg")
    gateway = _gateway(collection)
    gateway.execute(Intent.TRASH, [photo])
    trashed = gateway.list_trashed()[0]

    gateway.execute(Intent.DELETE, [trashed.locator])

    assert not trashed.locator.exists()
    assert gateway.list_trashed() == []


def test_same_name_files_do_not_collide(collection: Path) -> None:
    first = _photo(collection, "a/img.jpg")
    second = _photo(collection, "b/img.jpg")
    gateway = _gateway(collection)

    gateway.execute(Intent.TRASH, [first, second])

    names = sorted(item.locator.name for item in gateway.list_trashed())
    assert names == ["img-1.jpg", "img.jpg"]


def test_missing_source_is_reported_per_item(collection: Path) -> None:
    photo = _photo(collection, "ok.jpg")
    gateway = _gateway(collection)
    missing = collection / "gone.jpg"

    done = gateway.execute(Intent.TRASH, [photo, missing])

    assert isinstance(done, Done)
    assert not done.succeeded
    assert done.failed == [missing]
    assert missing in done.errors
    assert len(gateway.list_trashed()) == 1


def test_restore_rejects_files_outside_trash(collection: Path) -> None:
    photo = _photo(collection, "loose.jpg")
    gateway = _gateway(collection)

    done = gateway.execute(Intent.RESTORE, [photo])

    assert isinstance(done, Done)
    assert done.failed == [photo]
    assert photo.exists()


def test_authorization_required_before_acting(collection: Path) -> None:
    photo = _photo(collection, "beach.jpg")
    gateway = _gateway(collection, require_authorization=True)

    request = gateway.execute(Intent.TRASH, [photo])

    assert isinstance(request, PendingAuthorization)
    assert photo.exists()
    assert gateway.complete(request.token, AuthorizationOutcome.CANCELLED) is None
    assert photo.exists()

    with pytest.raises(UnknownAuthorizationError):
        gateway.complete(request.token, AuthorizationOutcome.CONFIRMED)


def test_confirmed_token_runs_operation(collection: Path) -> None:
    photo = _photo(collection, "beach.jpg")
    gateway = _gateway(collection, require_authorization=True)
    request = gateway.execute(Intent.TRASH, [photo])

    done = gateway.complete(request.token, AuthorizationOutcome.CONFIRMED)

    assert done is not None and done.succeeded
    assert not photo.exists()


def test_empty_request_finishes_immediately(collection: Path) -> None:
    gateway = _gateway(collection, require_authorization=True)

    result = gateway.execute(Intent.DELETE, [])

    assert isinstance(result, Done)
    assert result.results == {}


def test_expired_entries_are_purged(collection: Path) -> None:
    photo = _photo(collection, "old.jpg")
    gateway = _gateway(collection, retention_days=0)
    gateway.execute(Intent.TRASH, [photo])

    assert gateway.list_trashed() == []
    assert not (gateway.trash_dir / "old.jpg").exists()


def test_failed_index_write_keeps_previous_index(
    collection: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    first = _photo(collection, "first.jpg")
    second = _photo(collection, "second.jpg")
    gateway = _gateway(collection)
    gateway.execute(Intent.TRASH, [first])
    index_path = gateway.trash_dir / "trash-index.json"
    before = index_path.read_text(encoding="utf-8")

    def _fail(*_args, **_kwargs) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("swipeclean.state.store.os.replace", _fail)

    with pytest.raises(OSError):
        gateway.execute(Intent.TRASH, [second])

    assert index_path.read_text(encoding="utf-8") == before
    assert sorted(path.name for path in gateway.trash_dir.iterdir()) == [
        "first.jpg",
        "second.jpg",
        "trash-index.json",
    ]
