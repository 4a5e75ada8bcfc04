"""Crash-durable JSON key-value store."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import StateError
from .models import StoreDocument


class JsonKeyValueStore:
    """Persist a small mapping of string keys to JSON values in one file.

    Each write lands in a temporary sibling that is fsynced and then moved over
    the target with ``os.replace``, so a process killed right after ``put``
    returns always finds either the old or the new document on disk.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: File that holds the serialized document.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Return the backing file path."""
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key`` or ``default``.

        Raises:
            StateError: If the backing file cannot be parsed.
        """
        return self._read().entries.get(key, default)

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` and flush it to disk.

        Raises:
            StateError: If the existing document is corrupt.
            OSError: If the write fails.
        """
        document = self._read()
        document.entries[key] = value
        self._write(document)

    def _read(self) -> StoreDocument:
        if not self._path.exists():
            return StoreDocument()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return StoreDocument.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise StateError(f"Invalid store data in {self._path}: {exc}") from exc

    def _write(self, document: StoreDocument) -> None:
        document.updated_at = datetime.now(timezone.utc)
        write_atomic(self._path, json.dumps(document.model_dump(mode="json"), indent=2))


def write_atomic(path: Path, payload: str) -> None:
    """Replace ``path`` with ``payload`` so readers never see a partial file.

    Raises:
        OSError: If the write fails; ``path`` is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = ["JsonKeyValueStore", "write_atomic"]
