"""Trash ledger recording which items are staged for deletion."""

from __future__ import annotations

import logging
from typing import Iterable

from .errors import LedgerWriteError
from .store import JsonKeyValueStore

LOGGER = logging.getLogger(__name__)

DEFAULT_LEDGER_KEY = "trashed_photo_ids"


class TrashLedger:
    """Durable set of staged item ids kept under a single store key.

    Ids are serialized as decimal strings. Every mutation is written through
    before the call returns.
    """

    def __init__(self, store: JsonKeyValueStore, key: str = DEFAULT_LEDGER_KEY) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        """Return the store key holding the id set."""
        return self._key

    def get_trashed_ids(self) -> set[int]:
        """Return every staged id.

        Raises:
            StateError: If the underlying store is unreadable.
        """
        raw = self._store.get(self._key, [])
        if not isinstance(raw, list):
            LOGGER.warning("Ledger key %s holds %s; treating as empty.", self._key, type(raw))
            return set()
        ids: set[int] = set()
        for value in raw:
            try:
                ids.add(int(value))
            except (TypeError, ValueError):
                LOGGER.warning("Ignoring malformed ledger entry %r.", value)
        return ids

    def add(self, item_id: int) -> None:
        """Stage ``item_id`` for deletion."""
        current = self.get_trashed_ids()
        current.add(item_id)
        self._persist(current)

    def remove(self, item_id: int) -> None:
        """Unstage ``item_id``; a missing id is ignored."""
        current = self.get_trashed_ids()
        current.discard(item_id)
        self._persist(current)

    def clear(self, item_ids: Iterable[int]) -> None:
        """Unstage every id in ``item_ids`` in one write."""
        current = self.get_trashed_ids()
        current.difference_update(item_ids)
        self._persist(current)

    def _persist(self, ids: set[int]) -> None:
        try:
            self._store.put(self._key, [str(value) for value in sorted(ids)])
        except OSError as exc:
            raise LedgerWriteError(f"Failed to write trash ledger: {exc}") from exc


__all__ = ["TrashLedger", "DEFAULT_LEDGER_KEY"]
