"""State persistence helpers for swipeclean collections."""

from __future__ import annotations

from pathlib import Path

from .errors import LedgerWriteError, StateError
from .ledger import DEFAULT_LEDGER_KEY, TrashLedger
from .models import StoreDocument
from .store import JsonKeyValueStore

DEFAULT_STATE_DIRNAME = ".swipeclean"


class StateRepository:
    """Manage the per-collection state directory layout."""

    def __init__(self, base_dirname: str = DEFAULT_STATE_DIRNAME) -> None:
        """Initialize the repository with an optional base directory name.

        Args:
            base_dirname: Name of the directory that stores collection state.
        """
        self._base_dirname = base_dirname

    @property
    def base_dirname(self) -> str:
        """Return the directory name used for collection metadata."""
        return self._base_dirname

    def initialize(self, root: Path) -> Path:
        """Prepare the state directories for a collection.

        Args:
            root: Root path of the collection.

        Returns:
            Path: Directory containing the state artifacts.
        """
        directory = self.state_dir(root)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "system-trash").mkdir(exist_ok=True)
        (directory / "thumbnails").mkdir(exist_ok=True)
        return directory

    def open_ledger(self, root: Path, key: str = DEFAULT_LEDGER_KEY) -> TrashLedger:
        """Return the trash ledger stored for ``root``."""
        directory = self.initialize(root)
        return TrashLedger(JsonKeyValueStore(directory / "ledger.json"), key=key)

    def log_path(self, root: Path) -> Path:
        """Return the log file location for ``root``."""
        return self.state_dir(root) / "swipeclean.log"

    def state_dir(self, root: Path) -> Path:
        """Return the state directory for a collection."""
        return root / self._base_dirname


__all__ = [
    "StateRepository",
    "DEFAULT_STATE_DIRNAME",
    "DEFAULT_LEDGER_KEY",
    "JsonKeyValueStore",
    "TrashLedger",
    "StoreDocument",
    "StateError",
    "LedgerWriteError",
]
