"""Filesystem-backed item catalog."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Iterable, Iterator

from swipeclean.config.models import DEFAULT_IMAGE_EXTENSIONS

from .errors import CatalogError, ItemNotFoundError

LOGGER = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


def item_id_for(relative: Path) -> int:
    """Return the stable 64-bit id for a collection-relative path."""
    digest = hashlib.blake2b(relative.as_posix().encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big")


class DirectoryCatalog:
    """Enumerate image files under a collection root.

    Ids are derived from collection-relative paths, so they survive restarts as
    long as files are not renamed. Listing order is newest first.
    """

    def __init__(
        self,
        root: Path,
        *,
        recursive: bool = True,
        include_hidden: bool = False,
        extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
        state_dirname: str = ".swipeclean",
    ) -> None:
        self.root = root.expanduser().resolve()
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.extensions = {f".{ext.lower().lstrip('.')}" for ext in extensions}
        self.state_dirname = state_dirname
        self._locations: dict[int, Path] = {}

    def list_all_item_ids(self) -> list[int]:
        """Scan the root and return ids ordered by modification time, newest first.

        Raises:
            CatalogError: If the root is missing or cannot be read.
        """
        if not self.root.is_dir():
            raise CatalogError(f"Collection root does not exist: {self.root}")

        entries: list[tuple[float, str, int, Path]] = []
        try:
            for path in self._iter_candidates():
                try:
                    mtime = path.stat().st_mtime
                except OSError:
                    continue
                relative = path.relative_to(self.root)
                entries.append((mtime, relative.as_posix(), item_id_for(relative), path))
        except OSError as exc:
            raise CatalogError(f"Failed to scan {self.root}: {exc}") from exc

        entries.sort(key=lambda entry: (-entry[0], entry[1]))
        self._locations = {item_id: path for _, _, item_id, path in entries}
        LOGGER.debug("Catalog scan of %s found %d items.", self.root, len(entries))
        return [item_id for _, _, item_id, _ in entries]

    def resolve_location(self, item_id: int) -> Path:
        """Return the absolute path for ``item_id``.

        Raises:
            ItemNotFoundError: If the id is unknown or its file disappeared.
        """
        if not self._locations:
            self.list_all_item_ids()
        path = self._locations.get(item_id)
        if path is None or not path.exists():
            raise ItemNotFoundError(f"No item with id {item_id} in {self.root}")
        return path

    def _iter_candidates(self) -> Iterator[Path]:
        paths = self.root.rglob("*") if self.recursive else self.root.iterdir()
        for path in paths:
            relative = path.relative_to(self.root)
            if relative.parts and relative.parts[0] == self.state_dirname:
                continue
            if not self.include_hidden and _is_hidden(relative):
                continue
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            yield path


__all__ = ["DirectoryCatalog", "item_id_for"]
