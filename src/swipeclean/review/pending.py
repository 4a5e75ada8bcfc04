"""In-memory projection of the items staged for deletion."""

from __future__ import annotations

from typing import Iterable, Optional

from swipeclean.catalog.models import Item


class PendingDeleteSet:
    """Ordered list of staged items, unique by id.

    Only the pipeline mutates it; readers get tuple snapshots.
    """

    def __init__(self) -> None:
        self._items: list[Item] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    @property
    def items(self) -> tuple[Item, ...]:
        return tuple(self._items)

    @property
    def ids(self) -> list[int]:
        return [item.id for item in self._items]

    def add(self, item: Item) -> bool:
        """Append ``item``; returns False if its id is already staged."""
        if item.id in self:
            return False
        self._items.append(item)
        return True

    def remove(self, item_id: int) -> Optional[Item]:
        """Drop the item with ``item_id`` and return it, if present."""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return self._items.pop(index)
        return None

    def remove_ids(self, item_ids: Iterable[int]) -> None:
        doomed = set(item_ids)
        self._items = [item for item in self._items if item.id not in doomed]

    def replace(self, items: Iterable[Item]) -> None:
        """Swap the contents for ``items``, keeping the first of any duplicate ids."""
        self._items = []
        for item in items:
            self.add(item)


__all__ = ["PendingDeleteSet"]
