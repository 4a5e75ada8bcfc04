"""Lookahead buffer of resolved items."""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Optional

from swipeclean.catalog.models import Item

from .errors import InvariantViolation


class LookaheadBuffer:
    """Bounded window of items ready for display.

    Holds at most ``capacity`` items, each id at most once. Refills are due
    once the size drops below ``refill_threshold``.
    """

    def __init__(self, capacity: int, refill_threshold: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        if not 0 <= refill_threshold < capacity:
            raise ValueError("refill_threshold must be in [0, capacity)")
        self.capacity = capacity
        self.refill_threshold = refill_threshold
        self._items: deque[Item] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    @property
    def needs_refill(self) -> bool:
        return len(self._items) < self.refill_threshold

    def push_back(self, item: Item) -> None:
        """Append ``item`` behind everything already buffered."""
        self._check_insert(item)
        self._items.append(item)

    def push_front(self, item: Item) -> None:
        """Put ``item`` at the head so it is shown next."""
        self._check_insert(item)
        self._items.appendleft(item)

    def pop_front(self) -> Optional[Item]:
        return self._items.popleft() if self._items else None

    def pop_back(self) -> Optional[Item]:
        return self._items.pop() if self._items else None

    def front_locators(self, count: int) -> list[Path]:
        """Return the locators of the first ``count`` items."""
        return [item.locator for _, item in zip(range(count), self._items)]

    def snapshot(self) -> tuple[Item, ...]:
        return tuple(self._items)

    def clear(self) -> None:
        self._items.clear()

    def _check_insert(self, item: Item) -> None:
        if self.is_full:
            raise InvariantViolation(f"Lookahead buffer is full ({self.capacity} items)")
        if item.id in self:
            raise InvariantViolation(f"Item {item.id} is already buffered")


__all__ = ["LookaheadBuffer"]
