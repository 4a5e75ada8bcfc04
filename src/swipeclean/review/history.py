"""Undo history for review decisions."""

from __future__ import annotations

from typing import Optional

from .models import DecisionRecord


class UndoHistory:
    """Unbounded stack of decisions, newest last."""

    def __init__(self) -> None:
        self._records: list[DecisionRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def push(self, record: DecisionRecord) -> None:
        self._records.append(record)

    def pop(self) -> Optional[DecisionRecord]:
        """Remove and return the newest record, or None when empty."""
        return self._records.pop() if self._records else None

    def clear(self) -> None:
        self._records.clear()


__all__ = ["UndoHistory"]
