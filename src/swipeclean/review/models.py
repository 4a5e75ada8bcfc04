"""Review session state models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from swipeclean.catalog.models import Item


@dataclass(frozen=True, slots=True)
class Loading:
    """The session is being (re)built."""


@dataclass(frozen=True, slots=True)
class Empty:
    """Nothing is left to review."""


@dataclass(frozen=True, slots=True)
class Ready:
    """An item is on display.

    Attributes:
        current_item: Item being shown, if any.
    """

    current_item: Optional[Item] = None


ReviewState = Union[Loading, Empty, Ready]

LOADING = Loading()
EMPTY = Empty()


@dataclass(frozen=True, slots=True)
class DecisionRecord:
    """One keep/discard decision kept for undo.

    Attributes:
        item: Item the decision applied to.
        was_discard: True when the item was staged for deletion.
    """

    item: Item
    was_discard: bool


class AuthorizationStatus(str, Enum):
    """State of a batch operation handshake."""

    IDLE = "idle"
    AWAITING_AUTHORIZATION = "awaiting_authorization"


__all__ = [
    "Loading",
    "Empty",
    "Ready",
    "ReviewState",
    "LOADING",
    "EMPTY",
    "DecisionRecord",
    "AuthorizationStatus",
]
