"""Gateway request, result, and system-trash models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field

from swipeclean.catalog.models import Item


class Intent(str, Enum):
    """Kind of destructive or restorative operation."""

    TRASH = "trash"
    DELETE = "delete"
    RESTORE = "restore"


class AuthorizationOutcome(str, Enum):
    """Result reported by the external authorization flow."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Done:
    """Outcome of an operation that has been carried out.

    Attributes:
        intent: Operation that ran.
        results: Per-locator success flags.
        errors: Failure messages keyed by locator.
    """

    intent: Intent
    results: Dict[Path, bool] = field(default_factory=dict)
    errors: Dict[Path, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """Return True when every item succeeded."""
        return all(self.results.values())

    @property
    def failed(self) -> list[Path]:
        """Return locators whose operation failed."""
        return [locator for locator, ok in self.results.items() if not ok]


@dataclass(frozen=True, slots=True)
class PendingAuthorization:
    """Opaque handle for an operation awaiting external approval.

    Attributes:
        token: Identifier correlating the request with its resolution.
        intent: Operation that will run once confirmed.
        locators: Items the operation targets.
    """

    token: str
    intent: Intent
    locators: tuple[Path, ...]


GatewayResult = Union[Done, PendingAuthorization]


class DestructiveGateway(Protocol):
    """Authority that performs or authorizes destructive operations."""

    def execute(self, intent: Intent, locators: List[Path]) -> GatewayResult:
        """Run ``intent`` now or return a token that must be authorized."""

    def complete(self, token: str, outcome: AuthorizationOutcome) -> Optional[Done]:
        """Resolve an outstanding token; returns the result when confirmed."""

    def list_trashed(self) -> List[Item]:
        """Return items currently held in the system trash."""


class TrashEntry(BaseModel):
    """Record describing a file moved into the system trash.

    Attributes:
        item_id: Identifier of the item before it was trashed.
        original_path: Where the file lived before trashing.
        trashed_name: File name inside the system-trash directory.
        trashed_at: When the file was trashed.
        expires_at: When the entry becomes eligible for purging.
    """

    item_id: int
    original_path: Path
    trashed_name: str
    trashed_at: datetime
    expires_at: datetime


class TrashIndex(BaseModel):
    """Persisted index of system-trash entries keyed by trashed name."""

    entries: Dict[str, TrashEntry] = Field(default_factory=dict)


__all__ = [
    "Intent",
    "AuthorizationOutcome",
    "Done",
    "PendingAuthorization",
    "GatewayResult",
    "DestructiveGateway",
    "TrashEntry",
    "TrashIndex",
]
