"""Item models and the catalog contract."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict


class Item(BaseModel):
    """A reviewable photo-like item.

    Attributes:
        id: Stable identifier assigned by the catalog.
        locator: Location the gateway acts on.
        expires_at: Scheduled permanent-deletion time for system-trash entries.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    locator: Path
    expires_at: Optional[datetime] = None


class ItemCatalog(Protocol):
    """Read-only source of reviewable items."""

    def list_all_item_ids(self) -> list[int]:
        """Return every item id in a stable order."""

    def resolve_location(self, item_id: int) -> Path:
        """Return the locator for ``item_id``."""


__all__ = ["Item", "ItemCatalog"]
