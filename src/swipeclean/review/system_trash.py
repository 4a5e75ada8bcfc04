"""Review of items already moved to the system trash."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from swipeclean.catalog.models import Item
from swipeclean.gateway.models import DestructiveGateway, Done, GatewayResult, Intent

from .authorization import AuthorizationHandshake

LOGGER = logging.getLogger(__name__)


class SystemTrashReview(AuthorizationHandshake):
    """Restore or permanently delete system-trash entries.

    Finished operations re-list the system trash; the local ledger is not
    involved because it only tracks items staged before trashing.
    """

    def __init__(
        self,
        gateway: DestructiveGateway,
        *,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        super().__init__(gateway, lock=lock)
        self._items: tuple[Item, ...] = ()

    @property
    def items(self) -> tuple[Item, ...]:
        """Return the most recent system-trash listing."""
        return self._items

    def refresh(self) -> tuple[Item, ...]:
        """Re-read the system trash from the gateway."""
        with self._lock:
            self._items = tuple(self._gateway.list_trashed())
            return self._items

    def restore_selected(self, items: Iterable[Item]) -> Optional[GatewayResult]:
        """Move ``items`` back to where they were trashed from."""
        return self._request(Intent.RESTORE, items)

    def delete_selected(self, items: Iterable[Item]) -> Optional[GatewayResult]:
        """Delete ``items`` permanently."""
        return self._request(Intent.DELETE, items)

    def _request(self, intent: Intent, items: Iterable[Item]) -> Optional[GatewayResult]:
        with self._lock:
            locators = [item.locator for item in items]
            if not locators:
                return None
            return self._submit(intent, locators)

    def _on_done(self, done: Done) -> None:
        if not done.succeeded:
            LOGGER.warning(
                "%s failed for %d system-trash item(s).", done.intent.value, len(done.failed)
            )
        self.refresh()


__all__ = ["SystemTrashReview"]
