"""Filesystem gateway with a local system-trash area."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from swipeclean.catalog.discovery import item_id_for
from swipeclean.catalog.models import Item
from swipeclean.state.store import write_atomic

from .errors import GatewayError, UnknownAuthorizationError
from .models import (
    AuthorizationOutcome,
    Done,
    GatewayResult,
    Intent,
    PendingAuthorization,
    TrashEntry,
    TrashIndex,
)

LOGGER = logging.getLogger(__name__)


class FilesystemGateway:
    """Trash, delete, and restore files, optionally behind an approval step.

    ``TRASH`` moves files into ``trash_dir`` and records an expiry; ``DELETE``
    unlinks files wherever they are; ``RESTORE`` moves trashed files back to
    their original location. With ``require_authorization`` set, ``execute``
    only hands out a token and the operation runs when ``complete`` is called
    with ``CONFIRMED``.
    """

    def __init__(
        self,
        root: Path,
        trash_dir: Path,
        *,
        require_authorization: bool = True,
        retention_days: int = 30,
    ) -> None:
        """Initialize the gateway.

        Args:
            root: Collection root used to derive item ids for trashed files.
            trash_dir: Directory holding system-trash files and their index.
            require_authorization: Whether operations wait for ``complete``.
            retention_days: Days before a trashed file expires.
        """
        self.root = root.expanduser().resolve()
        self.trash_dir = trash_dir
        self.require_authorization = require_authorization
        self.retention = timedelta(days=retention_days)
        self._pending: dict[str, PendingAuthorization] = {}

    def execute(self, intent: Intent, locators: List[Path]) -> GatewayResult:
        """Perform ``intent`` on ``locators`` or request authorization for it.

        Args:
            intent: Operation to perform.
            locators: Paths the operation targets.

        Returns:
            GatewayResult: ``Done`` when the operation ran, otherwise a token.
        """
        if not locators:
            return Done(intent=intent)
        if not self.require_authorization:
            return self._perform(intent, locators)

        request = PendingAuthorization(
            token=uuid.uuid4().hex,
            intent=intent,
            locators=tuple(locators),
        )
        self._pending[request.token] = request
        LOGGER.info(
            "Authorization %s requested for %s of %d item(s).",
            request.token,
            intent.value,
            len(locators),
        )
        return request

    def complete(self, token: str, outcome: AuthorizationOutcome) -> Optional[Done]:
        """Resolve an outstanding authorization request.

        Raises:
            UnknownAuthorizationError: If ``token`` is not outstanding.
        """
        request = self._pending.pop(token, None)
        if request is None:
            raise UnknownAuthorizationError(f"No pending authorization for token {token}")
        if outcome is AuthorizationOutcome.CANCELLED:
            LOGGER.info("Authorization %s cancelled.", token)
            return None
        return self._perform(request.intent, request.locators)

    def list_trashed(self) -> List[Item]:
        """Return system-trash items, purging expired and vanished entries first."""
        index = self._load_index()
        now = datetime.now(timezone.utc)
        changed = False
        items: list[Item] = []
        for name, entry in list(index.entries.items()):
            path = self.trash_dir / name
            if entry.expires_at <= now:
                path.unlink(missing_ok=True)
                LOGGER.info("Purged expired trash entry %s.", name)
                del index.entries[name]
                changed = True
                continue
            if not path.exists():
                del index.entries[name]
                changed = True
                continue
            items.append(Item(id=entry.item_id, locator=path, expires_at=entry.expires_at))
        if changed:
            self._save_index(index)
        items.sort(key=lambda item: (item.expires_at, item.id))
        return items

    def _perform(self, intent: Intent, locators: Iterable[Path]) -> Done:
        index = self._load_index()
        results: dict[Path, bool] = {}
        errors: dict[Path, str] = {}
        handlers = {
            Intent.TRASH: self._trash_one,
            Intent.DELETE: self._delete_one,
            Intent.RESTORE: self._restore_one,
        }
        handler = handlers[intent]
        for locator in locators:
            try:
                handler(locator, index)
                results[locator] = True
            except (OSError, GatewayError) as exc:
                LOGGER.warning("%s failed for %s: %s", intent.value, locator, exc)
                results[locator] = False
                errors[locator] = str(exc)
        self._save_index(index)
        done = Done(intent=intent, results=results, errors=errors)
        LOGGER.info(
            "%s finished: %d ok, %d failed.",
            intent.value,
            len(results) - len(done.failed),
            len(done.failed),
        )
        return done

    def _trash_one(self, locator: Path, index: TrashIndex) -> None:
        if not locator.is_file():
            raise FileNotFoundError(f"Source path is missing: {locator}")
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        destination = self._unique_path(self.trash_dir / locator.name, set(index.entries))
        locator.rename(destination)
        index.entries[destination.name] = TrashEntry(
            item_id=self._item_id(locator),
            original_path=locator,
            trashed_name=destination.name,
            trashed_at=now,
            expires_at=now + self.retention,
        )

    def _delete_one(self, locator: Path, index: TrashIndex) -> None:
        locator.unlink()
        if locator.parent == self.trash_dir:
            index.entries.pop(locator.name, None)

    def _restore_one(self, locator: Path, index: TrashIndex) -> None:
        entry = index.entries.get(locator.name)
        if locator.parent != self.trash_dir or entry is None:
            raise GatewayError(f"{locator} is not in the system trash")
        if not locator.exists():
            raise FileNotFoundError(f"Trashed file is missing: {locator}")
        destination = self._unique_path(entry.original_path, set())
        destination.parent.mkdir(parents=True, exist_ok=True)
        locator.rename(destination)
        del index.entries[locator.name]

    def _unique_path(self, candidate: Path, occupied: set[str]) -> Path:
        final_candidate = candidate
        counter = 1
        while final_candidate.exists() or final_candidate.name in occupied:
            final_candidate = candidate.with_name(f"{candidate.stem}-{counter}{candidate.suffix}")
            counter += 1
        return final_candidate

    def _item_id(self, locator: Path) -> int:
        try:
            relative = locator.resolve().relative_to(self.root)
        except ValueError:
            relative = locator.resolve()
        return item_id_for(relative)

    def _index_path(self) -> Path:
        return self.trash_dir / "trash-index.json"

    def _load_index(self) -> TrashIndex:
        path = self._index_path()
        if not path.exists():
            return TrashIndex()
        return TrashIndex.model_validate_json(path.read_text(encoding="utf-8"))

    def _save_index(self, index: TrashIndex) -> None:
        write_atomic(self._index_path(), index.model_dump_json(indent=2))


__all__ = ["FilesystemGateway"]
