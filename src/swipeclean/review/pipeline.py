"""Review pipeline: shuffled item stream, decisions, undo, and staged deletes."""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from typing import Callable, Optional, Union

from swipeclean.catalog.errors import CatalogError, ItemNotFoundError
from swipeclean.catalog.models import Item, ItemCatalog
from swipeclean.config.models import ReviewSettings
from swipeclean.gateway.models import (
    AuthorizationOutcome,
    DestructiveGateway,
    Done,
    GatewayResult,
    PendingAuthorization,
)
from swipeclean.render.prefetch import RenderCache
from swipeclean.state.errors import LedgerWriteError, StateError
from swipeclean.state.ledger import TrashLedger

from .authorization import DeletionCoordinator
from .buffer import LookaheadBuffer
from .errors import AuthorizationInProgressError, InvariantViolation, ReviewError
from .history import UndoHistory
from .models import (
    EMPTY,
    LOADING,
    AuthorizationStatus,
    DecisionRecord,
    Ready,
    ReviewState,
)
from .pending import PendingDeleteSet

LOGGER = logging.getLogger(__name__)


class ReviewPipeline:
    """Serve a randomized stream of items and record keep/discard decisions.

    The pipeline owns the id pool, the lookahead buffer, the undo history, and
    the pending-delete projection of the trash ledger. Every public mutator
    runs under one re-entrant lock, so hosts with several threads can share an
    instance; callers still see one operation at a time.

    Discards are written to the ledger before the in-memory projection
    changes. Destructive batch operations go through a
    :class:`DeletionCoordinator` and only clear the ledger once confirmed.
    """

    def __init__(
        self,
        catalog: ItemCatalog,
        ledger: TrashLedger,
        gateway: DestructiveGateway,
        *,
        settings: Optional[ReviewSettings] = None,
        render_cache: Optional[RenderCache] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize the pipeline with its collaborators.

        Args:
            catalog: Source of item ids and their locations.
            ledger: Durable record of staged ids.
            gateway: Authority that trashes or deletes items.
            settings: Buffer sizing and invariant policy.
            render_cache: Optional sink for eager thumbnail rendering.
            rng: Random source used for shuffling.
        """
        self._settings = settings or ReviewSettings()
        self._catalog = catalog
        self._ledger = ledger
        self._render_cache = render_cache
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        self._state: ReviewState = LOADING
        self._pool: deque[int] = deque()
        self._buffer = LookaheadBuffer(
            self._settings.buffer_capacity, self._settings.refill_threshold
        )
        self._history = UndoHistory()
        self._pending = PendingDeleteSet()
        self._coordinator = DeletionCoordinator(ledger, gateway, self._pending, lock=self._lock)
        self._total_count = 0
        self._processed_count = 0
        self._disposed = False

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #

    def start(self) -> ReviewState:
        """Hydrate the pending list and build the first session."""
        self.refresh_pending_list()
        return self.load_and_shuffle()

    def dispose(self) -> None:
        """Drop session state and stop the render cache, if it can be stopped."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._pool.clear()
            self._buffer.clear()
            self._history.clear()
            self._state = EMPTY
            shutdown = getattr(self._render_cache, "shutdown", None)
            if callable(shutdown):
                shutdown()

    def __enter__(self) -> "ReviewPipeline":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # ------------------------------------------------------------------ #
    # Observable state                                                   #
    # ------------------------------------------------------------------ #

    @property
    def review_state(self) -> ReviewState:
        return self._state

    @property
    def current_item(self) -> Optional[Item]:
        """Return the item on display, if the state is Ready with one."""
        state = self._state
        if isinstance(state, Ready):
            return state.current_item
        return None

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def processed_count(self) -> int:
        return self._processed_count

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_items(self) -> tuple[Item, ...]:
        return self._pending.items

    @property
    def pool_size(self) -> int:
        return len(self._pool)

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return self._coordinator.status

    @property
    def pending_authorization(self) -> Optional[PendingAuthorization]:
        return self._coordinator.pending_authorization

    def buffer_snapshot(self) -> tuple[Item, ...]:
        """Return the buffered items, next to be shown first."""
        return self._buffer.snapshot()

    def add_commit_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after each successfully committed batch."""
        self._coordinator.on_committed.append(listener)

    # ------------------------------------------------------------------ #
    # Session                                                            #
    # ------------------------------------------------------------------ #

    def load_and_shuffle(self) -> ReviewState:
        """Build a fresh shuffled session from the catalog minus staged ids.

        Any item on display and everything buffered is abandoned. When the
        catalog or ledger cannot be read, the previous session stays intact.

        Raises:
            CatalogError: If the catalog listing fails.
            StateError: If the ledger cannot be read.
        """
        with self._lock:
            self._ensure_active()
            previous = self._state
            self._state = LOADING
            try:
                all_ids = self._catalog.list_all_item_ids()
                trashed = self._ledger.get_trashed_ids()
            except (CatalogError, StateError):
                LOGGER.warning("Failed to load review session; keeping the previous one.")
                self._state = previous
                raise

            available = [item_id for item_id in dict.fromkeys(all_ids) if item_id not in trashed]
            self._rng.shuffle(available)

            self._history.clear()
            self._buffer.clear()
            self._pool = deque(available)
            self._processed_count = 0
            self._total_count = len(available)
            LOGGER.info(
                "Loaded review session: %d available, %d staged.", len(available), len(trashed)
            )

            if not available:
                self._state = EMPTY
                return self._state

            self.fill_buffer()
            self.advance()
            return self._state

    def fill_buffer(self) -> int:
        """Move ids from the pool into the buffer until it is full.

        Returns:
            int: Number of items added.
        """
        with self._lock:
            added = 0
            while not self._buffer.is_full and self._pool:
                item_id = self._pool.popleft()
                if item_id in self._buffer:
                    self._violation(f"Item {item_id} is already buffered")
                    continue
                try:
                    locator = self._catalog.resolve_location(item_id)
                except ItemNotFoundError:
                    LOGGER.warning("Item %s vanished before it could be shown; skipping.", item_id)
                    continue
                self._buffer.push_back(Item(id=item_id, locator=locator))
                added += 1

            if self._render_cache is not None and self._settings.prerender_count:
                upcoming = self._buffer.front_locators(self._settings.prerender_count)
                self._render_cache.submit(upcoming)
            return added

    def advance(self) -> Optional[Item]:
        """Show the next buffered item, or switch to Empty when none remain."""
        with self._lock:
            if self._buffer.needs_refill:
                self.fill_buffer()
            if not len(self._buffer):
                self.fill_buffer()
                if not len(self._buffer):
                    self._state = EMPTY
                    return None

            item = self._buffer.pop_front()
            self._state = Ready(current_item=item)

            if self._buffer.needs_refill:
                self.fill_buffer()
            return item

    # ------------------------------------------------------------------ #
    # Decisions                                                          #
    # ------------------------------------------------------------------ #

    def decide(self, is_discard: bool, item: Optional[Item] = None) -> Optional[Item]:
        """Record a decision for the displayed item and show the next one.

        Args:
            is_discard: Stage the item for deletion instead of keeping it.
            item: Item the caller believes is displayed; defaults to it.

        Returns:
            Optional[Item]: The newly displayed item.

        Raises:
            LedgerWriteError: If staging fails; nothing changes in that case.
            InvariantViolation: In strict mode, when no item is displayed or
                ``item`` is not the displayed one.
        """
        with self._lock:
            self._ensure_active()
            current = self.current_item
            if current is None:
                return self._violation("decide called without an item on display")
            if item is not None and item.id != current.id:
                return self._violation(f"decide called for {item.id} while {current.id} is shown")

            if is_discard:
                self._ledger.add(current.id)
                if not self._pending.add(current):
                    LOGGER.debug("Item %s was already pending.", current.id)

            self._history.push(DecisionRecord(item=current, was_discard=is_discard))
            self._processed_count += 1
            return self.advance()

    def swipe_left(self) -> Optional[Item]:
        """Discard the displayed item."""
        return self.decide(True)

    def swipe_right(self) -> Optional[Item]:
        """Keep the displayed item."""
        return self.decide(False)

    def undo(self) -> Optional[Item]:
        """Revert the newest decision and show its item again.

        The item on display goes back to the head of the buffer. Returns the
        restored item, or None when there is nothing to undo.
        """
        with self._lock:
            self._ensure_active()
            record = self._history.pop()
            if record is None:
                return None

            if record.was_discard:
                if self._batch_in_flight():
                    self._history.push(record)
                    raise AuthorizationInProgressError(
                        "Cannot undo a discard while a delete batch awaits authorization."
                    )
                try:
                    self._ledger.remove(record.item.id)
                except LedgerWriteError:
                    self._history.push(record)
                    raise
                self._pending.remove(record.item.id)
            self._processed_count = max(self._processed_count - 1, 0)

            current = self.current_item
            if current is not None:
                self._requeue_front(current)
            self._state = Ready(current_item=record.item)
            return record.item

    # ------------------------------------------------------------------ #
    # Pending deletes                                                    #
    # ------------------------------------------------------------------ #

    def refresh_pending_list(self) -> tuple[Item, ...]:
        """Rebuild the pending projection from the ledger.

        Staged ids whose files no longer exist are dropped from the ledger,
        since there is nothing left to delete.
        """
        with self._lock:
            self._ensure_active()
            items: list[Item] = []
            stale: list[int] = []
            for item_id in sorted(self._ledger.get_trashed_ids()):
                try:
                    items.append(Item(id=item_id, locator=self._catalog.resolve_location(item_id)))
                except ItemNotFoundError:
                    stale.append(item_id)
            if stale:
                LOGGER.info("Dropping %d staged item(s) that no longer exist.", len(stale))
                self._ledger.clear(stale)
            self._pending.replace(items)
            return self._pending.items

    def restore_item(self, item: Union[Item, int]) -> None:
        """Unstage one item; unknown ids are ignored.

        Raises:
            AuthorizationInProgressError: If a delete batch awaits approval.
        """
        item_id = item.id if isinstance(item, Item) else int(item)
        with self._lock:
            self._ensure_active()
            if self._batch_in_flight():
                raise AuthorizationInProgressError(
                    f"Cannot restore {item_id} while a delete batch awaits authorization."
                )
            self._ledger.remove(item_id)
            self._pending.remove(item_id)

    def confirm_delete(self, permanent: bool = False) -> Optional[GatewayResult]:
        """Trash (or delete, when ``permanent``) every pending item.

        Raises:
            AuthorizationInProgressError: If an earlier batch awaits approval.
        """
        with self._lock:
            self._ensure_active()
            return self._coordinator.confirm_delete(permanent)

    def resolve_authorization(self, outcome: AuthorizationOutcome) -> Optional[Done]:
        """Report the outcome of the authorization flow for the pending batch."""
        with self._lock:
            self._ensure_active()
            return self._coordinator.resolve_authorization(outcome)

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _requeue_front(self, item: Item) -> None:
        if item.id in self._buffer:
            self._violation(f"Item {item.id} is already buffered")
            return
        if self._buffer.is_full:
            evicted = self._buffer.pop_back()
            if evicted is not None:
                self._pool.appendleft(evicted.id)
        self._buffer.push_front(item)

    def _batch_in_flight(self) -> bool:
        return self._coordinator.status is AuthorizationStatus.AWAITING_AUTHORIZATION

    def _ensure_active(self) -> None:
        if self._disposed:
            raise ReviewError("Review pipeline has been disposed.")

    def _violation(self, message: str) -> None:
        if self._settings.strict_invariants:
            raise InvariantViolation(message)
        LOGGER.error("Ignoring contract violation: %s", message)
        return None


__all__ = ["ReviewPipeline"]
