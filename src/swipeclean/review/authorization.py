"""Batch deletion orchestration and the authorization handshake."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from swipeclean.gateway.models import (
    AuthorizationOutcome,
    DestructiveGateway,
    Done,
    GatewayResult,
    Intent,
    PendingAuthorization,
)
from swipeclean.state.ledger import TrashLedger

from .errors import AuthorizationInProgressError, NoPendingAuthorizationError
from .models import AuthorizationStatus
from .pending import PendingDeleteSet

LOGGER = logging.getLogger(__name__)


class AuthorizationHandshake:
    """Idle/AwaitingAuthorization state machine around gateway calls.

    At most one request is outstanding. Subclasses decide what a finished
    operation means for their own state by overriding ``_on_done``.
    """

    def __init__(
        self,
        gateway: DestructiveGateway,
        *,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self._gateway = gateway
        self._lock = lock or threading.RLock()
        self._outstanding: Optional[PendingAuthorization] = None

    @property
    def status(self) -> AuthorizationStatus:
        if self._outstanding is None:
            return AuthorizationStatus.IDLE
        return AuthorizationStatus.AWAITING_AUTHORIZATION

    @property
    def pending_authorization(self) -> Optional[PendingAuthorization]:
        """Return the outstanding request, if any."""
        return self._outstanding

    def resolve_authorization(self, outcome: AuthorizationOutcome) -> Optional[Done]:
        """Report the result of the external authorization flow.

        Args:
            outcome: Whether the user confirmed or cancelled the request.

        Returns:
            Optional[Done]: The operation result when confirmed, else None.

        Raises:
            NoPendingAuthorizationError: If nothing is awaiting authorization.
        """
        with self._lock:
            request = self._outstanding
            if request is None:
                raise NoPendingAuthorizationError("No authorization request is outstanding.")
            try:
                done = self._gateway.complete(request.token, outcome)
            finally:
                self._outstanding = None

            if outcome is AuthorizationOutcome.CANCELLED or done is None:
                LOGGER.info("Authorization %s cancelled; nothing changed.", request.token)
                self._on_cancelled(request)
                return None
            self._on_done(done)
            return done

    def _submit(self, intent: Intent, locators: List[Path]) -> GatewayResult:
        if self._outstanding is not None:
            raise AuthorizationInProgressError(
                f"Authorization {self._outstanding.token} is still outstanding."
            )
        result = self._gateway.execute(intent, locators)
        if isinstance(result, PendingAuthorization):
            self._outstanding = result
            return result
        self._on_done(result)
        return result

    def _on_done(self, done: Done) -> None:
        raise NotImplementedError

    def _on_cancelled(self, request: PendingAuthorization) -> None:
        return None


class DeletionCoordinator(AuthorizationHandshake):
    """Turn staged discards into a trash or delete batch.

    The ledger is only cleared after the whole batch succeeded; a partial
    failure leaves every id staged so the ledger never claims an item is gone
    while it still exists, or the reverse.
    """

    def __init__(
        self,
        ledger: TrashLedger,
        gateway: DestructiveGateway,
        pending: PendingDeleteSet,
        *,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        super().__init__(gateway, lock=lock)
        self._ledger = ledger
        self._pending = pending
        self._staged_ids: list[int] = []
        self.on_committed: list[Callable[[], None]] = []

    def confirm_delete(self, permanent: bool) -> Optional[GatewayResult]:
        """Send every pending item to the gateway.

        Args:
            permanent: Delete outright instead of moving to the system trash.

        Returns:
            Optional[GatewayResult]: None when nothing is pending, otherwise the
                gateway's immediate result or its authorization token.

        Raises:
            AuthorizationInProgressError: If an earlier request awaits approval.
        """
        with self._lock:
            if self._outstanding is not None:
                raise AuthorizationInProgressError(
                    f"Authorization {self._outstanding.token} is still outstanding."
                )
            items = self._pending.items
            if not items:
                LOGGER.debug("confirm_delete called with nothing pending.")
                return None

            intent = Intent.DELETE if permanent else Intent.TRASH
            self._staged_ids = self._pending.ids
            try:
                return self._submit(intent, [item.locator for item in items])
            except BaseException:
                self._staged_ids = []
                raise

    def _on_done(self, done: Done) -> None:
        ids, self._staged_ids = self._staged_ids, []
        if not done.succeeded:
            LOGGER.warning(
                "%s failed for %d of %d item(s); keeping all of them staged.",
                done.intent.value,
                len(done.failed),
                len(done.results),
            )
            return
        self._ledger.clear(ids)
        self._pending.remove_ids(ids)
        LOGGER.info("Committed %s of %d item(s).", done.intent.value, len(ids))
        for listener in list(self.on_committed):
            listener()

    def _on_cancelled(self, request: PendingAuthorization) -> None:
        self._staged_ids = []


__all__ = ["AuthorizationHandshake", "DeletionCoordinator"]
