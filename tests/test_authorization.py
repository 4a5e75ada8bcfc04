"""Deletion batches and the authorization handshake."""

from __future__ import annotations

from pathlib import Path

import pytest

from swipeclean.gateway import AuthorizationOutcome, Done, Intent, PendingAuthorization
from swipeclean.review import (
    AuthorizationInProgressError,
    AuthorizationStatus,
    NoPendingAuthorizationError,
)


def _stage_all(pipeline) -> None:
    pipeline.load_and_shuffle()
    while pipeline.current_item is not None:
        pipeline.swipe_left()


def test_confirmed_trash_clears_ledger_and_pending(make_harness, ledger) -> None:
    harness = make_harness([5])
    pipeline = harness.pipeline
    _stage_all(pipeline)

    request = pipeline.confirm_delete(permanent=False)

    assert isinstance(request, PendingAuthorization)
    assert request.intent is Intent.TRASH
    assert pipeline.authorization_status is AuthorizationStatus.AWAITING_AUTHORIZATION

    done = pipeline.resolve_authorization(AuthorizationOutcome.CONFIRMED)

    assert isinstance(done, Done)
    assert done.succeeded
    assert 5 not in ledger.get_trashed_ids()
    assert pipeline.pending_count == 0
    assert pipeline.authorization_status is AuthorizationStatus.IDLE


def test_cancelled_request_keeps_later_discards(make_harness, ledger) -> None:
    ledger.add(4)
    harness = make_harness([4, 5])
    pipeline = harness.pipeline
    pipeline.start()
    assert pipeline.current_item.id == 5
    pipeline.confirm_delete(permanent=False)

    pipeline.swipe_left()
    pending_before = pipeline.pending_count
    result = pipeline.resolve_authorization(AuthorizationOutcome.CANCELLED)

    assert result is None
    assert pipeline.pending_count == pending_before == 2
    assert ledger.get_trashed_ids() == {4, 5}
    assert pipeline.pending_authorization is None


def test_confirmation_only_clears_ids_sent_with_the_request(make_harness, ledger) -> None:
    ledger.add(4)
    harness = make_harness([4, 5])
    pipeline = harness.pipeline
    pipeline.start()
    pipeline.confirm_delete(permanent=False)
    pipeline.swipe_left()

    pipeline.resolve_authorization(AuthorizationOutcome.CONFIRMED)

    assert ledger.get_trashed_ids() == {5}
    assert [item.id for item in pipeline.pending_items] == [5]


def test_permanent_delete_uses_delete_intent(make_harness) -> None:
    harness = make_harness([1, 2])
    _stage_all(harness.pipeline)

    harness.pipeline.confirm_delete(permanent=True)

    intent, locators = harness.gateway.calls[-1]
    assert intent is Intent.DELETE
    assert sorted(locators) == [Path("/photos/1.jpg"), Path("/photos/2.jpg")]


def test_second_confirm_while_awaiting_is_rejected(make_harness) -> None:
    harness = make_harness([1])
    _stage_all(harness.pipeline)
    harness.pipeline.confirm_delete(permanent=False)

    with pytest.raises(AuthorizationInProgressError):
        harness.pipeline.confirm_delete(permanent=False)

    assert len(harness.gateway.calls) == 1


def test_resolve_without_request_raises(make_harness) -> None:
    harness = make_harness([1])
    harness.pipeline.load_and_shuffle()

    with pytest.raises(NoPendingAuthorizationError):
        harness.pipeline.resolve_authorization(AuthorizationOutcome.CONFIRMED)


def test_confirm_with_nothing_pending_is_a_no_op(make_harness) -> None:
    harness = make_harness([1, 2])
    harness.pipeline.load_and_shuffle()

    assert harness.pipeline.confirm_delete(permanent=False) is None
    assert harness.gateway.calls == []


def test_immediate_result_commits_and_notifies(make_harness, ledger) -> None:
    harness = make_harness([1, 2], require_authorization=False)
    pipeline = harness.pipeline
    committed: list[bool] = []
    pipeline.add_commit_listener(lambda: committed.append(True))
    _stage_all(pipeline)

    result = pipeline.confirm_delete(permanent=False)

    assert isinstance(result, Done)
    assert ledger.get_trashed_ids() == set()
    assert pipeline.pending_count == 0
    assert committed == [True]
    assert pipeline.authorization_status is AuthorizationStatus.IDLE


def test_partial_failure_clears_nothing(make_harness, ledger) -> None:
    harness = make_harness([1, 2])
    pipeline = harness.pipeline
    committed: list[bool] = []
    pipeline.add_commit_listener(lambda: committed.append(True))
    _stage_all(pipeline)
    harness.gateway.failing.add(Path("/photos/2.jpg"))

    pipeline.confirm_delete(permanent=False)
    done = pipeline.resolve_authorization(AuthorizationOutcome.CONFIRMED)

    assert done is not None
    assert not done.succeeded
    assert done.failed == [Path("/photos/2.jpg")]
    assert ledger.get_trashed_ids() == {1, 2}
    assert pipeline.pending_count == 2
    assert committed == []
    assert pipeline.authorization_status is AuthorizationStatus.IDLE


def test_restore_is_rejected_while_batch_awaits_authorization(make_harness, ledger) -> None:
    harness = make_harness([3])
    pipeline = harness.pipeline
    _stage_all(pipeline)
    pipeline.confirm_delete(permanent=True)

    with pytest.raises(AuthorizationInProgressError):
        pipeline.restore_item(3)

    assert ledger.get_trashed_ids() == {3}
    assert [item.id for item in pipeline.pending_items] == [3]


def test_undo_of_discard_is_rejected_while_batch_awaits_authorization(
    make_harness, ledger
) -> None:
    harness = make_harness([3])
    pipeline = harness.pipeline
    _stage_all(pipeline)
    pipeline.confirm_delete(permanent=True)

    with pytest.raises(AuthorizationInProgressError):
        pipeline.undo()

    assert ledger.get_trashed_ids() == {3}
    assert pipeline.pending_count == 1
    assert pipeline.processed_count == 1

    pipeline.resolve_authorization(AuthorizationOutcome.CANCELLED)
    restored = pipeline.undo()

    assert restored is not None and restored.id == 3
    assert ledger.get_trashed_ids() == set()
    assert pipeline.pending_count == 0


def test_undo_of_keep_is_allowed_while_batch_awaits_authorization(make_harness) -> None:
    harness = make_harness([1, 2])
    pipeline = harness.pipeline
    pipeline.load_and_shuffle()
    pipeline.swipe_left()
    kept = pipeline.current_item
    pipeline.swipe_right()
    request = pipeline.confirm_delete(permanent=False)
    assert isinstance(request, PendingAuthorization)

    assert pipeline.undo() == kept
    assert pipeline.pending_count == 1
    assert pipeline.processed_count == 1
