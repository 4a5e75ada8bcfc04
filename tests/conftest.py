"""Shared fakes and fixtures for the review pipeline tests."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import pytest

from swipeclean.catalog import CatalogError, Item, ItemNotFoundError
from swipeclean.config.models import ReviewSettings
from swipeclean.gateway import (
    AuthorizationOutcome,
    Done,
    GatewayResult,
    Intent,
    PendingAuthorization,
    UnknownAuthorizationError,
)
from swipeclean.review import ReviewPipeline
from swipeclean.state import JsonKeyValueStore, TrashLedger

PHOTO_ROOT = Path("/photos")


def locator_for(item_id: int) -> Path:
    return PHOTO_ROOT / f"{item_id}.jpg"


class FakeCatalog:
    """In-memory catalog whose listing and lookups can be made to fail."""

    def __init__(self, ids: Iterable[int]) -> None:
        self.ids = list(ids)
        self.missing: set[int] = set()
        self.fail = False

    def list_all_item_ids(self) -> list[int]:
        if self.fail:
            raise CatalogError("catalog offline")
        return list(self.ids)

    def resolve_location(self, item_id: int) -> Path:
        if item_id not in self.ids or item_id in self.missing:
            raise ItemNotFoundError(f"unknown item {item_id}")
        return locator_for(item_id)


class FakeGateway:
    """Gateway that records calls and fails for selected locators."""

    def __init__(self, *, require_authorization: bool = True) -> None:
        self.require_authorization = require_authorization
        self.calls: list[tuple[Intent, list[Path]]] = []
        self.failing: set[Path] = set()
        self.trashed: list[Item] = []
        self.list_calls = 0
        self._pending: dict[str, PendingAuthorization] = {}
        self._counter = 0

    def execute(self, intent: Intent, locators: List[Path]) -> GatewayResult:
        self.calls.append((intent, list(locators)))
        if not self.require_authorization:
            return self._perform(intent, locators)
        self._counter += 1
        request = PendingAuthorization(
            token=f"token-{self._counter}", intent=intent, locators=tuple(locators)
        )
        self._pending[request.token] = request
        return request

    def complete(self, token: str, outcome: AuthorizationOutcome) -> Optional[Done]:
        request = self._pending.pop(token, None)
        if request is None:
            raise UnknownAuthorizationError(token)
        if outcome is AuthorizationOutcome.CANCELLED:
            return None
        return self._perform(request.intent, request.locators)

    def list_trashed(self) -> List[Item]:
        self.list_calls += 1
        return list(self.trashed)

    def _perform(self, intent: Intent, locators: Iterable[Path]) -> Done:
        locators = list(locators)
        results = {locator: locator not in self.failing for locator in locators}
        errors = {locator: "simulated failure" for locator in locators if locator in self.failing}
        if intent in (Intent.RESTORE, Intent.DELETE):
            done_paths = {locator for locator, ok in results.items() if ok}
            self.trashed = [item for item in self.trashed if item.locator not in done_paths]
        return Done(intent=intent, results=results, errors=errors)


class RecordingRenderCache:
    def __init__(self) -> None:
        self.submissions: list[list[Path]] = []
        self.shut_down = False

    def submit(self, locators: Iterable[Path]) -> None:
        self.submissions.append(list(locators))

    def shutdown(self) -> None:
        self.shut_down = True


@dataclass
class Harness:
    pipeline: ReviewPipeline
    catalog: FakeCatalog
    gateway: FakeGateway
    ledger: TrashLedger
    store: JsonKeyValueStore
    render_cache: RecordingRenderCache


@pytest.fixture
def store(tmp_path: Path) -> JsonKeyValueStore:
    return JsonKeyValueStore(tmp_path / "ledger.json")


@pytest.fixture
def ledger(store: JsonKeyValueStore) -> TrashLedger:
    return TrashLedger(store)


@pytest.fixture
def make_harness(
    store: JsonKeyValueStore, ledger: TrashLedger
) -> Callable[..., Harness]:
    """Return a factory building a pipeline over fake collaborators."""

    def _make(
        ids: Iterable[int],
        *,
        capacity: int = 20,
        threshold: int = 5,
        strict: bool = True,
        require_authorization: bool = True,
        seed: int = 7,
    ) -> Harness:
        catalog = FakeCatalog(ids)
        gateway = FakeGateway(require_authorization=require_authorization)
        render_cache = RecordingRenderCache()
        settings = ReviewSettings(
            buffer_capacity=capacity,
            refill_threshold=threshold,
            prerender_count=3,
            strict_invariants=strict,
        )
        pipeline = ReviewPipeline(
            catalog,
            ledger,
            gateway,
            settings=settings,
            render_cache=render_cache,
            rng=random.Random(seed),
        )
        return Harness(pipeline, catalog, gateway, ledger, store, render_cache)

    return _make


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
