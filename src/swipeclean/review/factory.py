"""Wire concrete collaborators for a collection root."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from swipeclean.catalog.discovery import DirectoryCatalog
from swipeclean.config.models import SwipecleanConfig
from swipeclean.gateway.filesystem import FilesystemGateway
from swipeclean.render.prefetch import ThumbnailPrefetcher
from swipeclean.state import StateRepository
from swipeclean.state.ledger import TrashLedger

from .pipeline import ReviewPipeline
from .system_trash import SystemTrashReview


@dataclass(slots=True)
class CollectionServices:
    """Pipeline and system-trash review bound to one collection.

    Attributes:
        root: Collection root directory.
        ledger: Trash ledger stored under the collection's state directory.
        gateway: Filesystem gateway shared by both review surfaces.
        pipeline: Review pipeline for the collection.
        system_trash: System-trash review surface.
    """

    root: Path
    ledger: TrashLedger
    gateway: FilesystemGateway
    pipeline: ReviewPipeline
    system_trash: SystemTrashReview


def build_services(
    root: Path,
    config: SwipecleanConfig,
    *,
    repository: Optional[StateRepository] = None,
    rng: Optional[random.Random] = None,
    render: Optional[bool] = None,
) -> CollectionServices:
    """Construct the catalog, ledger, gateway, and review surfaces for ``root``.

    Args:
        root: Collection root directory.
        config: Effective configuration.
        repository: State layout helper; defaults to ``.swipeclean``.
        rng: Random source for shuffling.
        render: Override ``config.render.enabled``.

    Returns:
        CollectionServices: Wired services. Confirmed batches in the pipeline
            refresh the system-trash listing.
    """
    root = root.expanduser().resolve()
    repository = repository or StateRepository()
    state_dir = repository.initialize(root)

    catalog = DirectoryCatalog(
        root,
        recursive=config.catalog.recursive,
        include_hidden=config.catalog.include_hidden,
        extensions=config.catalog.extensions,
        state_dirname=repository.base_dirname,
    )
    ledger = repository.open_ledger(root, key=config.ledger.key)
    gateway = FilesystemGateway(
        root,
        state_dir / "system-trash",
        require_authorization=config.gateway.require_authorization,
        retention_days=config.gateway.retention_days,
    )

    render_enabled = config.render.enabled if render is None else render
    prefetcher = None
    if render_enabled:
        prefetcher = ThumbnailPrefetcher(
            state_dir / "thumbnails",
            size=config.render.thumbnail_size,
            max_workers=config.render.max_workers,
        )

    pipeline = ReviewPipeline(
        catalog,
        ledger,
        gateway,
        settings=config.review,
        render_cache=prefetcher,
        rng=rng,
    )
    system_trash = SystemTrashReview(gateway)
    pipeline.add_commit_listener(system_trash.refresh)
    return CollectionServices(
        root=root,
        ledger=ledger,
        gateway=gateway,
        pipeline=pipeline,
        system_trash=system_trash,
    )


def build_pipeline(
    root: Path,
    config: SwipecleanConfig,
    *,
    rng: Optional[random.Random] = None,
) -> ReviewPipeline:
    """Return a review pipeline for ``root`` wired with filesystem collaborators."""
    return build_services(root, config, rng=rng).pipeline


__all__ = ["CollectionServices", "build_services", "build_pipeline"]
