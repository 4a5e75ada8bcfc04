"""Background thumbnail rendering used to warm the display cache."""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Protocol

from PIL import Image, ImageOps, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)


class RenderCache(Protocol):
    """Sink for eager materialization hints."""

    def submit(self, locators: Iterable[Path]) -> None:
        """Queue ``locators`` for rendering without waiting."""


class ThumbnailPrefetcher:
    """Render JPEG thumbnails for upcoming items on a worker pool.

    Submissions are fire and forget. Thumbnails already on disk, or already
    queued, are skipped.
    """

    def __init__(
        self,
        cache_dir: Path,
        *,
        size: int = 512,
        max_workers: int = 2,
    ) -> None:
        self.cache_dir = cache_dir
        self.size = size
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="swipeclean-render"
        )
        self._inflight: dict[Path, Future[Path | None]] = {}

    def thumbnail_path(self, locator: Path) -> Path:
        """Return where the thumbnail for ``locator`` is cached."""
        digest = hashlib.blake2b(str(locator).encode("utf-8"), digest_size=16).hexdigest()
        return self.cache_dir / f"{digest}-{self.size}.jpg"

    def submit(self, locators: Iterable[Path]) -> None:
        """Queue thumbnails for ``locators``."""
        self._inflight = {
            locator: future for locator, future in self._inflight.items() if not future.done()
        }
        for locator in locators:
            target = self.thumbnail_path(locator)
            if target.exists():
                continue
            if locator in self._inflight:
                continue
            try:
                self._inflight[locator] = self._executor.submit(self._render, locator, target)
            except RuntimeError:
                # Executor already shut down.
                return

    def shutdown(self, wait: bool = False) -> None:
        """Stop the worker pool, dropping queued renders."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
        self._inflight.clear()

    def _render(self, locator: Path, target: Path) -> Path | None:
        try:
            with Image.open(locator) as img:
                thumb = ImageOps.exif_transpose(img)
                thumb.thumbnail((self.size, self.size))
                target.parent.mkdir(parents=True, exist_ok=True)
                thumb.convert("RGB").save(target, "JPEG", quality=85)
        except (OSError, UnidentifiedImageError) as exc:
            LOGGER.debug("Thumbnail render failed for %s: %s", locator, exc)
            return None
        return target


__all__ = ["RenderCache", "ThumbnailPrefetcher"]
