"""Thumbnail prefetch tests."""

from __future__ import annotations

from pathlib import Path

from PIL import Image

from swipeclean.render import ThumbnailPrefetcher


def _image(path: Path, size: tuple[int, int] = (640, 480)) -> Path:
    Image.new("RGB", size, color=(200, 40, 40)).save(path, "PNG")
    return path


def test_render_writes_bounded_thumbnail(tmp_path: Path) -> None:
    source = _image(tmp_path / "wide.png", (1200, 300))
    prefetcher = ThumbnailPrefetcher(tmp_path / "thumbs", size=64)
    target = prefetcher.thumbnail_path(source)

    try:
        assert prefetcher._render(source, target) == target
    finally:
        prefetcher.shutdown(wait=True)

    with Image.open(target) as thumb:
        assert max(thumb.size) == 64
        assert thumb.format == "JPEG"


def test_render_ignores_unreadable_files(tmp_path: Path) -> None:
    source = tmp_path / "broken.jpg"
    source.write_bytes(b"not an image")
    prefetcher = ThumbnailPrefetcher(tmp_path / "thumbs")

    try:
        assert prefetcher._render(source, prefetcher.thumbnail_path(source)) is None
    finally:
        prefetcher.shutdown(wait=True)


def test_submit_skips_cached_thumbnails(tmp_path: Path) -> None:
    source = _image(tmp_path / "cached.png")
    prefetcher = ThumbnailPrefetcher(tmp_path / "thumbs")
    cached = prefetcher.thumbnail_path(source)
    cached.parent.mkdir(parents=True)
    cached.write_bytes(b"existing")

    prefetcher.submit([source])
    prefetcher.shutdown(wait=True)

    assert cached.read_bytes() == b"existing"


def test_submit_after_shutdown_is_ignored(tmp_path: Path) -> None:
    source = _image(tmp_path / "late.png")
    prefetcher = ThumbnailPrefetcher(tmp_path / "thumbs")
    prefetcher.shutdown()

    prefetcher.submit([source])

    assert not prefetcher.thumbnail_path(source).exists()


def test_thumbnail_paths_differ_per_size(tmp_path: Path) -> None:
    source = tmp_path / "a.png"
    small = ThumbnailPrefetcher(tmp_path / "thumbs", size=64)
    large = ThumbnailPrefetcher(tmp_path / "thumbs", size=256)

    try:
        assert small.thumbnail_path(source) != large.thumbnail_path(source)
    finally:
        small.shutdown()
        large.shutdown()
