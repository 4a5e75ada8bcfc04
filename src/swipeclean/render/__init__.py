"""Render cache helpers."""

from .prefetch import RenderCache, ThumbnailPrefetcher

__all__ = ["RenderCache", "ThumbnailPrefetcher"]
