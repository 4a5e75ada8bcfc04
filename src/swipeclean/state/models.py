"""Persisted document models for the key-value store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field


class StoreDocument(BaseModel):
    """On-disk layout of a key-value store file."""

    version: int = 1
    entries: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["StoreDocument"]
