"""Configuration models describing swipeclean settings."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_IMAGE_EXTENSIONS = [
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".heic",
    ".bmp",
    ".tif",
    ".tiff",
]


class SwipecleanBaseModel(BaseModel):
    """Shared configuration for swipeclean Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ReviewSettings(SwipecleanBaseModel):
    """Review pipeline tuning.

    Attributes:
        buffer_capacity: Target size of the lookahead buffer.
        refill_threshold: Buffer size below which a refill pass runs.
        prerender_count: Number of buffered items submitted to the render cache.
        strict_invariants: Raise on contract violations instead of logging them.
    """

    buffer_capacity: int = Field(default=20, ge=1)
    refill_threshold: int = Field(default=5, ge=0)
    prerender_count: int = Field(default=8, ge=0)
    strict_invariants: bool = True

    @model_validator(mode="after")
    def _check_threshold(self) -> "ReviewSettings":
        if self.refill_threshold >= self.buffer_capacity:
            raise ValueError("refill_threshold must be smaller than buffer_capacity")
        return self


class CatalogSettings(SwipecleanBaseModel):
    """Options controlling how the collection is scanned.

    Attributes:
        recursive: Whether to descend into subdirectories.
        include_hidden: Whether hidden files and directories are included.
        extensions: File suffixes treated as reviewable images.
    """

    recursive: bool = True
    include_hidden: bool = False
    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS))


class LedgerSettings(SwipecleanBaseModel):
    """Local trash ledger options.

    Attributes:
        key: Store key holding the staged item ids.
    """

    key: str = "trashed_photo_ids"


class GatewaySettings(SwipecleanBaseModel):
    """Destructive operation gateway options.

    Attributes:
        require_authorization: Whether batch operations wait for explicit approval.
        retention_days: Days a trashed item is kept before it expires.
    """

    require_authorization: bool = True
    retention_days: int = Field(default=30, ge=0)


class RenderSettings(SwipecleanBaseModel):
    """Thumbnail prefetch options.

    Attributes:
        enabled: Whether buffered items are pre-rendered in the background.
        thumbnail_size: Longest edge of generated thumbnails in pixels.
        max_workers: Worker threads used for rendering.
    """

    enabled: bool = True
    thumbnail_size: int = Field(default=512, ge=16)
    max_workers: int = Field(default=2, ge=1)


class LoggingSettings(SwipecleanBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 10
    backup_count: int = 5


class CLIOptions(SwipecleanBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class SwipecleanConfig(SwipecleanBaseModel):
    """Top-level configuration struct for swipeclean.

    Attributes:
        review: Review pipeline settings.
        catalog: Collection scanning settings.
        ledger: Trash ledger settings.
        gateway: Destructive operation settings.
        render: Thumbnail prefetch settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    review: ReviewSettings = Field(default_factory=ReviewSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DEFAULT_IMAGE_EXTENSIONS",
    "SwipecleanBaseModel",
    "ReviewSettings",
    "CatalogSettings",
    "LedgerSettings",
    "GatewaySettings",
    "RenderSettings",
    "LoggingSettings",
    "CLIOptions",
    "SwipecleanConfig",
]
