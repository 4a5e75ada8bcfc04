"""Configuration management for swipeclean."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import SwipecleanConfig
from .resolver import extract_env_overrides, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.swipeclean/config.yaml")
_HEADER_LINES = (
    "# swipeclean configuration file",
    "# Change it with `swipeclean config set KEY --value V` or `swipeclean config edit`.",
)
_STAMP_PREFIX = "# Last updated: "


def parse_config_text(text: str) -> dict[str, Any]:
    """Parse YAML configuration text into a mapping.

    Args:
        text: Raw file contents; blank text yields an empty mapping.

    Returns:
        dict[str, Any]: Top-level configuration mapping.

    Raises:
        ConfigError: If the text is not YAML or not a mapping.
    """
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration is not valid YAML: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigError("Configuration must be a mapping of sections at the top level.")
    return parsed


class ConfigManager:
    """Read, validate, and write the user's swipeclean configuration file.

    The file only stores overrides; ``load`` layers them over the model
    defaults, then environment variables, then per-invocation overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config_path: File to manage; defaults to ``~/.swipeclean/config.yaml``.
            env: Environment to read ``SWIPECLEAN__`` overrides from.
        """
        self._path = Path(config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env: Mapping[str, str] = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        return self._path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> SwipecleanConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Highest-precedence values; dotted keys allowed.
            include_env: Whether ``SWIPECLEAN__`` variables are applied.
            ensure_file: Write a default file first when none exists.
            env_overrides: Environment mapping used instead of the manager's own.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_layer = None
        if include_env:
            env_layer = extract_env_overrides(
                self._env if env_overrides is None else env_overrides
            ) or None

        return resolve_with_precedence(
            defaults=SwipecleanConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=env_layer,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the mapping stored in the file, or an empty one."""
        return parse_config_text(self.read_text())

    def save(self, config: SwipecleanConfig | Mapping[str, Any]) -> None:
        """Validate ``config`` and write it to the file.

        Raises:
            ConfigError: If a mapping does not describe a valid configuration.
        """
        if isinstance(config, SwipecleanConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
            resolve_with_precedence(defaults=SwipecleanConfig(), file_overrides=data)

        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            "\n".join((*_HEADER_LINES, f"{_STAMP_PREFIX}{stamp}", body)), encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Write the default configuration unless the file is already there."""
        if not self._path.exists():
            self.save(SwipecleanConfig())
        return self._path

    def read_text(self) -> str:
        """Return the raw file contents, or an empty string before first save."""
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "SwipecleanConfig",
    "parse_config_text",
    "resolve_with_precedence",
    "extract_env_overrides",
    "flatten_for_env",
    "ConfigError",
]
