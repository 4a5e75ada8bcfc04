"""Layering of configuration sources into a validated config."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterator, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import SwipecleanConfig

ENV_PREFIX = "SWIPECLEAN__"


def resolve_with_precedence(
    *,
    defaults: SwipecleanConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SwipecleanConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the YAML configuration file.
        env_overrides: Nested values extracted from the environment.
        cli_overrides: Values passed on the command line; dotted keys allowed.

    Returns:
        SwipecleanConfig: Validated configuration.

    Raises:
        ConfigError: If a source is malformed or the merged result is invalid.
    """
    layered = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is not None:
            _merge_into(layered, _expand_dotted(layer, label))

    try:
        return SwipecleanConfig.model_validate(layered)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def extract_env_overrides(env: Mapping[str, str], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect ``SWIPECLEAN__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``true`` and ``12`` arrive typed.
    """
    dotted: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(prefix):
            continue
        segments = [part.lower() for part in name[len(prefix) :].split("__") if part]
        if not segments:
            continue
        try:
            dotted[".".join(segments)] = yaml.safe_load(raw)
        except yaml.YAMLError:
            dotted[".".join(segments)] = raw
    return _expand_dotted(dotted, "environment")


def flatten_for_env(config: SwipecleanConfig) -> Dict[str, str]:
    """Flatten the config into ``SWIPECLEAN__SECTION__KEY`` environment mappings."""
    flat: Dict[str, str] = {}
    for path, value in _leaves(config.model_dump(mode="python"), ()):
        name = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[name] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[name] = "null"
        else:
            flat[name] = str(value)
    return flat


def _leaves(
    node: Mapping[str, Any], path: tuple[str, ...]
) -> Iterator[tuple[tuple[str, ...], Any]]:
    for key, value in node.items():
        if isinstance(value, MappingABC):
            yield from _leaves(value, path + (str(key),))
        else:
            yield path + (str(key),), value


def _expand_dotted(source: Mapping[str, Any], label: str) -> dict[str, Any]:
    """Turn ``{"a.b": 1}`` style keys into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    nested: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings, got {key!r}.")
        *parents, leaf = key.split(".")
        node = nested
        for parent in parents:
            node = node.setdefault(parent, {})
            if not isinstance(node, dict):
                raise ConfigError(f"{label.capitalize()} override {key} conflicts with a value.")
        if isinstance(value, MappingABC):
            value = _expand_dotted(value, label)
            if isinstance(node.get(leaf), dict):
                _merge_into(node[leaf], value)
                continue
        node[leaf] = value
    return nested


def _merge_into(target: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    """Recursively copy ``overrides`` into ``target`` in place."""
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(value, MappingABC) and isinstance(current, dict):
            _merge_into(current, value)
        else:
            target[key] = deepcopy(value)


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "extract_env_overrides", "flatten_for_env"]
