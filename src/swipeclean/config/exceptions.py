"""Errors raised while loading or validating configuration."""


class ConfigError(Exception):
    """Raised when configuration files, overrides, or values are invalid."""
