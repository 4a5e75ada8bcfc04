"""Catalog errors."""


class CatalogError(Exception):
    """Raised when the collection cannot be enumerated."""


class ItemNotFoundError(CatalogError):
    """Raised when an item id does not resolve to a location."""
