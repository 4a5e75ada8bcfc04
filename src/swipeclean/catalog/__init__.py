"""Item catalog package."""

from .discovery import DirectoryCatalog, item_id_for
from .errors import CatalogError, ItemNotFoundError
from .models import Item, ItemCatalog

__all__ = [
    "DirectoryCatalog",
    "item_id_for",
    "CatalogError",
    "ItemNotFoundError",
    "Item",
    "ItemCatalog",
]
