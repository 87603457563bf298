"""Storage backends for category records."""

from storage.base import CategoryStore
from storage.factory import get_category_store

__all__ = ["CategoryStore", "get_category_store"]
