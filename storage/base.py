"""Storage port for flat category records."""

from abc import ABC, abstractmethod
from typing import List, Optional

from models.category import Category, CategoryId


class CategoryStore(ABC):
    """Abstract base class for category storage backends.

    The core only ever sees flat parent-pointer records through this
    interface; how and where they are persisted is up to the backend.
    """

    @abstractmethod
    def save(self, category: Category) -> Category:
        """Insert or update a category.

        Returns:
            A fresh Category with created_at/updated_at populated. created_at
            is kept from the first save, updated_at is refreshed every time.
        """

    @abstractmethod
    def find_by_id(self, category_id: CategoryId) -> Optional[Category]:
        """Get a single category, or None if it does not exist."""

    @abstractmethod
    def find_all(self) -> List[Category]:
        """Get every stored category, ordered by id."""

    @abstractmethod
    def exists_by_id(self, category_id: CategoryId) -> bool:
        """Check whether a category with this id is stored."""

    @abstractmethod
    def has_children(self, category_id: CategoryId) -> bool:
        """Check whether any stored category has category_id as its parent."""

    @abstractmethod
    def delete_by_id(self, category_id: CategoryId) -> None:
        """Remove the category record (no-op if it does not exist)."""

    @abstractmethod
    def generate_next_id(self) -> CategoryId:
        """Next free id: highest stored id + 1, or 1 when the store is empty."""

    @abstractmethod
    def count(self) -> int:
        """Total number of stored categories."""

    @abstractmethod
    def count_roots(self) -> int:
        """Number of stored categories without a parent."""
