"""Category model for the product taxonomy."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.exceptions import InvalidCategoryError

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


@dataclass(frozen=True)
class CategoryId:
    """Positive integer identifier of a category."""

    value: int

    def __post_init__(self):
        # bool is an int subclass; True must not become id 1
        if (
            not isinstance(self.value, int)
            or isinstance(self.value, bool)
            or self.value <= 0
        ):
            raise InvalidCategoryError("CategoryId value must be positive")

    def __str__(self) -> str:
        return str(self.value)


def _validate_name(name: str) -> None:
    if name is None or not name.strip():
        raise InvalidCategoryError("Category name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidCategoryError(
            f"Category name cannot exceed {MAX_NAME_LENGTH} characters"
        )


def _validate_description(description: Optional[str]) -> None:
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidCategoryError(
            f"Category description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )


@dataclass(eq=False)
class Category:
    """Represents a node of the category taxonomy.

    Categories only point at their parent; trees are assembled on demand
    from the flat collection (see services.tree).

    Attributes:
        id: Unique identifier, supplied by the caller.
        name: Category name, 1-100 characters.
        description: Optional description, up to 500 characters.
        parent_id: Parent category ID, or None for a root category.
        created_at: Set by storage when the category is first saved.
        updated_at: Set by storage on every save.
    """

    id: CategoryId
    name: str
    description: Optional[str] = None
    parent_id: Optional[CategoryId] = None
    created_at: Optional[datetime] = field(default=None, compare=False)
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self):
        _validate_name(self.name)
        _validate_description(self.description)
        if self.parent_id is not None and self.parent_id == self.id:
            raise InvalidCategoryError("Category cannot be its own parent")

    @classmethod
    def create(
        cls,
        category_id: CategoryId,
        name: str,
        description: Optional[str],
        parent_id: CategoryId,
    ) -> "Category":
        """Create a child category under parent_id."""
        return cls(id=category_id, name=name, description=description, parent_id=parent_id)

    @classmethod
    def create_root(
        cls, category_id: CategoryId, name: str, description: Optional[str]
    ) -> "Category":
        """Create a category with no parent."""
        return cls(id=category_id, name=name, description=description)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def update_info(self, name: str, description: Optional[str]) -> None:
        """Replace name and description after validating both."""
        _validate_name(name)
        _validate_description(description)
        self.name = name
        self.description = description

    def change_parent(self, new_parent_id: Optional[CategoryId]) -> None:
        """Move the category under new_parent_id (None makes it a root).

        Only the direct self-parent case is checked here; deeper cycles are
        caught by services.cycle_guard before this is called.
        """
        if new_parent_id is not None and new_parent_id == self.id:
            raise InvalidCategoryError("Category cannot be its own parent")
        self.parent_id = new_parent_id

    def __eq__(self, other):
        if not isinstance(other, Category):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)
