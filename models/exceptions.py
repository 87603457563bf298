"""Domain errors raised by the category core."""


class CategoryError(Exception):
    """Base class for all category domain errors."""


class CategoryNotFoundError(CategoryError):
    """A referenced category (or parent) does not exist in storage."""

    def __init__(self, category_id=None, message: str = None):
        self.category_id = category_id
        if message is None:
            message = f"Category not found: {category_id}"
        super().__init__(message)


class InvalidCategoryError(CategoryError, ValueError):
    """Validation failure on a category field or a direct self-parent."""


class CircularReferenceError(CategoryError):
    """Reparenting would make a category its own descendant."""

    def __init__(self, category_id, parent_id):
        self.category_id = category_id
        self.parent_id = parent_id
        super().__init__(f"Circular reference detected: {category_id} -> {parent_id}")


class CategoryHasChildrenError(CategoryError):
    """Deletion attempted on a category that still has children."""

    def __init__(self, category_id):
        self.category_id = category_id
        super().__init__(f"Cannot delete category with children: {category_id}")
