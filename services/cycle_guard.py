"""Reject parent reassignments that would turn the taxonomy into a graph."""

from models.category import CategoryId
from models.exceptions import CircularReferenceError, InvalidCategoryError
from storage.base import CategoryStore


def would_create_cycle(
    store: CategoryStore, category_id: CategoryId, new_parent_id: CategoryId
) -> bool:
    """Check whether making new_parent_id the parent of category_id closes a loop.

    Walks up from new_parent_id one storage lookup per hop. The walk ends at
    a root, at a parent that no longer exists, or when it reaches
    category_id (a cycle).
    """
    seen = set()
    current = new_parent_id

    while current is not None:
        if current == category_id:
            return True
        # A loop that does not pass through category_id predates this change
        if current in seen:
            return False
        seen.add(current)

        parent = store.find_by_id(current)
        if parent is None:
            return False
        current = parent.parent_id

    return False


def ensure_no_cycle(
    store: CategoryStore, category_id: CategoryId, new_parent_id: CategoryId
) -> None:
    """Validate a reparent of category_id under new_parent_id.

    Raises:
        InvalidCategoryError: If new_parent_id is category_id itself.
        CircularReferenceError: If new_parent_id is a descendant of category_id.
    """
    if new_parent_id == category_id:
        raise InvalidCategoryError("Category cannot be its own parent")

    if would_create_cycle(store, category_id, new_parent_id):
        raise CircularReferenceError(category_id, new_parent_id)
