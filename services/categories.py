"""Category service: the taxonomy's create/update/delete/query operations."""

from typing import Optional

from logger import get_logger
from models.category import Category, CategoryId
from models.exceptions import CategoryHasChildrenError, CategoryNotFoundError
from models.projections import CategoryResponse, CategoryTree, to_response
from services.cache import ALL_TREE_KEY, CategoryCaches
from services.cycle_guard import ensure_no_cycle
from services.tree import build_tree
from storage.base import CategoryStore

logger = get_logger("services.categories")


class CategoryService:
    """Service for managing the category taxonomy.

    Every successful mutation flushes both caches in full: one change can
    alter any number of cached subtrees (each ancestor's plus the "all"
    forest), so there is no per-key invalidation.
    """

    def __init__(self, store: CategoryStore, caches: CategoryCaches):
        """Initialize the category service.

        Args:
            store: Storage backend for flat category records.
            caches: Id and tree caches, shared by the whole process.
        """
        self.store = store
        self.caches = caches

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> CategoryResponse:
        """Create a new category.

        Args:
            name: Category name (1-100 characters).
            description: Optional description (up to 500 characters).
            parent_id: Optional parent category ID; None creates a root.

        Returns:
            Projection of the stored category.

        Raises:
            CategoryNotFoundError: If parent_id does not exist.
            InvalidCategoryError: If name or description are invalid.
        """
        parent = None
        if parent_id is not None:
            parent = CategoryId(parent_id)
            self._validate_parent_exists(parent)

        category_id = self.store.generate_next_id()
        if parent is not None:
            category = Category.create(category_id, name, description, parent)
        else:
            category = Category.create_root(category_id, name, description)

        saved = self.store.save(category)
        self.caches.invalidate_all()

        logger.info(f"Created category {saved.id} '{saved.name}' (parent: {parent})")
        return to_response(saved)

    def update(
        self,
        category_id: int,
        name: str,
        description: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> CategoryResponse:
        """Update an existing category.

        Name, description and parent are all replaced; passing parent_id=None
        turns the category into a root.

        Raises:
            CategoryNotFoundError: If the category or the new parent is missing.
            InvalidCategoryError: On invalid fields or if parent_id == category_id.
            CircularReferenceError: If the new parent is a descendant.
        """
        target_id = CategoryId(category_id)
        category = self._load(target_id)

        new_parent = None
        if parent_id is not None:
            new_parent = CategoryId(parent_id)
            if new_parent != target_id:
                self._validate_parent_exists(new_parent)
            ensure_no_cycle(self.store, target_id, new_parent)

        category.update_info(name, description)
        category.change_parent(new_parent)

        saved = self.store.save(category)
        self.caches.invalidate_all()

        logger.info(f"Updated category {saved.id} '{saved.name}' (parent: {new_parent})")
        return to_response(saved)

    def delete(self, category_id: int) -> None:
        """Delete a category that has no children.

        Raises:
            CategoryNotFoundError: If the category does not exist.
            CategoryHasChildrenError: If any category has it as parent.
        """
        target_id = CategoryId(category_id)
        if not self.store.exists_by_id(target_id):
            raise CategoryNotFoundError(target_id)

        if self.store.has_children(target_id):
            raise CategoryHasChildrenError(target_id)

        self.store.delete_by_id(target_id)
        self.caches.invalidate_all()

        logger.info(f"Deleted category {target_id}")

    def get(self, category_id: int) -> CategoryResponse:
        """Get a single category, from cache when possible.

        Raises:
            CategoryNotFoundError: If the category does not exist.
        """
        target_id = CategoryId(category_id)
        return self.caches.categories.get_or_load(
            target_id.value, lambda: to_response(self._load(target_id))
        )

    def get_all_tree(self) -> CategoryTree:
        """Get the forest of every root category with all descendants."""
        return self.caches.category_tree.get_or_load(
            ALL_TREE_KEY, lambda: build_tree(self.store.find_all())
        )

    def get_tree(self, root_id: int) -> CategoryTree:
        """Get the single-rooted subtree under root_id.

        The existence check always goes to storage, even on a cache hit.

        Raises:
            CategoryNotFoundError: If root_id does not exist.
        """
        target_id = CategoryId(root_id)
        if not self.store.exists_by_id(target_id):
            raise CategoryNotFoundError(target_id)

        return self.caches.category_tree.get_or_load(
            target_id.value, lambda: build_tree(self.store.find_all(), target_id)
        )

    # Names used by the transport layer
    create_category = create
    update_category = update
    delete_category = delete
    get_category = get
    get_all_categories = get_all_tree
    get_category_tree = get_tree

    def _load(self, category_id: CategoryId) -> Category:
        category = self.store.find_by_id(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return category

    def _validate_parent_exists(self, parent_id: CategoryId) -> None:
        if not self.store.exists_by_id(parent_id):
            raise CategoryNotFoundError(
                parent_id, message=f"Parent category not found: {parent_id}"
            )
