"""Assemble category forests from flat parent-pointer records."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

from logger import get_logger
from models.category import Category, CategoryId
from models.exceptions import CategoryNotFoundError
from models.projections import CategoryNode, CategoryTree, to_node

logger = get_logger("services.tree")


def group_by_parent(
    categories: Iterable[Category],
) -> Dict[Optional[CategoryId], List[Category]]:
    """Group categories by parent id, keeping input order within each group.

    Root categories are grouped under the None key.
    """
    groups: Dict[Optional[CategoryId], List[Category]] = defaultdict(list)
    for category in categories:
        groups[category.parent_id].append(category)
    return groups


def find_orphans(categories: Iterable[Category]) -> List[Category]:
    """Categories whose declared parent is not part of the collection."""
    categories = list(categories)
    known = {category.id for category in categories}
    return [
        category
        for category in categories
        if category.parent_id is not None and category.parent_id not in known
    ]


def _build_forest(
    roots: List[Category],
    groups: Dict[Optional[CategoryId], List[Category]],
) -> Tuple[Tuple[CategoryNode, ...], Set[CategoryId]]:
    """Build the nodes under each root bottom-up with an explicit stack.

    Returns the root nodes and the ids of every category placed in them.
    A child already reached in this walk is skipped, which cuts any loop
    present in the stored data.
    """
    reached: Set[CategoryId] = {root.id for root in roots}
    kept: Dict[CategoryId, List[Category]] = {}
    built: Dict[CategoryId, CategoryNode] = {}

    stack = [(root, False) for root in reversed(roots)]
    while stack:
        category, expanded = stack.pop()
        if expanded:
            children = tuple(built.pop(child.id) for child in kept.pop(category.id))
            built[category.id] = to_node(category, children)
            continue

        children = [
            child for child in groups.get(category.id, ()) if child.id not in reached
        ]
        reached.update(child.id for child in children)
        kept[category.id] = children
        stack.append((category, True))
        stack.extend((child, False) for child in reversed(children))

    return tuple(built[root.id] for root in roots), reached


def build_tree(
    categories: Iterable[Category], root_id: Optional[CategoryId] = None
) -> CategoryTree:
    """Build a forest of category nodes from a flat collection.

    Args:
        categories: Flat, unordered category records.
        root_id: If given, build only the subtree rooted at this category.

    Returns:
        CategoryTree with every root category when root_id is None, or with
        exactly one node (root_id) otherwise. Sibling order follows input
        order.

    Raises:
        CategoryNotFoundError: If root_id is not in the collection.

    Categories whose parent is missing from the collection are orphans. They
    and their descendants are left out of the full forest.
    """
    categories = list(categories)
    groups = group_by_parent(categories)

    if root_id is None:
        roots = groups.get(None, [])
    else:
        root = next((c for c in categories if c.id == root_id), None)
        if root is None:
            raise CategoryNotFoundError(
                root_id, message=f"Root category not found: {root_id}"
            )
        roots = [root]

    nodes, reached = _build_forest(roots, groups)

    if root_id is None and len(reached) < len(categories):
        logger.debug(
            f"Dropping {len(categories) - len(reached)} categories with no path "
            f"to a root from tree (orphans: "
            f"{[category.id.value for category in find_orphans(categories)]})"
        )

    return CategoryTree(categories=nodes)
