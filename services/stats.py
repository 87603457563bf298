"""Operational statistics about the taxonomy and its caches."""

from datetime import datetime
from typing import Any, Dict

from services.cache import CategoryCaches
from services.tree import build_tree
from storage.base import CategoryStore


class StatsService:
    """Reports category counts, tree shape and cache counters.

    Reads go straight to storage so that gathering statistics does not
    show up in the cache hit/miss counters it reports.
    """

    def __init__(self, store: CategoryStore, caches: CategoryCaches):
        self.store = store
        self.caches = caches

    def category_statistics(self) -> Dict[str, Any]:
        """Counts and tree shape.

        orphaned_categories counts every category the full forest leaves out:
        orphans, their descendants and categories caught in a stored loop.
        """
        categories = self.store.find_all()
        total = self.store.count()
        roots = self.store.count_roots()

        depths = list(_node_depths(build_tree(categories)))
        return {
            "total_categories": total,
            "root_categories": roots,
            "child_categories": total - roots,
            "orphaned_categories": len(categories) - len(depths),
            "max_tree_depth": max(depths, default=0),
            "average_tree_depth": round(sum(depths) / len(depths), 2) if depths else 0.0,
        }

    def report(self) -> Dict[str, Any]:
        """Full statistics report: categories, caches and the report time."""
        return {
            "statistics": self.category_statistics(),
            "cache": self.caches.stats(),
            "generated_at": datetime.now().isoformat(timespec="seconds"),
        }


def _node_depths(tree):
    """Yield the depth of every node in the forest (roots are depth 1)."""
    stack = [(node, 1) for node in tree.categories]
    while stack:
        node, depth = stack.pop()
        yield depth
        stack.extend((child, depth + 1) for child in node.children)
