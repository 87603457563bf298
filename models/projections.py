"""Read-only projections of categories handed out by the service layer.

These are immutable, so the same instance can safely live in a cache and be
returned to any number of callers.
"""

import json
from datetime import datetime
from typing import Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from models.category import Category


class CategoryResponse(BaseModel):
    """Flat record shape of a single category."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CategoryNode(BaseModel):
    """A category together with its (recursively built) children."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    children: Tuple["CategoryNode", ...] = ()


CategoryNode.model_rebuild()


class CategoryTree(BaseModel):
    """A forest: an ordered sequence of independent tree roots."""

    model_config = ConfigDict(frozen=True)

    categories: Tuple[CategoryNode, ...] = ()

    def flatten(self) -> Iterator[Tuple[Optional[int], CategoryNode]]:
        """Yield (parent_id, node) pairs depth-first, roots with parent None."""
        stack = [(None, node) for node in reversed(self.categories)]
        while stack:
            parent_id, node = stack.pop()
            yield parent_id, node
            stack.extend((node.id, child) for child in reversed(node.children))

    def ids(self) -> list:
        """All node ids in depth-first order."""
        return [node.id for _, node in self.flatten()]

    def dump_json(self) -> str:
        """Compact JSON of the forest, same shape as model_dump_json().

        Nodes are written from an explicit stack, so the depth of the tree is
        not bounded by the serializer's nesting limit.
        """
        parts = ["{\"categories\":["]
        stack = list(reversed(_pending(self.categories, "]}")))
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue

            fields = json.dumps(
                item.model_dump(mode="json", exclude={"children"}),
                separators=(",", ":"),
                ensure_ascii=False,
            )
            parts.append(fields[:-1] + ",\"children\":[")
            stack.extend(reversed(_pending(item.children, "]}")))
        return "".join(parts)


def _pending(nodes, closing: str) -> list:
    """Nodes separated by commas, followed by the closing text."""
    items = []
    for index, node in enumerate(nodes):
        if index:
            items.append(",")
        items.append(node)
    items.append(closing)
    return items


def to_response(category: Category) -> CategoryResponse:
    """Map a Category entity to its flat projection."""
    return CategoryResponse(
        id=category.id.value,
        name=category.name,
        description=category.description,
        parent_id=category.parent_id.value if category.parent_id else None,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def to_node(category: Category, children: Tuple[CategoryNode, ...]) -> CategoryNode:
    """Map a Category entity and its already-built children to a tree node."""
    return CategoryNode(
        id=category.id.value,
        name=category.name,
        description=category.description,
        created_at=category.created_at,
        updated_at=category.updated_at,
        children=children,
    )
