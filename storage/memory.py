"""Process-local category store backed by a dict."""

import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional

from models.category import Category, CategoryId
from storage.base import CategoryStore


class InMemoryCategoryStore(CategoryStore):
    """Keeps categories in memory, keyed by id.

    Entities are copied on the way in and out so callers can never mutate
    stored state without going through save().

    Args:
        clock: Callable returning the current time, used for timestamps.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._records: Dict[CategoryId, Category] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def save(self, category: Category) -> Category:
        with self._lock:
            now = self._clock()
            existing = self._records.get(category.id)
            created_at = existing.created_at if existing else now
            stored = replace(category, created_at=created_at, updated_at=now)
            self._records[category.id] = stored
            return replace(stored)

    def find_by_id(self, category_id: CategoryId) -> Optional[Category]:
        with self._lock:
            stored = self._records.get(category_id)
            return replace(stored) if stored else None

    def find_all(self) -> List[Category]:
        with self._lock:
            return [
                replace(self._records[key])
                for key in sorted(self._records, key=lambda k: k.value)
            ]

    def exists_by_id(self, category_id: CategoryId) -> bool:
        with self._lock:
            return category_id in self._records

    def has_children(self, category_id: CategoryId) -> bool:
        with self._lock:
            return any(c.parent_id == category_id for c in self._records.values())

    def delete_by_id(self, category_id: CategoryId) -> None:
        with self._lock:
            self._records.pop(category_id, None)

    def generate_next_id(self) -> CategoryId:
        with self._lock:
            highest = max((key.value for key in self._records), default=0)
            return CategoryId(highest + 1)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def count_roots(self) -> int:
        with self._lock:
            return sum(1 for c in self._records.values() if c.parent_id is None)
