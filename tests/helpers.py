"""Helper utilities for tests."""

from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
import sqlite3

from models.category import Category, CategoryId
from storage.base import CategoryStore


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    migration_files = sorted(migrations_dir.glob("*.sql"))

    for migration_file in migration_files:
        with open(migration_file, "r") as f:
            sql = f.read()

        conn.executescript(sql)

    conn.commit()


def make_category(category_id, name=None, parent_id=None, description=None):
    """Build a Category from plain ints."""
    return Category(
        id=CategoryId(category_id),
        name=name or f"Category {category_id}",
        description=description,
        parent_id=CategoryId(parent_id) if parent_id is not None else None,
    )


class FakeTimer:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SteppingClock:
    """Wall clock that moves forward one second per call."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 10, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


class CountingStore(CategoryStore):
    """Delegating store that records how often each operation is called."""

    def __init__(self, inner: CategoryStore):
        self.inner = inner
        self.calls = Counter()

    def reset(self) -> None:
        self.calls.clear()

    def save(self, category):
        self.calls["save"] += 1
        return self.inner.save(category)

    def find_by_id(self, category_id):
        self.calls["find_by_id"] += 1
        return self.inner.find_by_id(category_id)

    def find_all(self):
        self.calls["find_all"] += 1
        return self.inner.find_all()

    def exists_by_id(self, category_id):
        self.calls["exists_by_id"] += 1
        return self.inner.exists_by_id(category_id)

    def has_children(self, category_id):
        self.calls["has_children"] += 1
        return self.inner.has_children(category_id)

    def delete_by_id(self, category_id):
        self.calls["delete_by_id"] += 1
        return self.inner.delete_by_id(category_id)

    def generate_next_id(self):
        self.calls["generate_next_id"] += 1
        return self.inner.generate_next_id()

    def count(self):
        self.calls["count"] += 1
        return self.inner.count()

    def count_roots(self):
        self.calls["count_roots"] += 1
        return self.inner.count_roots()
