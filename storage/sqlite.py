"""SQLite-backed category store."""

from datetime import datetime
from typing import Callable, List, Optional

from models.category import Category, CategoryId
from storage.base import CategoryStore

_CATEGORY_SELECT_FIELDS = "id, name, description, parent_id, created_at, updated_at"


def _row_to_category(row) -> Category:
    """Convert a categories row into a Category entity."""
    return Category(
        id=CategoryId(row[0]),
        name=row[1],
        description=row[2],
        parent_id=CategoryId(row[3]) if row[3] is not None else None,
        created_at=datetime.fromisoformat(row[4]) if row[4] else None,
        updated_at=datetime.fromisoformat(row[5]) if row[5] else None,
    )


class SqliteCategoryStore(CategoryStore):
    """Category store persisting to the `categories` table.

    Args:
        db_manager: Database manager providing connect().
        clock: Callable returning the current time, used for timestamps.
    """

    def __init__(self, db_manager, clock: Callable[[], datetime] = datetime.now):
        self.db_manager = db_manager
        self._clock = clock

    def save(self, category: Category) -> Category:
        """Insert or update a category, returning the stored row.

        created_at is only written on insert; updated_at on every save.
        """
        now = self._clock().isoformat()
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO categories (id, name, description, parent_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    parent_id = excluded.parent_id,
                    updated_at = excluded.updated_at
                """,
                (
                    category.id.value,
                    category.name,
                    category.description,
                    category.parent_id.value if category.parent_id else None,
                    now,
                    now,
                ),
            )
            conn.commit()

            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category.id.value,),
            )
            return _row_to_category(cursor.fetchone())

    def find_by_id(self, category_id: CategoryId) -> Optional[Category]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id.value,),
            )
            row = cursor.fetchone()

            if row:
                return _row_to_category(row)
            return None

    def find_all(self) -> List[Category]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories ORDER BY id"
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def exists_by_id(self, category_id: CategoryId) -> bool:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT 1 FROM categories WHERE id = ?", (category_id.value,)
            )
            return cursor.fetchone() is not None

    def has_children(self, category_id: CategoryId) -> bool:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT 1 FROM categories WHERE parent_id = ? LIMIT 1",
                (category_id.value,),
            )
            return cursor.fetchone() is not None

    def delete_by_id(self, category_id: CategoryId) -> None:
        with self.db_manager.connect() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id.value,))
            conn.commit()

    def generate_next_id(self) -> CategoryId:
        with self.db_manager.connect() as conn:
            cursor = conn.execute("SELECT COALESCE(MAX(id), 0) FROM categories")
            return CategoryId(cursor.fetchone()[0] + 1)

    def count(self) -> int:
        with self.db_manager.connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM categories")
            return cursor.fetchone()[0]

    def count_roots(self) -> int:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM categories WHERE parent_id IS NULL"
            )
            return cursor.fetchone()[0]
