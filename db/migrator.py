"""Apply the SQL files in db/migrations in name order, once each."""

from typing import List, Set

from logger import get_logger

logger = get_logger("db.migrator")

_CREATE_BOOKKEEPING_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        migration_file TEXT PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


def available_migrations(db_manager) -> List[str]:
    """Names of the migration files shipped with the code, sorted."""
    migrations_dir = db_manager.get_migrations_dir()
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def applied_migrations(conn) -> Set[str]:
    conn.execute(_CREATE_BOOKKEEPING_TABLE)
    cursor = conn.execute("SELECT migration_file FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def apply_pending_migrations(db_manager) -> List[str]:
    """Apply every migration not yet recorded in schema_migrations.

    Stops at the first file that fails; its error is logged and re-raised
    and it stays pending.

    Returns:
        Migration file names that were applied, in order.
    """
    migrations_dir = db_manager.get_migrations_dir()

    with db_manager.connect() as conn:
        applied = applied_migrations(conn)
        conn.commit()
        pending = [
            name for name in available_migrations(db_manager) if name not in applied
        ]

        for name in pending:
            sql = (migrations_dir / name).read_text()
            try:
                conn.executescript(sql)
                conn.execute(
                    "INSERT INTO schema_migrations (migration_file) VALUES (?)", (name,)
                )
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Error applying migration {name}: {e}")
                raise
            logger.info(f"Applied migration: {name}")

    return pending
