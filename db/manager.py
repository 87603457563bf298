"""SQLite connection handling for the category store."""

import sqlite3
from contextlib import contextmanager
from config import Config, get_migrations_dir

# Milliseconds a writer waits on a locked database before failing
BUSY_TIMEOUT_MS = 5000


class DatabaseManager:
    """Opens SQLite connections to the configured database file.

    Every connection runs in WAL mode so concurrent readers are not blocked
    by the single writer SQLite allows at a time.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Yield a configured connection and close it afterwards."""
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        try:
            conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
            conn.execute("PRAGMA journal_mode = WAL")
            yield conn
        finally:
            conn.close()

    def get_db_path(self):
        return self.config.db_path

    def database_exists(self) -> bool:
        return self.config.db_path.exists()

    def get_migrations_dir(self):
        return get_migrations_dir()
