"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from config import Config, get_migrations_dir
from services.base import Services
from services.cache import CategoryCaches
from storage.memory import InMemoryCategoryStore
from tests.helpers import CountingStore, FakeTimer, SteppingClock, run_migrations


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "taxonomy",
        storage_backend="sqlite",
        db_data_dir=tmp_path / "taxonomy" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "taxonomy" / "logs",
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    run_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            """Return a context manager for the test connection."""
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container backed by the in-memory SQLite database.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.

    Returns:
        Services: Services container for testing.
    """
    services = Services(test_config, db_manager=db_manager_with_schema)
    yield services
    services.close()


@pytest.fixture
def fake_timer():
    """Manually advanced clock for cache expiry."""
    return FakeTimer()


@pytest.fixture
def memory_store():
    """In-memory store with deterministic, increasing timestamps."""
    return InMemoryCategoryStore(clock=SteppingClock())


@pytest.fixture
def counting_store(memory_store):
    """In-memory store wrapped to count storage calls."""
    return CountingStore(memory_store)


@pytest.fixture
def counted_services(test_config, counting_store, fake_timer):
    """Services over a counting in-memory store and fake-timed caches."""
    caches = CategoryCaches.from_config(test_config, timer=fake_timer)
    services = Services(test_config, store=counting_store, caches=caches)
    yield services
    services.close()
