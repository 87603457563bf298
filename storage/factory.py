"""Factory for creating category store instances."""

from config import Config
from db.manager import DatabaseManager
from logger import get_logger
from storage.base import CategoryStore
from storage.memory import InMemoryCategoryStore
from storage.sqlite import SqliteCategoryStore

logger = get_logger("storage")


def get_category_store(config: Config, db_manager=None) -> CategoryStore:
    """Create a category store based on configuration.

    Args:
        config: Application configuration.
        db_manager: Optional database manager (testing). Only used by the
                    sqlite backend; created from config when None.

    Returns:
        CategoryStore instance.

    Raises:
        ValueError: If the configured backend is unknown.
    """
    backend = config.storage_backend

    if backend == "sqlite":
        logger.debug(f"Using SQLite category store at {config.db_path}")
        return SqliteCategoryStore(db_manager or DatabaseManager(config))

    elif backend == "memory":
        logger.debug("Using in-memory category store")
        return InMemoryCategoryStore()

    else:
        raise ValueError(f"Unknown storage backend: {backend}")
