"""Base services container for dependency injection."""

from config import Config
from services.cache import CategoryCaches
from storage import get_category_store


class Services:
    """Container for all application services.

    Owns the lifecycle of the shared category caches: they are built here,
    flushed by the category service on every mutation, and torn down by
    close().

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing.
        store: Optional category store; overrides the configured backend.
        caches: Optional pre-built caches (e.g. with a fake timer).
    """

    def __init__(self, config: Config, db_manager=None, store=None, caches=None):
        self.config = config
        self.store = store or get_category_store(config, db_manager=db_manager)
        self.caches = caches or CategoryCaches.from_config(config)

        # Lazy import to avoid circular dependencies
        from services.categories import CategoryService
        from services.stats import StatsService

        self.categories = CategoryService(self.store, self.caches)
        self.stats = StatsService(self.store, self.caches)

    def close(self) -> None:
        """Tear down process-wide resources."""
        self.caches.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
