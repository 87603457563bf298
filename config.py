"""Configuration management for Taxonomy.

Reads configuration from ~/.config/taxonomy.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    storage_backend: str
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    categories_cache_max_size: int = 5000
    categories_cache_expire_after_access: float = 15 * 60
    tree_cache_max_size: int = 100
    tree_cache_expire_after_write: float = 5 * 60

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "taxonomy"
        return cls(
            base_dir=base_dir,
            storage_backend="sqlite",
            db_data_dir=base_dir / "db",
            db_filename="taxonomy.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "taxonomy.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def get_seed_file() -> Path:
    """Get the path to the bundled category seed file."""
    return Path(__file__).parent / "db" / "seed" / "categories.json"


def load_config(config_path: Path = None) -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Args:
        config_path: Optional override of the config file location.

    Returns:
        Config object with loaded or default values.
    """
    config_path = config_path or get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config, config_path)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML, filling defaults for missing values."""
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir))

    storage_config = data.get("storage", {})
    storage_backend = storage_config.get("backend", defaults.storage_backend)

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", defaults.db_filename)

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    cache_config = data.get("cache", {})
    categories_cache = cache_config.get("categories", {})
    tree_cache = cache_config.get("category_tree", {})

    return Config(
        base_dir=base_dir,
        storage_backend=storage_backend,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        categories_cache_max_size=int(
            categories_cache.get("maximum_size", defaults.categories_cache_max_size)
        ),
        categories_cache_expire_after_access=float(
            categories_cache.get(
                "expire_after_access_seconds",
                defaults.categories_cache_expire_after_access,
            )
        ),
        tree_cache_max_size=int(
            tree_cache.get("maximum_size", defaults.tree_cache_max_size)
        ),
        tree_cache_expire_after_write=float(
            tree_cache.get(
                "expire_after_write_seconds", defaults.tree_cache_expire_after_write
            )
        ),
    )


def _write_config(config: Config, config_path: Path) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
        config_path: Destination TOML file.
    """
    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "storage": {
            "backend": config.storage_backend,
        },
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "cache": {
            "categories": {
                "maximum_size": config.categories_cache_max_size,
                "expire_after_access_seconds": config.categories_cache_expire_after_access,
            },
            "category_tree": {
                "maximum_size": config.tree_cache_max_size,
                "expire_after_write_seconds": config.tree_cache_expire_after_write,
            },
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
