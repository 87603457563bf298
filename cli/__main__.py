#!/usr/bin/env python3
"""
Taxonomy CLI - command-line interface for the product category taxonomy.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Create, query, update and delete categories
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories create Electronics --description "Gadgets"
    python -m cli categories create Phones --parent-id 1
    python -m cli categories tree --root 1
    python -m cli categories update 2 Smartphones --parent-id 1
    python -m cli categories delete 2 --yes
"""

import sys
import argparse
from cli import categories, migrate
from db.migrator import apply_pending_migrations
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import get_logger, setup_logging
from models.exceptions import (
    CategoryHasChildrenError,
    CategoryNotFoundError,
    CircularReferenceError,
    InvalidCategoryError,
)

# Distinct exit status per domain error; anything unexpected exits with 1
EXIT_CODES = {
    CategoryNotFoundError: 2,
    InvalidCategoryError: 3,
    CircularReferenceError: 4,
    CategoryHasChildrenError: 5,
}


def exit_code_for(error: Exception) -> int:
    for error_type, code in EXIT_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Taxonomy - hierarchical product category management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    migrate.setup_parser(subparsers)
    return parser


def main(argv=None):
    """Main CLI entry point with subcommands."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    config = load_config()
    setup_logging(config)
    logger = get_logger()

    try:
        db_manager = DatabaseManager(config)

        if args.command == "migrate":
            args.func(args, db_manager)
            return

        if config.storage_backend == "sqlite":
            apply_pending_migrations(db_manager)

        with Services(config, db_manager=db_manager) as services:
            args.func(args, services)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(exit_code_for(e))


if __name__ == "__main__":
    main()
