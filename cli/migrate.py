#!/usr/bin/env python3

from db.migrator import (
    applied_migrations,
    apply_pending_migrations,
    available_migrations,
)
from logger import get_logger

logger = get_logger()


def cmd_status(args, db_manager):
    """Show migration status."""
    if not db_manager.database_exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    available = available_migrations(db_manager)
    if not available:
        logger.info("No migrations found.")
        return

    with db_manager.connect() as conn:
        applied = applied_migrations(conn)

    logger.info("Migration Status:")
    logger.info("================")
    for migration in available:
        logger.info(f"{migration}: {'APPLIED' if migration in applied else 'PENDING'}")

    pending_count = len([m for m in available if m not in applied])
    logger.info(f"\nTotal migrations: {len(available)}")
    logger.info(f"Applied: {len(available) - pending_count}")
    logger.info(f"Pending: {pending_count}")


def cmd_apply(args, db_manager):
    """Apply pending migrations."""
    applied = apply_pending_migrations(db_manager)

    if not applied:
        logger.info("No pending migrations.")
        return

    logger.info(f"Successfully applied {len(applied)} migration(s).")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Manage the SQLite category schema",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser(
        "status", help="Show migration status"
    )
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser(
        "apply", help="Apply pending migrations"
    )
    apply_parser.set_defaults(func=cmd_apply)
