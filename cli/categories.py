#!/usr/bin/env python3

import json
import sys
from pathlib import Path

from config import get_seed_file
from logger import get_logger

logger = get_logger()


def _print_json(model):
    print(model.model_dump_json(indent=2))


def _log_tree(tree):
    stack = [(node, 0) for node in reversed(tree.categories)]
    while stack:
        node, depth = stack.pop()
        indent = "  " * depth
        line = f"{indent}- [{node.id}] {node.name}"
        if node.description:
            line += f" ({node.description})"
        logger.info(line)
        stack.extend((child, depth + 1) for child in reversed(node.children))


def cmd_list(args, services):
    """List every stored category as a flat table, orphans included."""
    rows = services.store.find_all()

    if not rows:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in rows:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {category.name}")
        if category.description:
            logger.info(f"Description: {category.description}")
        if category.parent_id is not None:
            logger.info(f"Parent ID: {category.parent_id}")
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(rows)}")


def cmd_tree(args, services):
    """Show the whole taxonomy, or the subtree under --root."""
    if args.root is not None:
        tree = services.categories.get_category_tree(args.root)
    else:
        tree = services.categories.get_all_categories()

    if args.json:
        print(tree.dump_json())
        return

    if not tree.categories:
        logger.info("No categories found.")
        return

    _log_tree(tree)


def cmd_show(args, services):
    """Show a single category."""
    category = services.categories.get_category(args.category_id)

    if args.json:
        _print_json(category)
        return

    logger.info(f"ID: {category.id}")
    logger.info(f"Name: {category.name}")
    if category.description:
        logger.info(f"Description: {category.description}")
    logger.info(f"Parent ID: {category.parent_id or '-'}")
    logger.info(f"Created: {category.created_at}")
    logger.info(f"Updated: {category.updated_at}")


def cmd_create(args, services):
    """Create a new category."""
    category = services.categories.create_category(
        args.name, args.description, args.parent_id
    )

    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.description:
        logger.info(f"  Description: {category.description}")
    if category.parent_id:
        logger.info(f"  Parent ID: {category.parent_id}")


def cmd_update(args, services):
    """Update name, description and parent of a category."""
    category = services.categories.update_category(
        args.category_id, args.name, args.description, args.parent_id
    )

    logger.info(f"✓ Category {category.id} updated")
    logger.info(f"  Name: {category.name}")
    if category.description:
        logger.info(f"  Description: {category.description}")
    logger.info(f"  Parent ID: {category.parent_id or '-'}")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category = services.categories.get_category(args.category_id)

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.description:
        logger.info(f"  Description: {category.description}")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.categories.delete_category(args.category_id)
    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def _seed_children(services, nodes, parent_id, existing, counts, depth=0):
    """Create seed categories depth-first, skipping ones already present."""
    indent = "  " * depth
    for data in nodes:
        name = data.get("name")
        if not name:
            logger.warning(f"{indent}Skipping category with no name")
            continue

        key = (parent_id, name)
        if key in existing:
            logger.info(f"{indent}⊘ Skipped '{name}' (already exists)")
            counts["skipped"] += 1
            category_id = existing[key]
        else:
            category = services.categories.create_category(
                name, data.get("description"), parent_id
            )
            logger.info(f"{indent}✓ Created '{name}' (ID: {category.id})")
            counts["created"] += 1
            category_id = category.id
            existing[key] = category_id

        _seed_children(
            services, data.get("children", []), category_id, existing, counts, depth + 1
        )


def cmd_seed(args, services):
    """Seed categories from a JSON file."""
    seed_file = args.file or get_seed_file()

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    try:
        with open(seed_file, "r") as f:
            categories_data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    logger.info(f"\nSeeding categories from {seed_file}")
    logger.info("=" * 80)

    existing = {
        (parent_id, node.name): node.id
        for parent_id, node in services.categories.get_all_categories().flatten()
    }
    counts = {"created": 0, "skipped": 0}
    _seed_children(services, categories_data, None, existing, counts)

    logger.info("=" * 80)
    logger.info("\nSeeding complete!")
    logger.info(f"Created: {counts['created']}")
    logger.info(f"Skipped: {counts['skipped']}")
    logger.info(f"Total: {counts['created'] + counts['skipped']}")


def cmd_stats(args, services):
    """Show category and cache statistics."""
    report = services.stats.report()

    if args.json:
        print(json.dumps(report, indent=2))
        return

    stats = report["statistics"]
    logger.info("Category statistics:")
    for key, value in stats.items():
        logger.info(f"  {key}: {value}")

    for cache_name, cache_stats in report["cache"].items():
        logger.info(f"Cache '{cache_name}':")
        for key, value in cache_stats.items():
            logger.info(f"  {key}: {value}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, query, update and delete product categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List all categories")
    list_parser.set_defaults(func=cmd_list)

    # categories tree
    tree_parser = categories_subparsers.add_parser(
        "tree", help="Show the category tree"
    )
    tree_parser.add_argument(
        "--root", type=int, default=None, help="Only show the subtree under this ID"
    )
    tree_parser.add_argument("--json", action="store_true", help="Output JSON")
    tree_parser.set_defaults(func=cmd_tree)

    # categories show
    show_parser = categories_subparsers.add_parser("show", help="Show one category")
    show_parser.add_argument("category_id", type=int, help="ID of the category")
    show_parser.add_argument("--json", action="store_true", help="Output JSON")
    show_parser.set_defaults(func=cmd_show)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("name", help="Category name (e.g., Electronics)")
    create_parser.add_argument("--description", default=None, help="Description")
    create_parser.add_argument(
        "--parent-id", type=int, default=None, help="Parent category ID"
    )
    create_parser.set_defaults(func=cmd_create)

    # categories update
    update_parser = categories_subparsers.add_parser(
        "update", help="Update a category (omitting --parent-id makes it a root)"
    )
    update_parser.add_argument("category_id", type=int, help="ID of the category")
    update_parser.add_argument("name", help="New category name")
    update_parser.add_argument("--description", default=None, help="New description")
    update_parser.add_argument(
        "--parent-id", type=int, default=None, help="New parent category ID"
    )
    update_parser.set_defaults(func=cmd_update)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Seed categories from JSON file"
    )
    seed_parser.add_argument(
        "--file", type=Path, default=None, help="Seed file (defaults to db/seed)"
    )
    seed_parser.set_defaults(func=cmd_seed)

    # categories stats
    stats_parser = categories_subparsers.add_parser(
        "stats", help="Show category and cache statistics"
    )
    stats_parser.add_argument("--json", action="store_true", help="Output JSON")
    stats_parser.set_defaults(func=cmd_stats)
