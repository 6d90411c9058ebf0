"""Inventory database management CLI.

Store collections are created lazily on the first write, so ``setup-db`` is
only needed to pre-create collections for known stores.

Usage:
    python src/manage.py setup-db --store 7 1001   # Create collections for stores 7 and 1001
    python src/manage.py list-stores               # List stores that own a collection
    python src/manage.py drop-db                   # Drop every store collection
"""

import argparse
import sys


def setup_databases(store_ids):
    """Create collections for the given stores."""
    from inventory.domain import inventory
    from inventory.utils.db import setup_db

    print("Initializing inventory domain...")
    inventory.init()
    print(f"Creating collections for stores: {', '.join(store_ids)}...")
    setup_db(inventory.store, store_ids)
    print("Done.")


def drop_databases():
    """Drop every store collection."""
    from inventory.domain import inventory
    from inventory.utils.db import drop_db

    print("Initializing inventory domain...")
    inventory.init()
    print("Dropping store collections...")
    drop_db(inventory.store)
    print("Done.")


def list_stores():
    from inventory.domain import inventory

    inventory.init()
    for store_id in inventory.store.partitions():
        print(store_id)


def main():
    parser = argparse.ArgumentParser(description="Inventory database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create collections for the given stores")
    setup_parser.add_argument(
        "--store",
        nargs="+",
        required=True,
        help="Store id(s) to create collections for",
    )

    subparsers.add_parser("drop-db", help="Drop every store collection")
    subparsers.add_parser("list-stores", help="List stores that own a collection")

    args = parser.parse_args()

    if args.command == "setup-db":
        try:
            setup_databases(args.store)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "drop-db":
        drop_databases()
    elif args.command == "list-stores":
        list_stores()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
