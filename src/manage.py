"""Checkout database management CLI.

Creates and drops the relational schema for the checkout domain when it is
configured with a SQL provider (the production overlay).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from checkout.domain import checkout

    checkout.init()
    return checkout


def setup_database():
    from checkout.utils.db import setup_db

    print("Creating checkout database schema...")
    setup_db(_domain())
    print("Done.")


def drop_database():
    from checkout.utils.db import drop_db

    print("Dropping checkout database schema...")
    drop_db(_domain())
    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Checkout database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
