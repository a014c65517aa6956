"""Storefront management CLI.

Creates and drops the database schema, and runs the checkout expiry job.

Usage:
    python src/manage.py setup-db                            # Create all tables
    python src/manage.py drop-db                             # Drop all tables
    python src/manage.py expire-checkouts [--older-than 30]  # Release stale reservations
"""

import argparse
import sys


def setup_database():
    """Create database tables for the storefront domain."""
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Creating storefront database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    """Drop database tables for the storefront domain."""
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Dropping storefront database schema...")
    drop_db(storefront)
    print("Done.")


def expire_checkouts(older_than_minutes=None):
    """Expire unpaid orders without a payment link and release their stock."""
    from storefront.checkout.expiry import expire_stale_checkouts
    from storefront.config import StorefrontConfig
    from storefront.domain import storefront
    from storefront.utils.logging import configure_logging

    configure_logging()
    storefront.init()
    if older_than_minutes is None:
        older_than_minutes = StorefrontConfig.from_env().checkout_ttl_minutes

    with storefront.domain_context():
        expired = expire_stale_checkouts(older_than_minutes)

    print(f"Expired {len(expired)} checkout(s) older than {older_than_minutes} minutes.")
    for order_id in expired:
        print(f"  {order_id}")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    expire_parser = subparsers.add_parser("expire-checkouts", help="Release stock held by stale checkouts")
    expire_parser.add_argument(
        "--older-than",
        type=int,
        dest="older_than",
        help="Age in minutes (default: STOREFRONT_CHECKOUT_TTL_MINUTES)",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "expire-checkouts":
        expire_checkouts(args.older_than)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
