"""
Database seeding command.

Creates the tables, an admin user and (unless ``--no-samples``) three sample
operations. Running it again with the same admin email changes nothing.

Usage:
    finops-seed --email admin@app.com --password admin123
"""

import argparse
import asyncio
import logging
import os
import sys

from finops.api.dependencies import build_container
from finops.config.settings import ConfigurationError, load_settings
from finops.utils.logging import setup_logging

logger = logging.getLogger("finops.seed")


async def seed(email: str, password: str, with_samples: bool) -> int:
    settings = load_settings()
    setup_logging(settings.logging)

    container = build_container(settings)
    try:
        await container.database.create_schema()
        admin = await container.setup_service.initialize_database(
            email, password, with_samples=with_samples
        )
    finally:
        await container.database.close()

    if admin is None:
        logger.info(f"Admin user {email} already exists")
    else:
        logger.info(f"Admin user created: {admin.email} ({admin.id})")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the operations database")
    parser.add_argument(
        "--email",
        default=os.getenv("SEED_ADMIN_EMAIL", "admin@app.com"),
        help="Admin email (default: %(default)s)"
    )
    parser.add_argument(
        "--password",
        default=os.getenv("SEED_ADMIN_PASSWORD"),
        help="Admin password (default: $SEED_ADMIN_PASSWORD)"
    )
    parser.add_argument(
        "--no-samples",
        action="store_true",
        help="Do not create sample operations"
    )
    args = parser.parse_args()

    if not args.password:
        parser.error("an admin password is required (--password or SEED_ADMIN_PASSWORD)")

    try:
        return asyncio.run(seed(args.email, args.password, not args.no_samples))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
