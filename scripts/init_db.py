#!/usr/bin/env python3
"""
Create the rate limit counter table.

Uses the database URL from ratelimit_config.json / RATELIMIT_DATABASE_URL
unless --database-url is given. Safe to run repeatedly.

Usage:
    python scripts/init_db.py [--database-url URL] [--debug]
"""

import argparse
import sys
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from config_manager import get_app_config, get_database_config
from ratelimit_service.database import create_database_engine, init_rate_limit_table
from ratelimit_service.logging_config import setup_logging, stop_logging


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Create the rate limit counter table")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy database URL (default: from configuration)"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    setup_logging(args.debug or get_app_config().debug)
    try:
        db_config = get_database_config()
        database_url = args.database_url or db_config.url

        print("🚀 Rate Limit Table Setup")
        print("=" * 50)
        print(f"Database: {database_url}")

        try:
            engine = create_database_engine(database_url, echo=db_config.echo, sqlite_timeout=db_config.sqlite_timeout)
            init_rate_limit_table(engine)
            engine.dispose()
        except SQLAlchemyError as e:
            print(f"❌ Error creating table: {e}")
            sys.exit(1)

        print("\n✅ Table rate_limit_counters is ready")
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
