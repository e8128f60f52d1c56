#!/usr/bin/env python3
"""
Show a user's current rate limit usage and counter history.

Usage:
    python scripts/show_usage.py USER_ID [--period hour|day|month] [--limit N] [--debug]
"""

import argparse
import sys
from typing import List, Optional

from config_manager import (
    get_app_config,
    get_database_config,
    get_rate_limits_config,
    get_revenuecat_config,
)
from ratelimit_service.errors import RateLimitError
from ratelimit_service.factory import create_rate_limit_module
from ratelimit_service.logging_config import setup_logging, stop_logging


def _fmt(value) -> str:
    return "unlimited" if value is None else str(value)


def _print_report(user_id: str, overview: dict, history: dict) -> None:
    print(f"👤 User: {user_id}")
    print(f"🏷️  Tier: {overview['current_entitlement']}")
    print("📊 Current usage:")
    for period in ("hourly", "daily", "monthly"):
        limit = overview["current_limits"][period]
        used = overview["current_usage"][period]
        print(f"   - {period}: {used}/{_fmt(limit)}")

    print(f"\n📜 History ({history['period_type']}, {history['total_entries']} entries):")
    for entry in history["entries"]:
        print(
            f"   {entry['period_start']} → {entry['period_end']}: "
            f"{entry['request_count']}/{_fmt(entry['limit'])}"
        )


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Show rate limit usage for a user")
    parser.add_argument("user_id", help="User ID to inspect")
    parser.add_argument(
        "--period",
        default="day",
        help="History period type: hour, day or month (default: day)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum history entries (default: from configuration)"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    app_config = get_app_config()
    setup_logging(args.debug or app_config.debug)
    try:
        db_config = get_database_config()
        rc_config = get_revenuecat_config()

        try:
            module = create_rate_limit_module(
                rate_limits_config=get_rate_limits_config(),
                database_url=db_config.url,
                revenuecat_api_key=rc_config.api_key,
                revenuecat_base_url=rc_config.base_url,
                revenuecat_timeout=rc_config.timeout,
                entitlement_display_names=app_config.entitlement_display_names,
                database_echo=db_config.echo,
                sqlite_timeout=db_config.sqlite_timeout,
                create_tables=False,
            )
            handler = module["route_handler"]
            overview = handler.get_rate_limits_config_data(args.user_id).to_dict()
            history = handler.get_rate_limit_history_data(
                args.user_id, args.period, args.limit or app_config.history_limit
            ).to_dict()
        except (RateLimitError, ValueError) as e:
            print(f"❌ {e}")
            sys.exit(1)

        _print_report(args.user_id, overview, history)
    finally:
        stop_logging()


if __name__ == "__main__":
    main()
