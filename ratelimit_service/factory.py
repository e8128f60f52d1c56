"""
Factory for creating rate limit components.
"""

from typing import Dict, Optional

from .database import create_database_engine, create_session_factory, init_rate_limit_table
from .models.limits import RateLimitsConfig
from .rate_limit_checker import RateLimitChecker
from .revenuecat_client import DEFAULT_BASE_URL, RevenueCatClient
from .route_handler import RateLimitRouteHandler
from .service import RateLimitService


def create_rate_limit_module(
    rate_limits_config: RateLimitsConfig,
    database_url: str,
    revenuecat_api_key: Optional[str] = None,
    revenuecat_base_url: str = DEFAULT_BASE_URL,
    revenuecat_timeout: int = 10,
    entitlement_source=None,
    entitlement_display_names: Optional[Dict[str, str]] = None,
    database_echo: bool = False,
    sqlite_timeout: float = 30.0,
    create_tables: bool = True,
) -> dict:
    """
    Create rate limit module.

    Args:
        rate_limits_config: Tier table
        database_url: SQLAlchemy URL of the counter store
        revenuecat_api_key: RevenueCat secret key, used when no
            entitlement_source is given
        revenuecat_base_url: RevenueCat API root
        revenuecat_timeout: RevenueCat request timeout in seconds
        entitlement_source: Object with get_subscription_info(user_id);
            overrides the RevenueCat client
        entitlement_display_names: Display names for tiers
        database_echo: Whether to log SQL statements
        sqlite_timeout: Seconds SQLite waits for the write lock
        create_tables: Whether to create the counter table if missing

    Returns:
        Dictionary with:
        - engine: SQLAlchemy Engine
        - checker: RateLimitChecker instance
        - service: RateLimitService instance
        - route_handler: RateLimitRouteHandler instance
        - config: RateLimitsConfig instance
    """
    if entitlement_source is None:
        if not revenuecat_api_key:
            raise ValueError("Either entitlement_source or revenuecat_api_key is required")
        entitlement_source = RevenueCatClient(
            api_key=revenuecat_api_key,
            base_url=revenuecat_base_url,
            timeout=revenuecat_timeout,
        )

    engine = create_database_engine(database_url, echo=database_echo, sqlite_timeout=sqlite_timeout)
    if create_tables:
        init_rate_limit_table(engine)

    checker = RateLimitChecker(create_session_factory(engine))

    return {
        "engine": engine,
        "checker": checker,
        "service": RateLimitService(entitlement_source, rate_limits_config, checker),
        "route_handler": RateLimitRouteHandler(
            entitlement_source,
            rate_limits_config,
            checker,
            entitlement_display_names=entitlement_display_names,
        ),
        "config": rate_limits_config,
    }
