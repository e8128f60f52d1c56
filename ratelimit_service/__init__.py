# Rate limit service package: tier resolution and per-window request counters

from .errors import (
    RateLimitError,
    ConfigurationError,
    UpstreamUnavailableError,
    EntitlementSourceError,
    StorageUnavailableError,
    InvalidPeriodTypeError,
)
from .models import (
    NONE_ENTITLEMENT,
    UNBOUNDED,
    Limit,
    PeriodType,
    RateLimits,
    RateLimitsConfig,
    Unbounded,
    CheckOutcome,
    CounterRecord,
    RemainingCounts,
    SubscriptionInfo,
    RateLimitCounter,
)
from .time_windows import (
    TimeWindow,
    hour_window,
    day_window,
    subscription_month_window,
    window_for,
)
from .entitlement_helper import EntitlementHelper, resolve
from .rate_limit_checker import RateLimitChecker
from .revenuecat_client import RevenueCatClient
from .route_handler import RateLimitRouteHandler
from .service import RateLimitService
from .database import create_database_engine, create_session_factory, init_rate_limit_table
from .factory import create_rate_limit_module
from .logging_config import (
    setup_logging,
    stop_logging,
    get_logger,
    ThreadSafeLoggingConfig,
)

__all__ = [
    "RateLimitError",
    "ConfigurationError",
    "UpstreamUnavailableError",
    "EntitlementSourceError",
    "StorageUnavailableError",
    "InvalidPeriodTypeError",
    "NONE_ENTITLEMENT",
    "UNBOUNDED",
    "Limit",
    "PeriodType",
    "RateLimits",
    "RateLimitsConfig",
    "Unbounded",
    "CheckOutcome",
    "CounterRecord",
    "RemainingCounts",
    "SubscriptionInfo",
    "RateLimitCounter",
    "TimeWindow",
    "hour_window",
    "day_window",
    "subscription_month_window",
    "window_for",
    "EntitlementHelper",
    "resolve",
    "RateLimitChecker",
    "RevenueCatClient",
    "RateLimitRouteHandler",
    "RateLimitService",
    "create_database_engine",
    "create_session_factory",
    "init_rate_limit_table",
    "create_rate_limit_module",
    "setup_logging",
    "stop_logging",
    "get_logger",
    "ThreadSafeLoggingConfig",
]
