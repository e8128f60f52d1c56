"""
Models package for rate limit data.
"""

from .limits import (
    NONE_ENTITLEMENT,
    UNBOUNDED,
    Limit,
    PeriodType,
    RateLimits,
    RateLimitsConfig,
    Unbounded,
    limit_to_json,
    parse_limit,
)
from .records import Base, RateLimitCounter
from .results import (
    CheckOutcome,
    CounterRecord,
    RateLimitHistoryData,
    RateLimitHistoryEntry,
    RateLimitsConfigData,
    RateLimitTier,
    RateLimitUsage,
    RemainingCounts,
    SubscriptionInfo,
)

__all__ = [
    "NONE_ENTITLEMENT",
    "UNBOUNDED",
    "Limit",
    "PeriodType",
    "RateLimits",
    "RateLimitsConfig",
    "Unbounded",
    "limit_to_json",
    "parse_limit",
    "Base",
    "RateLimitCounter",
    "CheckOutcome",
    "CounterRecord",
    "RateLimitHistoryData",
    "RateLimitHistoryEntry",
    "RateLimitsConfigData",
    "RateLimitTier",
    "RateLimitUsage",
    "RemainingCounts",
    "SubscriptionInfo",
]
