"""
Result models returned by the rate limit service.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from .limits import (
    NONE_ENTITLEMENT,
    UNBOUNDED,
    Limit,
    PeriodType,
    RateLimits,
    limit_to_json,
)


@dataclass(frozen=True)
class RemainingCounts:
    """Requests left in the current window of each period."""
    hourly: Limit = UNBOUNDED
    daily: Limit = UNBOUNDED
    monthly: Limit = UNBOUNDED

    def for_period(self, period_type: PeriodType) -> Limit:
        return getattr(self, period_type.value)

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {
            "hourly": limit_to_json(self.hourly),
            "daily": limit_to_json(self.daily),
            "monthly": limit_to_json(self.monthly),
        }


@dataclass(frozen=True)
class RateLimitUsage:
    """Requests already made in the current window of each period."""
    hourly: int = 0
    daily: int = 0
    monthly: int = 0

    def for_period(self, period_type: PeriodType) -> int:
        return getattr(self, period_type.value)

    def to_dict(self) -> Dict[str, int]:
        return {"hourly": self.hourly, "daily": self.daily, "monthly": self.monthly}


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a rate limit check."""
    allowed: bool
    remaining: RemainingCounts = field(default_factory=RemainingCounts)
    # Periods whose limit was already reached, in evaluation order
    exceeded: tuple = ()
    # Stored counts after the call; unbounded periods are not counted and stay 0
    usage: RateLimitUsage = field(default_factory=RateLimitUsage)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "allowed": self.allowed,
            "remaining": self.remaining.to_dict(),
            "exceeded": [p.value for p in self.exceeded],
            "usage": self.usage.to_dict(),
        }


@dataclass(frozen=True)
class CounterRecord:
    """One stored counter window, as seen by callers."""
    user_id: str
    period_type: PeriodType
    period_start: datetime
    period_end: datetime
    request_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "period_type": self.period_type.value,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "request_count": self.request_count,
        }


@dataclass(frozen=True)
class SubscriptionInfo:
    """What the entitlement source knows about a user."""
    entitlements: FrozenSet[str]
    subscription_started_at: Optional[datetime] = None

    @classmethod
    def none(cls) -> "SubscriptionInfo":
        """Subscription info for a user without any subscription."""
        return cls(entitlements=frozenset({NONE_ENTITLEMENT}))


@dataclass(frozen=True)
class RateLimitTier:
    """A configured tier, for display."""
    entitlement: str
    display_name: str
    limits: RateLimits

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entitlement": self.entitlement,
            "display_name": self.display_name,
            "limits": self.limits.to_dict(),
        }


@dataclass(frozen=True)
class RateLimitsConfigData:
    """All tiers plus the caller's current tier, limits and usage."""
    tiers: List[RateLimitTier]
    current_entitlement: str
    current_limits: RateLimits
    current_usage: RateLimitUsage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tiers": [tier.to_dict() for tier in self.tiers],
            "current_entitlement": self.current_entitlement,
            "current_limits": self.current_limits.to_dict(),
            "current_usage": self.current_usage.to_dict(),
        }


@dataclass(frozen=True)
class RateLimitHistoryEntry:
    """One window of usage history with the limit that applies to it."""
    period_start: datetime
    period_end: datetime
    request_count: int
    limit: Limit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "request_count": self.request_count,
            "limit": limit_to_json(self.limit),
        }


@dataclass(frozen=True)
class RateLimitHistoryData:
    """Usage history for one period type, newest window first."""
    period_type: PeriodType
    entries: List[RateLimitHistoryEntry]

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_type": self.period_type.api_name,
            "entries": [entry.to_dict() for entry in self.entries],
            "total_entries": self.total_entries,
        }
