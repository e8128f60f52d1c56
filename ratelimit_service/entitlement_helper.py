"""
Quota resolution: turn a set of entitlement tags into effective limits.
"""

import logging
from typing import Dict, Iterable, Optional

from .models.limits import (
    NONE_ENTITLEMENT,
    UNBOUNDED,
    Limit,
    PeriodType,
    RateLimits,
    RateLimitsConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAMES: Dict[str, str] = {
    "none": "Free",
    "starter": "Starter",
    "pro": "Pro",
    "enterprise": "Enterprise",
}


def merge_limit(a: Limit, b: Limit) -> Limit:
    """Most permissive of two limits: unbounded wins, then the larger number."""
    if a is UNBOUNDED or b is UNBOUNDED:
        return UNBOUNDED
    return max(a, b)


def merge_rate_limits(first: RateLimits, second: RateLimits) -> RateLimits:
    """Merge two limit triples period by period."""
    return RateLimits(
        hourly=merge_limit(first.hourly, second.hourly),
        daily=merge_limit(first.daily, second.daily),
        monthly=merge_limit(first.monthly, second.monthly),
    )


def resolve(tags: Iterable[str], config: RateLimitsConfig) -> RateLimits:
    """
    Effective limits for a set of entitlement tags.

    Tags missing from the config are ignored. When no tag is configured the
    'none' tier applies. Never raises for unknown tags.

    Args:
        tags: Entitlement tags granted to the caller
        config: Tier table

    Returns:
        Merged RateLimits
    """
    # Sorting keeps the result independent of iteration order
    configured = sorted({tag for tag in tags if tag in config})
    if not configured:
        return config.fallback

    merged = config[configured[0]]
    for tag in configured[1:]:
        merged = merge_rate_limits(merged, config[tag])
    return merged


class EntitlementHelper:
    """Answers limit questions about entitlements against one tier table."""

    def __init__(self, config: RateLimitsConfig, display_names: Optional[Dict[str, str]] = None):
        self.config = config
        self.display_names = {**DEFAULT_DISPLAY_NAMES, **(display_names or {})}

    def get_rate_limits(self, entitlements: Iterable[str]) -> RateLimits:
        """Get the effective limits for a user's entitlements."""
        entitlements = set(entitlements)
        limits = resolve(entitlements, self.config)
        if not any(e in self.config for e in entitlements):
            logger.debug(f"No configured entitlement in {sorted(entitlements)}, using '{NONE_ENTITLEMENT}'")
        return limits

    def get_limit_for_period(self, entitlements: Iterable[str], period_type: PeriodType) -> Limit:
        return self.get_rate_limits(entitlements).for_period(period_type)

    def get_primary_entitlement(self, entitlements: Iterable[str]) -> str:
        """
        Pick the entitlement to show as the user's current tier.

        Returns the configured entitlement (other than 'none') that comes last
        in the tier table, since tables list tiers from lowest to highest.
        Falls back to 'none'.
        """
        entitlements = set(entitlements)
        primary = NONE_ENTITLEMENT
        for name in self.config:
            if name != NONE_ENTITLEMENT and name in entitlements:
                primary = name
        return primary

    def get_display_name(self, entitlement: str) -> str:
        """Get display name for an entitlement."""
        if entitlement in self.display_names:
            return self.display_names[entitlement]
        return entitlement[:1].upper() + entitlement[1:]
