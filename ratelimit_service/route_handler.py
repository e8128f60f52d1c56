"""
Data for rate limit reporting endpoints.

Builds framework-neutral objects for a "current limits" view and a usage
history view; wiring them to HTTP routes is left to the application.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Union

from .entitlement_helper import EntitlementHelper
from .models.limits import PeriodType, RateLimitsConfig
from .models.results import (
    RateLimitHistoryData,
    RateLimitHistoryEntry,
    RateLimitsConfigData,
    RateLimitTier,
)
from .rate_limit_checker import RateLimitChecker

logger = logging.getLogger(__name__)


class RateLimitRouteHandler:
    """Provides data for rate limit overview and history endpoints."""

    def __init__(
        self,
        entitlement_source,
        rate_limits_config: RateLimitsConfig,
        checker: RateLimitChecker,
        entitlement_display_names: Optional[Dict[str, str]] = None,
    ):
        self.entitlement_source = entitlement_source
        self.rate_limits_config = rate_limits_config
        self.entitlement_helper = EntitlementHelper(rate_limits_config, entitlement_display_names)
        self.checker = checker

    def get_rate_limits_config_data(self, user_id: str, now: Optional[datetime] = None) -> RateLimitsConfigData:
        """
        Get every tier plus the user's current tier, limits and usage.

        Args:
            user_id: User identifier
            now: Reference instant (defaults to the current time)

        Raises:
            UpstreamUnavailableError: If the entitlement source or counter store fails
        """
        tiers = [
            RateLimitTier(
                entitlement=entitlement,
                display_name=self.entitlement_helper.get_display_name(entitlement),
                limits=limits,
            )
            for entitlement, limits in self.rate_limits_config.tiers.items()
        ]

        info = self.entitlement_source.get_subscription_info(user_id)
        current_entitlement = self.entitlement_helper.get_primary_entitlement(info.entitlements)
        current_limits = self.entitlement_helper.get_rate_limits(info.entitlements)

        outcome = self.checker.check_only(user_id, current_limits, info.subscription_started_at, now=now)

        return RateLimitsConfigData(
            tiers=tiers,
            current_entitlement=current_entitlement,
            current_limits=current_limits,
            current_usage=outcome.usage,
        )

    def get_rate_limit_history_data(
        self,
        user_id: str,
        period_type: Union[PeriodType, str],
        limit: int = 100,
    ) -> RateLimitHistoryData:
        """
        Get usage history for one period type, newest window first.

        Args:
            user_id: User identifier
            period_type: 'hour', 'day', 'month' or a PeriodType
            limit: Maximum number of entries to return

        Raises:
            InvalidPeriodTypeError: If period_type is not a known period type
            UpstreamUnavailableError: If the entitlement source or counter store fails
        """
        period_type = PeriodType.parse(period_type)

        info = self.entitlement_source.get_subscription_info(user_id)
        period_limit = self.entitlement_helper.get_limit_for_period(info.entitlements, period_type)

        records = self.checker.get_history(user_id, period_type, info.subscription_started_at, limit)
        entries = [
            RateLimitHistoryEntry(
                period_start=record.period_start,
                period_end=record.period_end,
                request_count=record.request_count,
                limit=period_limit,
            )
            for record in records
        ]
        return RateLimitHistoryData(period_type=period_type, entries=entries)
