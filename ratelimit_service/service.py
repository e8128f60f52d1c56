"""
Rate limit enforcement entry point.
"""

import logging
from datetime import datetime
from typing import Optional

from .entitlement_helper import EntitlementHelper
from .models.limits import RateLimitsConfig
from .models.results import CheckOutcome
from .rate_limit_checker import RateLimitChecker

logger = logging.getLogger(__name__)


class RateLimitService:
    """
    Enforces a user's limits for one request.

    Flow: entitlement source -> effective limits -> check and increment.
    Errors from the entitlement source or the counter store propagate; the
    caller decides whether to fail open or closed.
    """

    def __init__(self, entitlement_source, rate_limits_config: RateLimitsConfig, checker: RateLimitChecker):
        """
        Initialize RateLimitService.

        Args:
            entitlement_source: Object with get_subscription_info(user_id)
                returning SubscriptionInfo (e.g. RevenueCatClient)
            rate_limits_config: Tier table
            checker: Counter store
        """
        self.entitlement_source = entitlement_source
        self.entitlement_helper = EntitlementHelper(rate_limits_config)
        self.checker = checker

    def check_request(self, user_id: str, now: Optional[datetime] = None) -> CheckOutcome:
        """Check the user's limits and count the request if it is allowed."""
        info = self.entitlement_source.get_subscription_info(user_id)
        limits = self.entitlement_helper.get_rate_limits(info.entitlements)
        logger.debug(f"Rate limit check: user={user_id}, entitlements={sorted(info.entitlements)}")
        return self.checker.check_and_increment(
            user_id,
            limits,
            info.subscription_started_at,
            now=now,
        )

    def get_usage(self, user_id: str, now: Optional[datetime] = None) -> CheckOutcome:
        """Current outcome for the user without counting a request."""
        info = self.entitlement_source.get_subscription_info(user_id)
        limits = self.entitlement_helper.get_rate_limits(info.entitlements)
        return self.checker.check_only(user_id, limits, info.subscription_started_at, now=now)
