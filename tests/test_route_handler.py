"""
Tests for the enforcement service, reporting data and module factory.
"""

import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

from ratelimit_service.errors import EntitlementSourceError, InvalidPeriodTypeError
from ratelimit_service.factory import create_rate_limit_module
from ratelimit_service.models.limits import UNBOUNDED, PeriodType, RateLimitsConfig
from ratelimit_service.models.results import SubscriptionInfo
from ratelimit_service.rate_limit_checker import RateLimitChecker
from ratelimit_service.revenuecat_client import RevenueCatClient
from ratelimit_service.route_handler import RateLimitRouteHandler
from ratelimit_service.service import RateLimitService

UTC = timezone.utc
NOW = datetime(2026, 10, 16, 14, 30, tzinfo=UTC)

TIERS = {
    "none": {"hourly": 5, "daily": 20, "monthly": 100},
    "starter": {"hourly": 10, "daily": 50, "monthly": 500},
    "pro": {"hourly": None, "daily": None, "monthly": None},
}


class ModuleTestBase:
    """Builds the module on a temporary SQLite database with a stub entitlement source."""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.entitlements = Mock()
        self.entitlements.get_subscription_info.return_value = SubscriptionInfo.none()
        self.module = create_rate_limit_module(
            rate_limits_config=RateLimitsConfig.from_dict(TIERS),
            database_url=f"sqlite:///{self.temp_dir / 'ratelimit.db'}",
            entitlement_source=self.entitlements,
            entitlement_display_names={"starter": "Starter Plan"},
        )
        self.service = self.module["service"]
        self.handler = self.module["route_handler"]

    def teardown_method(self):
        self.module["engine"].dispose()
        shutil.rmtree(self.temp_dir)

    def subscribe(self, *entitlements, started_at=None):
        self.entitlements.get_subscription_info.return_value = SubscriptionInfo(
            entitlements=frozenset(entitlements),
            subscription_started_at=started_at,
        )


class TestRateLimitService(ModuleTestBase):
    """Test the enforcement entry point."""

    def test_free_user_is_limited_by_none_tier(self):
        results = [self.service.check_request("user1", now=NOW).allowed for _ in range(6)]
        assert results == [True] * 5 + [False]

    def test_pro_user_is_unlimited(self):
        self.subscribe("pro", "starter")
        for _ in range(10):
            outcome = self.service.check_request("user1", now=NOW)
            assert outcome.allowed is True
        assert outcome.remaining.hourly is UNBOUNDED

    def test_entitlement_failure_propagates(self):
        self.entitlements.get_subscription_info.side_effect = EntitlementSourceError("down", status_code=500)
        with pytest.raises(EntitlementSourceError):
            self.service.check_request("user1", now=NOW)

    def test_get_usage_does_not_count(self):
        self.service.check_request("user1", now=NOW)
        assert self.service.get_usage("user1", now=NOW).remaining.hourly == 4
        assert self.service.get_usage("user1", now=NOW).remaining.hourly == 4


class TestRateLimitRouteHandler(ModuleTestBase):
    """Test reporting data."""

    def test_config_data_for_free_user(self):
        for _ in range(3):
            self.service.check_request("user1", now=NOW)

        data = self.handler.get_rate_limits_config_data("user1", now=NOW)
        assert [t.entitlement for t in data.tiers] == ["none", "starter", "pro"]
        assert [t.display_name for t in data.tiers] == ["Free", "Starter Plan", "Pro"]
        assert data.current_entitlement == "none"
        assert data.current_limits.hourly == 5
        assert data.current_usage.hourly == 3
        assert data.current_usage.daily == 3
        assert data.current_usage.monthly == 3

    def test_config_data_for_unlimited_user(self):
        self.subscribe("pro")
        self.service.check_request("user1", now=NOW)

        data = self.handler.get_rate_limits_config_data("user1", now=NOW).to_dict()
        assert data["current_entitlement"] == "pro"
        assert data["current_limits"] == {"hourly": None, "daily": None, "monthly": None}
        assert data["current_usage"] == {"hourly": 0, "daily": 0, "monthly": 0}
        assert data["tiers"][2]["limits"]["daily"] is None

    def test_config_data_reports_stored_count_after_downgrade(self):
        self.subscribe("starter")
        for _ in range(7):
            assert self.service.check_request("user1", now=NOW).allowed is True

        self.subscribe()
        data = self.handler.get_rate_limits_config_data("user1", now=NOW)
        assert data.current_entitlement == "none"
        assert data.current_limits.hourly == 5
        assert data.current_usage.hourly == 7
        assert data.current_usage.daily == 7
        assert self.service.get_usage("user1", now=NOW).remaining.hourly == 0

    def test_config_data_propagates_entitlement_errors(self):
        self.entitlements.get_subscription_info.side_effect = EntitlementSourceError("down")
        with pytest.raises(EntitlementSourceError):
            self.handler.get_rate_limits_config_data("user1", now=NOW)

    def test_history_data(self):
        self.subscribe("starter")
        now = datetime.now(timezone.utc)
        self.service.check_request("user1", now=now - timedelta(days=1))
        self.service.check_request("user1", now=now)
        self.service.check_request("user1", now=now)

        history = self.handler.get_rate_limit_history_data("user1", "day")
        assert history.period_type is PeriodType.DAILY
        assert history.total_entries == 2
        assert [e.request_count for e in history.entries] == [2, 1]
        assert all(e.limit == 50 for e in history.entries)

        as_dict = history.to_dict()
        assert as_dict["period_type"] == "day"
        assert as_dict["total_entries"] == 2
        assert as_dict["entries"][0]["period_start"].endswith("+00:00")

    def test_history_limit(self):
        now = datetime.now(timezone.utc)
        for hours in range(4):
            self.service.check_request("user1", now=now - timedelta(hours=hours))
        history = self.handler.get_rate_limit_history_data("user1", "hour", limit=2)
        assert history.total_entries == 2

    def test_history_without_rows(self):
        self.subscribe("pro")
        history = self.handler.get_rate_limit_history_data("user1", PeriodType.MONTHLY)
        assert history.entries == []
        assert history.to_dict()["entries"] == []

    def test_history_invalid_period(self):
        with pytest.raises(InvalidPeriodTypeError):
            self.handler.get_rate_limit_history_data("user1", "fortnight")


class TestFactory:
    """Test module assembly."""

    def test_requires_an_entitlement_source(self):
        with pytest.raises(ValueError):
            create_rate_limit_module(
                rate_limits_config=RateLimitsConfig.from_dict(TIERS),
                database_url="sqlite://",
            )

    def test_builds_revenuecat_client(self):
        module = create_rate_limit_module(
            rate_limits_config=RateLimitsConfig.from_dict(TIERS),
            database_url="sqlite://",
            revenuecat_api_key="sk_test",
            revenuecat_timeout=3,
        )
        try:
            assert isinstance(module["checker"], RateLimitChecker)
            assert isinstance(module["service"], RateLimitService)
            assert isinstance(module["route_handler"], RateLimitRouteHandler)
            assert isinstance(module["service"].entitlement_source, RevenueCatClient)
            assert module["service"].entitlement_source.timeout == 3
        finally:
            module["engine"].dispose()
