"""
Tests for the operator scripts: table setup and usage report.
"""

from unittest.mock import Mock, patch

import pytest
from sqlalchemy import create_engine, inspect

from config_manager import AppConfig, DatabaseConfig, RevenueCatConfig
from ratelimit_service.factory import create_rate_limit_module
from ratelimit_service.models.results import SubscriptionInfo
from scripts import init_db, show_usage


class TestInitDbScript:
    """Test scripts/init_db.py."""

    def test_creates_table_with_debug_logging(self, tmp_path):
        database_url = f"sqlite:///{tmp_path / 'ratelimit.db'}"

        with patch.object(init_db, "setup_logging") as mock_setup, \
                patch.object(init_db, "stop_logging") as mock_stop:
            init_db.main(["--database-url", database_url, "--debug"])

        mock_setup.assert_called_once_with(True)
        mock_stop.assert_called_once()

        engine = create_engine(database_url)
        try:
            assert "rate_limit_counters" in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_debug_follows_app_config(self, tmp_path):
        database_url = f"sqlite:///{tmp_path / 'ratelimit.db'}"

        with patch.object(init_db, "get_app_config", return_value=AppConfig(debug=True, history_limit=100)), \
                patch.object(init_db, "setup_logging") as mock_setup, \
                patch.object(init_db, "stop_logging"):
            init_db.main(["--database-url", database_url])

        mock_setup.assert_called_once_with(True)


class TestShowUsageScript:
    """Test scripts/show_usage.py."""

    def setup_method(self):
        self.app_config = AppConfig(debug=False, history_limit=100)
        self.rc_config = RevenueCatConfig(api_key="", base_url="https://api.revenuecat.com/v1", timeout=10)

    def test_prints_usage_report(self, tmp_path, capsys):
        db_config = DatabaseConfig(url=f"sqlite:///{tmp_path / 'ratelimit.db'}", echo=False, sqlite_timeout=30.0)
        source = Mock()
        source.get_subscription_info.return_value = SubscriptionInfo.none()
        modules = []

        def build_module(**kwargs):
            kwargs.update(entitlement_source=source, create_tables=True)
            module = create_rate_limit_module(**kwargs)
            modules.append(module)
            return module

        with patch.object(show_usage, "get_app_config", return_value=self.app_config), \
                patch.object(show_usage, "get_database_config", return_value=db_config), \
                patch.object(show_usage, "get_revenuecat_config", return_value=self.rc_config), \
                patch.object(show_usage, "create_rate_limit_module", side_effect=build_module), \
                patch.object(show_usage, "setup_logging") as mock_setup, \
                patch.object(show_usage, "stop_logging") as mock_stop:
            show_usage.main(["user1", "--period", "hour"])

        try:
            output = capsys.readouterr().out
            assert "Tier: none" in output
            assert "hourly: 0/5" in output
            assert "History (hour, 0 entries)" in output
            mock_setup.assert_called_once_with(False)
            mock_stop.assert_called_once()
        finally:
            for module in modules:
                module["engine"].dispose()

    def test_stops_logging_on_error_exit(self, capsys):
        with patch.object(show_usage, "get_app_config", return_value=self.app_config), \
                patch.object(show_usage, "get_revenuecat_config", return_value=self.rc_config), \
                patch.object(show_usage, "setup_logging") as mock_setup, \
                patch.object(show_usage, "stop_logging") as mock_stop:
            with pytest.raises(SystemExit) as exc_info:
                show_usage.main(["user1", "--debug"])

        assert exc_info.value.code == 1
        assert "revenuecat_api_key" in capsys.readouterr().out
        mock_setup.assert_called_once_with(True)
        mock_stop.assert_called_once()
