"""
Configuration management for the rate limit service.
Handles loading, validating, and providing access to service settings.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from ratelimit_service.errors import ConfigurationError
from ratelimit_service.models.limits import RateLimitsConfig


@dataclass
class DatabaseConfig:
    """Counter store settings."""
    url: str
    echo: bool
    sqlite_timeout: float


@dataclass
class RevenueCatConfig:
    """Entitlement source settings."""
    api_key: str
    base_url: str
    timeout: int


@dataclass
class AppConfig:
    """Application settings."""
    debug: bool
    history_limit: int
    entitlement_display_names: Dict[str, str] = field(default_factory=dict)


class ConfigManager:
    """Manages service configuration loading and access."""

    def __init__(self, config_file: str = "ratelimit_config.json"):
        self.config_file = Path(config_file)
        self._config: Optional[Dict[str, Any]] = None
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file and environment variables."""
        self._config = self._get_default_config()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    self._merge_config(file_config)
            except FileNotFoundError:
                # Removed between the exists() check and open(); keep defaults
                pass
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {self.config_file}: {e}") from e

        self._override_with_env()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "database": {
                "url": "sqlite:///ratelimit.db",
                "echo": False,
                "sqlite_timeout": 30.0
            },
            "revenuecat": {
                "api_key": "",
                "base_url": "https://api.revenuecat.com/v1",
                "timeout": 10
            },
            "app": {
                "debug": False,
                "history_limit": 100,
                "entitlement_display_names": {}
            },
            "rate_limits": {
                "none": {"hourly": 5, "daily": 20, "monthly": 100}
            }
        }

    def _merge_config(self, file_config: Dict[str, Any]) -> None:
        """Merge file configuration with current config."""
        for section, values in file_config.items():
            if section == "rate_limits":
                # The tier table is replaced as a whole, never merged tier by tier
                self._config[section] = values
            elif section in self._config and isinstance(values, dict):
                self._config[section].update(values)
            else:
                self._config[section] = values

    def _override_with_env(self) -> None:
        """Override configuration with environment variables."""
        if os.getenv("RATELIMIT_DATABASE_URL"):
            self._config["database"]["url"] = os.getenv("RATELIMIT_DATABASE_URL")

        if os.getenv("RATELIMIT_DATABASE_ECHO"):
            self._config["database"]["echo"] = os.getenv("RATELIMIT_DATABASE_ECHO").lower() == "true"

        if os.getenv("REVENUECAT_API_KEY"):
            self._config["revenuecat"]["api_key"] = os.getenv("REVENUECAT_API_KEY")

        if os.getenv("REVENUECAT_BASE_URL"):
            self._config["revenuecat"]["base_url"] = os.getenv("REVENUECAT_BASE_URL")

        if os.getenv("REVENUECAT_TIMEOUT"):
            self._config["revenuecat"]["timeout"] = int(os.getenv("REVENUECAT_TIMEOUT"))

        if os.getenv("APP_DEBUG"):
            self._config["app"]["debug"] = os.getenv("APP_DEBUG").lower() == "true"

        if os.getenv("RATELIMIT_HISTORY_LIMIT"):
            self._config["app"]["history_limit"] = int(os.getenv("RATELIMIT_HISTORY_LIMIT"))

        if os.getenv("RATELIMIT_TIERS_JSON"):
            try:
                self._config["rate_limits"] = json.loads(os.getenv("RATELIMIT_TIERS_JSON"))
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"RATELIMIT_TIERS_JSON is not valid JSON: {e}") from e

    def get_database_config(self) -> DatabaseConfig:
        """Get counter store configuration."""
        db_config = self._config["database"]
        return DatabaseConfig(
            url=db_config["url"],
            echo=db_config["echo"],
            sqlite_timeout=float(db_config["sqlite_timeout"])
        )

    def get_revenuecat_config(self) -> RevenueCatConfig:
        """Get RevenueCat configuration."""
        rc_config = self._config["revenuecat"]
        return RevenueCatConfig(
            api_key=rc_config["api_key"],
            base_url=rc_config["base_url"],
            timeout=rc_config["timeout"]
        )

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        app_config = self._config["app"]
        return AppConfig(
            debug=app_config["debug"],
            history_limit=app_config["history_limit"],
            entitlement_display_names=dict(app_config.get("entitlement_display_names") or {})
        )

    def get_rate_limits_config(self) -> RateLimitsConfig:
        """
        Get the validated tier table.

        Raises:
            ConfigurationError: If the table is malformed or lacks the 'none' tier
        """
        return RateLimitsConfig.from_dict(self._config["rate_limits"])

    def get_config(self) -> Dict[str, Any]:
        """Get raw configuration dictionary."""
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    def save_config(self) -> None:
        """Save current configuration to file."""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)


# Global configuration instance
config_manager = ConfigManager()


def get_database_config() -> DatabaseConfig:
    """Get counter store configuration."""
    return config_manager.get_database_config()


def get_revenuecat_config() -> RevenueCatConfig:
    """Get RevenueCat configuration."""
    return config_manager.get_revenuecat_config()


def get_app_config() -> AppConfig:
    """Get application configuration."""
    return config_manager.get_app_config()


def get_rate_limits_config() -> RateLimitsConfig:
    """Get the validated tier table."""
    return config_manager.get_rate_limits_config()


def reload_config() -> None:
    """Reload configuration."""
    config_manager.reload()


def save_config() -> None:
    """Save configuration to file."""
    config_manager.save_config()
