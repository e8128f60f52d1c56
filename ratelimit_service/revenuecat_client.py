"""
RevenueCat Client Module

This module looks up a user's active entitlements and subscription start
date from the RevenueCat REST API.
"""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import quote

import requests

from .errors import EntitlementSourceError
from .models.limits import NONE_ENTITLEMENT
from .models.results import SubscriptionInfo
from .models.revenuecat import RevenueCatSubscriber, RevenueCatSubscriberResponse
from .time_windows import to_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.revenuecat.com/v1"


class RevenueCatClient:
    """Entitlement source backed by RevenueCat."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            api_key: RevenueCat secret API key
            base_url: API root, without trailing slash
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    def get_subscription_info(self, user_id: str, now: Optional[datetime] = None) -> SubscriptionInfo:
        """Get a user's active entitlements and subscription start.

        A user unknown to RevenueCat, or one without active entitlements, gets
        the 'none' entitlement and no subscription start.

        Args:
            user_id: App user ID
            now: Instant used to decide which entitlements are active

        Returns:
            SubscriptionInfo for the user

        Raises:
            EntitlementSourceError: On network errors, non-404 HTTP errors or
                an unreadable response
        """
        url = f"{self.base_url}/subscribers/{quote(user_id, safe='')}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"RevenueCat request failed for {user_id}: {e}")
            raise EntitlementSourceError(f"RevenueCat request failed: {e}") from e

        if response.status_code == 404:
            logger.info(f"RevenueCat has no subscriber {user_id}, using '{NONE_ENTITLEMENT}'")
            return SubscriptionInfo.none()

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"RevenueCat returned HTTP {response.status_code} for {user_id}")
            raise EntitlementSourceError(
                f"RevenueCat returned HTTP {response.status_code}",
                status_code=response.status_code,
            ) from e

        try:
            payload = RevenueCatSubscriberResponse.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Unreadable RevenueCat response for {user_id}: {e}")
            raise EntitlementSourceError(f"Unreadable RevenueCat response: {e}") from e

        return self._to_subscription_info(payload.subscriber, utc_now() if now is None else to_utc(now))

    @staticmethod
    def _to_subscription_info(subscriber: RevenueCatSubscriber, now: datetime) -> SubscriptionInfo:
        active = {
            name: entitlement
            for name, entitlement in subscriber.entitlements.items()
            if entitlement.is_active(now)
        }
        if not active:
            return SubscriptionInfo.none()

        purchase_dates = [to_utc(e.purchase_date) for e in active.values() if e.purchase_date is not None]
        return SubscriptionInfo(
            entitlements=frozenset(active),
            subscription_started_at=min(purchase_dates) if purchase_dates else None,
        )
