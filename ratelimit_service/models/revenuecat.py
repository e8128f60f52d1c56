"""
RevenueCat subscriber payload models.

This module contains Pydantic models for the parts of the RevenueCat
subscriber response the service reads. Unknown fields are ignored.
"""

from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, Field


class RevenueCatEntitlement(BaseModel):
    """One entitlement granted to a subscriber."""
    expires_date: Optional[datetime] = Field(default=None, description="Expiry time; null for lifetime entitlements")
    purchase_date: Optional[datetime] = Field(default=None, description="When the granting purchase was made")
    product_identifier: Optional[str] = Field(default=None, description="Store product that grants the entitlement")

    def is_active(self, now: datetime) -> bool:
        """Check whether the entitlement is in effect at the given instant."""
        if self.expires_date is None:
            return True
        expires = self.expires_date
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires > now


class RevenueCatSubscriber(BaseModel):
    """Subscriber record."""
    original_app_user_id: Optional[str] = Field(default=None, description="First app user ID seen for the subscriber")
    entitlements: Dict[str, RevenueCatEntitlement] = Field(default_factory=dict, description="Entitlements by identifier")


class RevenueCatSubscriberResponse(BaseModel):
    """Response of GET /subscribers/{app_user_id}."""
    subscriber: RevenueCatSubscriber = Field(description="Subscriber record")
