"""
Profile Domain Model

Lightweight view of a ``profiles`` row: the fields the handlers need for
role checks and member pricing.

Author: Academia
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime, timezone


class Profile(BaseModel):
    id: str = Field(..., description="Auth user ID")
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = Field(None, description="student, professor or admin")
    platform_subscription_status: Optional[str] = None
    platform_subscription_expires_at: Optional[datetime] = None
    stripe_subscription_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    def is_member(self, now: Optional[datetime] = None) -> bool:
        """Active platform subscription that has not expired yet"""
        if self.platform_subscription_status != "active":
            return False
        if self.platform_subscription_expires_at is None:
            return False

        now = now or datetime.now(timezone.utc)
        expires_at = self.platform_subscription_expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at > now
