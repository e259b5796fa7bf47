"""
Rate limit decision

Author: Academia
"""
import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


class RateLimitDecision(BaseModel):
    """Result of one fixed-window check"""

    allowed: bool
    remaining: int
    reset_at: datetime

    def retry_after(self, now: Optional[datetime] = None) -> int:
        """Seconds until the window resets (at least 1)"""
        now = now or datetime.now(timezone.utc)
        reset_at = self.reset_at
        if reset_at.tzinfo is None:
            reset_at = reset_at.replace(tzinfo=timezone.utc)
        return max(1, math.ceil((reset_at - now).total_seconds()))
