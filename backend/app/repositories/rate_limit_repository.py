"""
Rate Limit Repository - persistence for fixed-window counters

Table ``rate_limits``: id, key, count, window_start, expires_at.

Author: Academia
"""
from datetime import datetime
from typing import Optional, Dict, Any

from supabase import Client

from app.core.database import first_row


class RateLimitRepository:

    def __init__(self, sb: Client):
        self.sb = sb

    def find_window(self, key: str, window_start_after: datetime) -> Optional[Dict[str, Any]]:
        """Counter row for key whose window started at or after the given instant"""
        response = (
            self.sb.table("rate_limits")
            .select("*")
            .eq("key", key)
            .gte("window_start", window_start_after.isoformat())
            .order("window_start", desc=True)
            .limit(1)
            .execute()
        )
        return first_row(response)

    def open_window(self, key: str, window_start: datetime, expires_at: datetime) -> None:
        self.sb.table("rate_limits").insert({
            "key": key,
            "count": 1,
            "window_start": window_start.isoformat(),
            "expires_at": expires_at.isoformat(),
        }).execute()

    def set_count(self, row_id: Any, count: int) -> None:
        self.sb.table("rate_limits").update({"count": count}).eq("id", row_id).execute()
