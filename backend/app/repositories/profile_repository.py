"""
Profile Repository - Data Access Layer for user profiles

Author: Academia
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from supabase import Client

from app.core.database import first_row
from app.domain.profile import Profile


PROFILE_COLUMNS = (
    "id, email, full_name, role, platform_subscription_status, "
    "platform_subscription_expires_at, stripe_subscription_id"
)


class ProfileRepository:
    """Reads and updates rows of ``profiles``"""

    def __init__(self, sb: Client):
        self.sb = sb

    def find_by_id(self, user_id: str) -> Optional[Profile]:
        response = (
            self.sb.table("profiles")
            .select(PROFILE_COLUMNS)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        row = first_row(response)
        return Profile(**row) if row else None

    def get_role(self, user_id: str) -> Optional[str]:
        response = (
            self.sb.table("profiles")
            .select("role")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        row = first_row(response)
        return row.get("role") if row else None

    def get_fields(self, user_id: str, columns: str) -> Optional[Dict[str, Any]]:
        """Fetch arbitrary profile columns (subscription/refund bookkeeping)"""
        response = (
            self.sb.table("profiles")
            .select(columns)
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        return first_row(response)

    def update(self, user_id: str, fields: Dict[str, Any], touch: bool = True) -> None:
        """Update a profile; sets updated_at unless touch is False"""
        data = dict(fields)
        if touch:
            data["updated_at"] = datetime.now(timezone.utc).isoformat()
        self.sb.table("profiles").update(data).eq("id", user_id).execute()
