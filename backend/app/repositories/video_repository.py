"""
Video Repository - videos and the purchases/subscriptions that unlock them

Author: Academia
"""
from typing import Optional

from supabase import Client

from app.core.database import first_row
from app.domain.video import Video


class VideoRepository:

    def __init__(self, sb: Client):
        self.sb = sb

    def find_by_id(self, video_id: str) -> Optional[Video]:
        response = (
            self.sb.table("videos")
            .select("id, cloudflare_video_id, category, price, professor_id, program_id, visibility")
            .eq("id", video_id)
            .limit(1)
            .execute()
        )
        row = first_row(response)
        return Video(**row) if row else None

    def _has_active(self, table: str, **filters) -> bool:
        query = self.sb.table(table).select("id")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = query.eq("status", "active").limit(1).execute()
        return first_row(response) is not None

    def has_program_purchase(self, user_id: str, program_id: str) -> bool:
        return self._has_active("program_purchases", user_id=user_id, program_id=program_id)

    def has_video_purchase(self, user_id: str, video_id: str) -> bool:
        return self._has_active("video_purchases", user_id=user_id, video_id=video_id)

    def has_professor_subscription(self, user_id: str, professor_id: str) -> bool:
        return self._has_active("professor_subscriptions", user_id=user_id, professor_id=professor_id)

    def create_video_purchase(self, user_id: str, video_id: str, amount_paid: float) -> Optional[dict]:
        response = self.sb.table("video_purchases").insert({
            "user_id": user_id,
            "video_id": video_id,
            "amount_paid": amount_paid,
            "status": "active",
        }).execute()
        return first_row(response)
