"""
Video Access Service
Decides who may watch a video and issues signed playback tokens

Author: Academia
"""
import logging
import time
from typing import Callable, Optional

from app.connectors.cloudflare_stream_connector import CloudflareStreamConnector
from app.core.exceptions import NotFoundError, PermissionDenied, ServiceError
from app.domain.video import (
    Video,
    VideoToken,
    VISIBILITY_PAID,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    VISIBILITY_SUBSCRIBERS,
)
from app.repositories.profile_repository import ProfileRepository
from app.repositories.video_repository import VideoRepository


logger = logging.getLogger(__name__)


class VideoAccessService:
    """
    Access rules, in order:
    - the owning professor and admins always have access
    - public videos: any authenticated user
    - paid videos: program purchase or professor subscription when the video
      belongs to a program, otherwise a video purchase
    - subscribers_only: active subscription to the owning professor
    - private: nobody else
    """

    def __init__(
        self,
        videos: VideoRepository,
        profiles: ProfileRepository,
        connector_factory: Callable[[], CloudflareStreamConnector],
        token_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time
    ):
        self.videos = videos
        self.profiles = profiles
        self.connector_factory = connector_factory
        self.token_ttl_seconds = token_ttl_seconds
        self._clock = clock

    def get_streamable_video(self, video_id: Optional[str]) -> Video:
        if not video_id:
            raise ServiceError("Missing videoId")

        video = self.videos.find_by_id(video_id)
        if not video:
            raise NotFoundError("Video not found")

        if not video.cloudflare_video_id:
            logger.error(f"Video missing cloudflare_video_id: {video_id}")
            raise ServiceError(
                "This video is not configured for Cloudflare streaming",
                details={"videoId": video_id}
            )

        return video

    def check_access(self, user_id: str, video: Video) -> None:
        """Raise PermissionDenied unless user_id may watch video"""
        is_owner = video.professor_id is not None and video.professor_id == user_id
        is_admin = self.profiles.get_role(user_id) == "admin"

        if is_owner or is_admin:
            return

        if video.visibility == VISIBILITY_PUBLIC:
            return

        if video.visibility == VISIBILITY_PAID:
            if video.program_id:
                has_access = self.videos.has_program_purchase(user_id, video.program_id)
                if not has_access and video.professor_id:
                    has_access = self.videos.has_professor_subscription(user_id, video.professor_id)
            else:
                has_access = self.videos.has_video_purchase(user_id, video.id)

            if not has_access:
                raise PermissionDenied("Access denied. Purchase or subscription required.")
            return

        if video.visibility == VISIBILITY_SUBSCRIBERS:
            if not video.professor_id:
                raise PermissionDenied("Access denied. Invalid video configuration.")
            if not self.videos.has_professor_subscription(user_id, video.professor_id):
                raise PermissionDenied("Access denied. Active subscription required.")
            return

        if video.visibility == VISIBILITY_PRIVATE:
            raise PermissionDenied("Access denied. This video is private.")

        logger.warning(f"Video {video.id} has unknown visibility '{video.visibility}', allowing access")

    async def issue_token(self, user_id: str, video_id: Optional[str]) -> VideoToken:
        video = self.get_streamable_video(video_id)
        self.check_access(user_id, video)

        connector = self.connector_factory()
        expires_at = int(self._clock()) + self.token_ttl_seconds
        token = await connector.create_signed_token(video.cloudflare_video_id, expires_at)

        logger.info(f"Issued playback token for video {video.id} to user {user_id}")

        return VideoToken(
            token=token,
            video_id=video.cloudflare_video_id,
            expires_at=expires_at,
            expires_in=self.token_ttl_seconds
        )
