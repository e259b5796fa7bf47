"""
Video Upload Service
Brokers a professor's upload to Cloudflare Stream

Author: Academia
"""
import logging
from typing import BinaryIO, Optional

from app.connectors.cloudflare_stream_connector import CloudflareStreamConnector
from app.core.exceptions import ServiceError
from app.domain.video import VideoUploadResult


logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Video"


class VideoUploadService:
    """
    Upload broker

    Forwards the file to Stream, then turns on signed playback for the new
    asset. Any failure aborts the request; there is no retry and no
    resumable upload.
    """

    def __init__(self, connector: CloudflareStreamConnector):
        self.connector = connector

    async def upload(
        self,
        file: Optional[BinaryIO],
        filename: Optional[str],
        title: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> VideoUploadResult:
        if file is None:
            raise ServiceError("No file provided")

        title = title or DEFAULT_TITLE

        result = await self.connector.upload_video(
            file=file,
            filename=filename or "video",
            title=title,
            content_type=content_type or "application/octet-stream"
        )

        video_uid = result.get("uid")
        if not video_uid:
            raise ServiceError("Invalid response from Cloudflare", status_code=500, details=result)

        await self.connector.require_signed_urls(video_uid)

        status = (result.get("status") or {}).get("state") or "pending"
        logger.info(f"Video {video_uid} uploaded ('{title}'), status {status}")

        return VideoUploadResult(
            video_id=video_uid,
            status=status,
            duration=result.get("duration"),
            thumbnail=result.get("thumbnail"),
            require_signed_urls=True
        )
