"""
Videos API Endpoints
Upload broker and signed playback tokens for Cloudflare Stream

Author: Academia
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from supabase import Client

from app.connectors.cloudflare_stream_connector import CloudflareStreamConnector
from app.core.auth import AuthenticatedUser, get_current_user, require_uploader
from app.core.config import settings
from app.core.database import get_supabase
from app.core.exceptions import ConfigurationError, ServiceError
from app.repositories.profile_repository import ProfileRepository
from app.repositories.video_repository import VideoRepository
from app.services.video_access_service import VideoAccessService
from app.services.video_upload_service import VideoUploadService


logger = logging.getLogger(__name__)

router = APIRouter()


def stream_connector_factory(message: str):
    """Build connectors, reporting missing credentials with the given message"""
    def build() -> CloudflareStreamConnector:
        try:
            return CloudflareStreamConnector()
        except ConfigurationError:
            logger.error("Missing Cloudflare credentials")
            raise ConfigurationError(message)
    return build


def get_upload_service() -> VideoUploadService:
    return VideoUploadService(stream_connector_factory("Server configuration error")())


def get_access_service(sb: Client = Depends(get_supabase)) -> VideoAccessService:
    return VideoAccessService(
        videos=VideoRepository(sb),
        profiles=ProfileRepository(sb),
        connector_factory=stream_connector_factory("Streaming service not configured"),
        token_ttl_seconds=settings.VIDEO_TOKEN_TTL_SECONDS
    )


@router.post("/upload")
async def upload_video(
    user: AuthenticatedUser = Depends(require_uploader),
    service: VideoUploadService = Depends(get_upload_service),
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None)
):
    """
    Upload a video to Cloudflare Stream (professors and admins only)

    Form fields:
        file: the video file
        title: asset name (defaults to "Untitled Video")

    Returns:
        success, videoId, status, duration, thumbnail, requireSignedURLs
    """
    try:
        result = await service.upload(
            file=file.file if file is not None else None,
            filename=file.filename if file is not None else None,
            title=title,
            content_type=file.content_type if file is not None else None
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Upload error for user {user.id}: {e}")
        raise ServiceError("Internal server error", status_code=500, details=str(e))

    return result.to_dict()


@router.post("/token")
async def get_video_token(
    payload: Optional[dict] = Body(None),
    user: AuthenticatedUser = Depends(get_current_user),
    service: VideoAccessService = Depends(get_access_service)
):
    """
    Issue a signed playback token if the caller may watch the video

    Body:
        videoId: platform video id

    Returns:
        token, videoId (stream uid), expiresAt, expiresIn
    """
    video_id = (payload or {}).get("videoId")

    try:
        token = await service.issue_token(user.id, video_id)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Video token error for user {user.id}: {e}")
        raise ServiceError("Internal server error", status_code=500, details=str(e))

    return token.to_dict()
