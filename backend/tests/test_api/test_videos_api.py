"""
API tests for the upload broker and playback token endpoints

Author: Academia
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.api.videos import get_access_service, get_upload_service
from app.connectors.cloudflare_stream_connector import CloudflareStreamConnector
from app.core.exceptions import PermissionDenied, UpstreamError
from app.domain.video import VideoToken, VideoUploadResult
from app.main import app
from app.services.video_access_service import VideoAccessService
from app.services.video_upload_service import VideoUploadService


UPLOAD = "/api/v1/videos/upload"
TOKEN = "/api/v1/videos/token"


@pytest.fixture
def connector():
    mock = MagicMock(spec=CloudflareStreamConnector)
    mock.upload_video = AsyncMock(return_value={"uid": "vid-123", "status": {"state": "queued"}})
    mock.require_signed_urls = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def upload_service(connector):
    service = VideoUploadService(connector)
    app.dependency_overrides[get_upload_service] = lambda: service
    return service


class TestUploadEndpoint:

    def test_professor_can_upload(self, client, mock_supabase, set_query_result, upload_service, connector):
        # Arrange
        set_query_result(mock_supabase, [{"role": "professor"}])

        # Act
        response = client.post(
            UPLOAD,
            files={"file": ("lesson.mp4", b"frames", "video/mp4")},
            data={"title": "Lesson 1"},
        )

        # Assert
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "videoId": "vid-123",
            "status": "queued",
            "duration": None,
            "thumbnail": None,
            "requireSignedURLs": True,
        }
        kwargs = connector.upload_video.call_args.kwargs
        assert kwargs["filename"] == "lesson.mp4"
        assert kwargs["title"] == "Lesson 1"
        assert kwargs["content_type"] == "video/mp4"
        connector.require_signed_urls.assert_awaited_once_with("vid-123")

    def test_student_forbidden(self, client, mock_supabase, set_query_result, upload_service, connector):
        set_query_result(mock_supabase, [{"role": "student"}])

        response = client.post(UPLOAD, files={"file": ("a.mp4", b"x", "video/mp4")})

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden - Only professors and admins can upload videos"}
        connector.upload_video.assert_not_awaited()

    def test_missing_profile_forbidden(self, client, mock_supabase, set_query_result, upload_service):
        set_query_result(mock_supabase, [])

        response = client.post(UPLOAD, files={"file": ("a.mp4", b"x", "video/mp4")})

        assert response.status_code == 403
        assert response.json() == {"error": "User profile not found"}

    def test_missing_file(self, client, mock_supabase, set_query_result, upload_service):
        set_query_result(mock_supabase, [{"role": "admin"}])

        response = client.post(UPLOAD, data={"title": "No file"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_upstream_status_passthrough(self, client, mock_supabase, set_query_result, upload_service, connector):
        set_query_result(mock_supabase, [{"role": "professor"}])
        connector.upload_video.side_effect = UpstreamError(
            "Failed to upload to Cloudflare", status_code=413, details="too large"
        )

        response = client.post(UPLOAD, files={"file": ("a.mp4", b"x", "video/mp4")})

        assert response.status_code == 413
        assert response.json() == {"error": "Failed to upload to Cloudflare", "details": "too large"}

    def test_unexpected_error(self, client, mock_supabase, set_query_result, upload_service, connector):
        set_query_result(mock_supabase, [{"role": "professor"}])
        connector.upload_video.side_effect = OSError("connection reset")

        response = client.post(UPLOAD, files={"file": ("a.mp4", b"x", "video/mp4")})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "connection reset"}

    def test_missing_cloudflare_credentials(self, client, mock_supabase, set_query_result, monkeypatch):
        set_query_result(mock_supabase, [{"role": "professor"}])
        monkeypatch.setattr("app.core.config.settings.CLOUDFLARE_ACCOUNT_ID", "")
        monkeypatch.setattr("app.core.config.settings.CLOUDFLARE_API_TOKEN", "")

        response = client.post(UPLOAD, files={"file": ("a.mp4", b"x", "video/mp4")})

        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error"}


class TestTokenEndpoint:

    @pytest.fixture
    def access_service(self):
        service = MagicMock(spec=VideoAccessService)
        service.issue_token = AsyncMock(return_value=VideoToken(
            token="signed.jwt", video_id="cf-1", expires_at=1_700_003_600, expires_in=3600
        ))
        app.dependency_overrides[get_access_service] = lambda: service
        return service

    def test_issues_token(self, client, access_service):
        response = client.post(TOKEN, json={"videoId": "video-1"})

        assert response.status_code == 200
        assert response.json() == {
            "token": "signed.jwt",
            "videoId": "cf-1",
            "expiresAt": 1_700_003_600,
            "expiresIn": 3600,
        }
        access_service.issue_token.assert_awaited_once_with("user-1", "video-1")

    def test_access_denied(self, client, access_service):
        access_service.issue_token.side_effect = PermissionDenied("Access denied. This video is private.")

        response = client.post(TOKEN, json={"videoId": "video-1"})

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied. This video is private."}

    def test_missing_body_passes_no_id(self, client, access_service):
        client.post(TOKEN)

        access_service.issue_token.assert_awaited_once_with("user-1", None)
