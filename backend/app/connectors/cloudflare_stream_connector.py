"""
Cloudflare Stream API Connector
Handles uploads, signed-URL settings and playback tokens for stream assets

Author: Academia
"""
import json
import logging
from typing import Any, BinaryIO, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamError


logger = logging.getLogger(__name__)


class CloudflareStreamConnector:
    """
    Connector for the Cloudflare Stream REST API

    Handles:
    - Direct upload of a video file (multipart, with name metadata)
    - Enabling requireSignedURLs on an asset
    - Creating signed playback tokens

    All calls use the account API token as bearer credential. Failures raise
    UpstreamError carrying the upstream status code and body. No retries.
    """

    def __init__(
        self,
        account_id: str = None,
        api_token: str = None,
        base_url: str = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.account_id = account_id or settings.CLOUDFLARE_ACCOUNT_ID
        self.api_token = api_token or settings.CLOUDFLARE_API_TOKEN
        self.base_url = (base_url or settings.CLOUDFLARE_API_BASE).rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.account_id or not self.api_token:
            raise ConfigurationError("Cloudflare credentials not configured")

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/accounts/{self.account_id}/stream"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def upload_video(
        self,
        file: BinaryIO,
        filename: str,
        title: str,
        content_type: str = "application/octet-stream"
    ) -> Dict[str, Any]:
        """
        Upload a video file to Stream

        Args:
            file: Readable binary file object (streamed, not buffered here)
            filename: Original file name
            title: Stored as the asset's ``name`` metadata
            content_type: MIME type of the file

        Returns:
            The ``result`` object of the Stream response (uid, status, duration, thumbnail, ...)
        """
        logger.info(f"Uploading '{title}' to Cloudflare Stream")

        async with self._client() as client:
            response = await client.post(
                self.stream_url,
                headers=self._headers(),
                files={"file": (filename, file, content_type)},
                data={"meta": json.dumps({"name": title})},
            )

        if response.is_error:
            logger.error(f"Cloudflare upload failed: {response.status_code} - {response.text}")
            raise UpstreamError(
                "Failed to upload to Cloudflare",
                status_code=response.status_code,
                details=response.text
            )

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or not body.get("success") or not body.get("result"):
            logger.error(f"Unexpected Cloudflare upload response: {response.text}")
            raise UpstreamError("Invalid response from Cloudflare", status_code=500, details=body)

        return body["result"]

    async def require_signed_urls(self, video_uid: str) -> None:
        """Turn on signed playback for an asset"""
        logger.info(f"Enabling signed URLs for video {video_uid}")

        async with self._client() as client:
            response = await client.post(
                f"{self.stream_url}/{video_uid}",
                headers=self._headers(),
                json={"requireSignedURLs": True},
            )

        if response.is_error:
            logger.error(f"Failed to enable signed URLs for {video_uid}: {response.text}")
            raise UpstreamError(
                "Failed to enable signed URLs",
                status_code=502,
                details=response.text
            )

    async def create_signed_token(self, video_uid: str, expires_at: int) -> str:
        """
        Create a signed playback token

        Args:
            video_uid: Stream asset uid
            expires_at: Unix timestamp when the token stops working

        Returns:
            The token string to use in place of the uid in playback URLs
        """
        async with self._client() as client:
            response = await client.post(
                f"{self.stream_url}/{video_uid}/token",
                headers={**self._headers(), "Content-Type": "application/json"},
                json={"exp": expires_at},
            )

        if response.is_error:
            logger.error(f"Cloudflare token request failed: {response.status_code} - {response.text}")
            raise UpstreamError(
                f"Cloudflare API error: {response.text}",
                status_code=500
            )

        return response.json()["result"]["token"]
