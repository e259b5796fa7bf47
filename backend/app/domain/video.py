"""
Video Domain Models

Author: Academia
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


VISIBILITY_PUBLIC = "public"
VISIBILITY_PAID = "paid"
VISIBILITY_SUBSCRIBERS = "subscribers_only"
VISIBILITY_PRIVATE = "private"


class Video(BaseModel):
    """Catalog video as stored in ``videos``"""

    id: str
    cloudflare_video_id: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    professor_id: Optional[str] = None
    program_id: Optional[str] = None
    visibility: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class VideoUploadResult(BaseModel):
    """Stream asset created by the upload broker"""

    video_id: str = Field(..., alias="videoId")
    status: str = "pending"
    duration: Optional[float] = None
    thumbnail: Optional[str] = None
    require_signed_urls: bool = Field(True, alias="requireSignedURLs")

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        data = self.model_dump(by_alias=True)
        data["success"] = True
        return data


class VideoToken(BaseModel):
    """Signed playback token for a stream asset"""

    token: str
    video_id: str = Field(..., alias="videoId")
    expires_at: int = Field(..., alias="expiresAt")
    expires_in: int = Field(..., alias="expiresIn")

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
