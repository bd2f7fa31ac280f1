"""Wire shapes for the metadata API (camelCase JSON on the wire)."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class VideoStatus(StrEnum):
    CREATING = "creating"
    UPLOADING = "uploading"
    READY = "ready"
    FAILED = "failed"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CreateRecordingRequest(_WireModel):
    title: str
    duration: int
    file_size: int = Field(alias="fileSize")
    content_type: str = Field(alias="contentType")
    webcam_file_size: int | None = Field(default=None, alias="webcamFileSize")


class CreateUploadRequest(_WireModel):
    title: str
    file_size: int = Field(alias="fileSize")
    content_type: str = Field(alias="contentType")


class UpdateVideoRequest(_WireModel):
    status: VideoStatus | None = None
    title: str | None = None


class UploadTicket(_WireModel):
    video_id: str = Field(alias="id")
    upload_url: str = Field(alias="uploadUrl")
    share_token: str = Field(alias="shareToken")
    webcam_upload_url: str | None = Field(default=None, alias="webcamUploadUrl")


NEAR_LIMIT_PERCENT = 80


class Quota(_WireModel):
    """Point-in-time usage snapshot. A max of 0 means unlimited."""

    max_videos_per_month: int = Field(default=0, alias="maxVideosPerMonth")
    videos_used_this_month: int = Field(default=0, alias="videosUsedThisMonth")
    max_duration_seconds: int = Field(default=0, alias="maxVideoDurationSeconds")

    @property
    def is_unlimited(self) -> bool:
        return self.max_videos_per_month == 0

    @property
    def remaining(self) -> int | None:
        if self.is_unlimited:
            return None
        return self.max_videos_per_month - self.videos_used_this_month

    @property
    def usage_percent(self) -> int:
        if self.is_unlimited:
            return 0
        used = min(self.videos_used_this_month, self.max_videos_per_month)
        return round(used * 100 / self.max_videos_per_month)

    @property
    def near_limit(self) -> bool:
        return not self.is_unlimited and self.usage_percent >= NEAR_LIMIT_PERCENT

    @property
    def usage_label(self) -> str | None:
        if self.is_unlimited:
            return None
        return f"{self.videos_used_this_month} / {self.max_videos_per_month} videos this month"
