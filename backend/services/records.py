"""Request wrappers for creating, finalizing and deleting video records."""

from __future__ import annotations

import logging

from models.api import (
    CreateRecordingRequest,
    CreateUploadRequest,
    UpdateVideoRequest,
    UploadTicket,
    VideoStatus,
)
from services.api_client import ApiClient

logger = logging.getLogger(__name__)

VIDEOS_PATH = "/api/videos"
UPLOAD_PATH = "/api/videos/upload"


def video_path(video_id: str) -> str:
    return f"{VIDEOS_PATH}/{video_id}"


def _parse_ticket(body: object) -> UploadTicket | None:
    # A null/empty body means nothing was created.
    if not body:
        return None
    return UploadTicket.model_validate(body)


class RecordCreateClient:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def create_recording(self, request: CreateRecordingRequest) -> UploadTicket | None:
        """POST /api/videos for a captured recording (optionally with a webcam stream)."""
        body = await self._api.post(VIDEOS_PATH, request.to_wire())
        ticket = _parse_ticket(body)
        if ticket:
            logger.info("[records] Created recording video_id=%s webcam=%s", ticket.video_id, bool(ticket.webcam_upload_url))
        return ticket

    async def create_upload(self, request: CreateUploadRequest) -> UploadTicket | None:
        """POST /api/videos/upload for a user-selected file."""
        body = await self._api.post(UPLOAD_PATH, request.to_wire())
        ticket = _parse_ticket(body)
        if ticket:
            logger.info("[records] Created upload video_id=%s content_type=%s", ticket.video_id, request.content_type)
        return ticket


class RecordFinalizeClient:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def finalize(self, video_id: str) -> None:
        """Flip the record to ready once its bytes are in storage."""
        await self._api.patch(video_path(video_id), UpdateVideoRequest(status=VideoStatus.READY).to_wire())
        logger.info("[records] Finalized video_id=%s", video_id)

    async def rename(self, video_id: str, title: str) -> None:
        await self._api.patch(video_path(video_id), UpdateVideoRequest(title=title).to_wire())


class RecordDeleteClient:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def delete(self, video_id: str) -> None:
        await self._api.delete(video_path(video_id))
