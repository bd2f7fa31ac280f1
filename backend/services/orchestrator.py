"""State machine driving one recording (or one selected file) from blob to shareable video."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

import httpx
from pydantic import ValidationError

from models.api import CreateRecordingRequest, CreateUploadRequest, UploadTicket
from models.pipeline import (
    DEFAULT_FAILURE_MESSAGES,
    Creating,
    Failed,
    FailureReason,
    Finalizing,
    Idle,
    PipelineState,
    ProgressEvent,
    Ready,
    ShareDescriptor,
    UploadingPrimary,
    UploadingSecondary,
    build_share_url,
)
from models.recording import CompletedRecording, PendingFile
from services.api_client import ApiClient, ApiError
from services.compensation import CompensationManager
from services.records import RecordCreateClient, RecordDeleteClient, RecordFinalizeClient
from services.settings import DEFAULT_UPLOAD_CHUNK_SIZE
from services.transport import PresignedTransport, TransferFailed

logger = logging.getLogger(__name__)

UPLOAD_CONTENT_TYPES = ("video/webm", "video/quicktime")
DEFAULT_UPLOAD_CONTENT_TYPE = "video/mp4"

# Reason reported when an unexpected exception escapes a stage.
_STAGE_FAILURES: dict[type, FailureReason] = {
    Creating: FailureReason.CREATE_FAILED,
    UploadingPrimary: FailureReason.UPLOAD_FAILED,
    UploadingSecondary: FailureReason.WEBCAM_UPLOAD_FAILED,
    Finalizing: FailureReason.FINALIZE_FAILED,
}


class InvalidTransition(RuntimeError):
    """Raised when the pipeline is driven out of order (e.g. start() while busy)."""


class PipelineError(Exception):
    def __init__(self, reason: FailureReason, message: str | None = None, video_id: str | None = None) -> None:
        self.reason = reason
        self.message = message or DEFAULT_FAILURE_MESSAGES[reason]
        self.video_id = video_id
        super().__init__(f"[{reason}] {self.message}")


def recording_title(now: datetime) -> str:
    return f"Recording {now:%x} {now:%X}"


def upload_content_type(mime: str) -> str:
    """Content type the upload endpoint is told about; anything unrecognised is sent as MP4."""
    return mime if mime in UPLOAD_CONTENT_TYPES else DEFAULT_UPLOAD_CONTENT_TYPE


class UploadOrchestrator:
    """
    Runs create -> primary PUT -> optional webcam PUT -> finalize for one input.

    Owns its state exclusively. Ready and Failed are terminal until reset().
    When a run fails after create, the record is handed to the
    CompensationManager exactly once before Failed is published.
    """

    def __init__(
        self,
        creator: RecordCreateClient,
        finalizer: RecordFinalizeClient,
        transport: PresignedTransport,
        compensation: CompensationManager,
        *,
        share_origin: str,
        on_state_change: Callable[[PipelineState], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._creator = creator
        self._finalizer = finalizer
        self._transport = transport
        self._compensation = compensation
        self._share_origin = share_origin
        self._clock = clock
        self.on_state_change = on_state_change
        self._state: PipelineState = Idle()
        self._has_secondary = False

    @classmethod
    def from_clients(
        cls,
        api: ApiClient,
        storage_http: httpx.AsyncClient,
        *,
        share_origin: str,
        chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE,
        on_state_change: Callable[[PipelineState], None] | None = None,
    ) -> UploadOrchestrator:
        return cls(
            RecordCreateClient(api),
            RecordFinalizeClient(api),
            PresignedTransport(storage_http, chunk_size=chunk_size),
            CompensationManager(RecordDeleteClient(api)),
            share_origin=share_origin,
            on_state_change=on_state_change,
        )

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def has_secondary(self) -> bool:
        return self._has_secondary

    def _set_state(self, state: PipelineState) -> None:
        self._state = state
        logger.debug("[orchestrator] -> %s", state.phase)
        if self.on_state_change is not None:
            self.on_state_change(state)

    def reset(self) -> None:
        """Discard everything from the previous run and return to Idle."""
        if not isinstance(self._state, Idle) and not self._state.is_terminal:
            raise InvalidTransition(f"cannot reset while {self._state.phase}")
        self._has_secondary = False
        self._compensation.reset()
        self._set_state(Idle())

    async def start(self, item: CompletedRecording | PendingFile) -> PipelineState:
        """Run the pipeline to a terminal state and return it."""
        if not isinstance(self._state, Idle):
            raise InvalidTransition(f"start() requires idle pipeline, currently {self._state.phase}")

        video_id: str | None = None
        try:
            self._set_state(Creating())
            ticket = await self._create(item)
            video_id = ticket.video_id

            if isinstance(item, CompletedRecording):
                await self._run_recording_transfers(item, ticket)
            else:
                await self._transfer(
                    UploadingPrimary, ticket.upload_url, item.blob, upload_content_type(item.mime),
                    FailureReason.UPLOAD_FAILED, video_id,
                )

            self._set_state(Finalizing(video_id))
            await self._finalize(video_id)
        except PipelineError as exc:
            if exc.video_id is not None:
                await self._compensation.compensate(exc.video_id)
            logger.warning("[orchestrator] Pipeline failed: %s (video_id=%s)", exc, exc.video_id)
            self._set_state(Failed(exc.reason, exc.message, exc.video_id))
            return self._state
        except asyncio.CancelledError:
            reason = _STAGE_FAILURES.get(type(self._state), FailureReason.CREATE_FAILED)
            logger.warning("[orchestrator] Pipeline cancelled during %s (video_id=%s)", self._state.phase, video_id)
            try:
                if video_id is not None:
                    await asyncio.shield(self._compensation.compensate(video_id))
            finally:
                self._set_state(Failed(reason, DEFAULT_FAILURE_MESSAGES[reason], video_id))
            raise
        except Exception:
            reason = _STAGE_FAILURES.get(type(self._state), FailureReason.CREATE_FAILED)
            if video_id is not None:
                await self._compensation.compensate(video_id)
            self._set_state(Failed(reason, DEFAULT_FAILURE_MESSAGES[reason], video_id))
            raise

        share = ShareDescriptor(build_share_url(self._share_origin, ticket.share_token))
        logger.info("[orchestrator] Video ready video_id=%s share_url=%s", video_id, share.share_url)
        self._set_state(Ready(video_id, share))
        return self._state

    async def _create(self, item: CompletedRecording | PendingFile) -> UploadTicket:
        try:
            if isinstance(item, CompletedRecording):
                self._has_secondary = item.has_secondary
                ticket = await self._creator.create_recording(
                    CreateRecordingRequest(
                        title=item.title or recording_title(self._clock()),
                        duration=round(item.duration_seconds),
                        file_size=len(item.primary_blob),
                        content_type=item.content_type,
                        webcam_file_size=len(item.secondary_blob) if item.secondary_blob is not None else None,
                    )
                )
            else:
                ticket = await self._creator.create_upload(
                    CreateUploadRequest(
                        title=item.title.strip() or item.display_name.rsplit(".", 1)[0],
                        file_size=item.size_bytes,
                        content_type=upload_content_type(item.mime),
                    )
                )
        except ApiError as exc:
            raise PipelineError(FailureReason.CREATE_FAILED, exc.message) from exc
        except (httpx.HTTPError, ValidationError) as exc:
            raise PipelineError(FailureReason.CREATE_FAILED) from exc
        if ticket is None:
            raise PipelineError(FailureReason.CREATE_FAILED)
        return ticket

    async def _run_recording_transfers(self, item: CompletedRecording, ticket: UploadTicket) -> None:
        await self._transfer(
            UploadingPrimary, ticket.upload_url, item.primary_blob, item.content_type,
            FailureReason.UPLOAD_FAILED, ticket.video_id,
        )
        if item.secondary_blob is None:
            return
        if not ticket.webcam_upload_url:
            logger.warning("[orchestrator] Webcam blob present but no webcam upload URL; skipping (video_id=%s)", ticket.video_id)
            self._has_secondary = False
            return
        await self._transfer(
            UploadingSecondary, ticket.webcam_upload_url, item.secondary_blob, item.secondary_mime,
            FailureReason.WEBCAM_UPLOAD_FAILED, ticket.video_id,
        )

    async def _transfer(
        self,
        stage: type[UploadingPrimary] | type[UploadingSecondary],
        url: str,
        blob: bytes,
        mime: str,
        reason: FailureReason,
        video_id: str,
    ) -> None:
        self._set_state(stage(video_id))

        def on_progress(event: ProgressEvent) -> None:
            self._set_state(stage(video_id, event))

        outcome = await self._transport.send(url, blob, mime, on_progress)
        if isinstance(outcome, TransferFailed):
            logger.warning(
                "[orchestrator] %s transfer failed status=%s detail=%s",
                stage.phase, outcome.status, outcome.detail,
            )
            raise PipelineError(reason, video_id=video_id)

    async def _finalize(self, video_id: str) -> None:
        try:
            await self._finalizer.finalize(video_id)
        except ApiError as exc:
            raise PipelineError(FailureReason.FINALIZE_FAILED, exc.message, video_id) from exc
        except httpx.HTTPError as exc:
            raise PipelineError(FailureReason.FINALIZE_FAILED, video_id=video_id) from exc
