from .api import (
    CreateRecordingRequest,
    CreateUploadRequest,
    Quota,
    UpdateVideoRequest,
    UploadTicket,
    VideoStatus,
)
from .pipeline import (
    Creating,
    Failed,
    FailureReason,
    Finalizing,
    Idle,
    PipelinePhase,
    PipelineState,
    ProgressEvent,
    Ready,
    ShareDescriptor,
    UploadingPrimary,
    UploadingSecondary,
    build_share_url,
    overall_percent,
)
from .recording import CompletedRecording, PendingFile

__all__ = [
    "CompletedRecording",
    "PendingFile",
    "UploadTicket",
    "Quota",
    "VideoStatus",
    "CreateRecordingRequest",
    "CreateUploadRequest",
    "UpdateVideoRequest",
    "PipelinePhase",
    "PipelineState",
    "FailureReason",
    "ProgressEvent",
    "ShareDescriptor",
    "build_share_url",
    "overall_percent",
    "Idle",
    "Creating",
    "UploadingPrimary",
    "UploadingSecondary",
    "Finalizing",
    "Ready",
    "Failed",
]
