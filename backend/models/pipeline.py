from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar


class PipelinePhase(StrEnum):
    IDLE = "idle"
    CREATING = "creating"
    UPLOADING_PRIMARY = "uploading_primary"
    UPLOADING_SECONDARY = "uploading_secondary"
    FINALIZING = "finalizing"
    READY = "ready"
    FAILED = "failed"


class FailureReason(StrEnum):
    QUOTA_REACHED = "quota_reached"
    INSUFFICIENT_QUOTA = "insufficient_quota"
    CREATE_FAILED = "create_failed"
    UPLOAD_FAILED = "upload_failed"
    WEBCAM_UPLOAD_FAILED = "webcam_upload_failed"
    FINALIZE_FAILED = "finalize_failed"


DEFAULT_FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.QUOTA_REACHED: "Monthly video limit reached",
    FailureReason.INSUFFICIENT_QUOTA: "Not enough videos left this month",
    FailureReason.CREATE_FAILED: "Failed to create video",
    FailureReason.UPLOAD_FAILED: "Upload failed",
    FailureReason.WEBCAM_UPLOAD_FAILED: "Webcam upload failed",
    FailureReason.FINALIZE_FAILED: "Failed to finalize video",
}


@dataclass(frozen=True)
class ProgressEvent:
    loaded: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return min(100, self.loaded * 100 // self.total)


@dataclass(frozen=True)
class ShareDescriptor:
    share_url: str


def build_share_url(origin: str, share_token: str) -> str:
    return f"{origin.rstrip('/')}/watch/{share_token}"


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[PipelinePhase] = PipelinePhase.IDLE
    is_terminal: ClassVar[bool] = False
    message: ClassVar[str] = ""


@dataclass(frozen=True)
class Creating:
    phase: ClassVar[PipelinePhase] = PipelinePhase.CREATING
    is_terminal: ClassVar[bool] = False
    message: ClassVar[str] = "Creating video..."


@dataclass(frozen=True)
class UploadingPrimary:
    video_id: str
    progress: ProgressEvent | None = None

    phase: ClassVar[PipelinePhase] = PipelinePhase.UPLOADING_PRIMARY
    is_terminal: ClassVar[bool] = False
    message: ClassVar[str] = "Uploading recording..."


@dataclass(frozen=True)
class UploadingSecondary:
    video_id: str
    progress: ProgressEvent | None = None

    phase: ClassVar[PipelinePhase] = PipelinePhase.UPLOADING_SECONDARY
    is_terminal: ClassVar[bool] = False
    message: ClassVar[str] = "Uploading webcam..."


@dataclass(frozen=True)
class Finalizing:
    video_id: str

    phase: ClassVar[PipelinePhase] = PipelinePhase.FINALIZING
    is_terminal: ClassVar[bool] = False
    message: ClassVar[str] = "Finalizing..."


@dataclass(frozen=True)
class Ready:
    video_id: str
    share: ShareDescriptor

    phase: ClassVar[PipelinePhase] = PipelinePhase.READY
    is_terminal: ClassVar[bool] = True
    message: ClassVar[str] = "Your video is ready!"


@dataclass(frozen=True)
class Failed:
    reason: FailureReason
    message: str
    created_video_id: str | None = None  # set only when create succeeded

    phase: ClassVar[PipelinePhase] = PipelinePhase.FAILED
    is_terminal: ClassVar[bool] = True


PipelineState = Idle | Creating | UploadingPrimary | UploadingSecondary | Finalizing | Ready | Failed


# Per-file progress milestones shown by the upload view.
PROGRESS_CREATING = 10
PROGRESS_TRANSFER_START = 20
PROGRESS_TRANSFER_END = 80
PROGRESS_DONE = 100


def overall_percent(state: PipelineState, *, has_secondary: bool = False) -> int:
    """Collapse a pipeline state into one 0-100 figure for a single progress bar.

    With a webcam stream the transfer band is split in half: screen first, webcam second.
    """
    if isinstance(state, Idle):
        return 0
    if isinstance(state, Creating):
        return PROGRESS_CREATING
    if isinstance(state, (UploadingPrimary, UploadingSecondary)):
        percent = state.progress.percent if state.progress is not None else 0
        span = PROGRESS_TRANSFER_END - PROGRESS_TRANSFER_START
        if isinstance(state, UploadingSecondary):
            half = span // 2
            return PROGRESS_TRANSFER_START + half + half * percent // 100
        if has_secondary:
            span //= 2
        return PROGRESS_TRANSFER_START + span * percent // 100
    if isinstance(state, Finalizing):
        return PROGRESS_TRANSFER_END
    if isinstance(state, Ready):
        return PROGRESS_DONE
    return 0
