"""Sequential multi-file upload driven through one orchestrator per file."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from models.pipeline import Failed, PipelineState, Ready, overall_percent
from models.recording import PendingFile
from services.orchestrator import UploadOrchestrator
from services.quota import Denied, QuotaGate

logger = logging.getLogger(__name__)

MAX_FILES = 10
SUPPORTED_TYPES = ("video/mp4", "video/webm", "video/quicktime")


@dataclass
class UploadResult:
    file_name: str
    share_url: str | None = None
    error: str | None = None
    video_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    results: list[UploadResult] = field(default_factory=list)
    denied: Denied | None = None     # quota preflight refused the whole batch

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def summary(self) -> str:
        if self.denied is not None:
            return self.denied.message
        return f"{self.succeeded} of {len(self.results)} succeeded"


@dataclass
class AcceptResult:
    files: list[PendingFile]
    error: str | None = None


def accept_files(existing: Sequence[PendingFile], selected: Sequence[PendingFile]) -> AcceptResult:
    """Merge newly selected files into the pending list, dropping unsupported types and capping the count."""
    valid = [f for f in selected if f.mime in SUPPORTED_TYPES]
    if not valid:
        return AcceptResult(list(existing), "Only MP4, WebM, and MOV files are supported")

    error = None
    if len(valid) < len(selected):
        error = f"{len(selected) - len(valid)} unsupported file(s) skipped"

    if len(existing) + len(valid) > MAX_FILES:
        allowed = valid[: max(0, MAX_FILES - len(existing))]
        if not allowed:
            return AcceptResult(list(existing), f"Maximum {MAX_FILES} files allowed")
        return AcceptResult(
            [*existing, *allowed],
            f"Only {len(allowed)} of {len(valid)} files added (maximum {MAX_FILES})",
        )
    return AcceptResult([*existing, *valid], error)


def format_file_size(size: int) -> str:
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


class BatchUploader:
    """
    Uploads files one at a time; a failed file is recorded and the next one
    still runs. The quota is checked once up front.
    """

    def __init__(
        self,
        quota_gate: QuotaGate,
        orchestrator_factory: Callable[[], UploadOrchestrator],
        *,
        on_progress: Callable[[int, int, int], None] | None = None,
    ) -> None:
        self._quota_gate = quota_gate
        self._orchestrator_factory = orchestrator_factory
        self.on_progress = on_progress

    async def upload_all(self, files: Sequence[PendingFile]) -> BatchReport:
        report = BatchReport()
        if not files:
            return report

        decision = await self._quota_gate.check(len(files))
        if isinstance(decision, Denied):
            logger.info("[batch] Quota denied %d file(s): %s", len(files), decision.reason)
            report.denied = decision
            return report

        for index, entry in enumerate(files):
            report.results.append(await self._upload_one(index, len(files), entry))

        logger.info("[batch] %s", report.summary)
        return report

    async def _upload_one(self, index: int, count: int, entry: PendingFile) -> UploadResult:
        orchestrator = self._orchestrator_factory()

        def on_state_change(state: PipelineState) -> None:
            if self.on_progress is not None:
                self.on_progress(index, count, overall_percent(state))

        orchestrator.on_state_change = on_state_change
        try:
            state = await orchestrator.start(entry)
        except Exception as exc:  # noqa: BLE001
            # The orchestrator has already compensated and moved to Failed.
            logger.error("[batch] Unexpected error uploading %s: %s", entry.display_name, exc, exc_info=True)
            state = orchestrator.state
        if isinstance(state, Ready):
            return UploadResult(entry.display_name, share_url=state.share.share_url, video_id=state.video_id)
        assert isinstance(state, Failed)
        return UploadResult(entry.display_name, error=state.message)
