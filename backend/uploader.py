"""Command-line host for the upload pipeline.

    python uploader.py clip1.mp4 clip2.mov            # batch file upload
    python uploader.py --recording screen.webm --webcam cam.webm --duration 42
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import os
import sys
from collections.abc import Callable
from pathlib import Path

import httpx
from dotenv import load_dotenv

from models.pipeline import Failed, PipelineState, Ready, overall_percent
from models.recording import CompletedRecording, PendingFile
from services.api_client import ApiClient
from services.batch import BatchUploader, accept_files, format_file_size
from services.orchestrator import UploadOrchestrator
from services.quota import QuotaGate
from services.settings import get_access_token, get_api_base_url, get_share_origin, get_upload_chunk_size

# Load .env from backend dir (where uploader.py runs)
load_dotenv(os.path.join(os.path.dirname(__file__), ".env"))
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Upload recordings and video files as shareable videos.")
    parser.add_argument("files", nargs="*", type=Path, help="Video files to upload one after another")
    parser.add_argument("--recording", type=Path, help="Finished screen recording to upload")
    parser.add_argument("--webcam", type=Path, help="Webcam stream recorded alongside --recording")
    parser.add_argument("--duration", type=float, default=0.0, help="Recording duration in seconds")
    parser.add_argument("--title", help="Title for --recording (default: timestamped)")
    return parser


def build_storage_client() -> httpx.AsyncClient:
    """Client for pre-signed PUTs; large transfers run as long as the connection lives."""
    return httpx.AsyncClient(timeout=None)


def state_logger(orchestrator: UploadOrchestrator) -> Callable[[PipelineState], None]:
    def log_state(state: PipelineState) -> None:
        if state.message and not state.is_terminal:
            percent = overall_percent(state, has_secondary=orchestrator.has_secondary)
            logger.info("[uploader] %s %d%%", state.message, percent)

    return log_state


async def upload_recording(args: argparse.Namespace, api: ApiClient, storage: httpx.AsyncClient) -> int:
    recording = CompletedRecording(
        primary_blob=args.recording.read_bytes(),
        primary_mime=mimetypes.guess_type(args.recording.name)[0] or "",
        duration_seconds=args.duration,
        secondary_blob=args.webcam.read_bytes() if args.webcam else None,
        title=args.title,
    )
    orchestrator = UploadOrchestrator.from_clients(
        api,
        storage,
        share_origin=get_share_origin(),
        chunk_size=get_upload_chunk_size(),
    )
    orchestrator.on_state_change = state_logger(orchestrator)
    state = await orchestrator.start(recording)
    if isinstance(state, Ready):
        print(state.share.share_url)
        return 0
    assert isinstance(state, Failed)
    print(f"Upload failed: {state.message}", file=sys.stderr)
    return 1


async def upload_files(args: argparse.Namespace, api: ApiClient, storage: httpx.AsyncClient) -> int:
    accepted = accept_files([], [PendingFile.from_path(p) for p in args.files])
    if accepted.error:
        print(accepted.error, file=sys.stderr)
    if not accepted.files:
        return 1
    for entry in accepted.files:
        logger.info("[uploader] Queued %s (%s)", entry.display_name, format_file_size(entry.size_bytes))

    def on_progress(index: int, count: int, percent: int) -> None:
        logger.info("[uploader] File %d of %d: %d%%", index + 1, count, percent)

    uploader = BatchUploader(
        QuotaGate(api),
        lambda: UploadOrchestrator.from_clients(
            api, storage, share_origin=get_share_origin(), chunk_size=get_upload_chunk_size()
        ),
        on_progress=on_progress,
    )
    report = await uploader.upload_all(accepted.files)
    for result in report.results:
        if result.ok:
            print(f"{result.file_name}: {result.share_url}")
        else:
            print(f"{result.file_name}: {result.error}", file=sys.stderr)
    print(report.summary)
    return 0 if report.denied is None and report.succeeded == len(report.results) else 1


async def run(args: argparse.Namespace) -> int:
    async with (
        httpx.AsyncClient(base_url=get_api_base_url()) as api_http,
        build_storage_client() as storage,
    ):
        api = ApiClient(api_http, access_token=get_access_token())
        if args.recording:
            return await upload_recording(args, api, storage)
        return await upload_files(args, api, storage)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.recording and not args.files:
        parser.error("give video files or --recording")
    if args.webcam and not args.recording:
        parser.error("--webcam requires --recording")
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
