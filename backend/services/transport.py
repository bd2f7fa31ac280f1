"""Direct-to-storage PUT against a pre-signed URL, reported as a stream of events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import suppress
from dataclasses import dataclass

import httpx

from models.pipeline import ProgressEvent
from services.settings import DEFAULT_UPLOAD_CHUNK_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferSucceeded:
    status: int


@dataclass(frozen=True)
class TransferFailed:
    status: int | None       # None when no response was received
    detail: str = ""


TransferOutcome = TransferSucceeded | TransferFailed
TransferEvent = ProgressEvent | TransferSucceeded | TransferFailed


@dataclass(frozen=True)
class _Crashed:
    error: BaseException


class PresignedTransport:
    """
    Uploads a blob to a pre-signed storage URL.

    ``upload()`` yields ProgressEvents as chunks are handed to the HTTP
    transport, then exactly one terminal TransferSucceeded/TransferFailed.
    Nothing is retried here; a failed transfer is the caller's to handle.
    """

    def __init__(self, http: httpx.AsyncClient, *, chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._http = http
        self._chunk_size = chunk_size

    async def upload(self, url: str, blob: bytes, mime: str) -> AsyncIterator[TransferEvent]:
        queue: asyncio.Queue[TransferEvent | _Crashed] = asyncio.Queue()
        total = len(blob)

        async def body() -> AsyncIterator[bytes]:
            for offset in range(0, total, self._chunk_size):
                chunk = blob[offset : offset + self._chunk_size]
                yield chunk
                queue.put_nowait(ProgressEvent(loaded=offset + len(chunk), total=total))

        async def send() -> None:
            try:
                response = await self._http.put(
                    url,
                    content=body(),
                    # Storage read-back depends on the exact type the blob was recorded with.
                    headers={"Content-Type": mime, "Content-Length": str(total)},
                )
            except httpx.HTTPError as exc:
                logger.warning("[transport] PUT failed before a response: %s", exc)
                queue.put_nowait(TransferFailed(status=None, detail=str(exc) or type(exc).__name__))
                return
            except Exception as exc:
                queue.put_nowait(_Crashed(exc))
                return
            if response.is_success:
                queue.put_nowait(TransferSucceeded(status=response.status_code))
            else:
                logger.warning("[transport] PUT returned %d", response.status_code)
                queue.put_nowait(TransferFailed(status=response.status_code, detail=response.reason_phrase))

        if total == 0:
            queue.put_nowait(ProgressEvent(loaded=0, total=0))

        task = asyncio.create_task(send())
        try:
            while True:
                event = await queue.get()
                if isinstance(event, _Crashed):
                    raise event.error
                yield event
                if isinstance(event, (TransferSucceeded, TransferFailed)):
                    break
        finally:
            if not task.done():
                task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    async def send(
        self,
        url: str,
        blob: bytes,
        mime: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> TransferOutcome:
        """Drain ``upload()`` into an optional callback and return the terminal event."""
        outcome: TransferOutcome | None = None
        async for event in self.upload(url, blob, mime):
            if isinstance(event, ProgressEvent):
                if on_progress is not None:
                    on_progress(event)
            else:
                outcome = event
        assert outcome is not None
        return outcome
