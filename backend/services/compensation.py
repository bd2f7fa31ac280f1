from __future__ import annotations

import asyncio
import logging

from services.records import RecordDeleteClient

logger = logging.getLogger(__name__)


class CompensationManager:
    """
    Best-effort cleanup of a record whose pipeline run failed after create.

    Deletes may fail silently: errors are logged and never re-raised so they
    cannot mask the failure the user actually needs to see.
    """

    def __init__(self, deleter: RecordDeleteClient) -> None:
        self._deleter = deleter
        self._compensated: set[str] = set()
        self._pending: set[asyncio.Task[None]] = set()

    def _claim(self, video_id: str) -> bool:
        if video_id in self._compensated:
            logger.warning("[compensation] video_id=%s already compensated; skipping", video_id)
            return False
        self._compensated.add(video_id)
        return True

    async def _delete(self, video_id: str) -> None:
        try:
            await self._deleter.delete(video_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("[compensation] DELETE failed for video_id=%s: %s", video_id, exc, exc_info=True)
            return
        logger.info("[compensation] Deleted orphaned video_id=%s", video_id)

    async def compensate(self, video_id: str) -> None:
        if not self._claim(video_id):
            return
        await self._delete(video_id)

    def compensate_nowait(self, video_id: str) -> None:
        """
        Fire-and-forget variant for hosts that do not wait on cleanup.
        Use drain() to wait for scheduled deletes.
        """
        if not self._claim(video_id):
            return
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._delete(video_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending)

    def reset(self) -> None:
        self._compensated.clear()
