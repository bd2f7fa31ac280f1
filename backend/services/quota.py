"""Monthly quota preflight for the batch upload path."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from models.api import Quota
from models.pipeline import DEFAULT_FAILURE_MESSAGES, FailureReason
from services.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)

LIMITS_PATH = "/api/videos/limits"


@dataclass(frozen=True)
class Allowed:
    allowed = True


@dataclass(frozen=True)
class Denied:
    reason: FailureReason
    message: str
    remaining: int | None = None

    allowed = False


QuotaDecision = Allowed | Denied


def insufficient_quota_message(remaining: int) -> str:
    plural = "" if remaining == 1 else "s"
    return f"You can only upload {remaining} more video{plural} this month"


class QuotaGate:
    """
    Checks usage limits before a batch starts so a known-exhausted quota does
    not burn partial uploads. Fails open: the server remains the final authority.
    """

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def fetch_quota(self) -> Quota | None:
        """Fresh snapshot of the account's limits; None if unavailable."""
        body = await self._api.get(LIMITS_PATH)
        if not body:
            return None
        return Quota.model_validate(body)

    async def check(self, file_count: int) -> QuotaDecision:
        try:
            quota = await self.fetch_quota()
        except (ApiError, httpx.HTTPError, ValidationError) as exc:
            logger.warning("[quota] Limits check failed, letting the server enforce: %s", exc)
            return Allowed()
        if quota is None or quota.is_unlimited:
            return Allowed()

        remaining = quota.max_videos_per_month - quota.videos_used_this_month
        if remaining <= 0:
            logger.info("[quota] Monthly limit reached (%d/%d)", quota.videos_used_this_month, quota.max_videos_per_month)
            return Denied(
                reason=FailureReason.QUOTA_REACHED,
                message=DEFAULT_FAILURE_MESSAGES[FailureReason.QUOTA_REACHED],
                remaining=0,
            )
        if file_count > remaining:
            logger.info("[quota] %d files requested, only %d remaining", file_count, remaining)
            return Denied(
                reason=FailureReason.INSUFFICIENT_QUOTA,
                message=insufficient_quota_message(remaining),
                remaining=remaining,
            )
        return Allowed()
