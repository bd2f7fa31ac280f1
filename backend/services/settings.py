"""Client settings read from the environment (optionally seeded from a .env file)."""

import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_UPLOAD_CHUNK_SIZE = 256 * 1024  # bytes handed to the transport per progress event


def get_api_base_url() -> str:
    """Metadata API base URL from env or default."""
    return os.environ.get("CLIPSHARE_API_URL", "").strip() or DEFAULT_API_URL


def get_share_origin() -> str:
    """Origin used to build share links; defaults to the API URL."""
    return os.environ.get("CLIPSHARE_ORIGIN", "").strip() or get_api_base_url()


def get_access_token() -> str | None:
    return os.environ.get("CLIPSHARE_ACCESS_TOKEN", "").strip() or None


def get_upload_chunk_size() -> int:
    raw = os.environ.get("CLIPSHARE_UPLOAD_CHUNK_SIZE", "").strip()
    if not raw:
        return DEFAULT_UPLOAD_CHUNK_SIZE
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value <= 0:
        logger.warning(
            "[settings] Ignoring invalid CLIPSHARE_UPLOAD_CHUNK_SIZE=%r; using %d",
            raw,
            DEFAULT_UPLOAD_CHUNK_SIZE,
        )
        return DEFAULT_UPLOAD_CHUNK_SIZE
    return value
