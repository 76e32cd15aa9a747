"""
Shared response classification for the ERP and marketplace HTTP clients.

Both remote systems signal not-found, throttling and overload through status
codes, so the clients turn those into distinct exception types here instead
of leaving callers to inspect error text.
"""

import logging
from typing import Optional

import httpx

from stocksync.core.exceptions import (
    NotFoundError,
    PlatformAPIError,
    RateLimitedError,
    ServerUnavailableError,
)

logger = logging.getLogger(__name__)

SUCCESS_CODES = (200, 201, 202, 204)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds, or None when absent or given as an HTTP date"""
    if not value:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def raise_for_platform_status(response: httpx.Response, platform: str) -> None:
    """
    Raise the exception matching a failed response.

    404 -> NotFoundError, 429 -> RateLimitedError (with the Retry-After hint),
    5xx -> ServerUnavailableError, anything else -> PlatformAPIError.
    """
    status = response.status_code
    if status in SUCCESS_CODES:
        return

    if status == 404:
        raise NotFoundError(f"Resource not found on {platform} (404)", platform=platform, status_code=status)

    if status == 429:
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        if retry_after is not None:
            message = f"Rate limit reached on {platform}. Wait {retry_after:g} seconds before continuing."
        else:
            message = f"Rate limit reached on {platform} (429). Reduce concurrency or wait a moment."
        raise RateLimitedError(message, platform=platform, status_code=status, retry_after=retry_after)

    if status >= 500:
        raise ServerUnavailableError(
            f"{platform} server error ({status}). It may be overloaded.",
            platform=platform,
            status_code=status,
        )

    logger.error(f"{platform} API error ({status}): {response.text}")
    raise PlatformAPIError(f"Request failed ({status}): {response.text}", platform=platform, status_code=status)


def decode_json(response: httpx.Response, platform: str):
    """Parsed JSON body; a body that is not JSON (e.g. a gateway HTML page) is a PlatformAPIError"""
    if response.status_code == 204 or not response.content:
        return {}
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Invalid JSON from {platform} ({response.status_code}): {response.text[:200]}")
        raise PlatformAPIError(
            f"Invalid JSON from {platform} ({response.status_code}): {str(e)}",
            platform=platform,
            status_code=response.status_code,
        )
