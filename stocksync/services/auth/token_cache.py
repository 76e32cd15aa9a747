"""
In-memory credential cache shared by the ERP and marketplace auth managers.
Tokens are never persisted to disk.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TokenCache:
    """
    Holds one access token and its expiry.

    The clock is injectable so tests can move time forward without sleeping.
    A token is considered valid until ``skew_seconds`` before it expires.
    """

    def __init__(
        self,
        name: str,
        clock: Callable[[], datetime] = datetime.now,
        skew_seconds: int = 60,
    ):
        self.name = name
        self._clock = clock
        self._skew = timedelta(seconds=skew_seconds)
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    @property
    def expires_at(self) -> Optional[datetime]:
        return self._expires_at

    @property
    def is_valid(self) -> bool:
        if not self._token or not self._expires_at:
            return False
        return self._clock() < (self._expires_at - self._skew)

    def get(self) -> Optional[str]:
        """Get the cached token if still valid"""
        if self.is_valid:
            logger.debug(f"Returning cached {self.name} token (expires: {self._expires_at})")
            return self._token
        if self._token:
            logger.debug(f"{self.name} token expired or expiring soon")
        return None

    def set(self, token: str, ttl_seconds: int) -> None:
        """Store a token that expires ttl_seconds from now"""
        self._token = token
        self._expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        logger.info(f"Cached {self.name} token (expires: {self._expires_at})")

    def clear(self) -> None:
        self._token = None
        self._expires_at = None
        logger.info(f"Cleared {self.name} token from memory")
