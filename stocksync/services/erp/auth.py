"""
ERP authentication using username/password login and an in-memory token cache
"""

import asyncio
import logging
from typing import Optional

import httpx

from stocksync.core.config import Settings, get_settings
from stocksync.core.exceptions import AuthenticationError
from stocksync.services.auth.token_cache import TokenCache

logger = logging.getLogger(__name__)


class ERPAuthManager:
    """
    Logs in against the ERP and keeps the resulting token for ERP_TOKEN_TTL_SECONDS.
    """

    def __init__(self, settings: Optional[Settings] = None, token_cache: Optional[TokenCache] = None):
        self.settings = settings or get_settings()
        self.token_cache = token_cache or TokenCache("ERP")
        self._refresh_lock = asyncio.Lock()

    async def get_token(self) -> str:
        """Get a valid token, logging in again if necessary"""
        token = self.token_cache.get()
        if token:
            return token

        async with self._refresh_lock:
            # Another caller may have logged in while we waited
            token = self.token_cache.get()
            if token:
                return token
            return await self._authenticate()

    async def _authenticate(self) -> str:
        base_url = self.settings.ERP_BASE_URL.rstrip("/")
        if not base_url or not self.settings.ERP_USERNAME or not self.settings.ERP_PASSWORD:
            raise AuthenticationError(
                "Missing ERP credentials. Set ERP_BASE_URL, ERP_USERNAME and ERP_PASSWORD in your .env file."
            )

        logger.info("No valid ERP token in memory, logging in...")
        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    f"{base_url}/auth/",
                    json={"username": self.settings.ERP_USERNAME, "password": self.settings.ERP_PASSWORD},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.RequestError as e:
            logger.error(f"Network error authenticating with ERP: {str(e)}")
            raise AuthenticationError(f"Network error authenticating with ERP: {str(e)}")

        if response.status_code != 200:
            logger.error(f"ERP authentication failed: {response.text}")
            raise AuthenticationError(f"ERP authentication failed ({response.status_code}): {response.text}")

        try:
            token = response.json().get("auth_token")
        except (ValueError, AttributeError):
            raise AuthenticationError(f"ERP authentication returned an unreadable response: {response.text[:200]}")
        if not token:
            raise AuthenticationError("ERP authentication response did not include auth_token")

        self.token_cache.set(token, self.settings.ERP_TOKEN_TTL_SECONDS)
        logger.info("Successfully authenticated with ERP")
        return token

    def clear_tokens(self):
        self.token_cache.clear()
