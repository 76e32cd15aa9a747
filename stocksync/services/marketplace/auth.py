"""
MercadoLibre authentication manager using in-memory token storage.
The refresh token always comes from the environment; access tokens only live in memory.
"""

import asyncio
import logging
from typing import Optional

import httpx

from stocksync.core.config import Settings, get_settings
from stocksync.core.exceptions import AuthenticationError
from stocksync.services.auth.token_cache import TokenCache

logger = logging.getLogger(__name__)


class MarketplaceAuthManager:
    """
    Hands out a valid MercadoLibre access token.

    On first use a configured MERCADOLIBRE_ACCESS_TOKEN is trusted for the
    default TTL; after that, or once it expires, the refresh token grant is used.
    """

    def __init__(self, settings: Optional[Settings] = None, token_cache: Optional[TokenCache] = None):
        self.settings = settings or get_settings()
        self.token_cache = token_cache or TokenCache("MercadoLibre")
        self.token_url = f"{self.settings.MERCADOLIBRE_API_BASE_URL.rstrip('/')}/oauth/token"
        self._seeded = False
        self._refresh_lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        """
        Get a valid access token, refreshing if necessary
        """
        access_token = self.token_cache.get()
        if access_token:
            return access_token

        async with self._refresh_lock:
            access_token = self.token_cache.get()
            if access_token:
                return access_token

            if self.settings.MERCADOLIBRE_ACCESS_TOKEN and not self._seeded:
                self._seeded = True
                self.token_cache.set(
                    self.settings.MERCADOLIBRE_ACCESS_TOKEN,
                    self.settings.MERCADOLIBRE_TOKEN_TTL_SECONDS,
                )
                return self.settings.MERCADOLIBRE_ACCESS_TOKEN

            if self.settings.MERCADOLIBRE_REFRESH_TOKEN:
                return await self._refresh_access_token()

        raise AuthenticationError(
            "No MercadoLibre access token available. Configure MERCADOLIBRE_ACCESS_TOKEN "
            "or MERCADOLIBRE_REFRESH_TOKEN (complete the OAuth flow first)."
        )

    async def refresh(self) -> str:
        """Force a refresh-token exchange, e.g. after a 401"""
        async with self._refresh_lock:
            return await self._refresh_access_token()

    async def _refresh_access_token(self) -> str:
        if not self.settings.MERCADOLIBRE_REFRESH_TOKEN:
            raise AuthenticationError("MERCADOLIBRE_REFRESH_TOKEN is not configured. Obtain one via OAuth first.")

        logger.info("Refreshing MercadoLibre access token...")
        refresh_data = {
            "grant_type": "refresh_token",
            "client_id": self.settings.MERCADOLIBRE_CLIENT_ID,
            "client_secret": self.settings.MERCADOLIBRE_CLIENT_SECRET,
            "refresh_token": self.settings.MERCADOLIBRE_REFRESH_TOKEN,
        }

        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    self.token_url,
                    json=refresh_data,
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                )
        except httpx.RequestError as e:
            logger.error(f"Network error refreshing token: {str(e)}")
            raise AuthenticationError(f"Network error refreshing MercadoLibre token: {str(e)}")

        if response.status_code != 200:
            error_text = response.text
            logger.error(f"Token refresh failed ({response.status_code}): {error_text}")
            if response.status_code in (400, 401):
                raise AuthenticationError(
                    "MercadoLibre refresh token expired or invalid. Obtain new tokens via the OAuth flow."
                )
            raise AuthenticationError(f"Failed to refresh access token: {error_text}")

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
        except (ValueError, KeyError, TypeError):
            raise AuthenticationError(f"MercadoLibre token response was not usable: {response.text[:200]}")
        expires_in = token_data.get("expires_in") or self.settings.MERCADOLIBRE_TOKEN_TTL_SECONDS
        self.token_cache.set(access_token, expires_in)

        if token_data.get("refresh_token") and token_data["refresh_token"] != self.settings.MERCADOLIBRE_REFRESH_TOKEN:
            logger.warning("MercadoLibre returned a new refresh token. Update MERCADOLIBRE_REFRESH_TOKEN in your .env file")

        logger.info("Successfully refreshed access token")
        return access_token

    def invalidate(self):
        """Drop the cached access token so the next call refreshes it"""
        self.token_cache.clear()
