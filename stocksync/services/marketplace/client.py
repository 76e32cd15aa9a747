import logging
from typing import Any, Dict, Optional

import httpx

from stocksync.core.config import Settings, get_settings
from stocksync.core.exceptions import PlatformAPIError
from stocksync.integrations.base import ItemPage, SinkPlatform
from stocksync.services.http_utils import decode_json, raise_for_platform_status
from stocksync.services.marketplace.auth import MarketplaceAuthManager

logger = logging.getLogger(__name__)


class MarketplaceClient(SinkPlatform):
    """
    Asynchronous client for the MercadoLibre items API.

    Covers what the stock sync needs: verifying the account (get_me),
    paging through active listings, reading a listing and overwriting its
    available_quantity. A 401 triggers one token refresh and a replay.
    """

    name = "MercadoLibre"

    def __init__(self, auth: Optional[MarketplaceAuthManager] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.auth = auth or MarketplaceAuthManager(self.settings)
        self.BASE_URL = self.settings.MERCADOLIBRE_API_BASE_URL.rstrip("/")
        self._user_id: Optional[str] = self.settings.MERCADOLIBRE_USER_ID

    def _get_headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
        retry_on_unauthorized: bool = True,
    ) -> Any:
        """
        Make a request to the MercadoLibre API

        Raises:
            NotFoundError, RateLimitedError, ServerUnavailableError, PlatformAPIError
        """
        url = f"{self.BASE_URL}/{endpoint.lstrip('/')}"
        token = await self.auth.get_access_token()
        logger.debug(f"Making {method} request to {url} params={params}")

        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(token),
                    json=data,
                    params=params,
                )
        except httpx.TimeoutException as e:
            logger.error(f"MercadoLibre timeout: {str(e)}")
            raise PlatformAPIError(f"MercadoLibre request timed out: {str(e)}", platform=self.name)
        except httpx.RequestError as e:
            logger.error(f"MercadoLibre network error: {str(e)}")
            raise PlatformAPIError(f"MercadoLibre network error: {str(e)}", platform=self.name)

        if response.status_code == 401 and retry_on_unauthorized:
            logger.warning("MercadoLibre token rejected, refreshing and retrying once")
            self.auth.invalidate()
            await self.auth.refresh()
            return await self._make_request(method, endpoint, data=data, params=params, retry_on_unauthorized=False)

        raise_for_platform_status(response, self.name)
        return decode_json(response, self.name)

    async def get_me(self) -> Dict[str, Any]:
        """Verify authentication and return the seller account"""
        me = await self._make_request("GET", "/users/me")
        if me.get("id") and not self._user_id:
            self._user_id = str(me["id"])
        logger.info(f"Authenticated with MercadoLibre as {me.get('nickname')} (ID: {me.get('id')})")
        return me

    async def verify(self) -> None:
        await self.get_me()

    async def get_user_id(self) -> str:
        if not self._user_id:
            await self.get_me()
        if not self._user_id:
            raise PlatformAPIError("MercadoLibre /users/me did not return an id", platform=self.name)
        return self._user_id

    async def list_active_items(self, offset: int, limit: int) -> ItemPage:
        user_id = await self.get_user_id()
        response = await self._make_request(
            "GET",
            f"/users/{user_id}/items/search",
            params={"status": "active", "limit": limit, "offset": offset},
        )
        paging = response.get("paging") or {}
        return ItemPage(
            item_ids=[str(item_id) for item_id in response.get("results") or []],
            total=paging.get("total") or 0,
        )

    async def get_item(self, item_id: str) -> Dict[str, Any]:
        return await self._make_request("GET", f"/items/{item_id}")

    async def update_quantity(self, item_id: str, quantity: int) -> Dict[str, Any]:
        return await self._make_request("PUT", f"/items/{item_id}", data={"available_quantity": quantity})
