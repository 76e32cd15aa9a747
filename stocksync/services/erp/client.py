import logging
from typing import Any, Dict, Optional

import httpx

from stocksync.core.config import Settings, get_settings
from stocksync.core.exceptions import PlatformAPIError
from stocksync.integrations.base import SourceSystem
from stocksync.services.erp.auth import ERPAuthManager
from stocksync.services.http_utils import decode_json, raise_for_platform_status

logger = logging.getLogger(__name__)


class ERPClient(SourceSystem):
    """
    Asynchronous client for the ERP product API.

    Products are addressed by company RUT and product code; passing
    ``con_stock=S`` makes the ERP include the per-warehouse stock breakdown
    in the same response.
    """

    name = "ERP"

    def __init__(self, auth: Optional[ERPAuthManager] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.auth = auth or ERPAuthManager(self.settings)
        self.BASE_URL = self.settings.ERP_BASE_URL.rstrip("/")

    async def _get_headers(self) -> Dict[str, str]:
        token = await self.auth.get_token()
        return {
            "Content-Type": "application/json",
            "Authorization": f"Token {token}",
        }

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None,
    ) -> Any:
        """
        Make a request to the ERP API

        Raises:
            NotFoundError, RateLimitedError, ServerUnavailableError, PlatformAPIError
        """
        url = f"{self.BASE_URL}/{endpoint.lstrip('/')}"
        headers = await self._get_headers()
        logger.debug(f"Making {method} request to {url} params={params}")

        try:
            async with httpx.AsyncClient(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    json=data,
                    params=params,
                )
        except httpx.TimeoutException as e:
            logger.error(f"ERP timeout: {str(e)}")
            raise PlatformAPIError(f"ERP request timed out: {str(e)}", platform=self.name)
        except httpx.RequestError as e:
            logger.error(f"ERP network error: {str(e)}")
            raise PlatformAPIError(f"ERP network error: {str(e)}", platform=self.name)

        raise_for_platform_status(response, self.name)
        return decode_json(response, self.name)

    async def fetch_product(self, sku: str) -> Dict[str, Any]:
        """
        Get a product with its stock breakdown

        Args:
            sku: ERP product code

        Returns:
            Raw payload as returned by the ERP (may wrap the product in "data")
        """
        rut = self.settings.RUT_EMPRESA
        return await self._make_request("GET", f"/products/{rut}/{sku}/", params={"con_stock": "S"})
