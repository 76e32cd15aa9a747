"""
Interfaces the stock sync engine consumes.

The engine never talks HTTP itself: it reads quantities from a SourceSystem
(the ERP) and reads/writes listings on a SinkPlatform (the marketplace).
Concrete clients live under stocksync.services; tests provide in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pydantic import BaseModel


class ItemPage(BaseModel):
    """One page of active listing handles plus the total the platform reports"""
    item_ids: List[str]
    total: int = 0


class SourceSystem(ABC):
    name: str = "source"

    @abstractmethod
    async def fetch_product(self, sku: str) -> Dict[str, Any]:
        """
        Raw product payload for a SKU, including its stock breakdown.

        Raises NotFoundError, RateLimitedError, ServerUnavailableError or PlatformAPIError.
        """
        pass


class SinkPlatform(ABC):
    name: str = "sink"

    @abstractmethod
    async def list_active_items(self, offset: int, limit: int) -> ItemPage:
        """Page through the seller's active listings"""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> Dict[str, Any]:
        """Full listing record for a handle"""
        pass

    @abstractmethod
    async def update_quantity(self, item_id: str, quantity: int) -> Dict[str, Any]:
        """Overwrite the available quantity of a listing"""
        pass

    async def verify(self) -> None:
        """Check credentials before a run; platforms without an auth check do nothing"""
        return None
