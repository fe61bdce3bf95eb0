"""
Base adapter interface for marketplace search.
All marketplace-specific adapters should implement this interface.
"""
import asyncio
import json
import math
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from sake_finder.core.config import Settings
from sake_finder.models.schemas import Item, Marketplace, QueryContext
from sake_finder.services.affiliate import AffiliateLinkWrapper

logger = structlog.get_logger()


class MarketplaceApiError(Exception):
    """Upstream marketplace returned something unusable."""
    def __init__(self, message: str, code: str = None, status_code: int = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class BaseMarketplaceAdapter(ABC):
    """
    Abstract base class for marketplace adapters.
    
    Subclasses implement `_fetch`; callers use `fetch`, which never raises.
    Upstream failures (HTTP errors, bad JSON, timeouts) degrade to an empty
    list and are logged as warnings.
    """
    
    def __init__(
        self,
        settings: Settings,
        wrapper: AffiliateLinkWrapper,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self.wrapper = wrapper
        self._http_client = http_client
        self._owns_client = http_client is None
    
    @property
    @abstractmethod
    def marketplace(self) -> Marketplace:
        """Return the marketplace this adapter handles."""
        pass
    
    @property
    @abstractmethod
    def configured(self) -> bool:
        """Whether credentials for this marketplace are present."""
        pass
    
    @abstractmethod
    async def _fetch(self, context: QueryContext) -> list[Item]:
        """
        Query the marketplace and map hits to Items.
        
        May raise; `fetch` turns every failure into an empty result.
        """
        pass
    
    async def fetch(self, context: QueryContext) -> list[Item]:
        """
        Search the marketplace for a query context.
        
        Args:
            context: Validated search input
            
        Returns:
            Mapped items, or an empty list on any upstream failure
        """
        if not self.configured:
            logger.warning("Marketplace not configured", marketplace=self.marketplace.value)
            return []
        
        try:
            return await asyncio.wait_for(
                self._fetch(context), timeout=self.settings.adapter_deadline
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Marketplace search timed out",
                marketplace=self.marketplace.value,
                deadline=self.settings.adapter_deadline,
            )
        except MarketplaceApiError as e:
            logger.warning(
                "Marketplace API error",
                marketplace=self.marketplace.value,
                code=e.code,
                status_code=e.status_code,
                error=e.message,
            )
        except httpx.HTTPError as e:
            logger.warning(
                "Marketplace request failed",
                marketplace=self.marketplace.value,
                error=str(e) or e.__class__.__name__,
            )
        except Exception as e:
            logger.warning(
                "Marketplace response could not be mapped",
                marketplace=self.marketplace.value,
                error=str(e),
                exc_info=True,
            )
        return []
    
    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.settings.upstream_timeout,
                follow_redirects=True,
                headers={"User-Agent": self.settings.user_agent},
            )
            self._owns_client = True
        return self._http_client
    
    async def close(self):
        """Close HTTP client."""
        if self._owns_client and self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
    
    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        """
        GET a JSON document.
        
        Raises:
            MarketplaceApiError: non-2xx status
        """
        client = await self._get_http_client()
        response = await client.get(url, params=params, timeout=self.settings.upstream_timeout)
        
        if not response.is_success:
            raise MarketplaceApiError(
                f"API returned status {response.status_code}: {response.text[:200]}",
                code="API_ERROR",
                status_code=response.status_code,
            )
        
        return parse_json_body(response.text)


def parse_json_body(text: str) -> Any:
    """
    Decode a response body that should be JSON.
    
    Bodies that do not start with `{` or `[`, or fail to decode, yield None.
    """
    body = (text or "").lstrip()
    if not body or body[0] not in "{[":
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def to_price(value: Any) -> Optional[int]:
    """Coerce an upstream price (number, numeric string, or {'_value': ...}) to int."""
    if isinstance(value, dict):
        value = value.get("_value")
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.replace(",", "").replace("円", "").strip())
        except ValueError:
            return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value >= 0 else None
    return None
