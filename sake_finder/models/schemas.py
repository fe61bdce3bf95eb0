"""
Pydantic schemas for API request/response models.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Marketplace(str, Enum):
    """Supported shopping marketplaces."""
    RAKUTEN = "rakuten"
    YAHOO = "yahoo"


class SearchMode(str, Enum):
    """Caller intent, changes filtering and scoring policy."""
    NORMAL = "normal"
    GIFT = "gift"


# ==================== Item ====================

class Item(BaseModel):
    """Unified product record produced by every marketplace adapter."""
    model_config = ConfigDict(frozen=True)
    
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    price: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    shop: Optional[str] = None
    source: Marketplace
    url: str  # already affiliate-wrapped
    order: int = Field(0, ge=0, description="Original position, final sort tie-break")


# ==================== Query Context ====================

class SearchInputError(Exception):
    """Raised when search input is rejected before reaching the pipeline."""
    def __init__(self, code: str, detail: str):
        self.code = code
        self.detail = detail
        super().__init__(detail)


class QueryContext(BaseModel):
    """Validated search input passed to every adapter."""
    model_config = ConfigDict(frozen=True)
    
    keyword: str
    mode: SearchMode = SearchMode.NORMAL
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    
    @classmethod
    def build(
        cls,
        keyword: Optional[str],
        mode: SearchMode = SearchMode.NORMAL,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> "QueryContext":
        """
        Build a context from raw request values.
        
        Raises:
            SearchInputError: keyword is blank or the price range is invalid
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise SearchInputError("keyword_required", "keyword is required")
        
        for value in (min_price, max_price):
            if value is not None and value < 0:
                raise SearchInputError("invalid_price_range", "prices must be non-negative")
        
        if min_price is not None and max_price is not None and min_price > max_price:
            raise SearchInputError(
                "invalid_price_range",
                "min_price must be less than or equal to max_price"
            )
        
        return cls(keyword=keyword, mode=mode, min_price=min_price, max_price=max_price)


# ==================== Search API ====================

class SearchRequest(BaseModel):
    """Search request body."""
    keyword: str = Field(..., max_length=200, description="Free-text sake description")
    mode: SearchMode = SearchMode.NORMAL
    min_price: Optional[int] = Field(None, ge=0, description="Price floor (JPY)")
    max_price: Optional[int] = Field(None, ge=0, description="Price ceiling (JPY)")
    
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "keyword": "獺祭 純米大吟醸"
                },
                {
                    "keyword": "純米吟醸 ギフト",
                    "mode": "gift",
                    "min_price": 3000,
                    "max_price": 8000
                }
            ]
        }
    }


class SearchResponse(BaseModel):
    """Search response payload."""
    model_config = ConfigDict(populate_by_name=True)
    
    items: list[Item]
    total: int = Field(..., description="Candidates after merge, before filtering")
    after_filter: int = Field(..., alias="afterFilter")
    no_filter: bool = Field(..., alias="noFilter")
    mode: SearchMode


class ErrorResponse(BaseModel):
    """Structured error body."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    host: Optional[str] = None


# ==================== Ranking / Health / Redirect ====================

class RankingResponse(BaseModel):
    """Popularity ranking payload."""
    items: list[Item]
    cached: bool


class SearchHealthResponse(BaseModel):
    """Search subsystem health."""
    env_ok: bool
    rakuten_alive: bool
    yahoo_configured: bool
    filters_enabled: bool


class HealthResponse(BaseModel):
    """Service health check response."""
    status: str
    version: str
    rakuten_api: str
    yahoo_api: str
    affiliate: str


class OutDryRunResponse(BaseModel):
    """Resolved destination when the redirector runs in dry mode."""
    model_config = ConfigDict(populate_by_name=True)
    
    final_url: str = Field(..., alias="finalUrl")
