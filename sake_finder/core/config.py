"""
Application configuration module.
Loads settings from environment variables with validation.
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    user_agent: str = "japanese-sake-ai"
    
    # Rakuten Ichiba (Marketplace-A)
    rakuten_app_id: str = ""
    rakuten_api_url: str = "https://app.rakuten.co.jp/services/api/IchibaItem/Search/20220601"
    rakuten_hits: int = Field(default=20, ge=1, le=30)
    rakuten_genre_id: Optional[int] = None
    
    # Yahoo! Shopping (Marketplace-B)
    yahoo_app_id: str = ""
    yahoo_api_v3_url: str = "https://shopping.yahooapis.jp/ShoppingWebService/V3/itemSearch"
    yahoo_api_v1_url: str = "https://shopping.yahooapis.jp/ShoppingWebService/V1/json/itemSearch"
    yahoo_genre_category_id: str = "1359"
    yahoo_results: int = Field(default=20, ge=1, le=100)
    yahoo_image_size: int = 300
    yahoo_in_stock: bool = True
    yahoo_affiliate_type: Optional[Literal["vc"]] = None
    yahoo_affiliate_id: Optional[str] = None
    
    # Moshimo affiliate (wraps Rakuten links)
    moshimo_a_id: str = ""
    moshimo_p_id: str = ""
    moshimo_pc_id: str = ""
    moshimo_pl_id: str = ""
    
    # ValueCommerce affiliate (wraps Yahoo links)
    valuecommerce_sid: str = ""
    valuecommerce_pid: str = ""
    
    # Search pipeline
    upstream_timeout: float = 2.5  # seconds, per HTTP call
    # Whole adapter, must cover three timed-out Yahoo stages plus the legacy call
    adapter_deadline: float = 10.5  # seconds
    no_filter: bool = False
    filter_min_price: int = 1000
    filter_max_price: int = 50000
    dedup_abs_tolerance: int = 300
    dedup_rel_tolerance: float = 0.05
    result_limit: int = 30
    
    # Popularity ranking
    ranking_keywords: list[str] = Field(
        default_factory=lambda: ["純米大吟醸", "純米吟醸", "日本酒 人気"]
    )
    ranking_hits: int = 30
    ranking_size: int = 5
    ranking_cache_ttl_seconds: int = 600  # 10 minutes
    
    # Outbound redirector
    out_allowed_hosts: list[str] = Field(
        default_factory=lambda: [
            "af.moshimo.com",
            "hb.afl.rakuten.co.jp",
            "search.rakuten.co.jp",
            "shopping.yahoo.co.jp",
            "ck.jp.ap.valuecommerce.com",
            "www.amazon.co.jp",
            "amzn.to",
        ]
    )
    
    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    
    @property
    def is_production(self) -> bool:
        return self.app_env == "production"
    
    @property
    def rakuten_api_configured(self) -> bool:
        return bool(self.rakuten_app_id)
    
    @property
    def yahoo_api_configured(self) -> bool:
        return bool(self.yahoo_app_id)
    
    @property
    def moshimo_configured(self) -> bool:
        return all(
            (self.moshimo_a_id, self.moshimo_p_id, self.moshimo_pc_id, self.moshimo_pl_id)
        )
    
    @property
    def valuecommerce_configured(self) -> bool:
        return bool(self.valuecommerce_sid and self.valuecommerce_pid)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
