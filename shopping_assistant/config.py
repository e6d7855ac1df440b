# shopping_assistant/config.py
import os
import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

class Config(BaseSettings):
    """Configuration settings for the catalog ingestion and matching core."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=True,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    app_name: str = "shopping_assistant"
    LOG_LEVEL: str = Field(default="INFO")

    # Source adapters
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0)
    DB_CONNECT_TIMEOUT_SECONDS: int = Field(default=10)
    SHOPIFY_API_VERSION: str = Field(default="2024-01")

    # Catalog cache (seconds)
    CATALOG_CACHE_TTL_SECONDS: int = Field(default=300)     # 5 minutes, live catalog data
    POLICY_CACHE_TTL_SECONDS: int = Field(default=1800)     # 30 minutes, policies/guidelines
    CACHE_SWEEP_INTERVAL_SECONDS: int = Field(default=600)

    # Catalog fetching
    CATALOG_PAGE_SIZE: int = Field(default=100)
    MAX_CATALOG_PRODUCTS: int = Field(default=10000)
    CATALOG_SOURCES_FILE: Optional[str] = Field(default=None)

    # Search configuration
    SMALL_CATALOG_THRESHOLD: int = Field(default=50)
