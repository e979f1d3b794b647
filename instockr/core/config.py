"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str
    serpapi_api_key: str
    google_cse_api_key: str
    google_cse_id: str
    openai_api_key: str
    firecrawl_api_key: str
    database_url: str
    port: int = 8080
    openai_chat_model: str = "gpt-4o-mini"
    openai_crawl_model: str = "gpt-4o"
    openai_embedding_model: str = "text-embedding-3-small"
    nominatim_user_agent: str = "InStockr-App/1.0 (store-locator)"
    nominatim_min_interval: float = 1.0
    search_radius_m: int = 5000
    max_results: int = 50
    category_top_n: int = 3
    default_phone_region: Optional[str] = "IT"
    ai_dedup_enabled: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_maps_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")
    serpapi_api_key = os.getenv("SERPAPI_API_KEY", "")
    google_cse_api_key = os.getenv("GOOGLE_CSE_API_KEY", "")
    google_cse_id = os.getenv("GOOGLE_CSE_ID", "")
    openai_api_key = os.getenv("OPENAI_API_KEY", "")
    firecrawl_api_key = os.getenv("FIRECRAWL_API_KEY", "")
    database_url = os.getenv("DATABASE_URL", "")
    port = int(os.getenv("PORT", "8080"))
    openai_chat_model = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    openai_crawl_model = os.getenv("OPENAI_CRAWL_MODEL", "gpt-4o")
    openai_embedding_model = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    nominatim_user_agent = os.getenv("NOMINATIM_USER_AGENT", "InStockr-App/1.0 (store-locator)")
    nominatim_min_interval = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.0"))
    search_radius_m = int(os.getenv("SEARCH_RADIUS_M", "5000"))
    max_results = int(os.getenv("MAX_RESULTS", "50"))
    category_top_n = int(os.getenv("CATEGORY_TOP_N", "3"))
    default_phone_region_raw = os.getenv("DEFAULT_PHONE_REGION", "IT")
    default_phone_region = default_phone_region_raw.strip().upper() if default_phone_region_raw else None
    ai_dedup_enabled = os.getenv("AI_DEDUP_ENABLED", "false").lower() in {"1", "true", "yes"}

    if not database_url:
        logger.warning("DATABASE_URL is not set; category cache will be kept in memory.")
    if not google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; Google Maps search will be skipped.")
    if not serpapi_api_key:
        logger.warning("SERPAPI_API_KEY is not configured; Google Shopping search will be skipped.")
    if not google_cse_api_key or not google_cse_id:
        logger.warning("GOOGLE_CSE_API_KEY/GOOGLE_CSE_ID are not configured; web search will be skipped.")
    if not firecrawl_api_key:
        logger.warning("FIRECRAWL_API_KEY is not configured; online store search will be skipped.")
    if not openai_api_key:
        logger.warning("OPENAI_API_KEY is not configured; AI categorization and dedup will use fallbacks.")

    return Settings(
        google_maps_api_key=google_maps_api_key,
        serpapi_api_key=serpapi_api_key,
        google_cse_api_key=google_cse_api_key,
        google_cse_id=google_cse_id,
        openai_api_key=openai_api_key,
        firecrawl_api_key=firecrawl_api_key,
        database_url=database_url,
        port=port,
        openai_chat_model=openai_chat_model,
        openai_crawl_model=openai_crawl_model,
        openai_embedding_model=openai_embedding_model,
        nominatim_user_agent=nominatim_user_agent,
        nominatim_min_interval=nominatim_min_interval,
        search_radius_m=search_radius_m,
        max_results=max_results,
        category_top_n=category_top_n,
        default_phone_region=default_phone_region,
        ai_dedup_enabled=ai_dedup_enabled,
    )
