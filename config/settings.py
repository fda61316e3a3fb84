"""
Configuration & Settings
Steam Insight — Domestic Game Review Intelligence
"""

from pydantic import BaseModel
from typing import Optional
import os


class Settings(BaseModel):
    # App
    APP_NAME: str = "Steam Insight — Domestic Game Review Intelligence"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Transport
    REQUEST_TIMEOUT: int = 30
    USER_AGENT: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Storefront
    STORE_BASE_URL: str = "https://store.steampowered.com"
    STORE_LANGUAGE: str = "schinese"
    STORE_COUNTRY: str = "CN"
    GAMES_CATEGORY: str = "998"

    # Discovery (phase 1)
    MAX_PAGES: int = 40            # top 2000 sellers
    PAGE_SIZE: int = 50
    PAGE_CONCURRENCY: int = 3
    PAGE_GROUP_DELAY_SECONDS: float = 0.2
    RELEASE_YEAR_PATTERN: str = r"20(2[5-9]|[3-9][0-9])"   # 2025–2099
    MIN_REVIEW_COUNT: int = 1000                           # strictly greater than

    # Classification (phase 2)
    CLASSIFY_CHUNK_SIZE: int = 8
    CLASSIFY_CHUNK_DELAY_SECONDS: float = 0.1
    ORIGIN_SCORE_THRESHOLD: int = 25
    VIP_SCORE: int = 999

    # Reviews
    REVIEW_PAGE_SIZE: int = 100
    DEFAULT_REVIEW_LIMIT: int = 2000
    DEFAULT_FILTER_START_DATE: str = "2025-01-01"
    DEFAULT_MAX_PLAYTIME_HOURS: float = 9999

    # Summarizer (OpenAI-compatible chat completions)
    LLM_API_KEY: Optional[str] = os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY")
    LLM_BASE_URL: str = os.getenv(
        "LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"
    )
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gemini-2.0-flash")
    LLM_TEMPERATURE: float = 0.1
    SUMMARY_SAMPLE_SIZE: int = 300
    MAX_REVIEW_CHARS: int = 500

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000


settings = Settings()
