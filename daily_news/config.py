# daily_news/config.py
from __future__ import annotations

from pathlib import Path
from typing import List, Literal
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_REFRESH_HOUR, DEFAULT_SYMBOLS, NEWS_CACHE_KEY, MARKET_CACHE_KEY


def _default_sqlite_url() -> str:
    db_path = (Path(__file__).resolve().parents[1] / "daily_news_cache.db").as_posix()
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """
    Central app configuration.
    - Reads from .env
    - Accepts BOTH UPPERCASE and lowercase env names (AliasChoices)
    - Ignores unknown extras so new keys in .env won't crash
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---- App basics ----
    env: str = Field("dev", validation_alias=AliasChoices("ENV", "env"))
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    timezone: str = Field(
        "America/Los_Angeles", validation_alias=AliasChoices("TIMEZONE", "timezone")
    )
    offline: bool = Field(False, validation_alias=AliasChoices("OFFLINE", "offline"))

    # ---- Cache storage ----
    database_url: str = Field(
        default_factory=_default_sqlite_url,
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    cache_backend: Literal["sql", "memory"] = Field(
        "sql", validation_alias=AliasChoices("CACHE_BACKEND", "cache_backend")
    )
    news_cache_key: str = Field(
        NEWS_CACHE_KEY, validation_alias=AliasChoices("NEWS_CACHE_KEY", "news_cache_key")
    )
    market_cache_key: str = Field(
        MARKET_CACHE_KEY, validation_alias=AliasChoices("MARKET_CACHE_KEY", "market_cache_key")
    )
    news_refresh_hour: int = Field(
        DEFAULT_REFRESH_HOUR, ge=0, le=23,
        validation_alias=AliasChoices("NEWS_REFRESH_HOUR", "news_refresh_hour"),
    )
    market_refresh_hour: int = Field(
        DEFAULT_REFRESH_HOUR, ge=0, le=23,
        validation_alias=AliasChoices("MARKET_REFRESH_HOUR", "market_refresh_hour"),
    )

    # ---- News gathering ----
    news_mode: Literal["rss", "newsapi", "search"] = Field(
        "rss", validation_alias=AliasChoices("NEWS_MODE", "news_mode")
    )
    rss_max_age_hours: int = Field(
        48, validation_alias=AliasChoices("RSS_MAX_AGE_HOURS", "rss_max_age_hours")
    )
    items_per_category: int = Field(
        6, validation_alias=AliasChoices("ITEMS_PER_CATEGORY", "items_per_category")
    )

    # ---- Timeouts (seconds) ----
    http_timeout: float = Field(
        5.0, validation_alias=AliasChoices("HTTP_TIMEOUT", "http_timeout"),
        description="Per-request timeout for feeds, NewsAPI and quotes."
    )
    llm_timeout: float = Field(
        60.0, validation_alias=AliasChoices("LLM_TIMEOUT", "llm_timeout"),
        description="Per-request timeout for the OpenAI client."
    )

    # ---- API keys (optional) ----
    openai_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key")
    )
    newsapi_key: str | None = Field(
        default=None, validation_alias=AliasChoices("NEWSAPI_KEY", "newsapi_key")
    )
    alphavantage_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ALPHAVANTAGE_API_KEY", "alphavantage_api_key"),
    )

    # ---- OpenAI ----
    openai_model: str = Field(
        "gpt-4o-mini", validation_alias=AliasChoices("OPENAI_MODEL", "openai_model")
    )
    openai_temperature: float = Field(
        0.3, validation_alias=AliasChoices("OPENAI_TEMPERATURE", "openai_temperature")
    )
    openai_max_tokens: int = Field(
        2000, validation_alias=AliasChoices("OPENAI_MAX_TOKENS", "openai_max_tokens")
    )

    # ---- Quotes ----
    quote_provider: Literal["alphavantage", "yfinance"] = Field(
        "alphavantage", validation_alias=AliasChoices("QUOTE_PROVIDER", "quote_provider")
    )
    ticker_symbols: str = Field(
        ",".join(DEFAULT_SYMBOLS),
        validation_alias=AliasChoices("TICKER_SYMBOLS", "ticker_symbols"),
        description="Comma-separated symbols for the ticker strip."
    )

    # ---- Alpha Vantage throttling (free-tier friendly) ----
    alphavantage_rpm: int = Field(
        5, validation_alias=AliasChoices("ALPHAVANTAGE_RPM", "alphavantage_rpm")
    )
    alphavantage_burst: int = Field(
        8, validation_alias=AliasChoices("ALPHAVANTAGE_BURST", "alphavantage_burst")
    )
    alphavantage_rpd: int | None = Field(
        25, validation_alias=AliasChoices("ALPHAVANTAGE_RPD", "alphavantage_rpd")
    )

    @property
    def symbols(self) -> List[str]:
        return [s.strip().upper() for s in self.ticker_symbols.split(",") if s.strip()]
