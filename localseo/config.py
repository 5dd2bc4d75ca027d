"""
localseo/config.py

Environment-driven settings for the acquisition engine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for provider connectors.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_initial_seconds: float = 1.0
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class BrowserSettings:
    """
    Remote browser (primary scraping path) settings.
    """

    ws_endpoint: str | None = None
    connect_timeout_seconds: float = 15.0
    navigation_timeout_seconds: float = 30.0
    max_connection_retries: int = 3
    retry_base_delay_seconds: float = 2.0


@dataclass(frozen=True)
class SecondaryProviderSettings:
    """
    Apify settings for the secondary scraping path and social actors.
    """

    api_token: str | None = None
    base_url: str = "https://api.apify.com/v2"
    crawl_actor_id: str = "apify~web-scraper"
    crawl_memory_mb: int = 2048
    link_scan_memory_mb: int = 1024
    poll_interval_seconds: float = 5.0
    run_timeout_seconds: float = 300.0


@dataclass(frozen=True)
class FetcherSettings:
    """
    Resilient fetcher behavior settings.
    """

    settle_delay_seconds: float = 2.0
    extraction_char_budget: int = 30000
    plain_char_budget: int = 15000
    blocked_markers: tuple[str, ...] = ("403", "forbidden")


@dataclass(frozen=True)
class CircuitBreakerSettings:
    failure_threshold: int = 3
    cooldown_seconds: float = 60.0


@dataclass(frozen=True)
class ScrapeQueueSettings:
    """
    Bounded scrape queue settings.
    """

    max_concurrency: int = 4
    coalesce_duplicates: bool = False


@dataclass(frozen=True)
class CompletionSettings:
    """
    OpenAI completion service settings.
    """

    api_key: str | None = None
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    timeout_seconds: float = 60.0
    max_format_retries: int = 2


@dataclass(frozen=True)
class SEODataSettings:
    """
    DataForSEO provider settings.
    """

    login: str | None = None
    password: str | None = None
    base_url: str = "https://api.dataforseo.com/v3"
    language_code: str = "de"
    country_iso: str = "de"
    country_name: str = "Germany"
    country_location_code: int = 2276


@dataclass(frozen=True)
class LocationSettings:
    default_max_locations: int = 5
    pacing_seconds: float = 0.5


@dataclass(frozen=True)
class KeywordSettings:
    """
    Keyword deduplication and quality scoring settings.
    """

    similarity_threshold: float = 0.85
    min_total_score: int = 60
    min_search_volume: int = 10
    high_volume_threshold: int = 50
    validation_limit: int = 20
    scoring_workers: int = 5
    volume_batch_size: int = 20
    volume_batch_pacing_seconds: float = 3.0
    same_country_tld: str = "de"


@dataclass(frozen=True)
class CompetitorSettings:
    """
    Competitor discovery, classification and scoring settings.
    """

    max_keywords: int = 100
    per_location_cap: int = 30
    default_max_results: int = 15
    classification_cap: int = 25
    location_pacing_seconds: float = 2.0
    error_budget: int = 2
    classification_cache_size: int = 500
    classification_workers: int = 3
    classification_char_budget: int = 6000
    classification_pacing_seconds: float = 1.5
    social_enabled: bool = True
    social_pacing_seconds: float = 2.0
    seo_weight: float = 0.5
    social_weight: float = 0.5


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 30.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 1.0)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_browser_settings() -> BrowserSettings:
    """
    Return remote browser settings from environment variables.
    """

    return BrowserSettings(
        ws_endpoint=_get_optional_str_env("BROWSERLESS_WS_ENDPOINT"),
        connect_timeout_seconds=max(1.0, _get_float_env("BROWSER_CONNECT_TIMEOUT_SECONDS", 15.0)),
        navigation_timeout_seconds=max(1.0, _get_float_env("BROWSER_NAVIGATION_TIMEOUT_SECONDS", 30.0)),
        max_connection_retries=max(0, _get_int_env("BROWSER_MAX_CONNECTION_RETRIES", 3)),
        retry_base_delay_seconds=max(0.0, _get_float_env("BROWSER_RETRY_BASE_DELAY_SECONDS", 2.0)),
    )


@lru_cache(maxsize=1)
def get_secondary_provider_settings() -> SecondaryProviderSettings:
    """
    Return Apify settings from environment variables.
    """

    return SecondaryProviderSettings(
        api_token=_get_optional_str_env("APIFY_API_TOKEN"),
        base_url=_get_str_env("APIFY_BASE_URL", "https://api.apify.com/v2").rstrip("/"),
        crawl_actor_id=_get_str_env("APIFY_CRAWL_ACTOR_ID", "apify~web-scraper"),
        crawl_memory_mb=max(128, _get_int_env("APIFY_CRAWL_MEMORY_MB", 2048)),
        link_scan_memory_mb=max(128, _get_int_env("APIFY_LINK_SCAN_MEMORY_MB", 1024)),
        poll_interval_seconds=max(0.5, _get_float_env("APIFY_POLL_INTERVAL_SECONDS", 5.0)),
        run_timeout_seconds=max(10.0, _get_float_env("APIFY_RUN_TIMEOUT_SECONDS", 300.0)),
    )


@lru_cache(maxsize=1)
def get_fetcher_settings() -> FetcherSettings:
    """
    Return resilient fetcher settings from environment variables.
    """

    raw_markers = _get_str_env("SCRAPER_BLOCKED_MARKERS", "403,forbidden")
    markers = tuple(marker.strip().lower() for marker in raw_markers.split(",") if marker.strip())
    return FetcherSettings(
        settle_delay_seconds=max(0.0, _get_float_env("SCRAPER_SETTLE_DELAY_SECONDS", 2.0)),
        extraction_char_budget=max(1000, _get_int_env("SCRAPER_EXTRACTION_CHAR_BUDGET", 30000)),
        plain_char_budget=max(1000, _get_int_env("SCRAPER_PLAIN_CHAR_BUDGET", 15000)),
        blocked_markers=markers or ("403", "forbidden"),
    )


@lru_cache(maxsize=1)
def get_circuit_breaker_settings() -> CircuitBreakerSettings:
    return CircuitBreakerSettings(
        failure_threshold=max(1, _get_int_env("CIRCUIT_BREAKER_FAILURE_THRESHOLD", 3)),
        cooldown_seconds=max(1.0, _get_float_env("CIRCUIT_BREAKER_COOLDOWN_SECONDS", 60.0)),
    )


@lru_cache(maxsize=1)
def get_scrape_queue_settings() -> ScrapeQueueSettings:
    """
    Return scrape queue settings from environment variables.
    """

    return ScrapeQueueSettings(
        max_concurrency=max(1, _get_int_env("SCRAPER_CONCURRENCY", 4)),
        coalesce_duplicates=_get_bool_env("SCRAPE_QUEUE_COALESCE_DUPLICATES", False),
    )


@lru_cache(maxsize=1)
def get_completion_settings() -> CompletionSettings:
    """
    Return OpenAI completion settings from environment variables.
    """

    return CompletionSettings(
        api_key=_get_optional_str_env("OPENAI_API_KEY"),
        base_url=_get_optional_str_env("OPENAI_BASE_URL"),
        model=_get_str_env("OPENAI_MODEL", "gpt-4o-mini"),
        max_tokens=max(64, _get_int_env("OPENAI_MAX_TOKENS", 1024)),
        timeout_seconds=max(1.0, _get_float_env("OPENAI_TIMEOUT_SECONDS", 60.0)),
        max_format_retries=max(0, _get_int_env("OPENAI_MAX_FORMAT_RETRIES", 2)),
    )


@lru_cache(maxsize=1)
def get_seo_data_settings() -> SEODataSettings:
    """
    Return DataForSEO settings from environment variables.
    """

    return SEODataSettings(
        login=_get_optional_str_env("DATAFORSEO_LOGIN"),
        password=_get_optional_str_env("DATAFORSEO_PASSWORD"),
        base_url=_get_str_env("DATAFORSEO_BASE_URL", "https://api.dataforseo.com/v3").rstrip("/"),
        language_code=_get_str_env("DATAFORSEO_LANGUAGE_CODE", "de"),
        country_iso=_get_str_env("DATAFORSEO_COUNTRY_ISO", "de"),
        country_name=_get_str_env("DATAFORSEO_COUNTRY_NAME", "Germany"),
        country_location_code=_get_int_env("DATAFORSEO_COUNTRY_LOCATION_CODE", 2276),
    )


@lru_cache(maxsize=1)
def get_location_settings() -> LocationSettings:
    return LocationSettings(
        default_max_locations=max(1, _get_int_env("LOCATION_MAX_LOCATIONS", 5)),
        pacing_seconds=max(0.0, _get_float_env("LOCATION_PACING_SECONDS", 0.5)),
    )


@lru_cache(maxsize=1)
def get_keyword_settings() -> KeywordSettings:
    """
    Return keyword settings from environment variables.
    """

    return KeywordSettings(
        similarity_threshold=min(1.0, max(0.0, _get_float_env("KEYWORD_SIMILARITY_THRESHOLD", 0.85))),
        min_total_score=max(0, _get_int_env("KEYWORD_MIN_TOTAL_SCORE", 60)),
        min_search_volume=max(0, _get_int_env("KEYWORD_MIN_SEARCH_VOLUME", 10)),
        high_volume_threshold=max(0, _get_int_env("KEYWORD_HIGH_VOLUME_THRESHOLD", 50)),
        validation_limit=max(1, _get_int_env("KEYWORD_VALIDATION_LIMIT", 20)),
        scoring_workers=max(1, _get_int_env("KEYWORD_SCORING_WORKERS", 5)),
        volume_batch_size=max(1, _get_int_env("KEYWORD_VOLUME_BATCH_SIZE", 20)),
        volume_batch_pacing_seconds=max(0.0, _get_float_env("KEYWORD_VOLUME_BATCH_PACING_SECONDS", 3.0)),
        same_country_tld=_get_str_env("KEYWORD_SAME_COUNTRY_TLD", "de").lstrip(".").lower(),
    )


@lru_cache(maxsize=1)
def get_competitor_settings() -> CompetitorSettings:
    """
    Return competitor discovery settings from environment variables.
    """

    return CompetitorSettings(
        max_keywords=max(1, _get_int_env("COMPETITOR_MAX_KEYWORDS", 100)),
        per_location_cap=max(1, _get_int_env("COMPETITOR_PER_LOCATION_CAP", 30)),
        default_max_results=max(1, _get_int_env("COMPETITOR_DEFAULT_MAX_RESULTS", 15)),
        classification_cap=max(1, _get_int_env("COMPETITOR_CLASSIFICATION_CAP", 25)),
        location_pacing_seconds=max(0.0, _get_float_env("COMPETITOR_LOCATION_PACING_SECONDS", 2.0)),
        error_budget=max(1, _get_int_env("COMPETITOR_ERROR_BUDGET", 2)),
        classification_cache_size=max(1, _get_int_env("COMPETITOR_CLASSIFICATION_CACHE_SIZE", 500)),
        classification_workers=max(1, _get_int_env("COMPETITOR_CLASSIFICATION_WORKERS", 3)),
        classification_char_budget=max(500, _get_int_env("COMPETITOR_CLASSIFICATION_CHAR_BUDGET", 6000)),
        classification_pacing_seconds=max(0.0, _get_float_env("COMPETITOR_CLASSIFICATION_PACING_SECONDS", 1.5)),
        social_enabled=_get_bool_env("COMPETITOR_SOCIAL_ENABLED", True),
        social_pacing_seconds=max(0.0, _get_float_env("COMPETITOR_SOCIAL_PACING_SECONDS", 2.0)),
        seo_weight=max(0.0, _get_float_env("COMPETITOR_SEO_WEIGHT", 0.5)),
        social_weight=max(0.0, _get_float_env("COMPETITOR_SOCIAL_WEIGHT", 0.5)),
    )
