"""
localseo/services/local_seo_service.py

Service orchestration for local keyword and competitor acquisition.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future
from functools import lru_cache

from localseo.cache import BoundedCache
from localseo.competitors.aggregator import CompetitorAggregator
from localseo.competitors.classifier import EntityClassifier
from localseo.competitors.social import SocialEnricher
from localseo.config import (
    get_browser_settings,
    get_circuit_breaker_settings,
    get_competitor_settings,
    get_completion_settings,
    get_external_http_settings,
    get_fetcher_settings,
    get_keyword_settings,
    get_location_settings,
    get_scrape_queue_settings,
    get_secondary_provider_settings,
    get_seo_data_settings,
)
from localseo.connectors.dataforseo import DataForSEOConnector
from localseo.domain.competitors import CompetitorRecord, EntityType
from localseo.domain.keywords import KeywordExpansion, KeywordQualityScore
from localseo.domain.locations import Location, OperatingRegion
from localseo.domain.scraping import CircuitBreakerState, ScrapeJob, ScrapeQueueStats, ScrapeResult
from localseo.errors import ConfigurationError
from localseo.keywords.deduplicator import KeywordDeduplicator
from localseo.keywords.expansion import KeywordExpander
from localseo.keywords.quality import QualityScorer
from localseo.llm.adapter import OpenAICompletionAdapter
from localseo.locations.resolver import LocationResolver
from localseo.logging_utils import log_event
from localseo.scraping.browser import PlaywrightBrowserBackend
from localseo.scraping.circuit_breaker import CircuitBreaker
from localseo.scraping.fetcher import ResilientFetcher
from localseo.scraping.queue import ScrapeQueue
from localseo.scraping.rate_limiter import Pacer
from localseo.scraping.secondary import ApifyProvider

logger = logging.getLogger(__name__)


class LocalSEOService:
    """
    Facade over location resolution, competitor discovery, keyword scoring
    and the scrape queue.
    """

    def __init__(
        self,
        *,
        resolver: LocationResolver,
        aggregator: CompetitorAggregator,
        deduplicator: KeywordDeduplicator,
        scorer: QualityScorer,
        expander: KeywordExpander,
        queue: ScrapeQueue,
        breaker: CircuitBreaker,
    ) -> None:
        self._resolver = resolver
        self._aggregator = aggregator
        self._deduplicator = deduplicator
        self._scorer = scorer
        self._expander = expander
        self._queue = queue
        self._breaker = breaker

    def resolve_locations(
        self,
        region: str | OperatingRegion,
        main_city: str,
        full_location: str | None = None,
        max_locations: int | None = None,
    ) -> list[Location]:
        return self._resolver.resolve_locations(region, main_city, full_location, max_locations)

    def discover(
        self,
        keywords: Sequence[str],
        locations: Sequence[Location],
        own_site: str,
        industry: str,
        entity_type: str | EntityType = EntityType.UNKNOWN,
        max_results: int | None = None,
    ) -> list[CompetitorRecord]:
        return self._aggregator.discover(
            keywords,
            locations,
            own_site,
            industry,
            _parse_entity_type(entity_type),
            max_results,
        )

    def deduplicate(self, keywords: Sequence[str], threshold: float | None = None) -> list[str]:
        return self._deduplicator.deduplicate(keywords, threshold)

    def score(self, keyword: str, location_code: int, industry: str) -> KeywordQualityScore:
        return self._scorer.score(keyword, location_code, industry)

    def score_batch(self, keywords: Sequence[str], location_code: int, industry: str) -> list[KeywordQualityScore]:
        return self._scorer.score_batch(keywords, location_code, industry)

    def validate_top(self, keywords: Sequence[str], location_code: int, industry: str) -> list[KeywordQualityScore]:
        return self._scorer.validate_top(keywords, location_code, industry)

    def enqueue_scrape(self, job: ScrapeJob) -> Future[ScrapeResult]:
        return self._queue.enqueue(job)

    def expand_with_volume(
        self,
        generated: Sequence[str],
        competitor_keywords: Sequence[str],
        location_code: int,
    ) -> KeywordExpansion:
        return self._expander.expand_with_volume(generated, competitor_keywords, location_code)

    def scrape_queue_stats(self) -> ScrapeQueueStats:
        return self._queue.stats()

    def circuit_breaker_state(self) -> CircuitBreakerState:
        return self._breaker.state()

    def shutdown(self) -> None:
        self._queue.shutdown(wait=True)
        self._aggregator.shutdown()
        self._scorer.shutdown()


def _parse_entity_type(value: str | EntityType) -> EntityType:
    if isinstance(value, EntityType):
        return value
    try:
        return EntityType(value.strip().lower())
    except ValueError:
        return EntityType.UNKNOWN


def build_local_seo_service() -> LocalSEOService:
    """
    Wire the service from environment settings.

    SEO data credentials are mandatory. The browser backend, the secondary
    scraping provider and the completion service are optional; missing ones
    narrow the fallback chain and are logged.
    """

    http_settings = get_external_http_settings()
    seo_data = DataForSEOConnector(settings=get_seo_data_settings(), http_settings=http_settings)

    try:
        browser = PlaywrightBrowserBackend(settings=get_browser_settings())
    except ConfigurationError as exc:
        log_event(logger, logging.WARNING, "browser_backend_disabled", reason=str(exc))
        browser = None

    try:
        secondary = ApifyProvider(settings=get_secondary_provider_settings(), http_settings=http_settings)
    except ConfigurationError as exc:
        log_event(logger, logging.WARNING, "secondary_provider_disabled", reason=str(exc))
        secondary = None

    completion_settings = get_completion_settings()
    try:
        completion = OpenAICompletionAdapter(completion_settings)
    except ConfigurationError as exc:
        log_event(logger, logging.WARNING, "completion_service_disabled", reason=str(exc))
        completion = None

    breaker_settings = get_circuit_breaker_settings()
    breaker = CircuitBreaker(
        name="secondary_provider",
        failure_threshold=breaker_settings.failure_threshold,
        cooldown_seconds=breaker_settings.cooldown_seconds,
    )
    fetcher = ResilientFetcher(
        settings=get_fetcher_settings(),
        browser_settings=get_browser_settings(),
        breaker=breaker,
        browser=browser,
        secondary=secondary,
        completion=completion,
    )
    queue_settings = get_scrape_queue_settings()
    queue = ScrapeQueue(
        runner=fetcher.fetch,
        max_concurrency=queue_settings.max_concurrency,
        coalesce_duplicates=queue_settings.coalesce_duplicates,
    )

    location_settings = get_location_settings()
    resolver = LocationResolver(
        lookup=seo_data,
        pacer=Pacer(min_interval_seconds=location_settings.pacing_seconds),
        default_max_locations=location_settings.default_max_locations,
    )

    competitor_settings = get_competitor_settings()
    classifier = EntityClassifier(
        queue=queue,
        completion=completion,
        cache=BoundedCache(max_size=competitor_settings.classification_cache_size),
        pacer=Pacer(min_interval_seconds=competitor_settings.classification_pacing_seconds),
        char_budget=competitor_settings.classification_char_budget,
        max_format_retries=completion_settings.max_format_retries,
    )
    social = SocialEnricher(
        provider=secondary,
        breaker=breaker,
        pacer=Pacer(min_interval_seconds=competitor_settings.social_pacing_seconds),
        actor_memory_mb=get_secondary_provider_settings().link_scan_memory_mb,
    )
    aggregator = CompetitorAggregator(
        source=seo_data,
        classifier=classifier,
        social=social,
        pacer=Pacer(min_interval_seconds=competitor_settings.location_pacing_seconds),
        settings=competitor_settings,
    )

    keyword_settings = get_keyword_settings()
    deduplicator = KeywordDeduplicator(threshold=keyword_settings.similarity_threshold)
    expander = KeywordExpander(
        volume_source=seo_data,
        deduplicator=deduplicator,
        pacer=Pacer(min_interval_seconds=keyword_settings.volume_batch_pacing_seconds),
        settings=keyword_settings,
    )

    log_event(
        logger,
        logging.INFO,
        "local_seo_service_ready",
        browser=browser is not None,
        secondary=secondary is not None,
        completion=completion is not None,
        scrape_concurrency=queue_settings.max_concurrency,
    )
    return LocalSEOService(
        resolver=resolver,
        aggregator=aggregator,
        deduplicator=deduplicator,
        scorer=QualityScorer(data_source=seo_data, settings=keyword_settings),
        expander=expander,
        queue=queue,
        breaker=breaker,
    )


@lru_cache(maxsize=1)
def get_local_seo_service() -> LocalSEOService:
    """
    Build and cache the local SEO service.
    """

    return build_local_seo_service()
