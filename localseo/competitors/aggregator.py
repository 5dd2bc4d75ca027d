"""
localseo/competitors/aggregator.py

Multi-location competitor discovery.

Locations are queried one after another with pacing. Results are merged by
domain, filtered against the customer's own site and known portals,
classified, enriched with social data and ranked by overall score.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from localseo.competitors.blacklist import has_aggregator_pattern, is_blacklisted, normalize_domain
from localseo.competitors.classifier import EntityClassifier
from localseo.competitors.scoring import overall_score, seo_score
from localseo.competitors.social import SocialEnricher
from localseo.config import CompetitorSettings
from localseo.domain.competitors import CompetitorCandidate, CompetitorRecord, EntityType, SocialProfile
from localseo.domain.locations import Location
from localseo.logging_utils import log_event
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)


class CompetitorSource(Protocol):
    def competitors_for_keywords(
        self,
        keywords: Sequence[str],
        location_code: int,
        cap: int,
    ) -> list[CompetitorCandidate]: ...


def is_own_domain(domain: str, own_site: str) -> bool:
    own = normalize_domain(own_site)
    if not own:
        return False
    host = normalize_domain(domain)
    return host == own or own in host


class CompetitorAggregator:
    """
    Runs discovery, filtering, classification, enrichment and scoring.
    """

    def __init__(
        self,
        *,
        source: CompetitorSource,
        classifier: EntityClassifier,
        social: SocialEnricher | None,
        pacer: Pacer,
        settings: CompetitorSettings,
    ) -> None:
        self._source = source
        self._classifier = classifier
        self._social = social if settings.social_enabled else None
        self._pacer = pacer
        self._settings = settings
        self._pool = ThreadPoolExecutor(
            max_workers=settings.classification_workers,
            thread_name_prefix="competitor-classify",
        )

    def discover(
        self,
        keywords: Sequence[str],
        locations: Sequence[Location],
        own_site: str,
        industry: str,
        entity_type: EntityType = EntityType.UNKNOWN,
        max_results: int | None = None,
    ) -> list[CompetitorRecord]:
        limit = self._settings.default_max_results if max_results is None else max_results
        capped_keywords = list(keywords)[: self._settings.max_keywords]
        if limit <= 0 or not capped_keywords or not locations:
            log_event(
                logger,
                logging.INFO,
                "competitor_discovery_skipped",
                keywords=len(capped_keywords),
                locations=len(locations),
                max_results=limit,
            )
            return []

        merged = self.merge_locations(capped_keywords, locations)
        survivors = self.filter_candidates(merged.values(), own_site)
        shortlist = sorted(survivors, key=lambda candidate: candidate.etv, reverse=True)[
            : min(2 * limit, self._settings.classification_cap)
        ]

        futures = [
            self._pool.submit(self._evaluate, candidate, industry, entity_type) for candidate in shortlist
        ]
        records: list[CompetitorRecord] = []
        for candidate, future in zip(shortlist, futures):
            try:
                record = future.result()
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.ERROR,
                    "competitor_evaluation_failed",
                    domain=candidate.domain,
                    error=str(exc),
                )
                continue
            if record is not None:
                records.append(record)

        ranked = sorted(records, key=lambda record: record.overall_score, reverse=True)[:limit]
        log_event(
            logger,
            logging.INFO,
            "competitor_discovery_completed",
            merged=len(merged),
            filtered=len(survivors),
            classified=len(shortlist),
            accepted=len(records),
            returned=len(ranked),
        )
        return ranked

    def merge_locations(
        self,
        keywords: Sequence[str],
        locations: Sequence[Location],
    ) -> dict[str, CompetitorCandidate]:
        """
        Query each location in turn and merge by domain, keeping the entry
        with the higher traffic estimate. Stops after too many consecutive
        location failures and returns what was merged so far.
        """

        merged: dict[str, CompetitorCandidate] = {}
        consecutive_failures = 0
        for index, location in enumerate(locations):
            self._pacer.wait("discovery_location")
            try:
                candidates = self._source.competitors_for_keywords(
                    keywords,
                    location.code,
                    self._settings.per_location_cap,
                )
            except Exception as exc:  # noqa: BLE001
                consecutive_failures += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "competitor_location_failed",
                    location=location.name,
                    location_code=location.code,
                    consecutive_failures=consecutive_failures,
                    error=str(exc),
                )
                if consecutive_failures >= self._settings.error_budget:
                    log_event(
                        logger,
                        logging.WARNING,
                        "competitor_discovery_aborted",
                        processed_locations=index + 1,
                        total_locations=len(locations),
                        merged=len(merged),
                    )
                    break
                continue

            consecutive_failures = 0
            for candidate in candidates:
                key = normalize_domain(candidate.domain)
                if not key:
                    continue
                existing = merged.get(key)
                if existing is None or candidate.etv > existing.etv:
                    merged[key] = candidate
            log_event(
                logger,
                logging.INFO,
                "competitor_location_merged",
                location=location.name,
                found=len(candidates),
                merged_total=len(merged),
            )
        return merged

    @staticmethod
    def filter_candidates(candidates: Iterable[CompetitorCandidate], own_site: str) -> list[CompetitorCandidate]:
        kept: list[CompetitorCandidate] = []
        for candidate in candidates:
            if is_own_domain(candidate.domain, own_site):
                continue
            # path patterns only apply when the source reported a full URL
            if is_blacklisted(candidate.domain) or has_aggregator_pattern(candidate.domain):
                log_event(logger, logging.DEBUG, "competitor_filtered", domain=candidate.domain)
                continue
            kept.append(candidate)
        return kept

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)

    def _evaluate(
        self,
        candidate: CompetitorCandidate,
        industry: str,
        entity_type: EntityType,
    ) -> CompetitorRecord | None:
        domain = normalize_domain(candidate.domain)
        outcome = self._classifier.classify(domain, industry, entity_type)
        classification = outcome.classification
        if not classification.is_company or not classification.is_relevant_competitor:
            log_event(
                logger,
                logging.INFO,
                "competitor_rejected",
                domain=domain,
                is_company=classification.is_company,
                is_relevant=classification.is_relevant_competitor,
                reason=classification.reason,
            )
            return None

        profile = SocialProfile()
        if self._social is not None:
            profile = self._social.enrich(domain, outcome.content)

        seo = seo_score(candidate)
        return CompetitorRecord(
            domain=domain,
            organic_traffic=candidate.etv,
            ranked_keywords=candidate.keyword_count,
            average_rank=candidate.avg_position,
            entity_type=classification.entity_type,
            detected_industry=classification.detected_genre,
            seo_score=seo,
            social_score=profile.score,
            overall_score=overall_score(
                seo,
                profile.score,
                seo_weight=self._settings.seo_weight,
                social_weight=self._settings.social_weight,
            ),
            social_links=dict(profile.links),
            social_metrics=dict(profile.metrics),
        )
