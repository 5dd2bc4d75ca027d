"""
localseo/keywords/quality.py

Multi-factor keyword quality scoring.

Each keyword gets four sub-scores: search volume (0-30), SERP composition
(0-100, dominated by whether real local companies rank), competition
difficulty (0-20) and transactional relevance (0-20). The total is capped
at 100 and compared with the validity threshold.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from localseo.config import KeywordSettings
from localseo.domain.keywords import CompetitionLevel, KeywordQualityScore, KeywordVolume
from localseo.keywords.serp_classifier import analyze_serp, serp_quality_score
from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)

# (minimum volume, score), highest first
VOLUME_STEPS: tuple[tuple[int, int], ...] = (
    (1000, 30),
    (500, 25),
    (100, 20),
    (50, 15),
    (10, 10),
    (1, 5),
)

DIFFICULTY_SCORES: dict[CompetitionLevel, int] = {
    CompetitionLevel.LOW: 20,
    CompetitionLevel.MEDIUM: 15,
    CompetitionLevel.HIGH: 10,
    CompetitionLevel.UNKNOWN: 5,
}

TRANSACTIONAL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(term, re.IGNORECASE)
    for term in (
        "buchen",
        "beauftragen",
        "bestellen",
        "anfrage",
        "angebot",
        "kosten",
        "preis",
        "firma",
        "betrieb",
        "service",
        "dienstleister",
        "machen lassen",
        "in der nähe",
        "kontakt",
    )
)

POOR_SERP_THRESHOLD = 15


class KeywordDataSource(Protocol):
    def search_volume(self, keywords: Sequence[str], location_code: int) -> list[KeywordVolume]: ...

    def organic_results(self, keyword: str, location_code: int) -> list[dict[str, Any]]: ...


def volume_score(search_volume: int) -> int:
    if search_volume <= 0:
        return 0
    for minimum, score in VOLUME_STEPS:
        if search_volume >= minimum:
            return score
    return 0


def difficulty_score(competition: CompetitionLevel) -> int:
    return DIFFICULTY_SCORES.get(competition, DIFFICULTY_SCORES[CompetitionLevel.UNKNOWN])


def relevance_score(keyword: str, industry: str) -> int:
    """
    +10 for the first transactional pattern found, +5 when the keyword
    contains the industry term; capped at 20.
    """

    score = 0
    if any(pattern.search(keyword) for pattern in TRANSACTIONAL_PATTERNS):
        score += 10
    industry_term = industry.strip().lower()
    if industry_term and industry_term in keyword.lower():
        score += 5
    return min(score, 20)


def filter_by_score(scores: Sequence[KeywordQualityScore], min_score: int = 60) -> list[KeywordQualityScore]:
    return [score for score in scores if score.total >= min_score]


class QualityScorer:
    """
    Scores keywords against SERP and volume data for one location.
    """

    def __init__(self, *, data_source: KeywordDataSource, settings: KeywordSettings) -> None:
        self._data_source = data_source
        self._settings = settings
        self._lookup_pool = ThreadPoolExecutor(
            max_workers=max(2, settings.scoring_workers * 2),
            thread_name_prefix="keyword-lookup",
        )
        self._batch_pool = ThreadPoolExecutor(
            max_workers=settings.scoring_workers,
            thread_name_prefix="keyword-score",
        )

    def score(self, keyword: str, location_code: int, industry: str) -> KeywordQualityScore:
        serp_future = self._lookup_pool.submit(self._data_source.organic_results, keyword, location_code)
        volume_future = self._lookup_pool.submit(self._data_source.search_volume, [keyword], location_code)

        try:
            serp_items = serp_future.result()
            volumes = volume_future.result()
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "keyword_lookup_failed", keyword=keyword, error=str(exc))
            return KeywordQualityScore.failed(keyword, f"Lookup failed: {exc}")

        volume = self._pick_volume(keyword, volumes)
        search_volume = volume.search_volume if volume else 0
        competition = volume.competition if volume else CompetitionLevel.UNKNOWN

        composition = analyze_serp(serp_items, country_tld=self._settings.same_country_tld)
        volume_points = volume_score(search_volume)
        serp_points = serp_quality_score(composition)
        difficulty_points = difficulty_score(competition)
        relevance_points = relevance_score(keyword, industry)

        total = min(100, volume_points + serp_points + difficulty_points + relevance_points)
        threshold = self._settings.min_total_score
        is_valid = total >= threshold

        reasons: list[str] = []
        if search_volume < self._settings.min_search_volume:
            reasons.append(f"Low search volume ({search_volume} < {self._settings.min_search_volume})")
        if serp_points < POOR_SERP_THRESHOLD:
            reasons.append("Poor SERP quality (mostly portals/shops)")
        if composition.portals > composition.companies:
            reasons.append("More portals than genuine companies")
        if is_valid:
            reasons.append(f"Good: Score {total} >= {threshold}")

        return KeywordQualityScore(
            keyword=keyword,
            volume_score=volume_points,
            serp_score=serp_points,
            difficulty_score=difficulty_points,
            relevance_score=relevance_points,
            total=total,
            is_valid=is_valid,
            reasons=reasons,
            search_volume=search_volume,
            competition=competition,
            competitor_count=composition.competitor_count,
            avg_competitor_rank=composition.avg_competitor_rank,
        )

    def score_batch(
        self,
        keywords: Sequence[str],
        location_code: int,
        industry: str,
    ) -> list[KeywordQualityScore]:
        """
        Score keywords concurrently; returns exactly one record per input,
        in input order.
        """

        futures = [self._batch_pool.submit(self.score, keyword, location_code, industry) for keyword in keywords]
        results: list[KeywordQualityScore] = []
        for keyword, future in zip(keywords, futures):
            try:
                results.append(future.result())
            except Exception as exc:  # noqa: BLE001
                log_event(logger, logging.ERROR, "keyword_scoring_failed", keyword=keyword, error=str(exc))
                results.append(KeywordQualityScore.failed(keyword, f"Scoring failed: {exc}"))

        valid = sum(1 for result in results if result.is_valid)
        log_event(
            logger,
            logging.INFO,
            "keywords_scored",
            total=len(results),
            valid=valid,
            invalid=len(results) - valid,
            threshold=self._settings.min_total_score,
            location_code=location_code,
        )
        return results

    def validate_top(self, keywords: Sequence[str], location_code: int, industry: str) -> list[KeywordQualityScore]:
        return self.score_batch(list(keywords)[: self._settings.validation_limit], location_code, industry)

    def shutdown(self) -> None:
        self._batch_pool.shutdown(wait=True)
        self._lookup_pool.shutdown(wait=True)

    @staticmethod
    def _pick_volume(keyword: str, volumes: Sequence[KeywordVolume]) -> KeywordVolume | None:
        target = keyword.strip().lower()
        for volume in volumes:
            if volume.keyword.strip().lower() == target:
                return volume
        return volumes[0] if volumes else None
