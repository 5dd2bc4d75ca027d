"""
tests/test_quality_scorer.py

Keyword quality scoring against a fake SEO data source.

Coverage:
- volume steps including the upper edge of each band
- difficulty, relevance and score filtering
- valid, portal-dominated and low-volume keywords
- lookup failures and ordered batch results
"""

from __future__ import annotations

import pytest

from localseo.config import KeywordSettings
from localseo.domain.keywords import CompetitionLevel, KeywordQualityScore, KeywordVolume
from localseo.keywords.quality import (
    QualityScorer,
    difficulty_score,
    filter_by_score,
    relevance_score,
    volume_score,
)

COMPANY_SERP = [
    {"url": "https://heizung-mueller.de", "rank_absolute": 1},
    {"url": "https://sanitaer-schmidt.de", "rank_absolute": 2},
    {"url": "https://waermetechnik-koch.de", "rank_absolute": 3},
]
PORTAL_SERP = [
    {"url": "https://www.check24.de/heizung", "rank_absolute": 1},
    {"url": "https://www.myhammer.de/heizung", "rank_absolute": 2},
    {"url": "https://heizung-mueller.de", "rank_absolute": 3},
]


class FakeDataSource:
    def __init__(
        self,
        serps: dict[str, list[dict]],
        volumes: dict[str, KeywordVolume],
        failing: set[str] | None = None,
    ) -> None:
        self.serps = serps
        self.volumes = volumes
        self.failing = failing or set()

    def organic_results(self, keyword: str, location_code: int) -> list[dict]:
        if keyword in self.failing:
            raise RuntimeError("serp lookup timed out")
        return self.serps.get(keyword, [])

    def search_volume(self, keywords, location_code: int) -> list[KeywordVolume]:
        return [self.volumes[keyword] for keyword in keywords if keyword in self.volumes]


@pytest.fixture()
def scorer() -> QualityScorer:
    source = FakeDataSource(
        serps={
            "heizung wartung köln kosten": COMPANY_SERP,
            "heizung köln": PORTAL_SERP,
            "heizkörper kaufen": [],
        },
        volumes={
            "heizung wartung köln kosten": KeywordVolume("heizung wartung köln kosten", 480, CompetitionLevel.LOW),
            "heizung köln": KeywordVolume("heizung köln", 1300, CompetitionLevel.HIGH),
            "heizkörper kaufen": KeywordVolume("heizkörper kaufen", 5, CompetitionLevel.MEDIUM),
        },
        failing={"heizung notdienst köln"},
    )
    instance = QualityScorer(data_source=source, settings=KeywordSettings())
    yield instance
    instance.shutdown()


class TestSubScores:
    @pytest.mark.parametrize(
        ("volume", "expected"),
        [
            (0, 0),
            (1, 5),
            (9, 5),
            (10, 10),
            (49, 10),
            (50, 15),
            (99, 15),
            (100, 20),
            (499, 20),
            (500, 25),
            (999, 25),
            (1000, 30),
            (99999, 30),
        ],
    )
    def test_volume_steps(self, volume: int, expected: int) -> None:
        assert volume_score(volume) == expected

    def test_difficulty(self) -> None:
        assert difficulty_score(CompetitionLevel.LOW) == 20
        assert difficulty_score(CompetitionLevel.HIGH) == 10
        assert difficulty_score(CompetitionLevel.UNKNOWN) == 5

    def test_relevance(self) -> None:
        assert relevance_score("heizung köln kosten", "Heizung") == 15
        assert relevance_score("heizung köln", "Heizung") == 5
        assert relevance_score("angebot preis kosten", "") == 10

    def test_filter_by_score(self) -> None:
        scores = [KeywordQualityScore.failed("a"), KeywordQualityScore("b", 30, 40, 20, 10, 100, True, [])]
        assert [score.keyword for score in filter_by_score(scores, 60)] == ["b"]


class TestQualityScorer:
    def test_strong_local_keyword_is_valid(self, scorer: QualityScorer) -> None:
        result = scorer.score("heizung wartung köln kosten", 1004150, "Heizung")

        assert result.volume_score == 20
        assert result.serp_score == 40
        assert result.difficulty_score == 20
        assert result.relevance_score == 15
        assert result.total == 95
        assert result.is_valid is True
        assert result.reasons == ["Good: Score 95 >= 60"]
        assert result.competitor_count == 3
        assert result.avg_competitor_rank == 2.0

    def test_portal_dominated_keyword_is_invalid(self, scorer: QualityScorer) -> None:
        result = scorer.score("heizung köln", 1004150, "Heizung")

        assert result.serp_score == 0
        assert result.total == 30 + 0 + 10 + 5
        assert result.is_valid is False
        assert "Poor SERP quality (mostly portals/shops)" in result.reasons
        assert "More portals than genuine companies" in result.reasons

    def test_low_volume_reason(self, scorer: QualityScorer) -> None:
        result = scorer.score("heizkörper kaufen", 1004150, "Heizung")
        assert "Low search volume (5 < 10)" in result.reasons
        assert result.competitor_count == 0

    def test_lookup_failure_yields_failed_record(self, scorer: QualityScorer) -> None:
        result = scorer.score("heizung notdienst köln", 1004150, "Heizung")

        assert result.is_valid is False
        assert result.total == 0
        assert result.reasons[0] == "Validation failed"
        assert "serp lookup timed out" in result.reasons[1]

    def test_batch_returns_one_record_per_keyword_in_order(self, scorer: QualityScorer) -> None:
        keywords = ["heizung köln", "heizung notdienst köln", "heizung wartung köln kosten", "unbekannt"]

        results = scorer.score_batch(keywords, 1004150, "Heizung")

        assert [result.keyword for result in results] == keywords
        assert [result.is_valid for result in results] == [False, False, True, False]

    def test_validate_top_respects_limit(self) -> None:
        source = FakeDataSource(serps={}, volumes={})
        limited = QualityScorer(data_source=source, settings=KeywordSettings(validation_limit=2))
        try:
            results = limited.validate_top(["a", "b", "c"], 2276, "Heizung")
        finally:
            limited.shutdown()
        assert [result.keyword for result in results] == ["a", "b"]
