"""
localseo/domain/keywords.py

Domain contracts for keyword scoring and expansion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DomainCategory(str, Enum):
    COMPANY = "company"
    PORTAL = "portal"
    SHOP = "shop"
    OTHER = "other"


class CompetitionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "CompetitionLevel":
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.UNKNOWN
        return cls.UNKNOWN


@dataclass(frozen=True)
class KeywordVolume:
    keyword: str
    search_volume: int
    competition: CompetitionLevel = CompetitionLevel.UNKNOWN
    cpc: float | None = None


@dataclass(frozen=True)
class SERPComposition:
    """
    Category tally of the top organic results for one keyword.
    """

    companies: int = 0
    portals: int = 0
    shops: int = 0
    others: int = 0
    same_country: int = 0
    competitor_count: int = 0
    avg_competitor_rank: float = 0.0
    domains: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class KeywordQualityScore:
    """
    Multi-factor keyword quality score.
    """

    keyword: str
    volume_score: int
    serp_score: int
    difficulty_score: int
    relevance_score: int
    total: int
    is_valid: bool
    reasons: list[str]
    search_volume: int = 0
    competition: CompetitionLevel = CompetitionLevel.UNKNOWN
    competitor_count: int = 0
    avg_competitor_rank: float = 0.0

    @classmethod
    def failed(cls, keyword: str, *extra_reasons: str) -> "KeywordQualityScore":
        return cls(
            keyword=keyword,
            volume_score=0,
            serp_score=0,
            difficulty_score=0,
            relevance_score=0,
            total=0,
            is_valid=False,
            reasons=["Validation failed", *extra_reasons],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "volume_score": self.volume_score,
            "serp_score": self.serp_score,
            "difficulty_score": self.difficulty_score,
            "relevance_score": self.relevance_score,
            "total": self.total,
            "is_valid": self.is_valid,
            "reasons": list(self.reasons),
            "search_volume": self.search_volume,
            "competition": self.competition.value,
            "competitor_count": self.competitor_count,
            "avg_competitor_rank": self.avg_competitor_rank,
        }


@dataclass(frozen=True)
class KeywordExpansion:
    """
    Volume-checked keyword set produced from generated and competitor keywords.
    """

    keywords: list[KeywordVolume]
    high_volume: list[KeywordVolume]
    total_checked: int
    skipped_batches: int = 0
