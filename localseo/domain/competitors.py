"""
localseo/domain/competitors.py

Domain contracts for competitor discovery and enrichment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntityType(str, Enum):
    SERVICE_PROVIDER = "service_provider"
    RETAILER = "retailer"
    HYBRID = "hybrid"
    UNKNOWN = "unknown"


class ClassificationSource(str, Enum):
    LLM = "llm"
    HEURISTIC = "heuristic"


class SocialPlatform(str, Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"


@dataclass(frozen=True)
class CompetitorCandidate:
    """
    One competitor domain as reported by the SEO data provider.
    """

    domain: str
    etv: float = 0.0
    keyword_count: int = 0
    avg_position: float | None = None


@dataclass(frozen=True)
class EntityClassification:
    """
    Business-type classification of a competitor website.
    """

    is_company: bool
    entity_type: EntityType
    detected_genre: str
    is_relevant_competitor: bool
    confidence: float
    reason: str
    source: ClassificationSource = ClassificationSource.LLM


@dataclass(frozen=True)
class PlatformMetrics:
    """
    Public engagement figures of one social profile.
    """

    platform: SocialPlatform
    url: str
    followers: int = 0
    posts: int = 0
    likes: int = 0
    rating: float = 0.0
    subscribers: int = 0
    videos: int = 0
    verified: bool = False
    has_employee_count: bool = False


@dataclass(frozen=True)
class SocialProfile:
    """
    Social links and metrics for one competitor.
    """

    links: dict[SocialPlatform, str] = field(default_factory=dict)
    metrics: dict[SocialPlatform, PlatformMetrics] = field(default_factory=dict)
    score: int = 0


@dataclass(frozen=True)
class CompetitorRecord:
    """
    Merged, classified and scored competitor. Identity is `domain`.
    """

    domain: str
    organic_traffic: float
    ranked_keywords: int
    average_rank: float | None
    entity_type: EntityType = EntityType.UNKNOWN
    detected_industry: str = ""
    seo_score: int = 0
    social_score: int = 0
    overall_score: int = 0
    social_links: dict[SocialPlatform, str] = field(default_factory=dict)
    social_metrics: dict[SocialPlatform, PlatformMetrics] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain,
            "organic_traffic": self.organic_traffic,
            "ranked_keywords": self.ranked_keywords,
            "average_rank": self.average_rank,
            "entity_type": self.entity_type.value,
            "detected_industry": self.detected_industry,
            "seo_score": self.seo_score,
            "social_score": self.social_score,
            "overall_score": self.overall_score,
            "social_links": {platform.value: url for platform, url in self.social_links.items()},
            "social_metrics": {
                platform.value: {
                    "url": metrics.url,
                    "followers": metrics.followers,
                    "posts": metrics.posts,
                    "likes": metrics.likes,
                    "rating": metrics.rating,
                    "subscribers": metrics.subscribers,
                    "videos": metrics.videos,
                    "verified": metrics.verified,
                }
                for platform, metrics in self.social_metrics.items()
            },
        }
