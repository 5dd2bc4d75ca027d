"""
Competitor SEO and overall scoring.
"""

from __future__ import annotations

import math

from localseo.domain.competitors import CompetitorCandidate

MISSING_RANK = 100.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def seo_score(candidate: CompetitorCandidate) -> int:
    """
    Traffic (<= 50) + ranked keywords (<= 30) + average position (<= 20).

    A missing or zero average position counts as rank 100.
    """

    traffic_points = min(candidate.etv / 200, 50)
    keyword_points = min(candidate.keyword_count / 33.33, 30)
    average_rank = candidate.avg_position or MISSING_RANK
    position_points = max(0.0, 20 - average_rank / 5)
    return round_half_up(traffic_points + keyword_points + position_points)


def overall_score(seo: int, social: int, *, seo_weight: float = 0.5, social_weight: float = 0.5) -> int:
    return round_half_up(seo * seo_weight + social * social_weight)
