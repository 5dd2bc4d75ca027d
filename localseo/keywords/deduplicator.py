"""
Near-duplicate keyword elimination.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)


def keyword_signature(keyword: str) -> str:
    """
    Lowercase, trim, split on whitespace, sort tokens and rejoin.
    """

    return " ".join(sorted(keyword.lower().split()))


def jaccard_similarity(left: frozenset[str], right: frozenset[str]) -> float:
    if not left and not right:
        return 1.0
    union = left | right
    return len(left & right) / len(union)


class KeywordDeduplicator:
    """
    Order-preserving keyword deduplication by token-set similarity.

    Every candidate is compared with every accepted keyword, so the cost is
    quadratic; lists in the low hundreds are the intended input.
    """

    def __init__(self, *, threshold: float = 0.85) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be between 0 and 1.")
        self._threshold = threshold

    def deduplicate(self, keywords: Iterable[str], threshold: float | None = None) -> list[str]:
        effective_threshold = self._threshold if threshold is None else threshold
        accepted: list[str] = []
        seen_signatures: set[str] = set()
        accepted_token_sets: list[frozenset[str]] = []
        total = 0

        for keyword in keywords:
            total += 1
            signature = keyword_signature(keyword)
            if signature in seen_signatures:
                continue

            tokens = frozenset(signature.split())
            if any(jaccard_similarity(tokens, other) >= effective_threshold for other in accepted_token_sets):
                continue

            seen_signatures.add(signature)
            accepted_token_sets.append(tokens)
            accepted.append(keyword)

        log_event(
            logger,
            logging.DEBUG,
            "keywords_deduplicated",
            input_count=total,
            output_count=len(accepted),
            threshold=effective_threshold,
        )
        return accepted
