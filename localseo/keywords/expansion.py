"""
localseo/keywords/expansion.py

Volume-checked keyword expansion from generated and competitor keywords.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from localseo.config import KeywordSettings
from localseo.domain.keywords import KeywordExpansion, KeywordVolume
from localseo.keywords.deduplicator import KeywordDeduplicator
from localseo.logging_utils import log_event
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)


class VolumeSource(Protocol):
    def search_volume(self, keywords: Sequence[str], location_code: int) -> list[KeywordVolume]: ...


class KeywordExpander:
    """
    Deduplicates candidate keywords and keeps those with real search demand.
    """

    def __init__(
        self,
        *,
        volume_source: VolumeSource,
        deduplicator: KeywordDeduplicator,
        pacer: Pacer,
        settings: KeywordSettings,
    ) -> None:
        self._volume_source = volume_source
        self._deduplicator = deduplicator
        self._pacer = pacer
        self._settings = settings

    def batched_volumes(self, keywords: Sequence[str], location_code: int) -> tuple[list[KeywordVolume], int]:
        """
        Look volumes up in paced batches. Failed batches are skipped.

        Returns the collected volumes and the number of skipped batches.
        """

        batch_size = self._settings.volume_batch_size
        volumes: list[KeywordVolume] = []
        skipped = 0
        for start in range(0, len(keywords), batch_size):
            batch = list(keywords[start : start + batch_size])
            self._pacer.wait("volume_batch")
            try:
                volumes.extend(self._volume_source.search_volume(batch, location_code))
            except Exception as exc:  # noqa: BLE001
                skipped += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "volume_batch_failed",
                    batch_start=start,
                    batch_size=len(batch),
                    error=str(exc),
                )
        return volumes, skipped

    def expand_with_volume(
        self,
        generated: Sequence[str],
        competitor_keywords: Sequence[str],
        location_code: int,
    ) -> KeywordExpansion:
        unique = self._deduplicator.deduplicate([*generated, *competitor_keywords])
        volumes, skipped = self.batched_volumes(unique, location_code)

        kept = sorted(
            (
                volume
                for volume in volumes
                if volume.keyword and volume.search_volume >= self._settings.min_search_volume
            ),
            key=lambda volume: volume.search_volume,
            reverse=True,
        )
        high_volume = [volume for volume in kept if volume.search_volume >= self._settings.high_volume_threshold]

        log_event(
            logger,
            logging.INFO,
            "keywords_expanded",
            candidates=len(unique),
            with_volume=len(kept),
            high_volume=len(high_volume),
            skipped_batches=skipped,
        )
        return KeywordExpansion(
            keywords=kept,
            high_volume=high_volume,
            total_checked=len(unique),
            skipped_batches=skipped,
        )
