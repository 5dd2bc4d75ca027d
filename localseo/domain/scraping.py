"""
localseo/domain/scraping.py

Domain contracts for page acquisition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ScrapeMode(str, Enum):
    FULL = "full"
    LIGHTWEIGHT = "lightweight"


class FetchMethod(str, Enum):
    """
    Which path produced the markup of a scrape result.
    """

    PRIMARY = "primary"
    SECONDARY = "secondary"
    SECONDARY_DOWNGRADED = "secondary_downgraded"
    NONE = "none"


class BreakerStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class ScrapeJob:
    """
    One page acquisition request.
    """

    url: str
    mode: ScrapeMode = ScrapeMode.FULL
    instruction: str | None = None

    @property
    def dedup_key(self) -> tuple[str, ScrapeMode]:
        return (self.url, self.mode)


@dataclass(frozen=True)
class ScrapeResult:
    """
    Outcome of a scrape job. Empty content means every path failed.
    """

    url: str
    mode: ScrapeMode
    content: str
    method: FetchMethod = FetchMethod.NONE
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.content)


@dataclass(frozen=True)
class NavigationResult:
    """
    Raw markup captured by a browser backend.
    """

    body_html: str
    footer_html: str | None = None

    @property
    def combined_html(self) -> str:
        if self.footer_html and self.footer_html not in self.body_html:
            return f"{self.body_html}\n{self.footer_html}"
        return self.body_html


@dataclass(frozen=True)
class CircuitBreakerState:
    status: BreakerStatus
    consecutive_failures: int
    last_failure_at: float | None


@dataclass(frozen=True)
class ScrapeQueueStats:
    running: int
    queued: int
    max_concurrency: int
    in_flight_keys: int
