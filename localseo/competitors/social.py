"""
localseo/competitors/social.py

Social profile discovery and engagement scoring for competitors.

Links are taken from already fetched page content. While any scored
platform is still missing, a link scan on the secondary provider fills
the gaps. Platform metrics come from provider actors. Every provider
call goes through the shared circuit breaker.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, Protocol

from localseo.competitors.scoring import round_half_up
from localseo.domain.competitors import PlatformMetrics, SocialPlatform, SocialProfile
from localseo.logging_utils import log_event
from localseo.scraping.circuit_breaker import CircuitBreaker
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)

_SEGMENT = r"[^/\s\"'<>()\[\]]+"

SOCIAL_LINK_PATTERNS: dict[SocialPlatform, re.Pattern[str]] = {
    SocialPlatform.INSTAGRAM: re.compile(rf"https?://(?:www\.)?instagram\.com/{_SEGMENT}", re.IGNORECASE),
    SocialPlatform.FACEBOOK: re.compile(rf"https?://(?:www\.)?facebook\.com/{_SEGMENT}", re.IGNORECASE),
    SocialPlatform.LINKEDIN: re.compile(
        rf"https?://(?:www\.)?linkedin\.com/(?:company|in)/{_SEGMENT}", re.IGNORECASE
    ),
    SocialPlatform.TWITTER: re.compile(rf"https?://(?:www\.)?(?:twitter|x)\.com/{_SEGMENT}", re.IGNORECASE),
    SocialPlatform.YOUTUBE: re.compile(
        rf"https?://(?:www\.)?youtube\.com/(?:(?:channel|c|user)/{_SEGMENT}|@{_SEGMENT})", re.IGNORECASE
    ),
    SocialPlatform.TIKTOK: re.compile(rf"https?://(?:www\.)?tiktok\.com/@{_SEGMENT}", re.IGNORECASE),
}

INSTAGRAM_RESERVED_PATHS = frozenset({"p", "reel", "reels", "stories", "explore", "accounts"})

INSTAGRAM_ACTOR = "apify~instagram-profile-scraper"
FACEBOOK_ACTOR = "apify~facebook-pages-scraper"
LINKEDIN_ACTOR = "apify~linkedin-company-scraper"
YOUTUBE_ACTOR = "apify~youtube-channel-scraper"

_FACEBOOK_RATING = re.compile(r"(\d+)%.*?\((\d+)")
_COUNT_TEXT = re.compile(r"([0-9.]+)([KMkm])?")
_COUNT_NOISE = re.compile(r"[^0-9.KMkm]")


class SocialProvider(Protocol):
    def crawl_with_links(self, url: str) -> tuple[str, list[str]]: ...

    def run_actor(
        self,
        actor_id: str,
        run_input: dict[str, Any],
        *,
        memory_mb: int | None = None,
    ) -> list[dict[str, Any]]: ...


def extract_social_links(content: str) -> dict[SocialPlatform, str]:
    """
    Return the first link per platform, without query, fragment or
    trailing slash.
    """

    links: dict[SocialPlatform, str] = {}
    if not content:
        return links
    for platform, pattern in SOCIAL_LINK_PATTERNS.items():
        match = pattern.search(content)
        if not match:
            continue
        cleaned = match.group(0).split("?", 1)[0].split("#", 1)[0].rstrip("/")
        if cleaned:
            links[platform] = cleaned
    return links


def instagram_username(url: str) -> str | None:
    match = re.search(r"instagram\.com/([^/?#]+)", url, re.IGNORECASE)
    if not match:
        return None
    username = match.group(1).lstrip("@")
    if not username or username.lower() in INSTAGRAM_RESERVED_PATHS:
        return None
    return username


def parse_count_text(text: str) -> int:
    """
    Parse counts such as "1.5K", "2M" or "830 subscribers".
    """

    match = _COUNT_TEXT.search(_COUNT_NOISE.sub("", text or ""))
    if not match:
        return 0
    try:
        number = float(match.group(1))
    except ValueError:
        return 0
    multiplier = {"K": 1_000, "M": 1_000_000}.get((match.group(2) or "").upper(), 1)
    return int(round(number * multiplier))


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return parse_count_text(value)
    return 0


def platform_score(metrics: PlatformMetrics) -> float:
    """
    Capped per-platform score: Instagram <= 30, Facebook <= 30,
    LinkedIn <= 20, YouTube <= 20. Other platforms contribute nothing.
    """

    if metrics.platform is SocialPlatform.INSTAGRAM:
        return min(metrics.followers / 5000, 20) + min(metrics.posts / 100, 5) + (5 if metrics.verified else 0)
    if metrics.platform is SocialPlatform.FACEBOOK:
        return min(metrics.likes / 3333, 15) + min(metrics.followers / 5000, 10) + metrics.rating / 100 * 5
    if metrics.platform is SocialPlatform.LINKEDIN:
        return min(metrics.followers / 667, 15) + (5 if metrics.has_employee_count else 0)
    if metrics.platform is SocialPlatform.YOUTUBE:
        return min(metrics.subscribers / 667, 15) + min(metrics.videos / 20, 5)
    return 0.0


def social_score(metrics: dict[SocialPlatform, PlatformMetrics]) -> int:
    total = sum(platform_score(item) for item in metrics.values())
    return round_half_up(max(0.0, min(100.0, total)))


class SocialEnricher:
    """
    Collects social links and metrics for one competitor domain.
    """

    def __init__(
        self,
        *,
        provider: SocialProvider | None,
        breaker: CircuitBreaker,
        pacer: Pacer,
        actor_memory_mb: int = 1024,
    ) -> None:
        self._provider = provider
        self._breaker = breaker
        self._pacer = pacer
        self._actor_memory_mb = actor_memory_mb
        self._scrapers: dict[SocialPlatform, Callable[[str], PlatformMetrics | None]] = {
            SocialPlatform.INSTAGRAM: self._instagram,
            SocialPlatform.FACEBOOK: self._facebook,
            SocialPlatform.LINKEDIN: self._linkedin,
            SocialPlatform.YOUTUBE: self._youtube,
        }

    def enrich(self, domain: str, content: str | None = None) -> SocialProfile:
        links = extract_social_links(content or "")
        if not self._scrapers.keys() <= links.keys():
            for platform, url in self._scan_links(f"https://{domain}").items():
                links.setdefault(platform, url)

        metrics: dict[SocialPlatform, PlatformMetrics] = {}
        for platform, scraper in self._scrapers.items():
            url = links.get(platform)
            if not url:
                continue
            self._pacer.wait("social_actor")
            result = scraper(url)
            if result is not None:
                metrics[platform] = result

        score = social_score(metrics)
        log_event(
            logger,
            logging.INFO,
            "social_enriched",
            domain=domain,
            platforms=sorted(platform.value for platform in links),
            scored_platforms=sorted(platform.value for platform in metrics),
            social_score=score,
        )
        return SocialProfile(links=links, metrics=metrics, score=score)

    def _scan_links(self, url: str) -> dict[SocialPlatform, str]:
        if self._provider is None:
            return {}
        if not self._breaker.allow():
            log_event(logger, logging.INFO, "social_link_scan_skipped", url=url, reason="circuit_open")
            return {}
        try:
            html, page_links = self._provider.crawl_with_links(url)
        except Exception as exc:  # noqa: BLE001
            self._breaker.record_failure(str(exc))
            log_event(logger, logging.WARNING, "social_link_scan_failed", url=url, error=str(exc))
            return {}
        self._breaker.record_success()
        return extract_social_links(" ".join([html, *page_links]))

    def _run_actor(self, platform: SocialPlatform, actor_id: str, run_input: dict[str, Any]) -> dict[str, Any] | None:
        if self._provider is None:
            return None
        if not self._breaker.allow():
            log_event(logger, logging.INFO, "social_actor_skipped", platform=platform, reason="circuit_open")
            return None
        try:
            items = self._provider.run_actor(actor_id, run_input, memory_mb=self._actor_memory_mb)
        except Exception as exc:  # noqa: BLE001
            self._breaker.record_failure(str(exc))
            log_event(logger, logging.WARNING, "social_actor_failed", platform=platform, error=str(exc))
            return None
        self._breaker.record_success()
        if not items:
            log_event(logger, logging.INFO, "social_actor_empty", platform=platform)
            return None
        return items[0]

    def _instagram(self, url: str) -> PlatformMetrics | None:
        username = instagram_username(url)
        if not username:
            return None
        data = self._run_actor(SocialPlatform.INSTAGRAM, INSTAGRAM_ACTOR, {"usernames": [username]})
        if data is None:
            return None
        return PlatformMetrics(
            platform=SocialPlatform.INSTAGRAM,
            url=url,
            followers=_as_int(data.get("followersCount")),
            posts=_as_int(data.get("postsCount")),
            verified=bool(data.get("verified")),
        )

    def _facebook(self, url: str) -> PlatformMetrics | None:
        data = self._run_actor(SocialPlatform.FACEBOOK, FACEBOOK_ACTOR, {"startUrls": [{"url": url}]})
        if data is None:
            return None
        rating = 0.0
        match = _FACEBOOK_RATING.search(str(data.get("rating") or ""))
        if match:
            rating = float(match.group(1))
        return PlatformMetrics(
            platform=SocialPlatform.FACEBOOK,
            url=url,
            likes=_as_int(data.get("likes")),
            followers=_as_int(data.get("followers")),
            rating=rating,
        )

    def _linkedin(self, url: str) -> PlatformMetrics | None:
        if "/company/" not in url.lower():
            return None
        data = self._run_actor(
            SocialPlatform.LINKEDIN,
            LINKEDIN_ACTOR,
            {"startUrls": [{"url": url}], "proxy": {"useApifyProxy": True}},
        )
        if data is None:
            return None
        return PlatformMetrics(
            platform=SocialPlatform.LINKEDIN,
            url=url,
            followers=_as_int(data.get("followerCount")),
            has_employee_count=bool(data.get("staffCountRange") or data.get("employeeCount")),
        )

    def _youtube(self, url: str) -> PlatformMetrics | None:
        data = self._run_actor(
            SocialPlatform.YOUTUBE,
            YOUTUBE_ACTOR,
            {"startUrls": [{"url": url}], "maxResults": 1, "maxResultsShorts": 0, "maxResultStreams": 0},
        )
        if data is None:
            return None
        subscriber_text = data.get("subscriberCountText")
        subscribers = parse_count_text(str(subscriber_text)) if subscriber_text else _as_int(data.get("subscriberCount"))
        return PlatformMetrics(
            platform=SocialPlatform.YOUTUBE,
            url=url,
            subscribers=subscribers,
            videos=_as_int(data.get("videoCount")),
        )
