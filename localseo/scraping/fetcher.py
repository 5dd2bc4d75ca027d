"""
localseo/scraping/fetcher.py

Resilient page fetcher with a primary browser path, a breaker-guarded
secondary provider path and optional completion-based extraction.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from localseo.config import BrowserSettings, FetcherSettings
from localseo.domain.scraping import FetchMethod, NavigationResult, ScrapeJob, ScrapeMode, ScrapeResult
from localseo.errors import BrowserNavigationError
from localseo.llm.adapter import BaseCompletionAdapter
from localseo.logging_utils import log_event
from localseo.scraping.browser import BrowserBackend
from localseo.scraping.circuit_breaker import CircuitBreaker
from localseo.scraping.html_text import html_to_text

logger = logging.getLogger(__name__)

TLS_ERROR_MARKERS = (
    "err_ssl_version_or_cipher_mismatch",
    "err_cert_common_name_invalid",
    "err_ssl_protocol_error",
    "err_cert_date_invalid",
    "err_cert_authority_invalid",
)
# Case-sensitive: "connection" must not match net::ERR_CONNECTION_REFUSED.
CONNECTION_ERROR_MARKERS = (
    "ECONNRESET",
    "WebSocket",
    "connection",
    "Connection timeout",
    "Protocol error",
    "Target closed",
)

EXTRACTION_SYSTEM_PROMPT = (
    "You extract information from website content. Answer precisely and only "
    "with information found in the content. If the information is missing, say so."
)


class CrawlProvider(Protocol):
    def crawl(self, url: str) -> str: ...


def is_tls_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in TLS_ERROR_MARKERS)


def is_connection_error(message: str) -> bool:
    return any(marker in message for marker in CONNECTION_ERROR_MARKERS)


def downgrade_scheme(url: str) -> str:
    if url.lower().startswith("https://"):
        return "http://" + url[len("https://") :]
    return url


class ResilientFetcher:
    """
    Fetches one page through the fallback chain and never raises.

    Order: settle delay, browser navigation (connection failures retried with
    doubling backoff), then the secondary provider in full mode while the
    circuit breaker admits calls, with one scheme-downgraded retry.
    """

    def __init__(
        self,
        *,
        settings: FetcherSettings,
        browser_settings: BrowserSettings,
        breaker: CircuitBreaker,
        browser: BrowserBackend | None = None,
        secondary: CrawlProvider | None = None,
        completion: BaseCompletionAdapter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._max_connection_retries = browser_settings.max_connection_retries
        self._retry_base_delay_seconds = browser_settings.retry_base_delay_seconds
        self._breaker = breaker
        self._browser = browser
        self._secondary = secondary
        self._completion = completion
        self._sleep = sleep

    def fetch(self, job: ScrapeJob) -> ScrapeResult:
        errors: list[str] = []
        if self._settings.settle_delay_seconds > 0:
            self._sleep(self._settings.settle_delay_seconds)

        html = ""
        method = FetchMethod.NONE
        secondary_url = job.url

        try:
            navigation = self._navigate_with_retries(job.url)
        except BrowserNavigationError as exc:
            errors.append(f"primary: {exc.detail}")
            if is_tls_error(exc.detail):
                secondary_url = downgrade_scheme(job.url)
            log_event(
                logger,
                logging.WARNING,
                "primary_fetch_failed",
                url=job.url,
                tls_error=secondary_url != job.url,
                error=exc.detail,
            )
        except Exception as exc:  # noqa: BLE001
            errors.append(f"primary: {exc}")
            log_event(logger, logging.WARNING, "primary_fetch_failed", url=job.url, tls_error=False, error=str(exc))
        else:
            if navigation is not None:
                candidate = navigation.combined_html
                if self._is_usable(candidate):
                    html = candidate
                    method = FetchMethod.PRIMARY
                else:
                    errors.append("primary: empty or blocked content")
                    log_event(logger, logging.WARNING, "primary_content_blocked", url=job.url)

        if not html and job.mode is ScrapeMode.FULL:
            html, method = self._secondary_chain(job.url, secondary_url, errors)

        if not html:
            log_event(
                logger,
                logging.WARNING,
                "scrape_failed",
                url=job.url,
                mode=job.mode,
                errors=errors,
            )
            return ScrapeResult(url=job.url, mode=job.mode, content="", method=FetchMethod.NONE, errors=errors)

        text = html_to_text(html)
        if job.instruction:
            content = self._extract(job, text, errors)
        else:
            content = text[: self._settings.plain_char_budget]

        log_event(
            logger,
            logging.INFO,
            "scrape_completed",
            url=job.url,
            mode=job.mode,
            method=method,
            content_chars=len(content),
        )
        return ScrapeResult(url=job.url, mode=job.mode, content=content, method=method, errors=errors)

    def _navigate_with_retries(self, url: str) -> NavigationResult | None:
        if self._browser is None:
            return None

        attempt = 0
        while True:
            try:
                return self._browser.navigate(url)
            except BrowserNavigationError as exc:
                if is_tls_error(exc.detail) or not is_connection_error(exc.detail):
                    raise
                if attempt >= self._max_connection_retries:
                    raise
                delay = self._retry_base_delay_seconds * (2**attempt)
                attempt += 1
                log_event(
                    logger,
                    logging.WARNING,
                    "primary_connection_retry",
                    url=url,
                    attempt=attempt,
                    max_retries=self._max_connection_retries,
                    wait_seconds=delay,
                )
                self._sleep(delay)

    def _secondary_chain(self, url: str, secondary_url: str, errors: list[str]) -> tuple[str, FetchMethod]:
        downgraded = secondary_url != url
        html = self._secondary_attempt(secondary_url, errors)
        if html:
            return html, FetchMethod.SECONDARY_DOWNGRADED if downgraded else FetchMethod.SECONDARY

        fallback_url = downgrade_scheme(url)
        if not downgraded and fallback_url != url:
            html = self._secondary_attempt(fallback_url, errors)
            if html:
                return html, FetchMethod.SECONDARY_DOWNGRADED
        return "", FetchMethod.NONE

    def _secondary_attempt(self, url: str, errors: list[str]) -> str:
        if self._secondary is None:
            errors.append("secondary: not configured")
            return ""
        if not self._breaker.allow():
            errors.append("secondary: circuit breaker open")
            log_event(logger, logging.INFO, "secondary_fetch_skipped", url=url, reason="circuit_open")
            return ""

        try:
            html = self._secondary.crawl(url)
        except Exception as exc:  # noqa: BLE001
            self._breaker.record_failure(str(exc))
            errors.append(f"secondary: {exc}")
            log_event(logger, logging.WARNING, "secondary_fetch_failed", url=url, error=str(exc))
            return ""

        self._breaker.record_success()
        if not self._is_usable(html):
            errors.append(f"secondary: empty or blocked content for {url}")
            return ""
        return html

    def _is_usable(self, html: str) -> bool:
        if not html or not html.strip():
            return False
        lowered = html.lower()
        return not any(marker in lowered for marker in self._settings.blocked_markers)

    def _extract(self, job: ScrapeJob, text: str, errors: list[str]) -> str:
        if self._completion is None:
            errors.append("extraction: completion service not configured")
            return ""

        user_prompt = f"{text[: self._settings.extraction_char_budget]}\n\nFind: {job.instruction}"
        try:
            return self._completion.complete(EXTRACTION_SYSTEM_PROMPT, user_prompt).text.strip()
        except Exception as exc:  # noqa: BLE001
            errors.append(f"extraction: {exc}")
            log_event(logger, logging.WARNING, "extraction_failed", url=job.url, error=str(exc))
            return ""
