"""
localseo/scraping/browser.py

Browser backends for the primary scraping path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from localseo.config import BrowserSettings
from localseo.domain.scraping import NavigationResult
from localseo.errors import BrowserNavigationError, ConfigurationError

logger = logging.getLogger(__name__)

_BODY_SCRIPT = "() => document.body ? document.body.outerHTML : ''"
_FOOTER_SCRIPT = "() => { const footer = document.querySelector('footer'); return footer ? footer.outerHTML : null; }"


class BrowserBackend(ABC):
    """
    Navigates to a URL and captures page markup.
    """

    @abstractmethod
    def navigate(self, url: str) -> NavigationResult:
        """
        Return the outer markup of `body` and of `footer` when present.

        Raises BrowserNavigationError on any connection or navigation failure.
        """


class PlaywrightBrowserBackend(BrowserBackend):
    """
    Connects to a remote Chromium over CDP for every navigation.
    """

    def __init__(self, *, settings: BrowserSettings) -> None:
        if not settings.ws_endpoint:
            raise ConfigurationError("BROWSERLESS_WS_ENDPOINT is required for the browser backend.")
        self._ws_endpoint = settings.ws_endpoint
        self._connect_timeout_ms = settings.connect_timeout_seconds * 1000
        self._navigation_timeout_ms = settings.navigation_timeout_seconds * 1000

    def navigate(self, url: str) -> NavigationResult:
        with sync_playwright() as playwright:
            try:
                browser = playwright.chromium.connect_over_cdp(
                    self._ws_endpoint,
                    timeout=self._connect_timeout_ms,
                )
            except PlaywrightError as exc:
                raise BrowserNavigationError(url, f"Connection timeout or websocket failure: {exc}") from exc

            try:
                page = browser.new_page()
                page.goto(url, wait_until="networkidle", timeout=self._navigation_timeout_ms)
                body_html = page.evaluate(_BODY_SCRIPT) or ""
                footer_html = page.evaluate(_FOOTER_SCRIPT)
            except PlaywrightError as exc:
                raise BrowserNavigationError(url, str(exc)) from exc
            finally:
                try:
                    browser.close()
                except PlaywrightError as exc:
                    logger.debug("Browser close failed url=%s error=%s", url, exc)

        return NavigationResult(body_html=body_html, footer_html=footer_html)
