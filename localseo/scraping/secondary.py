"""
localseo/scraping/secondary.py

Apify client used as the secondary scraping path and for social actors.

Runs are started asynchronously, polled until they finish and their
default dataset is read back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from localseo.config import ExternalHTTPSettings, SecondaryProviderSettings
from localseo.connectors.base import BaseConnector
from localseo.errors import ConfigurationError, ProviderParseError, ProviderRequestError
from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)

CRAWL_PAGE_FUNCTION = """async function pageFunction(context) {
    const { request } = context;
    return {
        url: request.url,
        html: document.body ? document.body.outerHTML : '',
    };
}"""

LINK_SCAN_PAGE_FUNCTION = """async function pageFunction(context) {
    const { request } = context;
    const links = Array.from(document.querySelectorAll('a[href]')).map((a) => a.href);
    return {
        url: request.url,
        html: document.body ? document.body.outerHTML : '',
        links,
    };
}"""

_FAILED_RUN_STATUSES = {"FAILED", "ABORTED", "TIMED-OUT"}


class ApifyProvider(BaseConnector):
    """
    Secondary scraping provider backed by Apify actors.
    """

    def __init__(
        self,
        *,
        settings: SecondaryProviderSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not settings.api_token:
            raise ConfigurationError("APIFY_API_TOKEN is required for the secondary scraping provider.")
        super().__init__(source="apify", http_settings=http_settings, session=session, sleep=sleep)
        self._settings = settings
        self._base_url = settings.base_url
        self._headers = {"Authorization": f"Bearer {settings.api_token}"}
        self._clock = clock

    def submit_crawl_job(
        self,
        url: str,
        *,
        page_function: str = CRAWL_PAGE_FUNCTION,
        memory_mb: int | None = None,
    ) -> str:
        """
        Start a single-page crawl and return the run id.
        """

        run_input = {
            "startUrls": [{"url": url}],
            "pageFunction": page_function,
            "maxRequestsPerCrawl": 1,
            "maxCrawlingDepth": 0,
            "proxyConfiguration": {"useApifyProxy": True},
        }
        return self._start_run(
            self._settings.crawl_actor_id,
            run_input,
            memory_mb=memory_mb or self._settings.crawl_memory_mb,
        )

    def fetch_result(self, job_id: str) -> str:
        """
        Wait for a crawl run and return the captured body markup.
        """

        items = self.fetch_items(job_id)
        for item in items:
            html = item.get("html") if isinstance(item, dict) else None
            if isinstance(html, str) and html.strip():
                return html
        return ""

    def crawl(self, url: str) -> str:
        return self.fetch_result(self.submit_crawl_job(url))

    def crawl_with_links(self, url: str) -> tuple[str, list[str]]:
        """
        Crawl one page and return its markup plus every absolute link on it.
        """

        run_id = self.submit_crawl_job(
            url,
            page_function=LINK_SCAN_PAGE_FUNCTION,
            memory_mb=self._settings.link_scan_memory_mb,
        )
        html = ""
        links: list[str] = []
        for item in self.fetch_items(run_id):
            if not isinstance(item, dict):
                continue
            html = html or str(item.get("html") or "")
            links.extend(str(link) for link in item.get("links") or [] if link)
        return html, links

    def run_actor(
        self,
        actor_id: str,
        run_input: dict[str, Any],
        *,
        memory_mb: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Run an actor to completion and return its dataset items.
        """

        run_id = self._start_run(actor_id, run_input, memory_mb=memory_mb)
        return self.fetch_items(run_id)

    def fetch_items(self, run_id: str) -> list[dict[str, Any]]:
        dataset_id = self._wait_for_run(run_id)
        payload = self._request_json(
            method="GET",
            url=f"{self._base_url}/datasets/{dataset_id}/items",
            params={"clean": "true", "format": "json"},
            headers=self._headers,
        )
        if not isinstance(payload, list):
            raise ProviderParseError(self.source, f"dataset {dataset_id} did not return a list.")
        return [item for item in payload if isinstance(item, dict)]

    def _start_run(self, actor_id: str, run_input: dict[str, Any], *, memory_mb: int | None) -> str:
        params: dict[str, Any] = {}
        if memory_mb:
            params["memory"] = memory_mb
        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/acts/{actor_id}/runs",
            params=params or None,
            headers=self._headers,
            json_body=run_input,
        )
        run_id = (payload.get("data") or {}).get("id") if isinstance(payload, dict) else None
        if not run_id:
            raise ProviderParseError(self.source, f"actor {actor_id} start response carried no run id.")
        log_event(logger, logging.INFO, "apify_run_started", actor_id=actor_id, run_id=run_id)
        return str(run_id)

    def _wait_for_run(self, run_id: str) -> str:
        """
        Poll a run until it succeeds and return its default dataset id.
        """

        deadline = self._clock() + self._settings.run_timeout_seconds
        while True:
            payload = self._request_json(
                method="GET",
                url=f"{self._base_url}/actor-runs/{run_id}",
                headers=self._headers,
            )
            data = payload.get("data") if isinstance(payload, dict) else None
            if not isinstance(data, dict):
                raise ProviderParseError(self.source, f"run {run_id} status response was malformed.")

            status = str(data.get("status") or "")
            if status == "SUCCEEDED":
                dataset_id = data.get("defaultDatasetId")
                if not dataset_id:
                    raise ProviderParseError(self.source, f"run {run_id} has no default dataset.")
                return str(dataset_id)
            if status in _FAILED_RUN_STATUSES:
                message = str(data.get("statusMessage") or status)
                log_event(
                    logger,
                    logging.WARNING,
                    "apify_run_failed",
                    run_id=run_id,
                    status=status,
                    message=message,
                )
                raise ProviderRequestError(self.source, f"run {run_id} ended with {status}: {message}")
            if self._clock() >= deadline:
                raise ProviderRequestError(self.source, f"run {run_id} did not finish in time.")
            self._sleep(self._settings.poll_interval_seconds)
