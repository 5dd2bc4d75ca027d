"""
tests/test_apify_provider.py

Actor runs against a fake requests session and an injected clock.

Coverage:
- missing token is a configuration error
- crawl starts a run, polls until it succeeds and reads the dataset
- failed runs, run timeouts and missing run ids
- link collection and generic actor items
"""

from __future__ import annotations

import pytest

from fakes_http import FakeResponse, FakeSession
from localseo.config import ExternalHTTPSettings, SecondaryProviderSettings
from localseo.errors import ConfigurationError, ProviderParseError, ProviderRequestError
from localseo.scraping.secondary import LINK_SCAN_PAGE_FUNCTION, ApifyProvider

HTTP = ExternalHTTPSettings(max_retries=0, rate_limit_per_second=1000.0)
SETTINGS = SecondaryProviderSettings(api_token="token", run_timeout_seconds=10.0, poll_interval_seconds=5.0)


def _started(run_id: str = "run-1") -> FakeResponse:
    return FakeResponse(payload={"data": {"id": run_id}})


def _status(status: str, dataset: str | None = "ds-1", message: str | None = None) -> FakeResponse:
    return FakeResponse(payload={"data": {"status": status, "defaultDatasetId": dataset, "statusMessage": message}})


def _provider(session: FakeSession, clock) -> ApifyProvider:
    return ApifyProvider(settings=SETTINGS, http_settings=HTTP, session=session, sleep=clock.sleep, clock=clock)


class TestApifyProvider:
    def test_requires_token(self) -> None:
        with pytest.raises(ConfigurationError):
            ApifyProvider(settings=SecondaryProviderSettings(), http_settings=HTTP, session=FakeSession([]))

    def test_crawl_starts_polls_and_reads_dataset(self, clock) -> None:
        session = FakeSession(
            [
                _started(),
                _status("RUNNING"),
                _status("SUCCEEDED"),
                FakeResponse(payload=[{"url": "https://a.de", "html": "<body>Hallo</body>"}]),
            ]
        )

        html = _provider(session, clock).crawl("https://a.de")

        assert html == "<body>Hallo</body>"
        start = session.requests[0]
        assert start["method"] == "POST"
        assert start["url"].endswith("/acts/apify~web-scraper/runs")
        assert start["params"] == {"memory": 2048}
        assert start["headers"] == {"Authorization": "Bearer token"}
        assert start["json"]["startUrls"] == [{"url": "https://a.de"}]
        assert session.requests[-1]["url"].endswith("/datasets/ds-1/items")
        assert 5.0 in clock.sleeps

    def test_failed_run_raises(self, clock) -> None:
        session = FakeSession([_started(), _status("FAILED", message="proxy error")])
        with pytest.raises(ProviderRequestError, match="FAILED"):
            _provider(session, clock).crawl("https://a.de")

    def test_run_timeout_raises(self, clock) -> None:
        session = FakeSession([_started()] + [_status("RUNNING") for _ in range(4)])
        with pytest.raises(ProviderRequestError, match="did not finish"):
            _provider(session, clock).crawl("https://a.de")

    def test_missing_run_id_is_parse_error(self, clock) -> None:
        session = FakeSession([FakeResponse(payload={"data": {}})])
        with pytest.raises(ProviderParseError):
            _provider(session, clock).crawl("https://a.de")

    def test_crawl_with_links_collects_links(self, clock) -> None:
        session = FakeSession(
            [
                _started(),
                _status("SUCCEEDED"),
                FakeResponse(
                    payload=[
                        {
                            "html": "<body>x</body>",
                            "links": ["https://instagram.com/heizung_mueller", "https://a.de/kontakt"],
                        }
                    ]
                ),
            ]
        )

        html, links = _provider(session, clock).crawl_with_links("https://a.de")

        assert html == "<body>x</body>"
        assert links == ["https://instagram.com/heizung_mueller", "https://a.de/kontakt"]
        assert session.requests[0]["json"]["pageFunction"] == LINK_SCAN_PAGE_FUNCTION
        assert session.requests[0]["params"] == {"memory": 1024}

    def test_run_actor_returns_items(self, clock) -> None:
        session = FakeSession(
            [_started(), _status("SUCCEEDED"), FakeResponse(payload=[{"followersCount": 1200}, "noise"])]
        )

        items = _provider(session, clock).run_actor(
            "apify~instagram-profile-scraper", {"usernames": ["heizung_mueller"]}
        )

        assert items == [{"followersCount": 1200}]
        assert session.requests[0]["params"] is None
