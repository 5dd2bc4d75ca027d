"""
tests/test_dataforseo_connector.py

DataForSEO request shapes, response parsing and retry behavior against a
fake requests session.

Coverage:
- location matching by city prefix and word boundary
- credentials, basic auth and location resolution
- search volume, organic results and competitor parsing
- retryable statuses with backoff and Retry-After
- transient, non-retryable and unparseable responses
"""

from __future__ import annotations

import pytest
import requests

from fakes_http import FakeResponse, FakeSession
from localseo.config import ExternalHTTPSettings, SEODataSettings
from localseo.connectors.dataforseo import DataForSEOConnector, match_location
from localseo.domain.keywords import CompetitionLevel
from localseo.errors import ConfigurationError, ProviderParseError, ProviderRequestError, TransientNetworkError

SETTINGS = SEODataSettings(login="user", password="secret")
HTTP = ExternalHTTPSettings(max_retries=2, backoff_initial_seconds=1.0, backoff_multiplier=2.0, rate_limit_per_second=1000.0)


def _task(result: list) -> dict:
    return {"status_code": 20000, "tasks": [{"status_code": 20000, "result": result}]}


def _connector(session: FakeSession, sleeps: list[float]) -> DataForSEOConnector:
    return DataForSEOConnector(settings=SETTINGS, http_settings=HTTP, session=session, sleep=sleeps.append)


class TestMatchLocation:
    LOCATIONS = [
        {"location_name": "Kölner Umland,Germany", "location_code": 1},
        {"location_name": "Köln Süd,North Rhine-Westphalia,Germany", "location_code": 2},
        {"location_name": "Köln,North Rhine-Westphalia,Germany", "location_code": 1004150},
    ]

    def test_prefers_exact_city_prefix(self) -> None:
        assert match_location(self.LOCATIONS, "Köln") == 1004150

    def test_falls_back_to_word_boundary(self) -> None:
        assert match_location(self.LOCATIONS[:2], "Köln") == 2

    def test_rejects_unrelated_first_result(self) -> None:
        assert match_location([{"location_name": "Bonn,Germany", "location_code": 5}], "Köln") is None

    def test_empty_city(self) -> None:
        assert match_location(self.LOCATIONS, "  ") is None


class TestDataForSEOConnector:
    def test_requires_credentials(self) -> None:
        with pytest.raises(ConfigurationError):
            DataForSEOConnector(settings=SEODataSettings(), http_settings=HTTP, session=FakeSession([]))

    def test_sets_basic_auth(self) -> None:
        session = FakeSession([])
        _connector(session, [])
        assert session.auth == ("user", "secret")

    def test_resolve_location(self) -> None:
        session = FakeSession(
            [FakeResponse(payload=_task([{"location_name": "Köln,North Rhine-Westphalia,Germany", "location_code": 1004150}]))]
        )
        connector = _connector(session, [])

        code = connector.resolve_location("Köln, Nordrhein-Westfalen", "Köln")

        assert code == 1004150
        request = session.requests[0]
        assert request["method"] == "GET"
        assert request["url"].endswith("/keywords_data/google_ads/locations/de")
        assert request["params"] == {"location_name": "Köln, Nordrhein-Westfalen"}

    def test_search_volume_parses_items(self) -> None:
        session = FakeSession(
            [
                FakeResponse(
                    payload=_task(
                        [
                            {"keyword": "heizung köln", "search_volume": 480, "competition": "LOW", "cpc": 3.2},
                            {"keyword": "heizungsbauer köln", "search_volume": None, "competition": None},
                            {"search_volume": 10},
                        ]
                    )
                )
            ]
        )
        connector = _connector(session, [])

        volumes = connector.search_volume(["heizung köln", "heizungsbauer köln"], 1004150)

        assert [volume.keyword for volume in volumes] == ["heizung köln", "heizungsbauer köln"]
        assert volumes[0].search_volume == 480
        assert volumes[0].competition is CompetitionLevel.LOW
        assert volumes[0].cpc == pytest.approx(3.2)
        assert volumes[1].search_volume == 0
        assert volumes[1].competition is CompetitionLevel.UNKNOWN
        assert session.requests[0]["json"][0]["location_code"] == "1004150"

    def test_search_volume_skips_request_for_empty_input(self) -> None:
        session = FakeSession([])
        assert _connector(session, []).search_volume([], 2276) == []
        assert session.requests == []

    def test_organic_results_keeps_organic_items(self) -> None:
        items = [
            {"type": "organic", "url": "https://heizung-mueller.de", "rank_absolute": 1},
            {"type": "local_pack", "url": "https://maps.google.com"},
            {"type": "organic", "url": "https://check24.de/heizung", "rank_absolute": 2},
        ]
        session = FakeSession([FakeResponse(payload=_task([{"items": items}]))])

        results = _connector(session, []).organic_results("heizung köln", 1004150)

        assert [item["url"] for item in results] == ["https://heizung-mueller.de", "https://check24.de/heizung"]

    def test_competitors_for_keywords(self) -> None:
        items = [
            {
                "domain": "heizung-mueller.de",
                "avg_position": 4.5,
                "full_domain_metrics": {"organic": {"etv": 1200.5, "count": 300}},
            },
            {"domain": "sanitaer-schmidt.de"},
            {"avg_position": 1},
        ]
        session = FakeSession([FakeResponse(payload=_task([{"items": items}]))])

        candidates = _connector(session, []).competitors_for_keywords(["heizung köln"], 1004150, 30)

        assert [candidate.domain for candidate in candidates] == ["heizung-mueller.de", "sanitaer-schmidt.de"]
        assert candidates[0].etv == pytest.approx(1200.5)
        assert candidates[0].keyword_count == 300
        assert candidates[0].avg_position == pytest.approx(4.5)
        assert candidates[1].etv == 0.0
        assert candidates[1].avg_position is None
        assert session.requests[0]["json"][0]["limit"] == 30

    def test_non_ok_task_returns_empty(self) -> None:
        payload = {"status_code": 20000, "tasks": [{"status_code": 40501, "status_message": "Invalid Field", "result": None}]}
        session = FakeSession([FakeResponse(payload=payload)])
        assert _connector(session, []).organic_results("x", 2276) == []


class TestConnectorRetries:
    def test_retries_retryable_status_with_backoff(self) -> None:
        sleeps: list[float] = []
        session = FakeSession(
            [
                FakeResponse(status_code=503),
                FakeResponse(status_code=429),
                FakeResponse(payload=_task([])),
            ]
        )

        assert _connector(session, sleeps).organic_results("x", 2276) == []
        assert len(session.requests) == 3
        assert [value for value in sleeps if value >= 0.5] == [1.0, 2.0]

    def test_throttled_response_honors_retry_after(self) -> None:
        sleeps: list[float] = []
        session = FakeSession(
            [
                FakeResponse(status_code=429, headers={"Retry-After": "7"}),
                FakeResponse(status_code=429, headers={"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}),
                FakeResponse(payload=_task([])),
            ]
        )

        assert _connector(session, sleeps).organic_results("x", 2276) == []
        assert [value for value in sleeps if value >= 0.5] == [7.0, 2.0]

    def test_exhausted_retries_raise_transient_error(self) -> None:
        session = FakeSession([requests.ConnectionError("reset")] * 3)
        with pytest.raises(TransientNetworkError):
            _connector(session, []).organic_results("x", 2276)
        assert len(session.requests) == 3

    def test_non_retryable_status_raises_immediately(self) -> None:
        session = FakeSession([FakeResponse(status_code=401)])
        with pytest.raises(ProviderRequestError) as exc_info:
            _connector(session, []).organic_results("x", 2276)
        assert exc_info.value.status_code == 401
        assert len(session.requests) == 1

    def test_invalid_json_raises_parse_error(self) -> None:
        session = FakeSession([FakeResponse(payload=None)])
        with pytest.raises(ProviderParseError):
            _connector(session, []).organic_results("x", 2276)
