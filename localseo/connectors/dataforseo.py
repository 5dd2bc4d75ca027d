"""
localseo/connectors/dataforseo.py

DataForSEO client for locations, search volume, organic results and
SERP competitors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

import requests

from localseo.config import ExternalHTTPSettings, SEODataSettings
from localseo.connectors.base import BaseConnector
from localseo.domain.competitors import CompetitorCandidate
from localseo.domain.keywords import CompetitionLevel, KeywordVolume
from localseo.errors import ConfigurationError, ProviderParseError
from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)

_OK_STATUS = 20000


def match_location(locations: Sequence[dict[str, Any]], city: str) -> int | None:
    """
    Pick the location code whose name belongs to `city`.

    Preference: names starting with "city,", then names starting with the
    city followed by a space, then the first result only if it starts with
    the city or contains "city,".
    """

    city_lower = city.strip().lower()
    if not city_lower:
        return None

    named = [
        (str(location.get("location_name") or "").lower(), location.get("location_code"))
        for location in locations
        if location.get("location_code") is not None
    ]
    for name, code in named:
        if name.startswith(f"{city_lower},"):
            return int(code)
    for name, code in named:
        if name.startswith(city_lower) and name[len(city_lower) : len(city_lower) + 1] in {",", " "}:
            return int(code)
    if named:
        first_name, first_code = named[0]
        if f"{city_lower}," in first_name or first_name.startswith(city_lower):
            return int(first_code)
    return None


class DataForSEOConnector(BaseConnector):
    """
    SEO data provider client using HTTP basic auth.
    """

    def __init__(
        self,
        *,
        settings: SEODataSettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not settings.login or not settings.password:
            raise ConfigurationError("DATAFORSEO_LOGIN and DATAFORSEO_PASSWORD are required.")
        session = session or requests.Session()
        session.auth = (settings.login, settings.password)
        super().__init__(source="dataforseo", http_settings=http_settings, session=session, sleep=sleep)
        self._settings = settings
        self._base_url = settings.base_url

    def resolve_location(self, full_location: str, city: str) -> int | None:
        payload = self._request_json(
            method="GET",
            url=f"{self._base_url}/keywords_data/google_ads/locations/{self._settings.country_iso}",
            params={"location_name": full_location},
        )
        locations = [item for item in self._task_result(payload, "locations") if isinstance(item, dict)]
        code = match_location(locations, city)
        log_event(
            logger,
            logging.INFO if code is not None else logging.WARNING,
            "location_lookup",
            full_location=full_location,
            city=city,
            candidates=len(locations),
            location_code=code,
        )
        return code

    def search_volume(self, keywords: Sequence[str], location_code: int) -> list[KeywordVolume]:
        if not keywords:
            return []
        body = [
            {
                "location_code": str(location_code),
                "language_code": self._settings.language_code,
                "keywords": list(keywords),
            }
        ]
        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/keywords_data/google_ads/search_volume/live",
            json_body=body,
        )
        volumes: list[KeywordVolume] = []
        for item in self._task_result(payload, "search_volume"):
            if not isinstance(item, dict) or not item.get("keyword"):
                continue
            cpc = item.get("cpc")
            volumes.append(
                KeywordVolume(
                    keyword=str(item["keyword"]),
                    search_volume=int(item.get("search_volume") or 0),
                    competition=CompetitionLevel.parse(item.get("competition")),
                    cpc=float(cpc) if isinstance(cpc, (int, float)) else None,
                )
            )
        return volumes

    def organic_results(self, keyword: str, location_code: int) -> list[dict[str, Any]]:
        body = [
            {
                "language_code": self._settings.language_code,
                "location_code": location_code,
                "keyword": keyword,
            }
        ]
        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/serp/google/organic/live/regular",
            json_body=body,
        )
        results = self._task_result(payload, "organic")
        if not results or not isinstance(results[0], dict):
            return []
        items = results[0].get("items") or []
        return [item for item in items if isinstance(item, dict) and item.get("type", "organic") == "organic"]

    def competitors_for_keywords(
        self,
        keywords: Sequence[str],
        location_code: int,
        cap: int,
    ) -> list[CompetitorCandidate]:
        if not keywords:
            return []
        body = [
            {
                "keywords": list(keywords),
                "location_code": location_code,
                "language_code": self._settings.language_code,
                "limit": cap,
                "item_types": ["organic"],
            }
        ]
        payload = self._request_json(
            method="POST",
            url=f"{self._base_url}/dataforseo_labs/google/serp_competitors/live",
            json_body=body,
        )
        results = self._task_result(payload, "serp_competitors")
        if not results or not isinstance(results[0], dict):
            return []

        candidates: list[CompetitorCandidate] = []
        for item in results[0].get("items") or []:
            if not isinstance(item, dict) or not item.get("domain"):
                continue
            organic = ((item.get("full_domain_metrics") or {}).get("organic")) or {}
            avg_position = item.get("avg_position")
            candidates.append(
                CompetitorCandidate(
                    domain=str(item["domain"]),
                    etv=float(organic.get("etv") or 0.0),
                    keyword_count=int(organic.get("count") or 0),
                    avg_position=float(avg_position) if isinstance(avg_position, (int, float)) else None,
                )
            )
        return candidates[:cap]

    def _task_result(self, payload: Any, operation: str) -> list[Any]:
        """
        Return `tasks[0].result`, logging non-OK provider status codes.
        """

        if not isinstance(payload, dict):
            raise ProviderParseError(self.source, f"{operation}: response was not an object.")

        if payload.get("status_code") not in (None, _OK_STATUS):
            log_event(
                logger,
                logging.WARNING,
                "dataforseo_status",
                operation=operation,
                status_code=payload.get("status_code"),
                status_message=payload.get("status_message"),
            )

        tasks = payload.get("tasks") or []
        if not tasks or not isinstance(tasks[0], dict):
            return []
        task = tasks[0]
        if task.get("status_code") not in (None, _OK_STATUS):
            log_event(
                logger,
                logging.WARNING,
                "dataforseo_task_status",
                operation=operation,
                status_code=task.get("status_code"),
                status_message=task.get("status_message"),
            )
        result = task.get("result")
        return result if isinstance(result, list) else []
