"""
localseo/locations/resolver.py

Turns a customer's operating region into provider location codes.
"""

from __future__ import annotations

import logging
from typing import Protocol

from localseo.cache import BoundedCache
from localseo.domain.locations import Location, OperatingRegion
from localseo.locations.data import (
    GERMANY,
    NATIONWIDE_CITIES,
    NEARBY_CITIES,
    cities_in_region,
    extract_state_from_location,
)
from localseo.logging_utils import log_event
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)


class LocationLookup(Protocol):
    def resolve_location(self, full_location: str, city: str) -> int | None: ...


class LocationResolver:
    """
    Resolves main city plus same-region cities with a shared code cache.
    """

    def __init__(
        self,
        *,
        lookup: LocationLookup,
        pacer: Pacer,
        cache: BoundedCache[str, int] | None = None,
        country_fallback: Location = GERMANY,
        default_max_locations: int = 5,
    ) -> None:
        self._lookup = lookup
        self._pacer = pacer
        self._cache: BoundedCache[str, int] = cache or BoundedCache(max_size=None)
        self._country_fallback = country_fallback
        self._default_max_locations = default_max_locations

    def resolve_locations(
        self,
        region: str | OperatingRegion,
        main_city: str,
        full_location: str | None = None,
        max_locations: int | None = None,
    ) -> list[Location]:
        operating_region = OperatingRegion.parse(region)
        limit = max(1, max_locations or self._default_max_locations)

        if operating_region is OperatingRegion.NATIONWIDE:
            locations = list(NATIONWIDE_CITIES)
            log_event(
                logger,
                logging.INFO,
                "locations_resolved",
                region=operating_region,
                locations=[location.name for location in locations],
            )
            return locations

        city = main_city.strip()
        main_code = self._resolve_main(city, full_location or city)
        if main_code is None:
            log_event(
                logger,
                logging.WARNING,
                "location_fallback_country",
                city=city,
                full_location=full_location,
                fallback=self._country_fallback.name,
            )
            return [self._country_fallback]

        locations = [Location(name=city, code=main_code)]
        processed = {city.lower()}

        state_hint = extract_state_from_location(full_location) if full_location else None
        for candidate in cities_in_region(city, limit, state=state_hint):
            if len(locations) >= limit:
                break
            self._append_city(candidate, locations, processed)

        for candidate in NEARBY_CITIES.get(city, ()):
            if len(locations) >= limit:
                break
            self._append_city(candidate, locations, processed)

        log_event(
            logger,
            logging.INFO,
            "locations_resolved",
            region=operating_region,
            city=city,
            locations=[location.name for location in locations],
        )
        return locations

    def _resolve_main(self, city: str, full_location: str) -> int | None:
        cached = self._cache.get(city.lower())
        if cached is not None:
            return cached
        self._pacer.wait("location_lookup")
        try:
            code = self._lookup.resolve_location(full_location, city)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "location_lookup_failed", city=city, error=str(exc))
            return None
        if code is not None:
            self._cache.put(city.lower(), code)
        return code

    def _append_city(self, city: str, locations: list[Location], processed: set[str]) -> None:
        key = city.lower()
        if key in processed:
            return
        processed.add(key)

        code = self._cache.get(key)
        if code is None:
            self._pacer.wait("location_lookup")
            try:
                code = self._lookup.resolve_location(city, city)
            except Exception as exc:  # noqa: BLE001
                log_event(logger, logging.WARNING, "location_lookup_failed", city=city, error=str(exc))
                return
            if code is None:
                log_event(logger, logging.INFO, "location_not_found", city=city)
                return
            self._cache.put(key, code)

        locations.append(Location(name=city, code=code))
