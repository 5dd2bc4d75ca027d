"""
tests/test_location_resolver.py

Regional expansion, nationwide shortcut, caching and country fallback.

Coverage:
- state lookup and neighbour-ordered region tables
- nationwide list without lookups
- regional expansion with skipped cities
- country fallback and cached location codes
"""

from __future__ import annotations

import pytest

from localseo.domain.locations import Location, OperatingRegion
from localseo.locations.data import (
    GERMANY,
    NATIONWIDE_CITIES,
    cities_in_region,
    extract_state_from_location,
    state_for_city,
)
from localseo.locations.resolver import LocationResolver
from localseo.scraping.rate_limiter import Pacer

CODES = {
    "Köln": 1004150,
    "Düsseldorf": 1004095,
    "Dortmund": 1004077,
    "Hannover": 1004078,
    "Frankfurt am Main": 1004049,
    "Bonn": 1004099,
}


class FakeLookup:
    def __init__(self, codes: dict[str, int], failing: set[str] | None = None) -> None:
        self.codes = codes
        self.failing = failing or set()
        self.calls: list[tuple[str, str]] = []

    def resolve_location(self, full_location: str, city: str) -> int | None:
        self.calls.append((full_location, city))
        if city in self.failing:
            raise RuntimeError(f"lookup failed for {city}")
        return self.codes.get(city)


@pytest.fixture()
def pacer(clock) -> Pacer:
    return Pacer(min_interval_seconds=0.5, clock=clock, sleep=clock.sleep)


class TestRegionTables:
    def test_state_for_city(self) -> None:
        assert state_for_city("Köln") == "Nordrhein-Westfalen"
        assert state_for_city("münchen") == "Bayern"
        assert state_for_city("Atlantis") is None

    def test_extract_state_from_location(self) -> None:
        assert extract_state_from_location("Hürth, NRW, Deutschland") == "Nordrhein-Westfalen"
        assert extract_state_from_location("Erding, Bavaria, Germany") == "Bayern"
        assert extract_state_from_location("Somewhere, Nowhere") is None

    def test_cities_in_region_prefers_same_state_then_neighbours(self) -> None:
        assert cities_in_region("Köln", 5) == ["Köln", "Düsseldorf", "Dortmund", "Hannover", "Frankfurt am Main"]

    def test_cities_in_region_respects_cap(self) -> None:
        assert cities_in_region("Köln", 2) == ["Köln", "Düsseldorf"]
        assert cities_in_region("Köln", 0) == []


class TestLocationResolver:
    def test_nationwide_returns_fixed_list_without_lookups(self, pacer) -> None:
        lookup = FakeLookup(CODES)
        resolver = LocationResolver(lookup=lookup, pacer=pacer)

        locations = resolver.resolve_locations(OperatingRegion.NATIONWIDE, "Köln")

        assert locations == list(NATIONWIDE_CITIES)
        assert lookup.calls == []

    def test_regional_expansion(self, pacer, clock) -> None:
        lookup = FakeLookup(CODES)
        resolver = LocationResolver(lookup=lookup, pacer=pacer)

        locations = resolver.resolve_locations("regional", "Köln", "Köln, Nordrhein-Westfalen", 5)

        assert locations[0] == Location(name="Köln", code=1004150)
        assert [location.name for location in locations] == [
            "Köln",
            "Düsseldorf",
            "Dortmund",
            "Hannover",
            "Frankfurt am Main",
        ]
        assert lookup.calls[0] == ("Köln, Nordrhein-Westfalen", "Köln")
        assert len(clock.sleeps) == len(lookup.calls) - 1

    def test_failed_city_is_skipped_and_nearby_fills(self, pacer) -> None:
        lookup = FakeLookup(CODES, failing={"Dortmund"})
        resolver = LocationResolver(lookup=lookup, pacer=pacer)

        locations = resolver.resolve_locations("regional", "Köln", max_locations=5)

        assert [location.name for location in locations] == [
            "Köln",
            "Düsseldorf",
            "Hannover",
            "Frankfurt am Main",
            "Bonn",
        ]

    def test_unresolvable_main_city_falls_back_to_country(self, pacer) -> None:
        resolver = LocationResolver(lookup=FakeLookup({}), pacer=pacer)
        assert resolver.resolve_locations("regional", "Atlantis") == [GERMANY]

    def test_main_lookup_error_falls_back_to_country(self, pacer) -> None:
        resolver = LocationResolver(lookup=FakeLookup(CODES, failing={"Köln"}), pacer=pacer)
        assert resolver.resolve_locations("regional", "Köln") == [GERMANY]

    def test_codes_are_cached_across_calls(self, pacer) -> None:
        lookup = FakeLookup(CODES)
        resolver = LocationResolver(lookup=lookup, pacer=pacer)

        first = resolver.resolve_locations("regional", "Köln", max_locations=3)
        calls_after_first = len(lookup.calls)
        second = resolver.resolve_locations("regional", "Köln", max_locations=3)

        assert first == second
        assert len(lookup.calls) == calls_after_first

    def test_unknown_region_is_regional(self, pacer) -> None:
        resolver = LocationResolver(lookup=FakeLookup(CODES), pacer=pacer)
        locations = resolver.resolve_locations("somewhere", "Köln", max_locations=1)
        assert locations == [Location(name="Köln", code=1004150)]
