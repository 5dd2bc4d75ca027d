"""
tests/test_serp_classifier.py

Host and path classification of organic results.

Coverage:
- company, portal, shop and other categories
- blacklisted hosts and directory listing paths count as portals
- top-three SERP composition and the SERP quality score
"""

from __future__ import annotations

from localseo.domain.keywords import DomainCategory, SERPComposition
from localseo.keywords.serp_classifier import (
    analyze_serp,
    classify_serp_domain,
    is_same_country_domain,
    serp_quality_score,
)


class TestClassifySerpDomain:
    def test_company_domain(self) -> None:
        assert classify_serp_domain("https://www.heizung-mueller.de/leistungen") is DomainCategory.COMPANY

    def test_blacklisted_domain_is_portal(self) -> None:
        assert classify_serp_domain("https://www.check24.de/heizung") is DomainCategory.PORTAL

    def test_directory_listing_path_is_portal(self) -> None:
        assert classify_serp_domain("https://branchen-koeln.de/firmen/sanitaer-betriebe") is DomainCategory.PORTAL
        assert classify_serp_domain("https://stadtportal-bonn.de/bonn/heizung/") is DomainCategory.PORTAL

    def test_portal_name_suffix(self) -> None:
        assert classify_serp_domain("https://handwerkerfinder.de") is DomainCategory.PORTAL

    def test_shop_host(self) -> None:
        assert classify_serp_domain("https://www.hornbach-baumarkt-koeln.de") is DomainCategory.SHOP
        assert classify_serp_domain("https://heizungsshop.de") is DomainCategory.SHOP

    def test_empty_is_other(self) -> None:
        assert classify_serp_domain("") is DomainCategory.OTHER

    def test_same_country(self) -> None:
        assert is_same_country_domain("https://heizung-mueller.de")
        assert not is_same_country_domain("https://example.com")


class TestAnalyzeSerp:
    def test_counts_top_three(self) -> None:
        items = [
            {"url": "https://heizung-mueller.de", "rank_absolute": 1},
            {"url": "https://sanitaer-schmidt.de", "rank_absolute": 2},
            {"url": "https://www.check24.de/heizung", "rank_absolute": 4},
            {"url": "https://ignored-company.de", "rank_absolute": 5},
        ]

        composition = analyze_serp(items)

        assert composition.companies == 2
        assert composition.portals == 1
        assert composition.competitor_count == 3
        assert composition.same_country == 3
        assert composition.avg_competitor_rank == 2.3
        assert composition.domains == ["heizung-mueller.de", "sanitaer-schmidt.de", "check24.de"]

    def test_empty_results(self) -> None:
        assert analyze_serp([]) == SERPComposition()


class TestSerpQualityScore:
    def test_companies_with_same_country_bonus(self) -> None:
        assert serp_quality_score(SERPComposition(companies=3, same_country=3)) == 40

    def test_portals_penalised_and_clamped(self) -> None:
        assert serp_quality_score(SERPComposition(companies=1, portals=2)) == 0

    def test_shops_penalised(self) -> None:
        assert serp_quality_score(SERPComposition(companies=2, shops=1, same_country=1)) == 15
