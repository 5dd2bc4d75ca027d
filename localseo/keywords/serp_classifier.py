"""
localseo/keywords/serp_classifier.py

Host-pattern classification of organic search results.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlparse

from localseo.competitors.blacklist import has_aggregator_pattern, is_blacklisted, normalize_domain
from localseo.domain.keywords import DomainCategory, SERPComposition

# Suffix patterns are matched against the host without its top-level domain.
SHOP_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"shop$"),
    re.compile(r"store$"),
    re.compile(r"markt$"),
    re.compile(r"handel$"),
)
SHOP_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(amazon|ebay|otto|hornbach|obi|bauhaus)", re.IGNORECASE),
)
PORTAL_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"finder$"),
    re.compile(r"vergleich$"),
    re.compile(r"test$"),
    re.compile(r"check$"),
    re.compile(r"guide$"),
)
PORTAL_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"-[a-z]+-in-"),
    re.compile(r"(check24|myhammer|wer-liefert-was|gelbeseiten|yelp|jameda)", re.IGNORECASE),
)
COMPANY_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^[a-z-]+\.(de|com|net|org)$"),
    re.compile(r"\.(heizung|sanitaer|klempner|installation|bau|handwerk|gbr|gmbh)", re.IGNORECASE),
)
COMPANY_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/(impressum|kontakt|uber-uns|ueber-uns|unternehmen|firma)/", re.IGNORECASE),
    re.compile(r"/(services?|leistungen|arbeiten?)(/|$)", re.IGNORECASE),
)


def _name_without_tld(host: str) -> str:
    head, _, _ = host.rpartition(".")
    return head or host


def classify_serp_domain(url_or_domain: str) -> DomainCategory:
    """
    Classify a result URL as company, portal, shop or other.

    Blacklisted hosts and directory listing paths are portals. Otherwise
    shop patterns win over portal patterns, which win over company host
    patterns and then company paths.
    """

    if not url_or_domain or not url_or_domain.strip():
        return DomainCategory.OTHER
    if is_blacklisted(url_or_domain) or has_aggregator_pattern(url_or_domain):
        return DomainCategory.PORTAL

    host = normalize_domain(url_or_domain)
    if not host:
        return DomainCategory.OTHER
    name = _name_without_tld(host)

    if any(pattern.search(name) for pattern in SHOP_NAME_PATTERNS) or any(
        pattern.search(host) for pattern in SHOP_HOST_PATTERNS
    ):
        return DomainCategory.SHOP
    if any(pattern.search(name) for pattern in PORTAL_NAME_PATTERNS) or any(
        pattern.search(host) for pattern in PORTAL_HOST_PATTERNS
    ):
        return DomainCategory.PORTAL
    if any(pattern.search(host) for pattern in COMPANY_HOST_PATTERNS):
        return DomainCategory.COMPANY

    raw = url_or_domain.strip()
    path = urlparse(raw if "://" in raw else f"http://{raw}").path.lower()
    if any(pattern.search(path) for pattern in COMPANY_PATH_PATTERNS):
        return DomainCategory.COMPANY
    return DomainCategory.OTHER


def is_same_country_domain(url_or_domain: str, country_tld: str = "de") -> bool:
    host = normalize_domain(url_or_domain)
    suffix = f".{country_tld.lower()}"
    return host.endswith(suffix) or f"{suffix}." in host


def analyze_serp(
    items: Sequence[dict[str, Any]],
    *,
    top_n: int = 3,
    country_tld: str = "de",
) -> SERPComposition:
    """
    Tally result categories and ranks for the first `top_n` organic items.
    """

    top_items = list(items)[:top_n]
    if not top_items:
        return SERPComposition()

    counts = {category: 0 for category in DomainCategory}
    same_country = 0
    total_rank = 0
    domains: list[str] = []
    for item in top_items:
        target = str(item.get("url") or item.get("domain") or "")
        total_rank += int(item.get("rank_absolute") or 0)
        counts[classify_serp_domain(target)] += 1
        if target and is_same_country_domain(target, country_tld):
            same_country += 1
        domains.append(normalize_domain(target) if target else "")

    return SERPComposition(
        companies=counts[DomainCategory.COMPANY],
        portals=counts[DomainCategory.PORTAL],
        shops=counts[DomainCategory.SHOP],
        others=counts[DomainCategory.OTHER],
        same_country=same_country,
        competitor_count=len(top_items),
        avg_competitor_rank=round(total_rank / len(top_items), 1),
        domains=domains,
    )


def serp_quality_score(composition: SERPComposition) -> int:
    """
    10 per company, minus 15 per portal and 5 per shop, plus 10 when at
    least two results are same-country domains; clamped to 0..100.
    """

    raw = (
        composition.companies * 10
        - composition.portals * 15
        - composition.shops * 5
        + (10 if composition.same_country >= 2 else 0)
    )
    return max(0, min(100, raw))
