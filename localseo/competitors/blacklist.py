"""
localseo/competitors/blacklist.py

Domain blacklist and aggregator detection for competitor filtering.

Directories, portals, job boards, social networks, DIY chains and trade
media are never treated as local competitors.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

DOMAIN_BLACKLIST: frozenset[str] = frozenset(
    {
        # Trade portals and lead brokers
        "deine-heizungsmeister.de",
        "heizungsfinder.de",
        "heizung.de",
        "sanitaer.org",
        "myhammer.de",
        "check24.de",
        "homebell.com",
        "thermondo.de",
        "heizungsdiscount24.de",
        "ofenseite.com",
        "heizsparer.de",
        "energieheld.de",
        "daa.de",
        "baufoerderer.de",
        "co2online.de",
        "effizienzhaus-online.de",
        # Business directories
        "wer-liefert-was.de",
        "wlw.de",
        "gelbeseiten.de",
        "goyellow.de",
        "11880.com",
        "dasoertliche.de",
        "meinestadt.de",
        "branchenbuch.de",
        "yelp.de",
        "yelp.com",
        "golocal.de",
        "cylex.de",
        "branchen-info.net",
        "firmenwissen.de",
        "northdata.de",
        "unternehmensregister.de",
        # Job boards and reviews
        "indeed.com",
        "indeed.de",
        "stepstone.de",
        "monster.de",
        "xing.com",
        "kununu.com",
        "trustpilot.com",
        "trustpilot.de",
        "provenexpert.com",
        "ausgezeichnet.org",
        # Social networks and reference sites
        "linkedin.com",
        "wikipedia.org",
        "facebook.com",
        "instagram.com",
        "youtube.com",
        "twitter.com",
        "pinterest.com",
        # DIY chains
        "obi.de",
        "hornbach.de",
        "bauhaus.info",
        "hagebau.de",
        "toom.de",
        "globus-baumarkt.de",
        # Trade media
        "heizung-online.de",
        "bosy-online.de",
        "sbz-online.de",
        "ikz.de",
        "haustec.de",
    }
)

AGGREGATOR_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"/firmen/[a-z-]+/?$"),
    re.compile(r"/branche/[a-z-]+/?$"),
    re.compile(r"/region/[a-z-]+/?$"),
    re.compile(r"/stadt/[a-z-]+/?$"),
    re.compile(r"/[a-z-]+/heizung/?$"),
    re.compile(r"/[a-z-]+/sanitaer/?$"),
    re.compile(r"/[a-z-]+/sanitär/?$"),
)


def normalize_domain(value: str) -> str:
    """
    Return the lowercased host of a URL or bare domain without `www.`.
    """

    raw = value.strip().lower()
    if not raw:
        return ""
    if "://" not in raw:
        raw = f"http://{raw}"
    host = urlparse(raw).hostname or ""
    return host[4:] if host.startswith("www.") else host


def is_blacklisted(url_or_domain: str) -> bool:
    """
    True when the host equals a blacklisted domain or is a subdomain of one.
    """

    host = normalize_domain(url_or_domain)
    if not host:
        return False
    return any(host == entry or host.endswith(f".{entry}") for entry in DOMAIN_BLACKLIST)


def has_aggregator_pattern(url: str) -> bool:
    """
    True when the URL path looks like a directory listing page.
    """

    raw = url.strip()
    if not raw:
        return False
    if "://" not in raw:
        raw = f"http://{raw}"
    path = urlparse(raw).path.lower()
    return any(pattern.search(path) for pattern in AGGREGATOR_PATH_PATTERNS)
