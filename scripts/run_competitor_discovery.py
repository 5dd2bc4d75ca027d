"""
Run local competitor discovery from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from localseo.logging_utils import configure_logging
from localseo.services.local_seo_service import build_local_seo_service


def main() -> int:
    parser = argparse.ArgumentParser(description="Discover local competitors for a business.")
    parser.add_argument("--city", required=True, help="Main city the business operates from.")
    parser.add_argument("--site", required=True, help="Customer website, excluded from results.")
    parser.add_argument("--industry", required=True, help="Customer industry, e.g. 'Heizung'.")
    parser.add_argument(
        "--keyword",
        dest="keywords",
        action="append",
        default=[],
        help="Keyword to discover competitors for. Repeat for several keywords.",
    )
    parser.add_argument(
        "--region",
        default="regional",
        choices=["regional", "nationwide"],
        help="Operating region of the business.",
    )
    parser.add_argument("--full-location", default=None, help="Full address, used as a state hint.")
    parser.add_argument("--entity-type", default="unknown", help="service_provider, retailer or hybrid.")
    parser.add_argument("--max-locations", type=int, default=None)
    parser.add_argument("--max-results", type=int, default=None)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    if not args.keywords:
        parser.error("at least one --keyword is required")

    service = build_local_seo_service()
    try:
        locations = service.resolve_locations(args.region, args.city, args.full_location, args.max_locations)
        competitors = service.discover(
            service.deduplicate(args.keywords),
            locations,
            args.site,
            args.industry,
            args.entity_type,
            args.max_results,
        )
    finally:
        service.shutdown()

    payload = {
        "locations": [{"name": location.name, "code": location.code} for location in locations],
        "competitors": [record.to_dict() for record in competitors],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
