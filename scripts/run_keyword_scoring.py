"""
Score candidate keywords for one location from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from localseo.keywords.quality import filter_by_score
from localseo.logging_utils import configure_logging
from localseo.services.local_seo_service import build_local_seo_service


def _read_keywords(path: str) -> list[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]


def main() -> int:
    parser = argparse.ArgumentParser(description="Deduplicate and quality-score keywords.")
    parser.add_argument("--keywords-file", required=True, help="Text file with one keyword per line.")
    parser.add_argument("--location-code", type=int, required=True, help="Provider location code.")
    parser.add_argument("--industry", required=True)
    parser.add_argument("--min-score", type=int, default=None, help="Only print keywords at or above this total.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    service = build_local_seo_service()
    try:
        keywords = service.deduplicate(_read_keywords(args.keywords_file))
        scores = service.score_batch(keywords, args.location_code, args.industry)
    finally:
        service.shutdown()

    if args.min_score is not None:
        scores = filter_by_score(scores, args.min_score)
    scores.sort(key=lambda score: (score.total, score.search_volume), reverse=True)
    print(json.dumps([score.to_dict() for score in scores], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
