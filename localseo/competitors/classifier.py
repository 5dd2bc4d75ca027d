"""
localseo/competitors/classifier.py

Business-type classification of competitor websites.

Site content is fetched in lightweight mode through the scrape queue and
classified by the completion service. When either step fails, host and path
heuristics decide. Only completion-service answers are cached.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

from localseo.cache import BoundedCache
from localseo.competitors.blacklist import normalize_domain
from localseo.domain.competitors import ClassificationSource, EntityClassification, EntityType
from localseo.domain.keywords import DomainCategory
from localseo.domain.scraping import ScrapeJob, ScrapeMode
from localseo.keywords.serp_classifier import classify_serp_domain
from localseo.llm.adapter import BaseCompletionAdapter
from localseo.llm.retry import classify_with_retry
from localseo.logging_utils import log_event
from localseo.scraping.queue import ScrapeQueue
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)

ClassificationKey = tuple[str, str, EntityType]

CLASSIFICATION_SYSTEM_PROMPT = """You are a local SEO analyst. Decide whether the website content belongs to
one operating business (own address, own team, own projects) or to a portal,
directory, marketplace or lead broker listing many businesses. Then compare
it with the customer.

Reply with JSON only:
{"is_company": true/false,
 "entity_type": "service_provider" | "retailer" | "hybrid" | "unknown",
 "detected_genre": "industry of the site owner",
 "is_relevant_competitor": true/false,
 "confidence": 0.0-1.0,
 "reason": "short justification"}"""

PORTAL_PATH_PATTERN = re.compile(r"/(finden|vergleich|test)/")


@dataclass(frozen=True)
class ClassificationOutcome:
    """
    Classification plus the page text it was based on (empty on cache hits).
    """

    classification: EntityClassification
    content: str = ""


def classify_by_heuristics(url_or_domain: str, customer_entity_type: EntityType) -> EntityClassification:
    """
    Portal hosts or listing paths mean "not a company"; shop hosts mean a
    retailer; everything else, including ambiguous hosts, is a company.
    """

    raw = url_or_domain.strip().lower()
    path = urlparse(raw if "://" in raw else f"http://{raw}").path
    category = classify_serp_domain(raw)

    if category is DomainCategory.PORTAL or PORTAL_PATH_PATTERN.search(path):
        return EntityClassification(
            is_company=False,
            entity_type=EntityType.UNKNOWN,
            detected_genre="",
            is_relevant_competitor=False,
            confidence=0.3,
            reason="Heuristic: portal pattern in host or path",
            source=ClassificationSource.HEURISTIC,
        )

    if category is DomainCategory.SHOP:
        relevant = customer_entity_type in {EntityType.RETAILER, EntityType.HYBRID, EntityType.UNKNOWN}
        return EntityClassification(
            is_company=True,
            entity_type=EntityType.RETAILER,
            detected_genre="",
            is_relevant_competitor=relevant,
            confidence=0.3,
            reason="Heuristic: shop pattern in host",
            source=ClassificationSource.HEURISTIC,
        )

    if category is DomainCategory.COMPANY:
        reason = "Heuristic: company-style domain"
        confidence = 0.3
    else:
        reason = "Heuristic: ambiguous domain, assumed company"
        confidence = 0.2
    return EntityClassification(
        is_company=True,
        entity_type=EntityType.UNKNOWN,
        detected_genre="",
        is_relevant_competitor=True,
        confidence=confidence,
        reason=reason,
        source=ClassificationSource.HEURISTIC,
    )


class EntityClassifier:
    """
    Cached competitor classification backed by the scrape queue and the
    completion service.
    """

    def __init__(
        self,
        *,
        queue: ScrapeQueue,
        completion: BaseCompletionAdapter | None,
        cache: BoundedCache[ClassificationKey, EntityClassification],
        pacer: Pacer,
        char_budget: int = 6000,
        max_format_retries: int = 2,
    ) -> None:
        self._queue = queue
        self._completion = completion
        self._cache = cache
        self._pacer = pacer
        self._char_budget = char_budget
        self._max_format_retries = max_format_retries

    def classify(self, domain: str, industry: str, entity_type: EntityType) -> ClassificationOutcome:
        host = normalize_domain(domain)
        key: ClassificationKey = (host, industry.strip().lower(), entity_type)
        cached = self._cache.get(key)
        if cached is not None:
            log_event(logger, logging.DEBUG, "classification_cache_hit", domain=host)
            return ClassificationOutcome(classification=cached)

        url = f"https://{host}"
        try:
            content = self._queue.enqueue(ScrapeJob(url=url, mode=ScrapeMode.LIGHTWEIGHT)).result().content
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "classification_fetch_failed", domain=host, error=str(exc))
            content = ""

        if not content or self._completion is None:
            classification = classify_by_heuristics(url, entity_type)
            self._log(host, classification, reason="no_content" if not content else "no_completion_service")
            return ClassificationOutcome(classification=classification, content=content)

        user_prompt = (
            f"Customer industry: {industry}\n"
            f"Customer business type: {entity_type.value}\n"
            f"Website: {host}\n\n"
            f"Website content:\n{content[: self._char_budget]}"
        )
        self._pacer.wait("classification")
        try:
            output = classify_with_retry(
                self._completion,
                CLASSIFICATION_SYSTEM_PROMPT,
                user_prompt,
                max_retries=self._max_format_retries,
            )
        except Exception as exc:  # noqa: BLE001
            classification = classify_by_heuristics(url, entity_type)
            self._log(host, classification, reason=f"completion_failed: {exc}")
            return ClassificationOutcome(classification=classification, content=content)

        classification = EntityClassification(
            is_company=output.is_company,
            entity_type=output.entity_type,
            detected_genre=output.detected_genre,
            is_relevant_competitor=output.is_relevant_competitor,
            confidence=output.confidence,
            reason=output.reason,
            source=ClassificationSource.LLM,
        )
        self._cache.put(key, classification)
        self._log(host, classification)
        return ClassificationOutcome(classification=classification, content=content)

    @staticmethod
    def _log(domain: str, classification: EntityClassification, reason: str | None = None) -> None:
        log_event(
            logger,
            logging.INFO,
            "competitor_classified",
            domain=domain,
            source=classification.source,
            is_company=classification.is_company,
            entity_type=classification.entity_type,
            is_relevant=classification.is_relevant_competitor,
            confidence=classification.confidence,
            fallback_reason=reason,
        )
