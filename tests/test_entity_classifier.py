"""
tests/test_entity_classifier.py

Completion-backed competitor classification with heuristic fallback.

Coverage:
- heuristics for portals, listing paths, shops and company domains
- completion classification, caching and cache keys
- prompt truncation
- fallback on empty content, missing service, bad answers and errors
"""

from __future__ import annotations

import json

import pytest

from localseo.cache import BoundedCache
from localseo.competitors.classifier import EntityClassifier, classify_by_heuristics
from localseo.domain.competitors import ClassificationSource, EntityType
from localseo.domain.scraping import ScrapeJob, ScrapeMode, ScrapeResult
from localseo.errors import ProviderRequestError
from localseo.llm.adapter import BaseCompletionAdapter, CompletionResponse
from localseo.scraping.queue import ScrapeQueue
from localseo.scraping.rate_limiter import Pacer

ANSWER = json.dumps(
    {
        "is_company": True,
        "entity_type": "service_provider",
        "detected_genre": "Heizungsbau",
        "is_relevant_competitor": True,
        "confidence": 0.8,
        "reason": "Meisterbetrieb mit eigenem Team",
    }
)


class RecordingRunner:
    def __init__(self, content: str = "Heizung Müller GmbH, Ihr Meisterbetrieb in Köln.") -> None:
        self.content = content
        self.jobs: list[ScrapeJob] = []

    def __call__(self, job: ScrapeJob) -> ScrapeResult:
        self.jobs.append(job)
        return ScrapeResult(url=job.url, mode=job.mode, content=self.content)


class FakeCompletion(BaseCompletionAdapter):
    def __init__(self, answers: list[str] | None = None, error: Exception | None = None) -> None:
        self.answers = answers or [ANSWER]
        self.error = error
        self.prompts: list[str] = []

    def complete(self, system_prompt, user_prompt, *, tools=None, json_mode=False) -> CompletionResponse:
        self.prompts.append(user_prompt)
        if self.error is not None:
            raise self.error
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        return CompletionResponse(text=answer)


@pytest.fixture()
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture()
def queue(runner: RecordingRunner):
    instance = ScrapeQueue(runner=runner, max_concurrency=2)
    yield instance
    instance.shutdown()


def _classifier(queue, completion, clock, char_budget: int = 6000) -> EntityClassifier:
    return EntityClassifier(
        queue=queue,
        completion=completion,
        cache=BoundedCache(max_size=10),
        pacer=Pacer(min_interval_seconds=1.5, clock=clock, sleep=clock.sleep),
        char_budget=char_budget,
    )


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


class TestHeuristics:
    def test_blacklisted_portal_is_not_company(self) -> None:
        result = classify_by_heuristics("https://heizungsfinder.de", EntityType.SERVICE_PROVIDER)
        assert result.is_company is False
        assert result.is_relevant_competitor is False
        assert result.source is ClassificationSource.HEURISTIC

    def test_listing_path_is_not_company(self) -> None:
        result = classify_by_heuristics("https://example.de/vergleich/heizung", EntityType.SERVICE_PROVIDER)
        assert result.is_company is False

    def test_shop_is_retailer(self) -> None:
        result = classify_by_heuristics("https://heizungsshop.de", EntityType.SERVICE_PROVIDER)
        assert result.entity_type is EntityType.RETAILER
        assert result.is_relevant_competitor is False
        assert classify_by_heuristics("heizungsshop.de", EntityType.RETAILER).is_relevant_competitor is True

    def test_company_domain(self) -> None:
        result = classify_by_heuristics("https://heizung-mueller.de", EntityType.SERVICE_PROVIDER)
        assert result.is_company is True
        assert result.is_relevant_competitor is True
        assert result.confidence == pytest.approx(0.3)

    def test_ambiguous_domain_is_assumed_company(self) -> None:
        result = classify_by_heuristics("https://xyz123.info", EntityType.SERVICE_PROVIDER)
        assert result.is_company is True
        assert result.confidence == pytest.approx(0.2)


# ---------------------------------------------------------------------------
# EntityClassifier
# ---------------------------------------------------------------------------


class TestEntityClassifier:
    def test_classifies_with_completion_and_caches(self, queue, runner, clock) -> None:
        completion = FakeCompletion()
        classifier = _classifier(queue, completion, clock)

        first = classifier.classify("www.heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)
        second = classifier.classify("https://heizung-mueller.de", " heizung ", EntityType.SERVICE_PROVIDER)

        assert first.classification.source is ClassificationSource.LLM
        assert first.classification.detected_genre == "Heizungsbau"
        assert first.content == runner.content
        assert second.classification == first.classification
        assert second.content == ""
        assert len(runner.jobs) == 1
        assert runner.jobs[0] == ScrapeJob(url="https://heizung-mueller.de", mode=ScrapeMode.LIGHTWEIGHT)
        assert len(completion.prompts) == 1

    def test_cache_key_includes_industry_and_entity_type(self, queue, runner, clock) -> None:
        classifier = _classifier(queue, FakeCompletion(), clock)

        classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)
        classifier.classify("heizung-mueller.de", "Sanitär", EntityType.SERVICE_PROVIDER)
        classifier.classify("heizung-mueller.de", "Heizung", EntityType.RETAILER)

        assert len(runner.jobs) == 3

    def test_prompt_content_is_truncated(self, runner, queue, clock) -> None:
        runner.content = "x" * 1000
        completion = FakeCompletion()
        classifier = _classifier(queue, completion, clock, char_budget=100)

        classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)

        assert completion.prompts[0].endswith("Website content:\n" + "x" * 100)

    def test_empty_content_falls_back_without_caching(self, runner, queue, clock) -> None:
        runner.content = ""
        completion = FakeCompletion()
        classifier = _classifier(queue, completion, clock)

        first = classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)
        classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)

        assert first.classification.source is ClassificationSource.HEURISTIC
        assert completion.prompts == []
        assert len(runner.jobs) == 2

    def test_missing_completion_service_uses_heuristics(self, queue, clock) -> None:
        classifier = _classifier(queue, None, clock)
        outcome = classifier.classify("heizungsfinder.de", "Heizung", EntityType.SERVICE_PROVIDER)
        assert outcome.classification.source is ClassificationSource.HEURISTIC
        assert outcome.classification.is_company is False

    def test_unparseable_answers_fall_back(self, queue, clock) -> None:
        completion = FakeCompletion(answers=["nope", "still nope", "{"])
        classifier = _classifier(queue, completion, clock)

        outcome = classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)

        assert outcome.classification.source is ClassificationSource.HEURISTIC
        assert len(completion.prompts) == 3

    def test_transport_error_falls_back(self, queue, clock) -> None:
        completion = FakeCompletion(error=ProviderRequestError("openai", "timeout"))
        classifier = _classifier(queue, completion, clock)

        outcome = classifier.classify("heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER)

        assert outcome.classification.source is ClassificationSource.HEURISTIC
        assert len(completion.prompts) == 1

    def test_fetch_exception_falls_back(self, clock) -> None:
        def exploding(job: ScrapeJob) -> ScrapeResult:
            raise RuntimeError("queue runner crashed")

        failing_queue = ScrapeQueue(runner=exploding, max_concurrency=1)
        try:
            outcome = _classifier(failing_queue, FakeCompletion(), clock).classify(
                "heizung-mueller.de", "Heizung", EntityType.SERVICE_PROVIDER
            )
        finally:
            failing_queue.shutdown()

        assert outcome.classification.source is ClassificationSource.HEURISTIC
        assert outcome.content == ""
