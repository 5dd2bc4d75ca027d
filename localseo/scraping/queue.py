"""
localseo/scraping/queue.py

Concurrency-bounded FIFO queue in front of the resilient fetcher.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from localseo.domain.scraping import ScrapeJob, ScrapeMode, ScrapeQueueStats, ScrapeResult
from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)

JobKey = tuple[str, ScrapeMode]


class ScrapeQueue:
    """
    Runs at most `max_concurrency` scrape jobs at a time.

    Jobs beyond the ceiling wait in FIFO order; each completion (success or
    failure) admits exactly one waiting job. Duplicate in-flight jobs are
    logged and, only when `coalesce_duplicates` is set, share one future.
    """

    def __init__(
        self,
        *,
        runner: Callable[[ScrapeJob], ScrapeResult],
        max_concurrency: int = 4,
        coalesce_duplicates: bool = False,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")
        self._runner = runner
        self._max_concurrency = max_concurrency
        self._coalesce_duplicates = coalesce_duplicates
        self._executor = ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="scrape")
        self._waiting: deque[tuple[ScrapeJob, Future[ScrapeResult]]] = deque()
        self._running = 0
        self._in_flight_counts: dict[JobKey, int] = {}
        self._in_flight_futures: dict[JobKey, Future[ScrapeResult]] = {}
        self._closed = False
        self._lock = threading.Lock()

    def enqueue(self, job: ScrapeJob) -> Future[ScrapeResult]:
        with self._lock:
            if self._closed:
                raise RuntimeError("ScrapeQueue has been shut down.")

            key = job.dedup_key
            if key in self._in_flight_counts:
                existing = self._in_flight_futures.get(key)
                log_event(
                    logger,
                    logging.INFO,
                    "scrape_duplicate_in_flight",
                    url=job.url,
                    mode=job.mode,
                    coalesced=self._coalesce_duplicates,
                )
                if self._coalesce_duplicates and existing is not None:
                    return existing

            future: Future[ScrapeResult] = Future()
            self._in_flight_counts[key] = self._in_flight_counts.get(key, 0) + 1
            self._in_flight_futures.setdefault(key, future)

            if self._running < self._max_concurrency:
                self._running += 1
                self._executor.submit(self._run, job, future)
            else:
                self._waiting.append((job, future))
                log_event(
                    logger,
                    logging.DEBUG,
                    "scrape_queued",
                    url=job.url,
                    mode=job.mode,
                    queued=len(self._waiting),
                    running=self._running,
                )
            return future

    def stats(self) -> ScrapeQueueStats:
        with self._lock:
            return ScrapeQueueStats(
                running=self._running,
                queued=len(self._waiting),
                max_concurrency=self._max_concurrency,
                in_flight_keys=len(self._in_flight_counts),
            )

    def shutdown(self, *, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            waiting = list(self._waiting)
            self._waiting.clear()
        for _, future in waiting:
            future.cancel()
        self._executor.shutdown(wait=wait)

    def _run(self, job: ScrapeJob, future: Future[ScrapeResult]) -> None:
        try:
            if future.set_running_or_notify_cancel():
                try:
                    future.set_result(self._runner(job))
                except Exception as exc:  # noqa: BLE001
                    log_event(logger, logging.ERROR, "scrape_job_failed", url=job.url, error=str(exc))
                    future.set_exception(exc)
        finally:
            self._release(job, future)

    def _release(self, job: ScrapeJob, future: Future[ScrapeResult]) -> None:
        with self._lock:
            key = job.dedup_key
            remaining = self._in_flight_counts.get(key, 0) - 1
            if remaining > 0:
                self._in_flight_counts[key] = remaining
            else:
                self._in_flight_counts.pop(key, None)
            if self._in_flight_futures.get(key) is future:
                self._in_flight_futures.pop(key, None)

            if self._waiting and not self._closed:
                next_job, next_future = self._waiting.popleft()
                self._executor.submit(self._run, next_job, next_future)
            else:
                self._running -= 1
