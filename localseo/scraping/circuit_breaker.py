"""
localseo/scraping/circuit_breaker.py

Failure-isolating circuit breaker for the secondary scraping provider.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from localseo.domain.scraping import BreakerStatus, CircuitBreakerState
from localseo.logging_utils import log_event

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """
    Closed / open / half-open state machine shared by all provider callers.

    - closed: calls are admitted; consecutive failures are counted.
    - open: calls are refused until `cooldown_seconds` have passed since the
      breaker opened.
    - half_open: exactly one trial call is admitted. Its success closes the
      breaker, its failure re-opens it for another cooldown.
    """

    def __init__(
        self,
        *,
        name: str,
        failure_threshold: int = 3,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1.")
        self._name = name
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._status = BreakerStatus.CLOSED
        self._consecutive_failures = 0
        self._last_failure_at: float | None = None
        self._opened_at: float | None = None
        self._trial_in_flight = False
        self._lock = threading.Lock()

    def allow(self) -> bool:
        with self._lock:
            if self._status is BreakerStatus.CLOSED:
                return True

            if self._status is BreakerStatus.OPEN:
                opened_at = self._opened_at if self._opened_at is not None else 0.0
                if self._clock() - opened_at < self._cooldown_seconds:
                    return False
                self._status = BreakerStatus.HALF_OPEN
                self._trial_in_flight = True
                log_event(logger, logging.INFO, "circuit_breaker_half_open", breaker=self._name)
                return True

            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

    def record_success(self) -> None:
        with self._lock:
            previous = self._status
            self._status = BreakerStatus.CLOSED
            self._consecutive_failures = 0
            self._opened_at = None
            self._trial_in_flight = False
        if previous is not BreakerStatus.CLOSED:
            log_event(logger, logging.INFO, "circuit_breaker_closed", breaker=self._name)

    def record_failure(self, reason: str | None = None) -> None:
        with self._lock:
            now = self._clock()
            self._consecutive_failures += 1
            self._last_failure_at = now
            should_open = (
                self._status is BreakerStatus.HALF_OPEN
                or self._consecutive_failures >= self._failure_threshold
            )
            opened = should_open and self._status is not BreakerStatus.OPEN
            if should_open:
                self._status = BreakerStatus.OPEN
                self._opened_at = now
            self._trial_in_flight = False
            failures = self._consecutive_failures

        if opened:
            log_event(
                logger,
                logging.WARNING,
                "circuit_breaker_opened",
                breaker=self._name,
                consecutive_failures=failures,
                cooldown_seconds=self._cooldown_seconds,
                reason=reason,
            )

    def state(self) -> CircuitBreakerState:
        with self._lock:
            return CircuitBreakerState(
                status=self._status,
                consecutive_failures=self._consecutive_failures,
                last_failure_at=self._last_failure_at,
            )
