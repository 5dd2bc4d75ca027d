"""
localseo/connectors/base.py

Shared HTTP mechanics for provider connectors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from localseo.config import ExternalHTTPSettings
from localseo.errors import ProviderParseError, ProviderRequestError, TransientNetworkError
from localseo.scraping.rate_limiter import Pacer

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
MAX_RETRY_AFTER_SECONDS = 60.0


def retry_after_seconds(response: requests.Response | None) -> float | None:
    """
    Numeric `Retry-After` header of a throttled response, capped.
    HTTP-date values are ignored.
    """

    if response is None or response.status_code != 429:
        return None
    raw_value = (response.headers or {}).get("Retry-After")
    if raw_value is None:
        return None
    try:
        return min(MAX_RETRY_AFTER_SECONDS, max(0.0, float(raw_value)))
    except ValueError:
        return None


class BaseConnector:
    """
    Paced HTTP client for one provider.

    Timeouts, connection errors and retryable status codes are retried with
    exponential backoff (or the provider's `Retry-After` on 429). Other HTTP
    errors raise `ProviderRequestError` immediately.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._http_settings = http_settings
        self._sleep = sleep
        min_interval = 1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        self._pacer = Pacer(min_interval_seconds=min_interval, sleep=sleep)

    def _request_json(self, *, method: str, url: str, **kwargs: Any) -> Any:
        response = self._request(method=method, url=url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderParseError(self.source, "response was not valid JSON.") from exc

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> requests.Response:
        attempts = self._http_settings.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            self._pacer.wait(self.source)
            throttled: requests.Response | None = None
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    json=json_body,
                    timeout=self._http_settings.timeout_seconds,
                )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Provider request rejected source=%s status=%s url=%s error=%s",
                        self.source,
                        status_code,
                        url,
                        exc,
                    )
                    raise ProviderRequestError(
                        self.source,
                        "non-retryable request failure.",
                        status_code=status_code,
                    ) from exc
                last_error = exc
                throttled = exc.response
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt + 1 >= attempts:
                break

            delay = retry_after_seconds(throttled)
            if delay is None:
                settings = self._http_settings
                delay = settings.backoff_initial_seconds * (settings.backoff_multiplier**attempt)
            logger.warning(
                "Provider request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s error=%s",
                self.source,
                attempt + 1,
                self._http_settings.max_retries,
                delay,
                url,
                last_error,
            )
            self._sleep(delay)

        logger.error("Provider request exhausted retries source=%s url=%s error=%s", self.source, url, last_error)
        raise TransientNetworkError(f"{self.source}: request failed after retries.") from last_error
