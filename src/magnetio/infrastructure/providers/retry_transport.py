"""httpx transport that retries transport errors and 429/503 with a delay."""

from __future__ import annotations

import asyncio

import httpx
import structlog

log = structlog.get_logger(__name__)

_RETRY_STATUSES = frozenset({429, 503})


def _retry_after_seconds(headers: httpx.Headers) -> float | None:
    # Only the delta-seconds form; HTTP-date values are ignored.
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with a bounded retry loop.

    Retries on ``httpx.TransportError`` (connect/read failures, timeouts)
    and on retryable status codes. The pause before attempt *n* is
    ``delay * backoff_factor ** n`` capped at *max_delay*; a factor of 1
    gives a fixed delay. ``Retry-After`` wins when present.

    The last transport error is re-raised once attempts are exhausted; the
    last retryable response is returned as-is. Retry log lines carry host
    and path only, since query strings can hold API keys.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        *,
        max_attempts: int = 3,
        delay: float = 2.0,
        backoff_factor: float = 1.0,
        max_delay: float = 30.0,
        retryable_status_codes: frozenset[int] = _RETRY_STATUSES,
    ) -> None:
        self._wrapped = wrapped
        self._max_attempts = max(1, max_attempts)
        self._delay = delay
        self._backoff_factor = backoff_factor
        self._max_delay = max_delay
        self._retry_statuses = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        for attempt in range(self._max_attempts):
            last_attempt = attempt == self._max_attempts - 1
            try:
                response = await self._wrapped.handle_async_request(request)
            except httpx.TransportError as exc:
                if last_attempt:
                    raise
                wait = self._pause_before_next(None, attempt)
                log.info(
                    "http_retry",
                    host=request.url.host,
                    path=request.url.path,
                    error=type(exc).__name__,
                    attempt=attempt + 1,
                    delay=round(wait, 2),
                )
                await asyncio.sleep(wait)
                continue

            if response.status_code not in self._retry_statuses or last_attempt:
                return response

            await response.aread()
            await response.aclose()
            wait = self._pause_before_next(response, attempt)
            log.info(
                "http_retry",
                host=request.url.host,
                path=request.url.path,
                status=response.status_code,
                attempt=attempt + 1,
                delay=round(wait, 2),
            )
            await asyncio.sleep(wait)

        raise AssertionError("unreachable")  # pragma: no cover

    def _pause_before_next(
        self, response: httpx.Response | None, attempt: int
    ) -> float:
        if response is not None:
            retry_after = _retry_after_seconds(response.headers)
            if retry_after is not None:
                return min(retry_after, self._max_delay)
        return min(self._delay * (self._backoff_factor**attempt), self._max_delay)

    async def aclose(self) -> None:
        await self._wrapped.aclose()
