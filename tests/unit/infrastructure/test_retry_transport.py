"""Tests for RetryTransport (transport errors + 429/503 retry)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from structlog.testing import capture_logs

from magnetio.infrastructure.providers.premiumize import PremiumizeProvider
from magnetio.infrastructure.providers.retry_transport import RetryTransport
from tests.factories import HASH_A

_ASYNCIO = "magnetio.infrastructure.providers.retry_transport.asyncio"


def _make_response(
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    return httpx.Response(status_code=status, headers=headers or {})


def _make_request(url: str = "https://www.premiumize.me/api/cache/check"):
    return httpx.Request("GET", url)


def _make_transport(
    responses: list | httpx.Response,
    *,
    max_attempts: int = 3,
    delay: float = 2.0,
    backoff_factor: float = 1.0,
    max_delay: float = 30.0,
) -> RetryTransport:
    """RetryTransport around a mock inner transport."""
    mock_wrapped = AsyncMock(spec=httpx.AsyncBaseTransport)
    if isinstance(responses, list):
        mock_wrapped.handle_async_request = AsyncMock(side_effect=responses)
    else:
        mock_wrapped.handle_async_request = AsyncMock(return_value=responses)
    return RetryTransport(
        mock_wrapped,
        max_attempts=max_attempts,
        delay=delay,
        backoff_factor=backoff_factor,
        max_delay=max_delay,
    )


class TestRetryTransport:
    async def test_passes_through_successful_response(self) -> None:
        transport = _make_transport(_make_response(200))
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 200
        m.sleep.assert_not_awaited()

    async def test_retries_on_503_with_fixed_delay(self) -> None:
        transport = _make_transport([_make_response(503), _make_response(200)])
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 200
        m.sleep.assert_awaited_once_with(2.0)
        assert transport._wrapped.handle_async_request.call_count == 2

    async def test_retries_transport_error(self) -> None:
        transport = _make_transport(
            [httpx.ConnectTimeout("slow"), _make_response(200)]
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 200
        assert m.sleep.await_count == 1

    async def test_reraises_after_last_attempt(self) -> None:
        transport = _make_transport(
            [httpx.ConnectError("down")] * 3, max_attempts=3
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            with pytest.raises(httpx.ConnectError):
                await transport.handle_async_request(_make_request())

        assert m.sleep.await_count == 2
        assert transport._wrapped.handle_async_request.call_count == 3

    async def test_returns_last_retryable_response(self) -> None:
        transport = _make_transport(_make_response(429), max_attempts=3)
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 429
        assert m.sleep.await_count == 2

    async def test_non_retryable_status_returned_immediately(self) -> None:
        transport = _make_transport(_make_response(500))
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            resp = await transport.handle_async_request(_make_request())

        assert resp.status_code == 500
        assert transport._wrapped.handle_async_request.call_count == 1

    async def test_retry_after_header_wins(self) -> None:
        transport = _make_transport(
            [_make_response(429, headers={"Retry-After": "5"}), _make_response(200)]
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            await transport.handle_async_request(_make_request())

        m.sleep.assert_awaited_once_with(5.0)

    async def test_retry_after_capped(self) -> None:
        transport = _make_transport(
            [_make_response(429, headers={"Retry-After": "120"}), _make_response(200)],
            max_delay=10.0,
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            await transport.handle_async_request(_make_request())

        m.sleep.assert_awaited_once_with(10.0)

    async def test_backoff_factor_grows_delay(self) -> None:
        transport = _make_transport(
            [_make_response(503), _make_response(503), _make_response(200)],
            delay=1.0,
            backoff_factor=2.0,
        )
        with patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            await transport.handle_async_request(_make_request())

        assert [c.args[0] for c in m.sleep.await_args_list] == [1.0, 2.0]


class TestRetryLogging:
    async def test_log_carries_path_without_query(self) -> None:
        transport = _make_transport([_make_response(503), _make_response(200)])
        request = _make_request(
            "https://www.premiumize.me/api/cache/check?apikey=SECRETKEY&items[]=a"
        )
        with capture_logs() as logs, patch(_ASYNCIO) as m:
            m.sleep = AsyncMock()
            await transport.handle_async_request(request)

        retries = [e for e in logs if e["event"] == "http_retry"]
        assert len(retries) == 1
        assert retries[0]["host"] == "www.premiumize.me"
        assert retries[0]["path"] == "/api/cache/check"
        assert "SECRETKEY" not in repr(logs)

    async def test_premiumize_key_stays_out_of_retry_logs(self) -> None:
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                next(statuses),
                json={
                    "status": "success",
                    "response": [True],
                    "filename": ["Matrix.mkv"],
                    "filesize": [100],
                },
            )

        client = httpx.AsyncClient(
            transport=RetryTransport(httpx.MockTransport(handler), delay=0.0)
        )
        provider = PremiumizeProvider("SECRETKEY", http_client=client)
        try:
            with capture_logs() as logs:
                result = await provider.check_availability([HASH_A])
        finally:
            await client.aclose()

        assert result[HASH_A].available is True
        assert any(e["event"] == "http_retry" for e in logs)
        assert "SECRETKEY" not in repr(logs)
