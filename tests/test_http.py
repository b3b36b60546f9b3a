"""
Unit tests for page fetching with retries.
"""

from unittest.mock import AsyncMock, call

import httpx
import pytest

from ingestion.http import fetch_page_text, fetch_with_retry
from services.errors import FetchError

URL = "https://blog.example.com/"


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFetchWithRetry:
    async def test_returns_first_success(self):
        sleep = AsyncMock()
        async with client_for(lambda request: httpx.Response(200, text="ok")) as client:
            response = await fetch_with_retry(client, URL, sleep=sleep)

        assert response.text == "ok"
        sleep.assert_not_awaited()

    async def test_retries_non_success_with_linear_backoff(self):
        statuses = iter([503, 502, 200])
        sleep = AsyncMock()

        async with client_for(lambda request: httpx.Response(next(statuses), text="body")) as client:
            response = await fetch_with_retry(client, URL, sleep=sleep)

        assert response.status_code == 200
        assert sleep.await_args_list == [call(1.0), call(2.0)]

    async def test_returns_last_response_when_retries_run_out(self):
        calls = []
        sleep = AsyncMock()

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        async with client_for(handler) as client:
            response = await fetch_with_retry(client, URL, max_retries=3, sleep=sleep)

        assert response.status_code == 500
        assert len(calls) == 4
        assert sleep.await_count == 3

    async def test_reraises_last_transport_error(self):
        sleep = AsyncMock()

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(httpx.ConnectError):
                await fetch_with_retry(client, URL, max_retries=2, retry_delay=0.5, sleep=sleep)

        assert sleep.await_args_list == [call(0.5), call(1.0)]

    async def test_recovers_after_transport_error(self):
        attempts = {"count": 0}

        def handler(request):
            attempts["count"] += 1
            if attempts["count"] == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, text="recovered")

        async with client_for(handler) as client:
            response = await fetch_with_retry(client, URL, sleep=AsyncMock())

        assert response.text == "recovered"

    async def test_sends_browser_headers_and_caller_overrides(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200)

        async with client_for(handler) as client:
            await fetch_with_retry(client, URL, headers={"Accept": "application/json"}, sleep=AsyncMock())

        assert seen["user-agent"].startswith("Mozilla/5.0")
        assert seen["accept"] == "application/json"
        assert seen["accept-language"] == "en-US,en;q=0.9"


class TestFetchPageText:
    async def test_returns_body(self):
        async with client_for(lambda request: httpx.Response(200, text="<p>hi</p>")) as client:
            assert await fetch_page_text(client, URL, sleep=AsyncMock()) == "<p>hi</p>"

    async def test_raises_fetch_error_on_final_failure(self):
        async with client_for(lambda request: httpx.Response(404)) as client:
            with pytest.raises(FetchError) as excinfo:
                await fetch_page_text(client, URL, max_retries=1, sleep=AsyncMock())

        assert excinfo.value.status_code == 404
