"""
HTTP fetching with browser headers and fixed-step retries
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from services.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

Sleep = Callable[[float], Awaitable[None]]


def create_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Process-lifetime client shared by every fetcher."""
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """
    GET `url`, retrying transport errors and non-2xx answers.

    Retry N waits `retry_delay * N` seconds (1s, 2s, 3s by default).
    When attempts run out, the last response is returned even if it is
    not successful; if the last attempt raised, that error is re-raised.
    """
    merged_headers = {**DEFAULT_HEADERS, **(headers or {})}

    for attempt in range(max_retries + 1):
        try:
            response = await client.get(url, headers=merged_headers)
        except httpx.TransportError as e:
            if attempt >= max_retries:
                raise
            logger.warning(f"[Retry {attempt + 1}/{max_retries}] Error fetching {url}: {e}")
            await sleep(retry_delay * (attempt + 1))
            continue

        if response.is_success or attempt >= max_retries:
            return response

        logger.warning(f"[Retry {attempt + 1}/{max_retries}] Status {response.status_code} for {url}")
        await sleep(retry_delay * (attempt + 1))

    # Unreachable: the loop always returns or raises on its final attempt
    raise FetchError(f"Failed to fetch {url} after {max_retries} retries")


async def fetch_page_text(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """Fetch a page body, raising FetchError when the final answer is not 2xx."""
    response = await fetch_with_retry(
        client,
        url,
        max_retries=max_retries,
        retry_delay=retry_delay,
        sleep=sleep,
    )
    if not response.is_success:
        raise FetchError(f"Failed to fetch {url}: {response.status_code}", response.status_code)
    return response.text
