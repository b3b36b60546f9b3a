import time
import asyncio
import logging
from typing import Dict, Any, List, Optional

import openai
from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# Transient failures; anything else (bad key, bad model, 4xx) is raised at once
RETRYABLE_ERRORS = (
    asyncio.TimeoutError,
    ConnectionError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, RETRYABLE_ERRORS):
        return True
    return "connect" in str(error).lower()


class OpenRouterClient:
    """
    LangChain chat client for the OpenRouter chat-completions endpoint.

    Connection failures and timeouts are retried with a linear backoff
    (retry_delay, 2 * retry_delay, ...). Other errors propagate unchanged.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = OPENROUTER_BASE_URL,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 120.0,
        llm: Optional[Any] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout

        self.llm = llm or ChatOpenAI(
            model=model,
            api_key=api_key,
            base_url=self.base_url,
            temperature=temperature,
            max_tokens=max_tokens,
            max_retries=0,
            default_headers={
                "HTTP-Referer": "https://content-radar.local",
                "X-Title": "Content Radar",
            },
        )

    async def _ainvoke(self, messages: List[BaseMessage]) -> Any:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
            except Exception as e:
                if not _is_retryable(e) or attempt >= self.max_retries:
                    raise
                logger.warning(
                    f"LLM call failed ({type(e).__name__}: {e}), "
                    f"attempt {attempt}/{self.max_retries} (model={self.model})"
                )
            await asyncio.sleep(self.retry_delay * attempt)

    async def complete(self, system_prompt: str, user_message: str) -> Dict[str, Any]:
        """Send one system + user exchange; returns content, latency_ms and the raw message."""
        start = time.time()
        response = await self._ainvoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message),
        ])
        latency_ms = int((time.time() - start) * 1000)

        content = response.content
        if not isinstance(content, str) or not content:
            raise ValueError("Invalid response from OpenRouter: empty message content")

        return {"raw": response, "content": content, "latency_ms": latency_ms}
