"""
Process-wide application context.

Built once at start-up and handed to pipelines, tools and commands, so the
HTTP client and the database backend are configured a single time.
"""
import asyncio
import logging
from typing import Optional

import httpx

from ingestion.http import Sleep, create_http_client
from processing.analyzer import ContentAnalyzer
from services.config import Config, load_config
from services.database import Database, create_database
from services.llm import OpenRouterClient
from services.store import ContentStore

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(
        self,
        config: Config,
        client: Optional[httpx.AsyncClient] = None,
        db: Optional[Database] = None,
        analyzer: Optional[ContentAnalyzer] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config
        self.client = client or create_http_client()
        self.db = db or create_database(config, self.client)
        self.store = ContentStore(self.db)
        self.sleep = sleep
        self._analyzer = analyzer

    @classmethod
    def create(cls, config: Optional[Config] = None) -> "AppContext":
        return cls(config or load_config())

    @property
    def analyzer(self) -> ContentAnalyzer:
        """
        Built on first use; a missing OPENROUTER_API_KEY raises
        ConfigurationError here rather than at start-up.
        """
        if self._analyzer is None:
            llm = OpenRouterClient(
                api_key=self.config.require_openrouter_key(),
                model=self.config.LLM_MODEL,
                base_url=self.config.LLM_BASE_URL,
                temperature=self.config.LLM_TEMPERATURE,
                max_tokens=self.config.LLM_MAX_TOKENS,
                timeout=self.config.LLM_TIMEOUT,
            )
            self._analyzer = ContentAnalyzer(llm)
        return self._analyzer

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
