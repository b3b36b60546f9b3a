"""
Pytest configuration and fixtures for Content Radar tests.
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.schemas import ContentAnalysis  # noqa: E402
from processing.analyzer import AnalysisOutcome, ContentAnalyzer  # noqa: E402
from services.config import Config  # noqa: E402
from services.context import AppContext  # noqa: E402
from services.database import SQLiteDatabase  # noqa: E402
from services.store import ContentStore  # noqa: E402


def make_outcome(
    is_relevant: bool = True,
    quality_score: float = 0.8,
    summary: str = "A summary",
    key_points: Optional[List[str]] = None,
    parsed: bool = True,
) -> AnalysisOutcome:
    analysis = ContentAnalysis(
        is_relevant=is_relevant,
        summary=summary,
        key_points=key_points if key_points is not None else ["First point", "Second point"],
        quality_score=quality_score,
    )
    return AnalysisOutcome(analysis, parsed=parsed, raw="{}")


# ============================================================
# Configuration and database
# ============================================================

@pytest.fixture
def config(tmp_path) -> Config:
    """SQLite-backed configuration with test credentials."""
    return Config(
        DATABASE_BACKEND="sqlite",
        DATABASE_PATH=str(tmp_path / "content.db"),
        OPENROUTER_API_KEY="test-openrouter-key",
        APIFY_API_TOKEN="test-apify-token",
    )


@pytest.fixture
async def db(config) -> SQLiteDatabase:
    """Fresh database with every table created."""
    database = SQLiteDatabase(config.DATABASE_PATH)
    await database.init_tables()
    return database


@pytest.fixture
def store(db) -> ContentStore:
    return ContentStore(db)


# ============================================================
# Application context
# ============================================================

@pytest.fixture
def analyzer() -> AsyncMock:
    """Analyzer double; tests set return values per method."""
    return AsyncMock(spec=ContentAnalyzer)


@pytest.fixture
async def make_context(config, db, analyzer):
    """
    Factory for an AppContext whose HTTP traffic goes to `handler`
    and whose pauses return immediately.
    """
    contexts: List[AppContext] = []

    def factory(
        handler: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        **config_changes,
    ) -> AppContext:
        def not_found(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler or not_found))
        context = AppContext(
            config.model_copy(update=config_changes),
            client=client,
            db=db,
            analyzer=analyzer,
            sleep=AsyncMock(),
        )
        contexts.append(context)
        return context

    yield factory

    for context in contexts:
        await context.aclose()
