import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from core.schemas import ArticleCandidate, ArticleListResponse, ContentAnalysis
from processing.prompts import (
    ARTICLE_ANALYSIS_PROMPT,
    ARTICLE_LIST_PROMPT,
    LINKEDIN_ANALYSIS_PROMPT,
    REDDIT_ANALYSIS_PROMPT,
    render_prompt,
)
from services.llm import OpenRouterClient

logger = logging.getLogger(__name__)

ARTICLE_CONTENT_LIMIT = 10000
LINKEDIN_CONTENT_LIMIT = 5000
REDDIT_CONTENT_LIMIT = 8000


def extract_json(content: str) -> str:
    """
    Strip a markdown code fence (```json or ```) around an LLM reply.
    """
    text = content.strip()

    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]

    if text.endswith("```"):
        text = text[:-3]

    return text.strip()


@dataclass
class AnalysisOutcome:
    """
    Result of one classification call.

    `parsed` is False when the reply could not be read; `analysis` is then the
    negative default and callers handle it like a genuine "not relevant".
    """
    analysis: ContentAnalysis
    parsed: bool
    raw: str

    @property
    def is_relevant(self) -> bool:
        return self.analysis.is_relevant


class ContentAnalyzer:
    """
    Classifies articles and posts for MCP / AI relevance with one LLM call each.
    """

    def __init__(self, llm: OpenRouterClient):
        self.llm = llm

    async def extract_article_list(self, page_text: str, blog_name: str) -> List[ArticleCandidate]:
        logger.info(f"[LLM] Extracting articles from {blog_name}...")

        user_message = f'Extract the blog articles from this page content of "{blog_name}":\n\n{page_text}'
        response = await self.llm.complete(ARTICLE_LIST_PROMPT, user_message)
        raw_content = response["content"]

        try:
            parsed = ArticleListResponse.model_validate_json(extract_json(raw_content))
        except ValidationError as e:
            logger.warning(
                f"[LLM] Invalid article list reply, returning empty list: {e.error_count()} errors",
                extra={"raw_preview": raw_content[:500]},
            )
            return []

        candidates = []
        for index, entry in enumerate(parsed.articles):
            try:
                candidates.append(ArticleCandidate.model_validate(entry))
            except ValidationError as e:
                logger.warning(
                    f"[LLM] Skipping invalid article entry #{index} from {blog_name}: {e.error_count()} errors",
                    extra={"entry_preview": str(entry)[:200]},
                )

        logger.info(f"[LLM] Found {len(candidates)} articles (latency: {response['latency_ms']}ms)")
        return candidates

    async def analyze_article(self, title: str, content: str, authority: float) -> AnalysisOutcome:
        logger.info(f"[LLM] Analyzing article: {title[:50]}...")

        system_prompt = render_prompt(ARTICLE_ANALYSIS_PROMPT, authority=f"{authority:.2f}")
        user_message = (
            f"Analyze this article:\n\nTitle: {title}\n\n"
            f"Content:\n{content[:ARTICLE_CONTENT_LIMIT]}"
        )
        return await self._analyze(system_prompt, user_message, relevance_field="is_mcp_related")

    async def analyze_linkedin_post(
        self,
        content: str,
        author: str,
        authority: float,
        engagement: Optional[Dict[str, int]] = None,
    ) -> AnalysisOutcome:
        engagement = engagement or {}
        system_prompt = render_prompt(
            LINKEDIN_ANALYSIS_PROMPT,
            author=author,
            authority=f"{authority:.2f}",
            likes=engagement.get("likes", 0),
            comments=engagement.get("comments", 0),
            shares=engagement.get("shares", 0),
        )
        user_message = f"Analyze this LinkedIn post:\n\n{content[:LINKEDIN_CONTENT_LIMIT]}"
        return await self._analyze(system_prompt, user_message, relevance_field="is_relevant")

    async def analyze_reddit_post(
        self,
        title: str,
        content: str,
        subreddit: str,
        engagement: Optional[Dict[str, int]] = None,
    ) -> AnalysisOutcome:
        engagement = engagement or {}
        system_prompt = render_prompt(
            REDDIT_ANALYSIS_PROMPT,
            subreddit=subreddit,
            upvotes=engagement.get("upvotes", 0),
            comments=engagement.get("comments", 0),
        )
        user_message = (
            f"Analyze this Reddit post:\n\nTitle: {title}\n\n"
            f"Content:\n{content[:REDDIT_CONTENT_LIMIT]}"
        )
        return await self._analyze(system_prompt, user_message, relevance_field="is_relevant")

    async def _analyze(self, system_prompt: str, user_message: str, *, relevance_field: str) -> AnalysisOutcome:
        response = await self.llm.complete(system_prompt, user_message)
        raw_content = response["content"]

        try:
            payload = json.loads(extract_json(raw_content))
        except json.JSONDecodeError as e:
            logger.warning(
                f"[LLM] Failed to parse analysis response: {e}",
                extra={"raw_preview": raw_content[:500]},
            )
            return AnalysisOutcome(ContentAnalysis.negative(), parsed=False, raw=raw_content)

        if not isinstance(payload, dict):
            logger.warning(
                f"[LLM] Analysis response is not an object: {type(payload).__name__}",
                extra={"raw_preview": raw_content[:500]},
            )
            return AnalysisOutcome(ContentAnalysis.negative(), parsed=False, raw=raw_content)

        analysis = ContentAnalysis.model_validate(_normalize(payload, relevance_field))
        return AnalysisOutcome(analysis, parsed=True, raw=raw_content)


def _normalize(payload: Dict[str, Any], relevance_field: str) -> Dict[str, Any]:
    return {
        "is_relevant": payload.get(relevance_field),
        "summary": payload.get("summary"),
        "key_points": payload.get("key_points"),
        "quality_score": payload.get("quality_score"),
        "relevance_reason": payload.get("relevance_reason"),
    }
