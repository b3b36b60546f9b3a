import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.dates import format_date, is_within_last_week, parse_date, publication_week
from core.entities import Article, Blog, SourceType
from core.schemas import ArticleCandidate, ContentAnalysis
from core.scoring import calculate_post_score
from ingestion.http import fetch_page_text
from processing.analyzer import AnalysisOutcome
from processing.extraction import extract_plain_text, extract_text_with_links
from processing.prefilter import MIN_CONTENT_LENGTH, MIN_PAGE_LENGTH, has_minimum_content
from workflows.base import ContentPipeline, SourceResult

logger = logging.getLogger(__name__)


def resolve_published_date(candidate: ArticleCandidate, now: Optional[datetime] = None) -> datetime:
    """Candidate date when it parses, otherwise now."""
    return parse_date(candidate.published_at) or now or datetime.now(timezone.utc)


class BlogPipeline(ContentPipeline[Blog, ArticleCandidate]):
    """
    Blog homepage -> LLM article list -> per-article analysis -> upsert by URL.
    """

    kind = "Blogs"
    min_content_length = MIN_CONTENT_LENGTH

    def __init__(self, context):
        super().__init__(context)
        self.item_delay_ms = self.config.BLOG_ITEM_DELAY_MS
        self.source_delay_ms = self.config.SOURCE_DELAY_MS
        self.max_age_days = self.config.BLOG_MAX_AGE_DAYS
        self._published: Dict[str, datetime] = {}

    async def list_sources(self) -> List[Blog]:
        return await self.store.list_blogs()

    def source_name(self, source: Blog) -> str:
        return source.name

    def item_label(self, item: ArticleCandidate) -> str:
        return item.title[:40]

    async def _fetch(self, url: str) -> str:
        return await fetch_page_text(
            self.context.client,
            url,
            max_retries=self.config.FETCH_MAX_RETRIES,
            retry_delay=self.config.FETCH_RETRY_DELAY,
            sleep=self._sleep,
        )

    async def fetch_items(self, source: Blog) -> List[ArticleCandidate]:
        self._published.clear()
        logger.info(f"[{self.kind}] {source.name}: {source.url} (authority {source.authority:.0%})")

        html = await self._fetch(source.url)
        page_text = extract_text_with_links(html, source.url)

        if not has_minimum_content(page_text, MIN_PAGE_LENGTH):
            logger.info(f"[{self.kind}] Page content too short, skipping {source.name}")
            return []

        return await self.context.analyzer.extract_article_list(page_text, source.name)

    async def extract_content(self, source: Blog, item: ArticleCandidate) -> str:
        html = await self._fetch(item.url)
        return extract_plain_text(html)

    async def classify(self, source: Blog, item: ArticleCandidate, content: str) -> AnalysisOutcome:
        return await self.context.analyzer.analyze_article(item.title, content, source.authority)

    def published_date(self, item: ArticleCandidate) -> datetime:
        """Resolved once per article URL; the freshness check and the stored row share it."""
        published = self._published.get(item.url)
        if published is None:
            published = self._published[item.url] = resolve_published_date(item)
        return published

    def stale_reason(self, item: ArticleCandidate) -> Optional[str]:
        published = self.published_date(item)
        if not is_within_last_week(published, days=self.max_age_days):
            return f"older than {self.max_age_days} days"
        return None

    def compute_score(self, analysis: ContentAnalysis, source: Blog) -> float:
        return calculate_post_score(analysis.quality_score, source.authority)

    async def persist(
        self,
        source: Blog,
        item: ArticleCandidate,
        content: str,
        outcome: AnalysisOutcome,
        score: float,
    ) -> None:
        published = self.published_date(item)
        await self.store.upsert_article(
            Article(
                id="",
                blog_id=source.id,
                title=item.title,
                url=item.url,
                published_at=format_date(published),
                publication_week=publication_week(published),
                summary=outcome.analysis.summary,
                key_points=outcome.analysis.key_points,
                post_score=score,
            )
        )

    async def scrape_url(
        self,
        url: str,
        name: Optional[str] = None,
        authority: float = 0.5,
        type: SourceType = SourceType.COMMUNITY,
    ) -> SourceResult:
        """
        Scrape one blog by URL, registering it first when it is not known yet.
        """
        blog = await self.store.get_blog_by_url(url)
        if blog is None:
            blog = await self.store.create_blog(name=name or url, url=url, authority=authority, type=type)
            logger.info(f"[{self.kind}] Registered new blog {blog.name}")
        return await self.run_source(blog)

    async def scrape_blog(self, blog_id: str) -> Optional[SourceResult]:
        """Scrape one registered blog. Returns None when the id is unknown."""
        blog = await self.store.get_blog(blog_id)
        if blog is None:
            return None
        return await self.run_source(blog)
