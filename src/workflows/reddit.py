import logging
from typing import List, Optional

from core.dates import publication_week_from_timestamp
from core.entities import RedditPost, RedditSource, SourceType, check_authority, reddit_content_type
from core.schemas import ContentAnalysis
from core.scoring import calculate_reddit_score
from ingestion.base import RedditRawPost
from ingestion.reddit import RedditAdapter
from processing.analyzer import AnalysisOutcome
from processing.prefilter import content_hash
from workflows.base import ContentPipeline, SourceResult

logger = logging.getLogger(__name__)


class RedditPipeline(ContentPipeline[RedditSource, RedditRawPost]):
    """
    Subreddit listing -> dedupe by permalink and content hash -> analysis.
    Only relevant posts are stored, scored with the model's quality score.
    """

    kind = "Reddit"

    def __init__(self, context, limit: Optional[int] = None):
        super().__init__(context)
        self.item_delay_ms = self.config.REDDIT_ITEM_DELAY_MS
        self.source_delay_ms = self.config.SOURCE_DELAY_MS
        self.limit = limit or self.config.REDDIT_LIMIT
        self.sort = self.config.REDDIT_SORT
        self.adapter = RedditAdapter(context.client)

    async def list_sources(self) -> List[RedditSource]:
        return await self.store.list_reddit_sources(active_only=True)

    def source_name(self, source: RedditSource) -> str:
        return f"r/{source.subreddit}"

    def item_label(self, item: RedditRawPost) -> str:
        return item.title[:40]

    async def fetch_items(self, source: RedditSource) -> List[RedditRawPost]:
        logger.info(f"[{self.kind}] Scraping r/{source.subreddit} (authority {source.authority:.0%}, type {source.type.value})")
        return await self.adapter.fetch_posts(source.subreddit, self.limit, self.sort)

    async def duplicate_reason(self, item: RedditRawPost) -> Optional[str]:
        if await self.store.reddit_post_exists_by_permalink(item.permalink):
            return "already exists"
        # Same text posted to another subreddit
        if await self.store.reddit_post_exists_by_hash(content_hash(item.title, item.body)):
            return "cross-post detected"
        return None

    async def extract_content(self, source: RedditSource, item: RedditRawPost) -> str:
        return item.body

    async def classify(self, source: RedditSource, item: RedditRawPost, content: str) -> AnalysisOutcome:
        return await self.context.analyzer.analyze_reddit_post(
            item.title,
            content,
            item.subreddit,
            {"upvotes": item.score, "comments": item.num_comments},
        )

    def compute_score(self, analysis: ContentAnalysis, source: RedditSource) -> float:
        return calculate_reddit_score(analysis.quality_score)

    async def persist(
        self,
        source: RedditSource,
        item: RedditRawPost,
        content: str,
        outcome: AnalysisOutcome,
        score: float,
    ) -> None:
        await self.store.create_reddit_post(
            RedditPost(
                id=0,
                title=item.title,
                author=item.author,
                subreddit=item.subreddit,
                url=item.url,
                permalink=item.permalink,
                selftext=item.selftext or None,
                score=item.score,
                num_comments=item.num_comments,
                created_at=int(item.created_utc),
                type=reddit_content_type(source.type),
                authority=source.authority,
                post_score=score,
                week_date=publication_week_from_timestamp(item.created_utc),
                content_hash=content_hash(item.title, item.body),
                summary=outcome.analysis.summary,
                key_points=outcome.analysis.key_points,
            )
        )

    async def scrape_subreddit(
        self,
        subreddit: str,
        authority: float = 0.7,
        type: SourceType | str = SourceType.COMMUNITY,
    ) -> SourceResult:
        """Scrape a single subreddit that does not need to be registered."""
        name = subreddit.removeprefix("r/")
        source = RedditSource(
            id="",
            name=name,
            subreddit=name,
            authority=check_authority(authority),
            type=SourceType.parse(type),
        )
        return await self.run_source(source)
