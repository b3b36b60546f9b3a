import logging
from typing import List, Optional

from core.dates import parse_date, publication_week
from core.entities import LinkedInPost, LinkedInSource, SourceType, check_authority
from core.schemas import ContentAnalysis
from core.scoring import calculate_linkedin_score, is_relevant_linkedin_score
from ingestion.base import LinkedInRawPost
from ingestion.linkedin import ApifyLinkedInAdapter
from processing.analyzer import AnalysisOutcome
from processing.prefilter import MIN_LINKEDIN_LENGTH
from workflows.base import ContentPipeline, SourceResult

logger = logging.getLogger(__name__)

# LinkedIn rows are always stored with this type
LINKEDIN_CONTENT_TYPE = "community"


class LinkedInPipeline(ContentPipeline[LinkedInSource, LinkedInRawPost]):
    """
    Every fetched post is stored; irrelevant ones with post_score 0.
    A post counts as relevant when its 0-100 score reaches the threshold.
    """

    kind = "LinkedIn"
    min_content_length = MIN_LINKEDIN_LENGTH

    def __init__(self, context, max_posts: Optional[int] = None):
        super().__init__(context)
        self.item_delay_ms = self.config.LINKEDIN_ITEM_DELAY_MS
        self.source_delay_ms = self.config.SOURCE_DELAY_MS
        self.max_posts = max_posts or self.config.LINKEDIN_MAX_POSTS
        self._adapter: Optional[ApifyLinkedInAdapter] = None

    @property
    def adapter(self) -> ApifyLinkedInAdapter:
        if self._adapter is None:
            self._adapter = ApifyLinkedInAdapter(
                self.context.client,
                token=self.config.require_apify_token(),
                actor_id=self.config.APIFY_ACTOR_ID,
                poll_interval=self.config.APIFY_POLL_INTERVAL,
                max_poll_attempts=self.config.APIFY_MAX_POLL_ATTEMPTS,
                sleep=self._sleep,
            )
        return self._adapter

    async def list_sources(self) -> List[LinkedInSource]:
        return await self.store.list_linkedin_sources(active_only=True)

    def source_name(self, source: LinkedInSource) -> str:
        return source.profile_url

    def item_label(self, item: LinkedInRawPost) -> str:
        return (item.content or item.id)[:50]

    async def fetch_items(self, source: LinkedInSource) -> List[LinkedInRawPost]:
        logger.info(f"[{self.kind}] Fetching posts from: {source.profile_url} (authority {source.authority:.0%})")
        return await self.adapter.fetch_posts(source.profile_url, self.max_posts)

    async def duplicate_reason(self, item: LinkedInRawPost) -> Optional[str]:
        if await self.store.linkedin_post_exists(item.id):
            return "already exists"
        return None

    async def extract_content(self, source: LinkedInSource, item: LinkedInRawPost) -> Optional[str]:
        return item.content

    async def classify(self, source: LinkedInSource, item: LinkedInRawPost, content: str) -> AnalysisOutcome:
        return await self.context.analyzer.analyze_linkedin_post(
            content,
            item.author.name,
            source.authority,
            item.engagement.model_dump(),
        )

    def accepts(self, outcome: AnalysisOutcome) -> bool:
        return True

    def compute_score(self, analysis: ContentAnalysis, source: LinkedInSource) -> int:
        return calculate_linkedin_score(analysis.quality_score, source.authority, analysis.is_relevant)

    def is_relevant(self, outcome: AnalysisOutcome, score: float) -> bool:
        return is_relevant_linkedin_score(int(score))

    async def persist(
        self,
        source: LinkedInSource,
        item: LinkedInRawPost,
        content: str,
        outcome: AnalysisOutcome,
        score: float,
    ) -> None:
        author = item.reposted_by if item.is_repost else item.author
        published_at = item.published_at
        published = parse_date(published_at)

        await self.store.create_linkedin_post(
            LinkedInPost(
                id=0,
                post_id=item.id,
                url=item.linkedin_url,
                author_name=author.name,
                author_headline=item.author.info,
                author_profile_url=author.linkedin_url,
                author_profile_image=item.author.avatar.url if item.author.avatar else None,
                content=item.content,
                num_likes=item.engagement.likes,
                num_comments=item.engagement.comments,
                num_reposts=item.engagement.shares,
                post_type=item.post_type,
                media_url=item.media_url,
                published_at=published_at,
                post_score=int(score),
                type=LINKEDIN_CONTENT_TYPE,
                week_date=publication_week(published) if published else None,
                summary=outcome.analysis.summary,
                key_points=outcome.analysis.key_points,
            )
        )

    async def scrape_profile(self, profile_url: str, authority: float = 0.7) -> SourceResult:
        """Scrape a single profile that does not need to be registered."""
        source = LinkedInSource(
            id="",
            name=profile_url,
            profile_url=profile_url,
            authority=check_authority(authority),
            type=SourceType.COMMUNITY,
        )
        return await self.run_source(source)
