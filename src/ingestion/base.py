"""
Raw item shapes returned by the upstream sources
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.schemas import ArticleCandidate

__all__ = [
    "ArticleCandidate",
    "LinkedInAuthor",
    "LinkedInEngagement",
    "LinkedInRawPost",
    "RedditRawPost",
]


class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LinkedInAvatar(_Upstream):
    url: str


class LinkedInAuthor(_Upstream):
    name: str = ""
    public_identifier: Optional[str] = Field(default=None, alias="publicIdentifier")
    linkedin_url: Optional[str] = Field(default=None, alias="linkedinUrl")
    info: Optional[str] = None
    avatar: Optional[LinkedInAvatar] = None


class LinkedInTimestamp(_Upstream):
    timestamp: Optional[int] = None
    date: str


class LinkedInEngagement(_Upstream):
    likes: int = 0
    comments: int = 0
    shares: int = 0


class LinkedInImage(_Upstream):
    url: str


class LinkedInVideo(_Upstream):
    video_url: str = Field(alias="videoUrl")
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailUrl")


class LinkedInRawPost(_Upstream):
    """
    One dataset item produced by the LinkedIn profile-posts actor.
    """
    id: str
    type: Optional[str] = None
    linkedin_url: Optional[str] = Field(default=None, alias="linkedinUrl")
    content: Optional[str] = None
    author: LinkedInAuthor = Field(default_factory=LinkedInAuthor)
    posted_at: Optional[LinkedInTimestamp] = Field(default=None, alias="postedAt")
    reposted_by: Optional[LinkedInAuthor] = Field(default=None, alias="repostedBy")
    reposted_at: Optional[LinkedInTimestamp] = Field(default=None, alias="repostedAt")
    engagement: LinkedInEngagement = Field(default_factory=LinkedInEngagement)
    post_images: List[LinkedInImage] = Field(default_factory=list, alias="postImages")
    post_video: Optional[LinkedInVideo] = Field(default=None, alias="postVideo")

    @property
    def is_repost(self) -> bool:
        return self.reposted_by is not None

    @property
    def post_type(self) -> str:
        if self.post_video:
            return "video"
        if self.post_images:
            return "image"
        return "text"

    @property
    def media_url(self) -> Optional[str]:
        if self.post_video:
            return self.post_video.video_url
        if self.post_images:
            return self.post_images[0].url
        return None

    @property
    def published_at(self) -> Optional[str]:
        if self.is_repost and self.reposted_at:
            return self.reposted_at.date
        return self.posted_at.date if self.posted_at else None


class RedditRawPost(_Upstream):
    """
    One post from the public subreddit listing, permalink made absolute.
    """
    id: str
    title: str = ""
    author: str = ""
    subreddit: str = ""
    selftext: str = ""
    url: str = ""
    permalink: str
    score: int = 0
    num_comments: int = 0
    created_utc: float = 0
    is_self: bool = False
    flair: Optional[str] = None
    nsfw: bool = False

    @property
    def body(self) -> str:
        """Text sent for analysis: the selftext, or the title for link posts."""
        return self.selftext or self.title
