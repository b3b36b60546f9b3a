from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SourceType(str, Enum):
    """
    Category of a content source.
    """
    MCP_FIRST_STARTUP = "MCP-First Startups"
    ENTERPRISE = "Enterprise"
    TRENDSETTER = "Trendsetter"
    COMMUNITY = "Community"

    @classmethod
    def parse(cls, value: str | SourceType | None) -> SourceType:
        if isinstance(value, SourceType):
            return value
        for member in cls:
            if member.value == value:
                return member
        # Reddit content rows carry the plural label
        if value == "Trendsetters":
            return cls.TRENDSETTER
        return cls.COMMUNITY


def reddit_content_type(source_type: SourceType) -> str:
    """Label stored on reddit_content_scrape rows for a source type."""
    if source_type is SourceType.TRENDSETTER:
        return "Trendsetters"
    return source_type.value


def check_authority(authority: float) -> float:
    authority = float(authority)
    if not 0.0 <= authority <= 1.0:
        raise ValueError(f"authority must be between 0 and 1, got {authority}")
    return authority


@dataclass
class Blog:
    """
    Blog homepage monitored for new articles (table blog_sources).
    """
    id: str
    name: str
    url: str
    authority: float
    type: SourceType
    feed_url: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class LinkedInSource:
    """
    LinkedIn profile monitored through the Apify actor (table linkedin_sources).
    """
    id: str
    name: str
    profile_url: str
    authority: float
    type: SourceType
    active: bool = True
    created_at: Optional[str] = None


@dataclass
class RedditSource:
    """
    Subreddit monitored through the public listing (table reddit_sources).
    """
    id: str
    name: str
    subreddit: str
    authority: float
    type: SourceType
    active: bool = True
    created_at: Optional[str] = None


@dataclass
class Article:
    id: str
    blog_id: str
    title: str
    url: str
    published_at: str
    publication_week: str
    summary: str
    key_points: List[str] = field(default_factory=list)
    post_score: float = 0.0
    scraped_at: Optional[str] = None


@dataclass
class ArticleWithBlog(Article):
    blog: Optional[Blog] = None


@dataclass
class LinkedInPost:
    id: int
    post_id: str
    url: Optional[str]
    author_name: Optional[str]
    content: Optional[str]
    post_score: int = 0
    author_headline: Optional[str] = None
    author_profile_url: Optional[str] = None
    author_profile_image: Optional[str] = None
    num_likes: int = 0
    num_comments: int = 0
    num_reposts: int = 0
    post_type: str = "text"
    media_url: Optional[str] = None
    published_at: Optional[str] = None
    type: str = "community"
    week_date: Optional[str] = None
    summary: str = ""
    key_points: List[str] = field(default_factory=list)
    scraped_at: Optional[str] = None


@dataclass
class RedditPost:
    id: int
    title: str
    author: str
    subreddit: str
    url: str
    permalink: str
    selftext: Optional[str] = None
    score: int = 0
    num_comments: int = 0
    created_at: int = 0
    type: str = SourceType.COMMUNITY.value
    authority: float = 0.0
    post_score: float = 0.0
    week_date: Optional[str] = None
    content_hash: Optional[str] = None
    summary: str = ""
    key_points: List[str] = field(default_factory=list)
    scraped_at: Optional[str] = None


@dataclass(frozen=True)
class DashboardStats:
    total_blogs: int
    total_articles: int
    average_authority: float
    types_count: int
