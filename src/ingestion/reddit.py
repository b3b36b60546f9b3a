import logging
from typing import List

import httpx

from ingestion.base import RedditRawPost
from services.errors import FetchError

logger = logging.getLogger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com"
USER_AGENT = "ContentScraper/1.0 (by /u/content-scraper)"


class RedditAdapter:
    """
    Reads one page of posts from the unauthenticated subreddit JSON listing.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str = REDDIT_BASE_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def fetch_posts(self, subreddit: str, limit: int = 10, sort: str = "hot") -> List[RedditRawPost]:
        url = f"{self.base_url}/r/{subreddit}/{sort}.json"
        logger.info(f"[Reddit] Fetching from: {url}?limit={limit}")

        resp = await self.client.get(
            url,
            params={"limit": limit},
            headers={"User-Agent": USER_AGENT},
        )
        if not resp.is_success:
            raise FetchError(
                f"Reddit API error: {resp.status_code} - {resp.reason_phrase}",
                resp.status_code,
            )

        children = (resp.json().get("data") or {}).get("children") or []

        posts: List[RedditRawPost] = []
        for child in children:
            data = child.get("data") or {}
            posts.append(
                RedditRawPost(
                    id=data.get("id", ""),
                    title=data.get("title", ""),
                    author=data.get("author", ""),
                    subreddit=data.get("subreddit", subreddit),
                    selftext=data.get("selftext") or "",
                    url=data.get("url", ""),
                    permalink=f"https://reddit.com{data.get('permalink', '')}",
                    score=int(data.get("score") or 0),
                    num_comments=int(data.get("num_comments") or 0),
                    created_utc=float(data.get("created_utc") or 0),
                    is_self=bool(data.get("is_self")),
                    flair=data.get("link_flair_text"),
                    nsfw=bool(data.get("over_18")),
                )
            )

        return posts
