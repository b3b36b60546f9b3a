"""
Every SQL statement the application runs, grouped per table.

Reads log failures and return empty results. Writes that must hand back the
stored row raise StoreError when the database reports a failure.
"""
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from core.entities import (
    Article,
    ArticleWithBlog,
    Blog,
    DashboardStats,
    LinkedInPost,
    LinkedInSource,
    RedditPost,
    RedditSource,
    SourceType,
    check_authority,
)
from core.dates import utc_now_iso
from services.database import Database
from services.errors import StoreError

logger = logging.getLogger(__name__)

BLOG_COLUMNS = "id, name, url, feed_url, authority, type, created_at"
ARTICLE_COLUMNS = (
    "id, blog_id, title, url, published_at, publication_week, "
    "summary, key_points, post_score, scraped_at"
)
LINKEDIN_SOURCE_COLUMNS = "id, name, profile_url, authority, type, active, created_at"
REDDIT_SOURCE_COLUMNS = "id, name, subreddit, authority, type, active, created_at"


def _decode_points(value: Any) -> List[str]:
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        points = json.loads(value)
    except (TypeError, json.JSONDecodeError):
        return []
    return points if isinstance(points, list) else []


def _blog(row: Dict[str, Any]) -> Blog:
    return Blog(
        id=row["id"],
        name=row["name"],
        url=row["url"],
        feed_url=row.get("feed_url"),
        authority=float(row.get("authority") or 0),
        type=SourceType.parse(row.get("type")),
        created_at=row.get("created_at"),
    )


def _article(row: Dict[str, Any]) -> Article:
    return Article(
        id=row["id"],
        blog_id=row["blog_id"],
        title=row["title"],
        url=row["url"],
        published_at=row.get("published_at"),
        publication_week=row.get("publication_week"),
        summary=row.get("summary") or "",
        key_points=_decode_points(row.get("key_points")),
        post_score=float(row.get("post_score") or 0),
        scraped_at=row.get("scraped_at"),
    )


def _article_with_blog(row: Dict[str, Any]) -> ArticleWithBlog:
    article = _article(row)
    blog = Blog(
        id=row["blog_id"],
        name=row["blog_name"],
        url=row["blog_url"],
        feed_url=row.get("blog_feed_url"),
        authority=float(row.get("blog_authority") or 0),
        type=SourceType.parse(row.get("blog_type")),
        created_at=row.get("blog_created_at"),
    )
    return ArticleWithBlog(**vars(article), blog=blog)


def _linkedin_source(row: Dict[str, Any]) -> LinkedInSource:
    return LinkedInSource(
        id=row["id"],
        name=row["name"],
        profile_url=row["profile_url"],
        authority=float(row.get("authority") or 0),
        type=SourceType.parse(row.get("type")),
        active=bool(row.get("active")),
        created_at=row.get("created_at"),
    )


def _reddit_source(row: Dict[str, Any]) -> RedditSource:
    return RedditSource(
        id=row["id"],
        name=row["name"],
        subreddit=row["subreddit"],
        authority=float(row.get("authority") or 0),
        type=SourceType.parse(row.get("type")),
        active=bool(row.get("active")),
        created_at=row.get("created_at"),
    )


def _linkedin_post(row: Dict[str, Any]) -> LinkedInPost:
    return LinkedInPost(
        id=int(row["id"]),
        post_id=row["post_id"],
        url=row.get("url"),
        author_name=row.get("author_name"),
        content=row.get("content"),
        post_score=int(row.get("post_score") or 0),
        author_headline=row.get("author_headline"),
        author_profile_url=row.get("author_profile_url"),
        author_profile_image=row.get("author_profile_image"),
        num_likes=int(row.get("num_likes") or 0),
        num_comments=int(row.get("num_comments") or 0),
        num_reposts=int(row.get("num_reposts") or 0),
        post_type=row.get("post_type") or "text",
        media_url=row.get("media_url"),
        published_at=row.get("published_at"),
        type=row.get("type") or "community",
        week_date=row.get("week_date"),
        summary=row.get("summary") or "",
        key_points=_decode_points(row.get("key_points")),
        scraped_at=row.get("scraped_at"),
    )


def _reddit_post(row: Dict[str, Any]) -> RedditPost:
    return RedditPost(
        id=int(row["id"]),
        title=row["title"],
        author=row.get("author") or "",
        subreddit=row.get("subreddit") or "",
        url=row.get("url") or "",
        permalink=row["permalink"],
        selftext=row.get("selftext"),
        score=int(row.get("score") or 0),
        num_comments=int(row.get("num_comments") or 0),
        created_at=int(row.get("created_at") or 0),
        type=row.get("type") or SourceType.COMMUNITY.value,
        authority=float(row.get("authority") or 0),
        post_score=float(row.get("post_score") or 0),
        week_date=row.get("week_date"),
        content_hash=row.get("content_hash"),
        summary=row.get("summary") or "",
        key_points=_decode_points(row.get("key_points")),
        scraped_at=row.get("scraped_at"),
    )


def _set_clause(changes: Dict[str, Any], allowed: set) -> tuple:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

    assignments = []
    params: List[Any] = []
    for column, value in changes.items():
        if column == "authority":
            value = check_authority(value)
        elif column == "type":
            value = SourceType.parse(value).value
        assignments.append(f"{column} = ?")
        params.append(value)
    return ", ".join(assignments), params


class ContentStore:
    def __init__(self, db: Database):
        self.db = db

    async def _read(self, operation: str, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        result = await self.db.query(sql, params)
        if not result.success:
            logger.error(f"[{operation}] Error: {result.error}")
            return []
        return result.rows

    async def _write_one(self, operation: str, sql: str, params: tuple) -> Dict[str, Any]:
        result = await self.db.query(sql, params)
        if not result.success or not result.rows:
            raise StoreError(f"{operation} failed: {result.error or 'no row returned'}")
        return result.rows[0]

    async def _cascade_delete(self, operation: str, children: tuple, parent: tuple) -> bool:
        """Delete dependent rows, then the parent row. The parent stays when the first step fails."""
        result = await self.db.query(*children)
        if not result.success:
            logger.error(f"[{operation}] Error deleting dependent rows, source kept: {result.error}")
            return False

        result = await self.db.query(*parent)
        if not result.success:
            logger.error(f"[{operation}] Error: {result.error}")
        return result.success

    async def _count(self, operation: str, sql: str, params: tuple = ()) -> int:
        rows = await self._read(operation, sql, params)
        if not rows:
            return 0
        return int(rows[0].get("count") or 0)

    # -- blogs -------------------------------------------------------------

    async def list_blogs(self) -> List[Blog]:
        rows = await self._read("list_blogs", f"SELECT {BLOG_COLUMNS} FROM blog_sources ORDER BY name ASC")
        return [_blog(row) for row in rows]

    async def get_blog(self, blog_id: str) -> Optional[Blog]:
        rows = await self._read(
            "get_blog",
            f"SELECT {BLOG_COLUMNS} FROM blog_sources WHERE id = ? LIMIT 1",
            (blog_id,),
        )
        return _blog(rows[0]) if rows else None

    async def get_blog_by_url(self, url: str) -> Optional[Blog]:
        rows = await self._read(
            "get_blog_by_url",
            f"SELECT {BLOG_COLUMNS} FROM blog_sources WHERE url = ? LIMIT 1",
            (url,),
        )
        return _blog(rows[0]) if rows else None

    async def create_blog(
        self,
        name: str,
        url: str,
        authority: float,
        type: SourceType | str,
        feed_url: Optional[str] = None,
    ) -> Blog:
        row = await self._write_one(
            "create_blog",
            f"""
            INSERT INTO blog_sources ({BLOG_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                str(uuid.uuid4()),
                name,
                url,
                feed_url,
                check_authority(authority),
                SourceType.parse(type).value,
                utc_now_iso(),
            ),
        )
        return _blog(row)

    async def update_blog(self, blog_id: str, **changes: Any) -> Optional[Blog]:
        existing = await self.get_blog(blog_id)
        if existing is None:
            return None

        clause, params = _set_clause(changes, {"name", "url", "feed_url", "authority", "type"})
        if not clause:
            return existing

        rows = await self._read(
            "update_blog",
            f"UPDATE blog_sources SET {clause} WHERE id = ? RETURNING *",
            (*params, blog_id),
        )
        return _blog(rows[0]) if rows else None

    async def delete_blog(self, blog_id: str) -> bool:
        if await self.get_blog(blog_id) is None:
            return False

        return await self._cascade_delete(
            "delete_blog",
            ("DELETE FROM articles WHERE blog_id = ?", (blog_id,)),
            ("DELETE FROM blog_sources WHERE id = ?", (blog_id,)),
        )

    # -- linkedin sources --------------------------------------------------

    async def list_linkedin_sources(self, active_only: bool = True) -> List[LinkedInSource]:
        where = "WHERE active = TRUE " if active_only else ""
        rows = await self._read(
            "list_linkedin_sources",
            f"SELECT {LINKEDIN_SOURCE_COLUMNS} FROM linkedin_sources {where}ORDER BY name ASC",
        )
        return [_linkedin_source(row) for row in rows]

    async def get_linkedin_source(self, source_id: str) -> Optional[LinkedInSource]:
        rows = await self._read(
            "get_linkedin_source",
            f"SELECT {LINKEDIN_SOURCE_COLUMNS} FROM linkedin_sources WHERE id = ? LIMIT 1",
            (source_id,),
        )
        return _linkedin_source(rows[0]) if rows else None

    async def create_linkedin_source(
        self,
        name: str,
        profile_url: str,
        authority: float,
        type: SourceType | str,
        active: bool = True,
    ) -> LinkedInSource:
        row = await self._write_one(
            "create_linkedin_source",
            f"""
            INSERT INTO linkedin_sources ({LINKEDIN_SOURCE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                str(uuid.uuid4()),
                name,
                profile_url,
                check_authority(authority),
                SourceType.parse(type).value,
                active,
                utc_now_iso(),
            ),
        )
        return _linkedin_source(row)

    async def update_linkedin_source(self, source_id: str, **changes: Any) -> Optional[LinkedInSource]:
        existing = await self.get_linkedin_source(source_id)
        if existing is None:
            return None

        clause, params = _set_clause(changes, {"name", "profile_url", "authority", "type", "active"})
        if not clause:
            return existing

        rows = await self._read(
            "update_linkedin_source",
            f"UPDATE linkedin_sources SET {clause} WHERE id = ? RETURNING *",
            (*params, source_id),
        )
        return _linkedin_source(rows[0]) if rows else None

    async def delete_linkedin_source(self, source_id: str) -> bool:
        existing = await self.get_linkedin_source(source_id)
        if existing is None:
            return False

        # Posts are tied to their source through the author's profile URL
        return await self._cascade_delete(
            "delete_linkedin_source",
            ("DELETE FROM linkedin_content_scrape WHERE author_profile_url = ?", (existing.profile_url,)),
            ("DELETE FROM linkedin_sources WHERE id = ?", (source_id,)),
        )

    # -- reddit sources ----------------------------------------------------

    async def list_reddit_sources(self, active_only: bool = True) -> List[RedditSource]:
        where = "WHERE active = TRUE " if active_only else ""
        rows = await self._read(
            "list_reddit_sources",
            f"SELECT {REDDIT_SOURCE_COLUMNS} FROM reddit_sources {where}ORDER BY authority DESC, name ASC",
        )
        return [_reddit_source(row) for row in rows]

    async def get_reddit_source(self, source_id: str) -> Optional[RedditSource]:
        rows = await self._read(
            "get_reddit_source",
            f"SELECT {REDDIT_SOURCE_COLUMNS} FROM reddit_sources WHERE id = ? LIMIT 1",
            (source_id,),
        )
        return _reddit_source(rows[0]) if rows else None

    async def create_reddit_source(
        self,
        name: str,
        subreddit: str,
        authority: float,
        type: SourceType | str,
        active: bool = True,
    ) -> RedditSource:
        row = await self._write_one(
            "create_reddit_source",
            f"""
            INSERT INTO reddit_sources ({REDDIT_SOURCE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                str(uuid.uuid4()),
                name,
                subreddit,
                check_authority(authority),
                SourceType.parse(type).value,
                active,
                utc_now_iso(),
            ),
        )
        return _reddit_source(row)

    async def update_reddit_source(self, source_id: str, **changes: Any) -> Optional[RedditSource]:
        existing = await self.get_reddit_source(source_id)
        if existing is None:
            return None

        clause, params = _set_clause(changes, {"name", "subreddit", "authority", "type", "active"})
        if not clause:
            return existing

        rows = await self._read(
            "update_reddit_source",
            f"UPDATE reddit_sources SET {clause} WHERE id = ? RETURNING *",
            (*params, source_id),
        )
        return _reddit_source(rows[0]) if rows else None

    async def delete_reddit_source(self, source_id: str) -> bool:
        existing = await self.get_reddit_source(source_id)
        if existing is None:
            return False

        return await self._cascade_delete(
            "delete_reddit_source",
            ("DELETE FROM reddit_content_scrape WHERE LOWER(subreddit) = LOWER(?)", (existing.subreddit,)),
            ("DELETE FROM reddit_sources WHERE id = ?", (source_id,)),
        )

    # -- articles ----------------------------------------------------------

    async def list_articles(self, limit: int = 50) -> List[Article]:
        rows = await self._read(
            "list_articles",
            f"SELECT {ARTICLE_COLUMNS} FROM articles ORDER BY scraped_at DESC, post_score DESC LIMIT ?",
            (int(limit),),
        )
        return [_article(row) for row in rows]

    async def list_articles_by_week(self, week: str) -> List[Article]:
        rows = await self._read(
            "list_articles_by_week",
            f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE publication_week = ? ORDER BY post_score DESC",
            (week,),
        )
        return [_article(row) for row in rows]

    async def list_articles_by_blog(self, blog_id: str) -> List[Article]:
        rows = await self._read(
            "list_articles_by_blog",
            f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE blog_id = ? ORDER BY published_at DESC",
            (blog_id,),
        )
        return [_article(row) for row in rows]

    _WITH_BLOG = """
        SELECT
            a.id, a.blog_id, a.title, a.url, a.published_at, a.publication_week,
            a.summary, a.key_points, a.post_score, a.scraped_at,
            b.name AS blog_name, b.url AS blog_url, b.feed_url AS blog_feed_url,
            b.authority AS blog_authority, b.type AS blog_type, b.created_at AS blog_created_at
        FROM articles a
        JOIN blog_sources b ON a.blog_id = b.id
    """

    async def list_articles_with_blog(self, limit: int = 50) -> List[ArticleWithBlog]:
        rows = await self._read(
            "list_articles_with_blog",
            f"{self._WITH_BLOG} ORDER BY a.scraped_at DESC, a.post_score DESC LIMIT ?",
            (int(limit),),
        )
        return [_article_with_blog(row) for row in rows]

    async def list_articles_by_week_with_blog(self, week: str) -> List[ArticleWithBlog]:
        rows = await self._read(
            "list_articles_by_week_with_blog",
            f"{self._WITH_BLOG} WHERE a.publication_week = ? ORDER BY a.post_score DESC",
            (week,),
        )
        return [_article_with_blog(row) for row in rows]

    async def get_article(self, article_id: str) -> Optional[Article]:
        rows = await self._read(
            "get_article",
            f"SELECT {ARTICLE_COLUMNS} FROM articles WHERE id = ? LIMIT 1",
            (article_id,),
        )
        return _article(rows[0]) if rows else None

    def _article_params(self, article: Article) -> tuple:
        return (
            str(uuid.uuid4()),
            article.blog_id,
            article.title,
            article.url,
            article.published_at,
            article.publication_week,
            article.summary,
            json.dumps(article.key_points),
            article.post_score,
            utc_now_iso(),
        )

    async def upsert_article(self, article: Article) -> Article:
        """
        Insert an article, or refresh title, summary, key points, score and
        scrape time of the row that already has its URL.
        """
        row = await self._write_one(
            "upsert_article",
            f"""
            INSERT INTO articles ({ARTICLE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (url) DO UPDATE SET
                title = EXCLUDED.title,
                summary = EXCLUDED.summary,
                key_points = EXCLUDED.key_points,
                post_score = EXCLUDED.post_score,
                scraped_at = EXCLUDED.scraped_at
            RETURNING *
            """,
            self._article_params(article),
        )
        return _article(row)

    async def count_articles(self) -> int:
        return await self._count("count_articles", "SELECT COUNT(*) AS count FROM articles")

    async def count_articles_by_blog(self, blog_id: str) -> int:
        return await self._count(
            "count_articles_by_blog",
            "SELECT COUNT(*) AS count FROM articles WHERE blog_id = ?",
            (blog_id,),
        )

    # -- linkedin posts ----------------------------------------------------

    async def linkedin_post_exists(self, post_id: str) -> bool:
        return await self._count(
            "linkedin_post_exists",
            "SELECT COUNT(*) AS count FROM linkedin_content_scrape WHERE post_id = ?",
            (post_id,),
        ) > 0

    async def create_linkedin_post(self, post: LinkedInPost) -> LinkedInPost:
        """Insert a post. `id` and `scraped_at` are assigned here."""
        row = await self._write_one(
            "create_linkedin_post",
            """
            INSERT INTO linkedin_content_scrape (
                post_id, url, author_name, author_headline, author_profile_url,
                author_profile_image, content, num_likes, num_comments, num_reposts,
                post_type, media_url, published_at, post_score, type, week_date,
                summary, key_points, scraped_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                post.post_id,
                post.url,
                post.author_name,
                post.author_headline,
                post.author_profile_url,
                post.author_profile_image,
                post.content,
                post.num_likes,
                post.num_comments,
                post.num_reposts,
                post.post_type,
                post.media_url,
                post.published_at,
                post.post_score,
                post.type,
                post.week_date,
                post.summary,
                json.dumps(post.key_points),
                utc_now_iso(),
            ),
        )
        return _linkedin_post(row)

    async def list_linkedin_posts(self, limit: int = 50) -> List[LinkedInPost]:
        rows = await self._read(
            "list_linkedin_posts",
            "SELECT * FROM linkedin_content_scrape ORDER BY post_score DESC, published_at DESC LIMIT ?",
            (int(limit),),
        )
        return [_linkedin_post(row) for row in rows]

    async def list_linkedin_posts_by_week(self, week: str, limit: int = 50) -> List[LinkedInPost]:
        rows = await self._read(
            "list_linkedin_posts_by_week",
            "SELECT * FROM linkedin_content_scrape WHERE week_date = ? ORDER BY post_score DESC LIMIT ?",
            (week, int(limit)),
        )
        return [_linkedin_post(row) for row in rows]

    async def count_linkedin_posts(self) -> int:
        return await self._count("count_linkedin_posts", "SELECT COUNT(*) AS count FROM linkedin_content_scrape")

    # -- reddit posts ------------------------------------------------------

    async def reddit_post_exists_by_permalink(self, permalink: str) -> bool:
        return await self._count(
            "reddit_post_exists_by_permalink",
            "SELECT COUNT(*) AS count FROM reddit_content_scrape WHERE permalink = ?",
            (permalink,),
        ) > 0

    async def reddit_post_exists_by_hash(self, content_hash: str) -> bool:
        return await self._count(
            "reddit_post_exists_by_hash",
            "SELECT COUNT(*) AS count FROM reddit_content_scrape WHERE content_hash = ?",
            (content_hash,),
        ) > 0

    async def create_reddit_post(self, post: RedditPost) -> RedditPost:
        """Insert a post. `id` and `scraped_at` are assigned here."""
        row = await self._write_one(
            "create_reddit_post",
            """
            INSERT INTO reddit_content_scrape (
                title, author, subreddit, selftext, url, permalink, score,
                num_comments, created_at, type, authority, post_score, week_date,
                content_hash, summary, key_points, scraped_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                post.title,
                post.author,
                post.subreddit,
                post.selftext,
                post.url,
                post.permalink,
                post.score,
                post.num_comments,
                post.created_at,
                post.type,
                post.authority,
                post.post_score,
                post.week_date,
                post.content_hash,
                post.summary,
                json.dumps(post.key_points),
                utc_now_iso(),
            ),
        )
        return _reddit_post(row)

    async def list_reddit_posts(self, limit: int = 50) -> List[RedditPost]:
        rows = await self._read(
            "list_reddit_posts",
            "SELECT * FROM reddit_content_scrape ORDER BY post_score DESC, created_at DESC LIMIT ?",
            (int(limit),),
        )
        return [_reddit_post(row) for row in rows]

    async def list_reddit_posts_by_subreddit(self, subreddit: str, limit: int = 50) -> List[RedditPost]:
        rows = await self._read(
            "list_reddit_posts_by_subreddit",
            "SELECT * FROM reddit_content_scrape WHERE LOWER(subreddit) = LOWER(?) "
            "ORDER BY post_score DESC, created_at DESC LIMIT ?",
            (subreddit, int(limit)),
        )
        return [_reddit_post(row) for row in rows]

    async def count_reddit_posts(self) -> int:
        return await self._count("count_reddit_posts", "SELECT COUNT(*) AS count FROM reddit_content_scrape")

    # -- stats -------------------------------------------------------------

    async def dashboard_stats(self) -> DashboardStats:
        rows = await self._read(
            "dashboard_stats",
            """
            SELECT
                (SELECT COUNT(*) FROM blog_sources) AS total_blogs,
                (SELECT COUNT(*) FROM articles) AS total_articles,
                (SELECT COALESCE(AVG(authority), 0) FROM blog_sources) AS avg_authority,
                (SELECT COUNT(DISTINCT type) FROM blog_sources) AS types_count
            """,
        )
        if not rows:
            return DashboardStats(total_blogs=0, total_articles=0, average_authority=0.0, types_count=0)

        stats = rows[0]
        return DashboardStats(
            total_blogs=int(stats.get("total_blogs") or 0),
            total_articles=int(stats.get("total_articles") or 0),
            average_authority=float(stats.get("avg_authority") or 0),
            types_count=int(stats.get("types_count") or 0),
        )
