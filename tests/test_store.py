"""
Tests for ContentStore against a real SQLite database.
"""

from unittest.mock import AsyncMock

import pytest

from core.entities import Article, LinkedInPost, RedditPost, SourceType
from services.database import QueryResult
from services.errors import StoreError
from services.store import ContentStore


def article(blog_id: str, url: str, score: float = 0.5, week: str = "2026-w02", summary: str = "Summary") -> Article:
    return Article(
        id="",
        blog_id=blog_id,
        title=f"Title for {url}",
        url=url,
        published_at="2026-01-05",
        publication_week=week,
        summary=summary,
        key_points=["point one", "point two"],
        post_score=score,
    )


def linkedin_post(post_id: str, score: int = 70, week: str = "2026-w02", profile: str = "https://linkedin.com/in/ana") -> LinkedInPost:
    return LinkedInPost(
        id=0,
        post_id=post_id,
        url=f"https://linkedin.com/posts/{post_id}",
        author_name="Ana",
        author_profile_url=profile,
        content="MCP servers are everywhere",
        post_score=score,
        week_date=week,
        key_points=["servers"],
    )


def reddit_post(permalink: str, subreddit: str = "mcp", score: float = 0.6, content_hash: str = "hash") -> RedditPost:
    return RedditPost(
        id=0,
        title="MCP question",
        author="someone",
        subreddit=subreddit,
        url=permalink,
        permalink=permalink,
        selftext="How do I build an MCP server?",
        score=12,
        num_comments=3,
        created_at=1767571200,
        authority=0.7,
        post_score=score,
        week_date="2026-w02",
        content_hash=content_hash,
    )


class TestBlogs:
    async def test_create_and_get(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.8, SourceType.ENTERPRISE)

        fetched = await store.get_blog(blog.id)

        assert fetched == blog
        assert fetched.type is SourceType.ENTERPRISE
        assert fetched.authority == 0.8
        assert await store.get_blog_by_url("https://blog.example.com") == blog

    async def test_list_is_ordered_by_name(self, store):
        await store.create_blog("Zeta", "https://zeta.example.com", 0.5, "Community")
        await store.create_blog("Alpha", "https://alpha.example.com", 0.5, "Community")

        assert [blog.name for blog in await store.list_blogs()] == ["Alpha", "Zeta"]

    async def test_authority_out_of_range_is_rejected(self, store):
        with pytest.raises(ValueError):
            await store.create_blog("Bad", "https://bad.example.com", 1.2, "Community")

    async def test_update(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")

        updated = await store.update_blog(blog.id, authority=0.9, type="Trendsetter")

        assert updated.authority == 0.9
        assert updated.type is SourceType.TRENDSETTER

    async def test_update_validation(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")

        with pytest.raises(ValueError):
            await store.update_blog(blog.id, authority=-0.1)
        with pytest.raises(ValueError):
            await store.update_blog(blog.id, owner="me")

    async def test_update_unknown_blog(self, store):
        assert await store.update_blog("missing", authority=0.5) is None

    async def test_delete_cascades_to_articles(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")
        await store.upsert_article(article(blog.id, "https://blog.example.com/a"))

        assert await store.delete_blog(blog.id)
        assert await store.get_blog(blog.id) is None
        assert await store.count_articles() == 0
        assert not await store.delete_blog(blog.id)

    async def test_duplicate_url_fails(self, store):
        await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")

        with pytest.raises(StoreError):
            await store.create_blog("Again", "https://blog.example.com", 0.5, "Community")


class TestArticles:
    async def test_upsert_keeps_one_row_per_url(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")
        first = await store.upsert_article(article(blog.id, "https://blog.example.com/a", 0.5, summary="old"))

        second = await store.upsert_article(article(blog.id, "https://blog.example.com/a", 0.9, summary="new"))

        assert second.id == first.id
        assert second.summary == "new"
        assert second.post_score == 0.9
        assert await store.count_articles() == 1
        assert (await store.get_article(first.id)).summary == "new"

    async def test_key_points_round_trip(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")
        created = await store.upsert_article(article(blog.id, "https://blog.example.com/a"))

        assert (await store.get_article(created.id)).key_points == ["point one", "point two"]

    async def test_week_listing_with_blog_is_ranked(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.8, "Enterprise")
        await store.upsert_article(article(blog.id, "https://blog.example.com/low", 0.4))
        await store.upsert_article(article(blog.id, "https://blog.example.com/high", 0.9))
        await store.upsert_article(article(blog.id, "https://blog.example.com/other", 1.0, week="2026-w03"))

        ranked = await store.list_articles_by_week_with_blog("2026-w02")

        assert [a.url for a in ranked] == ["https://blog.example.com/high", "https://blog.example.com/low"]
        assert ranked[0].blog.name == "Example"
        assert ranked[0].blog.authority == 0.8

    async def test_counts_by_blog(self, store):
        first = await store.create_blog("One", "https://one.example.com", 0.5, "Community")
        second = await store.create_blog("Two", "https://two.example.com", 0.5, "Community")
        await store.upsert_article(article(first.id, "https://one.example.com/a"))
        await store.upsert_article(article(first.id, "https://one.example.com/b"))
        await store.upsert_article(article(second.id, "https://two.example.com/a"))

        assert await store.count_articles_by_blog(first.id) == 2
        assert len(await store.list_articles_by_blog(second.id)) == 1
        assert len(await store.list_articles(limit=2)) == 2


class TestSources:
    async def test_linkedin_active_filter(self, store):
        active = await store.create_linkedin_source("Ana", "https://linkedin.com/in/ana", 0.7, "Trendsetter")
        paused = await store.create_linkedin_source("Bob", "https://linkedin.com/in/bob", 0.5, "Community")
        await store.update_linkedin_source(paused.id, active=False)

        assert [s.id for s in await store.list_linkedin_sources()] == [active.id]
        assert len(await store.list_linkedin_sources(active_only=False)) == 2

    async def test_linkedin_delete_cascades_by_profile(self, store):
        source = await store.create_linkedin_source("Ana", "https://linkedin.com/in/ana", 0.7, "Community")
        await store.create_linkedin_post(linkedin_post("p1"))
        await store.create_linkedin_post(linkedin_post("p2", profile="https://linkedin.com/in/other"))

        assert await store.delete_linkedin_source(source.id)
        assert not await store.linkedin_post_exists("p1")
        assert await store.linkedin_post_exists("p2")

    async def test_reddit_sources_ordered_by_authority(self, store):
        await store.create_reddit_source("r/low", "low", 0.3, "Community")
        await store.create_reddit_source("r/high", "high", 1.0, "Trendsetter")

        assert [s.subreddit for s in await store.list_reddit_sources()] == ["high", "low"]

    async def test_reddit_delete_cascades_case_insensitively(self, store):
        source = await store.create_reddit_source("r/MCP", "MCP", 0.7, "Community")
        await store.create_reddit_post(reddit_post("https://reddit.com/r/mcp/1", subreddit="mcp"))

        assert await store.delete_reddit_source(source.id)
        assert await store.count_reddit_posts() == 0


class TestPosts:
    async def test_linkedin_posts(self, store):
        await store.create_linkedin_post(linkedin_post("p1", score=40))
        await store.create_linkedin_post(linkedin_post("p2", score=90))
        await store.create_linkedin_post(linkedin_post("p3", score=80, week="2026-w05"))

        assert await store.linkedin_post_exists("p1")
        assert not await store.linkedin_post_exists("p9")
        assert [p.post_id for p in await store.list_linkedin_posts()] == ["p2", "p3", "p1"]
        assert [p.post_id for p in await store.list_linkedin_posts_by_week("2026-w02")] == ["p2", "p1"]
        assert (await store.list_linkedin_posts(limit=1))[0].key_points == ["servers"]
        assert await store.count_linkedin_posts() == 3

    async def test_reddit_posts(self, store):
        await store.create_reddit_post(reddit_post("https://reddit.com/r/mcp/1", score=0.4, content_hash="h1"))
        await store.create_reddit_post(reddit_post("https://reddit.com/r/LocalLLaMA/2", subreddit="LocalLLaMA", score=0.8, content_hash="h2"))

        assert await store.reddit_post_exists_by_permalink("https://reddit.com/r/mcp/1")
        assert await store.reddit_post_exists_by_hash("h2")
        assert not await store.reddit_post_exists_by_hash("h3")
        assert [p.subreddit for p in await store.list_reddit_posts()] == ["LocalLLaMA", "mcp"]
        assert len(await store.list_reddit_posts_by_subreddit("localllama")) == 1


class TestStats:
    async def test_dashboard_stats(self, store):
        blog = await store.create_blog("One", "https://one.example.com", 0.4, "Community")
        await store.create_blog("Two", "https://two.example.com", 0.8, "Enterprise")
        await store.upsert_article(article(blog.id, "https://one.example.com/a"))

        stats = await store.dashboard_stats()

        assert stats.total_blogs == 2
        assert stats.total_articles == 1
        assert stats.average_authority == pytest.approx(0.6)
        assert stats.types_count == 2


class TestFailures:
    async def test_reads_return_empty_on_failure(self):
        db = AsyncMock()
        db.query.return_value = QueryResult.failure("proxy down")
        store = ContentStore(db)

        assert await store.list_blogs() == []
        assert await store.get_blog("x") is None
        assert await store.count_articles() == 0

    async def test_writes_raise_on_failure(self):
        db = AsyncMock()
        db.query.return_value = QueryResult.failure("proxy down")
        store = ContentStore(db)

        with pytest.raises(StoreError):
            await store.create_blog("Example", "https://blog.example.com", 0.5, "Community")

    async def test_failed_cascade_keeps_the_blog(self):
        db = AsyncMock()
        db.query.side_effect = [
            QueryResult.ok([{"id": "b1", "name": "Example", "url": "https://blog.example.com", "authority": 0.5, "type": "Community"}]),
            QueryResult.failure("proxy down"),
        ]
        store = ContentStore(db)

        assert not await store.delete_blog("b1")
        assert db.query.await_count == 2
        assert "blog_sources" not in db.query.await_args.args[0]

    async def test_failed_cascade_keeps_the_subreddit(self):
        db = AsyncMock()
        db.query.side_effect = [
            QueryResult.ok([{"id": "r1", "name": "r/mcp", "subreddit": "mcp", "authority": 0.7, "type": "Community", "active": 1}]),
            QueryResult.failure("proxy down"),
        ]
        store = ContentStore(db)

        assert not await store.delete_reddit_source("r1")
        assert db.query.await_count == 2
        assert "reddit_content_scrape" in db.query.await_args.args[0]
