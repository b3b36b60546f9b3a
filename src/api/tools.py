"""
Tools exposed by the control endpoint.

Each tool has a pydantic argument model (published as its JSON schema) and an
async handler receiving the application context and the validated arguments.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, Field

from services.context import AppContext
from workflows.pipeline_factory import ALL_KINDS, create_pipeline, run_scrapes


class UnknownToolError(LookupError):
    pass


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


# ----------------------------
# Argument models
# ----------------------------

class NoArgs(BaseModel):
    pass


class ScrapeAllArgs(BaseModel):
    linkedin_max_posts: int = Field(default=5, description="Max posts per LinkedIn profile")
    reddit_limit: int = Field(default=10, description="Max posts per subreddit")


class ScrapeLinkedInArgs(BaseModel):
    max_posts: int = Field(default=5, description="Max posts per profile")
    profile_url: Optional[str] = Field(
        default=None,
        description="Scrape only this profile. When omitted, every registered profile is scraped.",
    )


class ScrapeRedditArgs(BaseModel):
    limit: int = Field(default=10, description="Max posts per subreddit")
    subreddit: Optional[str] = Field(
        default=None,
        description="Scrape only this subreddit (without 'r/'). When omitted, every registered subreddit is scraped.",
    )


class ActiveOnlyArgs(BaseModel):
    active_only: bool = Field(default=True, description="List only active sources")


class ListArticlesArgs(BaseModel):
    limit: int = Field(default=20, description="Max articles")
    include_blog_info: bool = Field(default=False, description="Include the blog of each article")


class ListLinkedInPostsArgs(BaseModel):
    limit: int = Field(default=20, description="Max posts")
    week: Optional[str] = Field(default=None, description="Only posts of this week (YYYY-wWW, e.g. 2026-w05)")


class ListRedditPostsArgs(BaseModel):
    limit: int = Field(default=20, description="Max posts")
    subreddit: Optional[str] = Field(default=None, description="Only posts of this subreddit (without 'r/')")


# ----------------------------
# Handlers
# ----------------------------

async def scrape_all(context: AppContext, args: ScrapeAllArgs) -> Dict[str, Any]:
    summaries = await run_scrapes(
        ALL_KINDS,
        context,
        options={
            "linkedin": {"max_posts": args.linkedin_max_posts},
            "reddit": {"limit": args.reddit_limit},
        },
    )
    return {summary.kind: summary.to_dict() for summary in summaries}


async def scrape_blogs(context: AppContext, args: NoArgs) -> Dict[str, Any]:
    [summary] = await run_scrapes(["blogs"], context)
    return summary.to_dict()


async def scrape_linkedin(context: AppContext, args: ScrapeLinkedInArgs) -> Dict[str, Any]:
    if args.profile_url:
        pipeline = create_pipeline("linkedin", context, max_posts=args.max_posts)
        result = await pipeline.scrape_profile(args.profile_url)
        return {"success": result.error is None, "profile": args.profile_url, **result.to_dict()}

    [summary] = await run_scrapes(["linkedin"], context, options={"linkedin": {"max_posts": args.max_posts}})
    return summary.to_dict()


async def scrape_reddit(context: AppContext, args: ScrapeRedditArgs) -> Dict[str, Any]:
    if args.subreddit:
        pipeline = create_pipeline("reddit", context, limit=args.limit)
        result = await pipeline.scrape_subreddit(args.subreddit)
        return {"success": result.error is None, "subreddit": args.subreddit, **result.to_dict()}

    [summary] = await run_scrapes(["reddit"], context, options={"reddit": {"limit": args.limit}})
    return summary.to_dict()


async def list_blog_sources(context: AppContext, args: NoArgs) -> Dict[str, Any]:
    blogs = await context.store.list_blogs()
    return {
        "total": len(blogs),
        "sources": [
            {
                "id": blog.id,
                "name": blog.name,
                "url": blog.url,
                "type": blog.type.value,
                "authority": _percent(blog.authority),
            }
            for blog in blogs
        ],
    }


async def list_linkedin_sources(context: AppContext, args: ActiveOnlyArgs) -> Dict[str, Any]:
    sources = await context.store.list_linkedin_sources(active_only=args.active_only)
    return {
        "total": len(sources),
        "filter": "active only" if args.active_only else "all",
        "sources": [
            {
                "id": source.id,
                "name": source.name,
                "profile_url": source.profile_url,
                "type": source.type.value,
                "authority": _percent(source.authority),
                "active": source.active,
            }
            for source in sources
        ],
    }


async def list_reddit_sources(context: AppContext, args: ActiveOnlyArgs) -> Dict[str, Any]:
    sources = await context.store.list_reddit_sources(active_only=args.active_only)
    return {
        "total": len(sources),
        "filter": "active only" if args.active_only else "all",
        "sources": [
            {
                "id": source.id,
                "name": source.name,
                "subreddit": f"r/{source.subreddit}",
                "type": source.type.value,
                "authority": _percent(source.authority),
                "active": source.active,
            }
            for source in sources
        ],
    }


async def list_articles(context: AppContext, args: ListArticlesArgs) -> Dict[str, Any]:
    if args.include_blog_info:
        articles = await context.store.list_articles_with_blog(args.limit)
    else:
        articles = await context.store.list_articles(args.limit)

    entries = []
    for article in articles:
        entry = {
            "id": article.id,
            "title": article.title,
            "url": article.url,
            "published_at": article.published_at,
            "post_score": _percent(article.post_score),
            "summary": article.summary,
        }
        blog = getattr(article, "blog", None)
        if blog is not None:
            entry["blog"] = {
                "name": blog.name,
                "type": blog.type.value,
                "authority": _percent(blog.authority),
            }
        entries.append(entry)

    return {"total": len(entries), "articles": entries}


async def list_linkedin_posts(context: AppContext, args: ListLinkedInPostsArgs) -> Dict[str, Any]:
    if args.week:
        posts = await context.store.list_linkedin_posts_by_week(args.week, args.limit)
    else:
        posts = await context.store.list_linkedin_posts(args.limit)

    def preview(content: Optional[str]) -> Optional[str]:
        if content and len(content) > 200:
            return content[:200] + "..."
        return content

    return {
        "total": len(posts),
        "filter": f"week: {args.week}" if args.week else "all",
        "posts": [
            {
                "id": post.id,
                "author": post.author_name,
                "author_headline": post.author_headline,
                "content_preview": preview(post.content),
                "url": post.url,
                "engagement": {
                    "likes": post.num_likes,
                    "comments": post.num_comments,
                    "reposts": post.num_reposts,
                },
                # already on a 0-100 scale
                "post_score": f"{post.post_score}%",
                "published_at": post.published_at,
                "week": post.week_date,
            }
            for post in posts
        ],
    }


async def list_reddit_posts(context: AppContext, args: ListRedditPostsArgs) -> Dict[str, Any]:
    if args.subreddit:
        posts = await context.store.list_reddit_posts_by_subreddit(args.subreddit, args.limit)
    else:
        posts = await context.store.list_reddit_posts(args.limit)

    return {
        "total": len(posts),
        "filter": f"r/{args.subreddit}" if args.subreddit else "all",
        "posts": [
            {
                "id": post.id,
                "title": post.title,
                "author": post.author,
                "subreddit": f"r/{post.subreddit}",
                "url": post.permalink,
                "engagement": {"score": post.score, "comments": post.num_comments},
                "post_score": _percent(post.post_score or 0),
                "type": post.type,
                "week": post.week_date,
            }
            for post in posts
        ],
    }


async def get_stats(context: AppContext, args: NoArgs) -> Dict[str, Any]:
    store = context.store
    stats = await store.dashboard_stats()
    linkedin_sources = await store.list_linkedin_sources(active_only=False)
    reddit_sources = await store.list_reddit_sources(active_only=False)

    return {
        "sources": {
            "blogs": stats.total_blogs,
            "linkedin_profiles": len(linkedin_sources),
            "linkedin_profiles_active": sum(1 for s in linkedin_sources if s.active),
            "reddit_subreddits": len(reddit_sources),
            "reddit_subreddits_active": sum(1 for s in reddit_sources if s.active),
        },
        "content": {
            "articles": stats.total_articles,
            "linkedin_posts": await store.count_linkedin_posts(),
            "reddit_posts": await store.count_reddit_posts(),
        },
        "averageAuthority": _percent(stats.average_authority),
    }


# ----------------------------
# Registry
# ----------------------------

Handler = Callable[[AppContext, Any], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Handler

    @property
    def input_schema(self) -> Dict[str, Any]:
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        return schema

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


TOOLS: List[Tool] = [
    Tool("scrape_all", "Scrape ALL registered sources (blogs, LinkedIn and Reddit). May take several minutes.", ScrapeAllArgs, scrape_all),
    Tool("scrape_blogs", "Scrape the registered blogs for new MCP-related articles.", NoArgs, scrape_blogs),
    Tool("scrape_linkedin", "Scrape registered LinkedIn profiles. Requires APIFY_API_TOKEN.", ScrapeLinkedInArgs, scrape_linkedin),
    Tool("scrape_reddit", "Scrape registered subreddits for relevant MCP/AI posts.", ScrapeRedditArgs, scrape_reddit),
    Tool("list_blog_sources", "List every blog registered as a content source.", NoArgs, list_blog_sources),
    Tool("list_linkedin_sources", "List the LinkedIn profiles registered as content sources.", ActiveOnlyArgs, list_linkedin_sources),
    Tool("list_reddit_sources", "List the subreddits registered as content sources.", ActiveOnlyArgs, list_reddit_sources),
    Tool("list_articles", "List scraped blog articles, most recent first.", ListArticlesArgs, list_articles),
    Tool("list_linkedin_posts", "List scraped LinkedIn posts ordered by relevance score.", ListLinkedInPostsArgs, list_linkedin_posts),
    Tool("list_reddit_posts", "List scraped Reddit posts ordered by relevance score.", ListRedditPostsArgs, list_reddit_posts),
    Tool("get_stats", "Overall statistics: sources registered and content scraped.", NoArgs, get_stats),
]

TOOL_REGISTRY: Dict[str, Tool] = {tool.name: tool for tool in TOOLS}


async def call_tool(context: AppContext, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    tool = TOOL_REGISTRY.get(name)
    if tool is None:
        raise UnknownToolError(f"Unknown tool: {name}")

    args = tool.args_model.model_validate(arguments or {})
    return await tool.handler(context, args)
