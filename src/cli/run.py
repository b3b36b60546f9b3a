import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from core.entities import SourceType
from delivery.console_delivery import ConsoleDelivery
from delivery.file_delivery import FileDelivery
from delivery.report import generate_weekly_report
from services.config import Config, load_config
from services.context import AppContext
from services.database import SQLiteDatabase
from services.errors import ConfigurationError, StoreError
from services.logging import setup_logging
from services.scheduler import next_run_time, seconds_until
from services.seed import load_seed_data, seed_all, seed_blogs, seed_linkedin_sources, seed_reddit_sources
from workflows.pipeline_factory import ALL_KINDS, ScrapeSummary, create_pipeline, run_scrapes

logger = logging.getLogger(__name__)

RULE = "═" * 80
SOURCE_TYPES = [source_type.value for source_type in SourceType]


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


def _print_summary(summary: ScrapeSummary) -> None:
    if summary.success:
        print(f"\n✅ {summary.kind}: {summary.saved} saved, {summary.relevant} relevant, "
              f"{summary.skipped} skipped, {summary.errors} errors\n")
    else:
        print(f"\n❌ {summary.kind} failed: {summary.error}\n")


def _scrape_options(args: argparse.Namespace) -> Dict[str, dict]:
    return {
        "linkedin": {"max_posts": getattr(args, "max_posts", None)},
        "reddit": {"limit": getattr(args, "limit", None)},
    }


# ----------------------------
# Seeding
# ----------------------------

async def cmd_seed(context: AppContext, args: argparse.Namespace) -> int:
    counts = await seed_all(context.store, args.file)
    print(f"\n✓ Seeded {counts['blogs']} blogs, {counts['linkedin']} LinkedIn profiles, "
          f"{counts['reddit']} subreddits\n")
    return 0


async def cmd_seed_blogs(context: AppContext, args: argparse.Namespace) -> int:
    created = await seed_blogs(context.store, load_seed_data(args.file)["sources"])
    print(f"\n✓ Seeded {created} blogs\n")
    return 0


async def cmd_seed_linkedin(context: AppContext, args: argparse.Namespace) -> int:
    created = await seed_linkedin_sources(context.store, load_seed_data(args.file)["sources"])
    print(f"\n✓ Seeded {created} LinkedIn profiles\n")
    return 0


async def cmd_seed_reddit(context: AppContext, args: argparse.Namespace) -> int:
    created = await seed_reddit_sources(context.store, load_seed_data(args.file)["subreddits"])
    print(f"\n✓ Seeded {created} subreddits\n")
    return 0


# ----------------------------
# Scraping
# ----------------------------

async def _scrape(context: AppContext, kinds: Sequence[str], args: argparse.Namespace) -> int:
    options = {
        kind: {key: value for key, value in values.items() if value is not None}
        for kind, values in _scrape_options(args).items()
    }
    summaries = await run_scrapes(kinds, context, options=options)
    for summary in summaries:
        _print_summary(summary)
    return 0 if all(summary.success for summary in summaries) else 1


async def cmd_scrape_all(context: AppContext, args: argparse.Namespace) -> int:
    return await _scrape(context, ALL_KINDS, args)


async def cmd_scrape_blogs(context: AppContext, args: argparse.Namespace) -> int:
    return await _scrape(context, ["blogs"], args)


async def cmd_scrape_linkedin(context: AppContext, args: argparse.Namespace) -> int:
    return await _scrape(context, ["linkedin"], args)


async def cmd_scrape_reddit(context: AppContext, args: argparse.Namespace) -> int:
    return await _scrape(context, ["reddit"], args)


async def cmd_scrape_blog(context: AppContext, args: argparse.Namespace) -> int:
    pipeline = create_pipeline("blogs", context)
    if args.target.startswith(("http://", "https://")):
        result = await pipeline.scrape_url(
            args.target, name=args.name, authority=args.authority, type=SourceType.parse(args.type),
        )
    else:
        result = await pipeline.scrape_blog(args.target)
        if result is None:
            print(f"\n❌ Blog not found: {args.target}", file=sys.stderr)
            return 1

    if result.error:
        print(f"\n❌ {result.source} failed: {result.error}\n")
        return 1
    print(f"\n✅ {result.source}: {result.found} found, {result.saved} saved, {result.relevant} relevant, "
          f"{result.skipped} skipped, {result.errors} errors\n")
    return 0


# ----------------------------
# Listing
# ----------------------------

async def cmd_list(context: AppContext, args: argparse.Namespace) -> int:
    blogs = await context.store.list_blogs()
    if not blogs:
        print("\n📭 No blogs registered. Run 'content-radar seed-blogs' to add initial blogs.\n")
        return 0

    print(f"\n{RULE}\n 📰 Registered Blogs\n{RULE}")
    for blog in blogs:
        print(f"\n  {blog.name}")
        print(f"    ID: {blog.id}")
        print(f"    URL: {blog.url}")
        print(f"    Type: {blog.type.value}")
        print(f"    Authority: {_percent(blog.authority)}")
    print(f"\n{RULE}\n Total: {len(blogs)} blogs\n{RULE}\n")
    return 0


async def cmd_list_linkedin(context: AppContext, args: argparse.Namespace) -> int:
    sources = await context.store.list_linkedin_sources(active_only=False)
    if not sources:
        print("\n📭 No LinkedIn sources registered. Run 'content-radar seed-linkedin' to add initial sources.\n")
        return 0

    print(f"\n{RULE}\n 💼 LinkedIn Sources\n{RULE}")
    for source in sources:
        status = "✓" if source.active else "✗"
        print(f"\n  {status} {source.name}")
        print(f"    URL: {source.profile_url}")
        print(f"    Type: {source.type.value} | Authority: {_percent(source.authority)}")
    active = sum(1 for source in sources if source.active)
    print(f"\n{RULE}\n Total: {len(sources)} sources ({active} active)\n{RULE}\n")
    return 0


async def cmd_list_reddit(context: AppContext, args: argparse.Namespace) -> int:
    sources = await context.store.list_reddit_sources(active_only=False)
    if not sources:
        print("\n📭 No Reddit sources registered. Run 'content-radar seed-reddit' to add initial sources.\n")
        return 0

    print(f"\n{RULE}\n 🤖 Reddit Sources\n{RULE}")
    for source in sources:
        status = "✓" if source.active else "✗"
        print(f"\n  {status} {source.name}")
        print(f"    Subreddit: r/{source.subreddit}")
        print(f"    Type: {source.type.value} | Authority: {_percent(source.authority)}")
    active = sum(1 for source in sources if source.active)
    print(f"\n{RULE}\n Total: {len(sources)} sources ({active} active)\n{RULE}\n")
    return 0


async def cmd_posts_linkedin(context: AppContext, args: argparse.Namespace) -> int:
    posts = await context.store.list_linkedin_posts(args.limit)
    if not posts:
        print("\n📭 No LinkedIn posts saved yet.\n")
        return 0

    print(f"\n{RULE}\n 💼 LinkedIn Posts (Top {args.limit} by score)\n{RULE}")
    for post in posts:
        print(f"\n  📝 {post.author_name}")
        print(f"     Score: {post.post_score}% | 👍 {post.num_likes} | 💬 {post.num_comments}")
        print(f"     {(post.content or '')[:60]}...")
    print(f"\n{RULE}\n Total displayed: {len(posts)} posts\n{RULE}\n")
    return 0


async def cmd_posts_reddit(context: AppContext, args: argparse.Namespace) -> int:
    posts = await context.store.list_reddit_posts(args.limit)
    if not posts:
        print("\n📭 No Reddit posts saved yet.\n")
        return 0

    print(f"\n{RULE}\n 🤖 Reddit Posts (Top {args.limit} by score)\n{RULE}")
    for post in posts:
        title = post.title if len(post.title) <= 60 else post.title[:60] + "..."
        print(f"\n  📝 {title}")
        print(f"     r/{post.subreddit} | Type: {post.type} | Score: {_percent(post.post_score or 0)} "
              f"| ⬆️ {post.score} | 💬 {post.num_comments}")
        print(f"     {post.permalink}")
    print(f"\n{RULE}\n Total displayed: {len(posts)} posts\n{RULE}\n")
    return 0


# ----------------------------
# Source administration
# ----------------------------

SOURCE_KINDS = {
    "blog": ("Blog", "blog"),
    "linkedin": ("LinkedIn source", "linkedin_source"),
    "reddit": ("Reddit source", "reddit_source"),
}


def _authority(value: str) -> float:
    try:
        authority = float(value)
    except ValueError:
        authority = -1.0
    if not 0.0 <= authority <= 1.0:
        raise argparse.ArgumentTypeError("Authority must be a number between 0 and 1")
    return authority


def _print_source(label: str, source) -> None:
    print(f"\n✓ {label}: {source.name}")
    print(f"    ID: {source.id}")
    print(f"    Type: {source.type.value} | Authority: {_percent(source.authority)}")


async def cmd_add_blog(context: AppContext, args: argparse.Namespace) -> int:
    try:
        blog = await context.store.create_blog(
            args.name, args.url, args.authority, args.type, feed_url=args.feed_url,
        )
    except StoreError as e:
        print(f"\n❌ {e}", file=sys.stderr)
        return 1
    _print_source("Blog added", blog)
    return 0


async def cmd_add_linkedin(context: AppContext, args: argparse.Namespace) -> int:
    try:
        source = await context.store.create_linkedin_source(args.name, args.profile_url, args.authority, args.type)
    except StoreError as e:
        print(f"\n❌ {e}", file=sys.stderr)
        return 1
    _print_source("LinkedIn source added", source)
    return 0


async def cmd_add_reddit(context: AppContext, args: argparse.Namespace) -> int:
    subreddit = args.subreddit.removeprefix("r/")
    try:
        source = await context.store.create_reddit_source(
            args.name or f"r/{subreddit}", subreddit, args.authority, args.type,
        )
    except StoreError as e:
        print(f"\n❌ {e}", file=sys.stderr)
        return 1
    _print_source("Reddit source added", source)
    return 0


async def cmd_update_source(context: AppContext, args: argparse.Namespace) -> int:
    label, suffix = SOURCE_KINDS[args.kind]
    changes = {
        field: value
        for field, value in (
            ("name", args.name),
            ("authority", args.authority),
            ("type", args.type),
            ("active", args.active),
        )
        if value is not None
    }
    if not changes:
        print("\n❌ Nothing to update (use --name, --authority, --type or --active/--inactive)", file=sys.stderr)
        return 1

    try:
        source = await getattr(context.store, f"update_{suffix}")(args.source_id, **changes)
    except ValueError as e:
        print(f"\n❌ {e}", file=sys.stderr)
        return 1
    if source is None:
        print(f"\n❌ {label} not found: {args.source_id}", file=sys.stderr)
        return 1

    _print_source(f"{label} updated", source)
    return 0


async def cmd_remove_source(context: AppContext, args: argparse.Namespace) -> int:
    label, suffix = SOURCE_KINDS[args.kind]
    source = await getattr(context.store, f"get_{suffix}")(args.source_id)
    if source is None:
        print(f"\n❌ {label} not found: {args.source_id}", file=sys.stderr)
        return 1

    if not await getattr(context.store, f"delete_{suffix}")(args.source_id):
        print(f"\n❌ Could not remove {source.name}; its saved content was kept", file=sys.stderr)
        return 1

    print(f"\n✓ Removed {source.name} and its saved content")
    return 0


async def cmd_blog_articles(context: AppContext, args: argparse.Namespace) -> int:
    blog = await context.store.get_blog(args.blog_id)
    if blog is None:
        print(f"\n❌ Blog not found: {args.blog_id}", file=sys.stderr)
        return 1

    articles = await context.store.list_articles_by_blog(blog.id)
    total = await context.store.count_articles_by_blog(blog.id)
    print(f"\n{RULE}\n 📰 {blog.name}\n{RULE}")
    for article in articles:
        print(f"\n  {article.title}")
        print(f"    ID: {article.id}")
        print(f"    {article.published_at} | {article.publication_week} | Score: {_percent(article.post_score)}")
        print(f"    {article.url}")
    print(f"\n{RULE}\n Total: {total} articles\n{RULE}\n")
    return 0


async def cmd_show_article(context: AppContext, args: argparse.Namespace) -> int:
    article = await context.store.get_article(args.article_id)
    if article is None:
        print(f"\n❌ Article not found: {args.article_id}", file=sys.stderr)
        return 1

    print(f"\n  {article.title}")
    print(f"    {article.url}")
    print(f"    Published: {article.published_at} ({article.publication_week}) | Score: {_percent(article.post_score)}")
    print(f"\n  {article.summary}")
    for point in article.key_points:
        print(f"    • {point}")
    print()
    return 0


# ----------------------------
# Reports and maintenance
# ----------------------------

async def cmd_report(context: AppContext, args: argparse.Namespace) -> int:
    report = await generate_weekly_report(context.store, args.week)

    deliveries = [ConsoleDelivery()]
    if args.output:
        deliveries.append(FileDelivery(args.output))

    for delivery in deliveries:
        await delivery.deliver(report=report)
        logger.info(f"Delivered report for {report.week} via {delivery.name}")
    return 0


async def cmd_set_authority(context: AppContext, args: argparse.Namespace) -> int:
    try:
        authority = float(args.authority)
    except ValueError:
        authority = -1.0
    if not 0.0 <= authority <= 1.0:
        print("\n❌ Authority must be a number between 0 and 1", file=sys.stderr)
        return 1

    blog = await context.store.get_blog(args.blog_id)
    if blog is None:
        print(f"\n❌ Blog not found: {args.blog_id}", file=sys.stderr)
        return 1

    updated = await context.store.update_blog(args.blog_id, authority=authority)
    name = updated.name if updated else blog.name
    print(f"\n✓ Updated {name} authority to {_percent(authority)}")
    return 0


async def cmd_init_db(context: AppContext, args: argparse.Namespace) -> int:
    if not isinstance(context.db, SQLiteDatabase):
        print("\n❌ init-db only applies to the sqlite backend (DATABASE_BACKEND: sqlite)", file=sys.stderr)
        return 1
    await context.db.init_tables()
    print(f"\n✓ Database initialized at: {context.db.path}")
    return 0


async def cmd_cron(context: AppContext, args: argparse.Namespace) -> int:
    hour, minute = context.config.cron_time
    print(f"\n⏰ Starting cron job with schedule: {context.config.CRON_SCHEDULE}")
    print("Press Ctrl+C to stop\n")

    runs = 0
    while True:
        logger.info("Running scheduled scrape")
        started = time.perf_counter()
        summaries = await run_scrapes(ALL_KINDS, context)
        for summary in summaries:
            _print_summary(summary)
        logger.info(f"Scheduled scrape finished in {time.perf_counter() - started:.1f}s")

        runs += 1
        if args.runs and runs >= args.runs:
            return 0

        run_at = next_run_time(hour, minute)
        print(f"\nNext run scheduled for: {run_at.isoformat()}")
        await context.sleep(seconds_until(run_at, datetime.now()))


CommandHandler = Callable[[AppContext, argparse.Namespace], Awaitable[int]]

COMMANDS: Dict[str, CommandHandler] = {
    "seed": cmd_seed,
    "seed-blogs": cmd_seed_blogs,
    "seed-linkedin": cmd_seed_linkedin,
    "seed-reddit": cmd_seed_reddit,
    "scrape-all": cmd_scrape_all,
    "scrape-blogs": cmd_scrape_blogs,
    "scrape-linkedin": cmd_scrape_linkedin,
    "scrape-reddit": cmd_scrape_reddit,
    "scrape-blog": cmd_scrape_blog,
    "list": cmd_list,
    "list-linkedin": cmd_list_linkedin,
    "list-reddit": cmd_list_reddit,
    "posts-linkedin": cmd_posts_linkedin,
    "posts-reddit": cmd_posts_reddit,
    "blog-articles": cmd_blog_articles,
    "show-article": cmd_show_article,
    "add-blog": cmd_add_blog,
    "add-linkedin": cmd_add_linkedin,
    "add-reddit": cmd_add_reddit,
    "update-source": cmd_update_source,
    "remove-source": cmd_remove_source,
    "report": cmd_report,
    "set-authority": cmd_set_authority,
    "init-db": cmd_init_db,
    "cron": cmd_cron,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="content-radar",
        description="Scrape blogs, LinkedIn and Reddit for MCP-related content",
    )
    parser.add_argument("--config", default=None, help="Path to config.yml")
    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("seed", "Register every seed source (blogs, LinkedIn, Reddit)"),
        ("seed-blogs", "Register the seed blogs"),
        ("seed-linkedin", "Register the seed LinkedIn profiles"),
        ("seed-reddit", "Register the seed subreddits"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("--file", default=None, help="Path to sources.yml")

    scrape_all = commands.add_parser("scrape-all", help="Scrape blogs, LinkedIn and Reddit")
    scrape_all.add_argument("--max-posts", type=int, default=None, help="Max posts per LinkedIn profile")
    scrape_all.add_argument("--limit", type=int, default=None, help="Max posts per subreddit")

    commands.add_parser("scrape-blogs", help="Scrape registered blogs")

    scrape_linkedin = commands.add_parser("scrape-linkedin", help="Scrape registered LinkedIn profiles")
    scrape_linkedin.add_argument("--max-posts", type=int, default=None, help="Max posts per profile")

    scrape_reddit = commands.add_parser("scrape-reddit", help="Scrape registered subreddits")
    scrape_reddit.add_argument("--limit", type=int, default=None, help="Max posts per subreddit")

    scrape_blog = commands.add_parser("scrape-blog", help="Scrape one blog by ID or URL (unknown URLs are registered)")
    scrape_blog.add_argument("target", help="Blog ID or homepage URL")
    scrape_blog.add_argument("--name", default=None, help="Name for a newly registered blog")
    scrape_blog.add_argument("--authority", type=_authority, default=0.5)
    scrape_blog.add_argument("--type", choices=SOURCE_TYPES, default=SourceType.COMMUNITY.value)

    commands.add_parser("list", help="List registered blogs")
    commands.add_parser("list-linkedin", help="List LinkedIn sources")
    commands.add_parser("list-reddit", help="List Reddit sources")

    for name, help_text in (
        ("posts-linkedin", "List saved LinkedIn posts by score"),
        ("posts-reddit", "List saved Reddit posts by score"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("--limit", type=int, default=20, help="Max posts (default: 20)")

    blog_articles = commands.add_parser("blog-articles", help="List the saved articles of one blog")
    blog_articles.add_argument("blog_id")

    show_article = commands.add_parser("show-article", help="Show one saved article")
    show_article.add_argument("article_id")

    add_blog = commands.add_parser("add-blog", help="Register a blog")
    add_blog.add_argument("name")
    add_blog.add_argument("url")
    add_blog.add_argument("--feed-url", default=None)

    add_linkedin = commands.add_parser("add-linkedin", help="Register a LinkedIn profile")
    add_linkedin.add_argument("name")
    add_linkedin.add_argument("profile_url")

    add_reddit = commands.add_parser("add-reddit", help="Register a subreddit")
    add_reddit.add_argument("subreddit", help="Subreddit name, with or without 'r/'")
    add_reddit.add_argument("--name", default=None, help="Display name (default: r/<subreddit>)")

    for sub in (add_blog, add_linkedin, add_reddit):
        sub.add_argument("--authority", type=_authority, default=0.5, help="Number between 0 and 1 (default: 0.5)")
        sub.add_argument("--type", choices=SOURCE_TYPES, default=SourceType.COMMUNITY.value)

    update_source = commands.add_parser("update-source", help="Change a source's name, authority, type or status")
    update_source.add_argument("kind", choices=list(SOURCE_KINDS))
    update_source.add_argument("source_id")
    update_source.add_argument("--name", default=None)
    update_source.add_argument("--authority", type=_authority, default=None)
    update_source.add_argument("--type", choices=SOURCE_TYPES, default=None)
    status = update_source.add_mutually_exclusive_group()
    status.add_argument("--active", dest="active", action="store_true", default=None)
    status.add_argument("--inactive", dest="active", action="store_false")

    remove_source = commands.add_parser("remove-source", help="Delete a source and its saved content")
    remove_source.add_argument("kind", choices=list(SOURCE_KINDS))
    remove_source.add_argument("source_id")

    report = commands.add_parser("report", help="Print the weekly report")
    report.add_argument("week", nargs="?", default=None, help="Week label YYYY-wWW (default: current week)")
    report.add_argument("--output", default=None, help="Also write JSON and Markdown to this directory")

    set_authority = commands.add_parser("set-authority", help="Change a blog's authority")
    set_authority.add_argument("blog_id")
    set_authority.add_argument("authority", help="Number between 0 and 1 (e.g. 0.8)")

    cron = commands.add_parser("cron", help="Scrape now, then daily at the CRON_SCHEDULE time")
    cron.add_argument("--runs", type=int, default=0, help="Stop after this many runs (default: run forever)")

    commands.add_parser("init-db", help="Create the tables (sqlite backend)")

    serve = commands.add_parser("serve", help="Run the control endpoint")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


async def main(argv: Optional[List[str]] = None, config: Optional[Config] = None) -> int:
    args = build_parser().parse_args(argv)
    config = config or load_config(args.config)
    setup_logging(config.LOG_LEVEL)

    if args.command == "serve":
        from api.run_api import serve_api
        await serve_api(config, host=args.host, port=args.port)
        return 0

    try:
        async with AppContext(config) as context:
            return await COMMANDS[args.command](context, args)
    except ConfigurationError as e:
        print(f"\n❌ {e}", file=sys.stderr)
        return 1


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
