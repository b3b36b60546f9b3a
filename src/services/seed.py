"""
Seeds blog, LinkedIn and Reddit sources from resources/sources.yml.
Entries that already exist are skipped, so seeding can be re-run safely.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from services.errors import StoreError
from services.store import ContentStore

logger = logging.getLogger(__name__)

PRIORITY_AUTHORITY = {
    "critical": 1.0,
    "high": 0.8,
    "medium": 0.5,
    "low": 0.3,
}


def priority_to_authority(priority: Optional[str]) -> float:
    return PRIORITY_AUTHORITY.get((priority or "").lower(), 0.5)


def _get_sources_path() -> Optional[str]:
    if os.path.exists('resources/sources.yml'):
        return 'resources/sources.yml'

    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    sources_path = os.path.join(project_root, 'resources', 'sources.yml')
    if os.path.exists(sources_path):
        return sources_path

    return None


def load_seed_data(path: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    sources_path = path or _get_sources_path()
    if not sources_path:
        logger.warning("sources.yml not found, nothing to seed")
        return {"sources": [], "subreddits": []}

    with open(sources_path, 'r') as file:
        data = yaml.safe_load(file) or {}

    return {
        "sources": data.get("sources") or [],
        "subreddits": data.get("subreddits") or [],
    }


async def seed_blogs(store: ContentStore, sources: List[Dict[str, Any]]) -> int:
    existing_urls = {blog.url for blog in await store.list_blogs()}
    created = 0

    for source in sources:
        urls = source.get("urls") or {}
        blog_url = urls.get("blog") or urls.get("website")
        if not blog_url:
            continue

        if blog_url in existing_urls:
            logger.info(f"Blog already exists: {source['name']}")
            continue

        try:
            await store.create_blog(
                name=source["name"],
                url=blog_url,
                authority=priority_to_authority(source.get("priority")),
                type=source.get("type"),
                feed_url=urls.get("feed"),
            )
        except (StoreError, ValueError) as e:
            logger.error(f"Failed to create blog {source['name']}: {e}")
            continue

        existing_urls.add(blog_url)
        created += 1
        logger.info(f"Blog created: {source['name']}")

    return created


async def seed_linkedin_sources(store: ContentStore, sources: List[Dict[str, Any]]) -> int:
    existing_urls = {source.profile_url for source in await store.list_linkedin_sources(active_only=False)}
    created = 0

    for source in sources:
        linkedin_url = (source.get("urls") or {}).get("linkedin")
        if not linkedin_url:
            continue

        if linkedin_url in existing_urls:
            logger.info(f"LinkedIn source already exists: {source['name']}")
            continue

        try:
            await store.create_linkedin_source(
                name=source["name"],
                profile_url=linkedin_url,
                authority=priority_to_authority(source.get("priority")),
                type=source.get("type"),
            )
        except (StoreError, ValueError) as e:
            logger.error(f"Failed to create LinkedIn source {source['name']}: {e}")
            continue

        existing_urls.add(linkedin_url)
        created += 1
        logger.info(f"LinkedIn source created: {source['name']}")

    return created


async def seed_reddit_sources(store: ContentStore, subreddits: List[Dict[str, Any]]) -> int:
    existing = {source.subreddit.lower() for source in await store.list_reddit_sources(active_only=False)}
    created = 0

    for entry in subreddits:
        subreddit = entry["subreddit"]
        if subreddit.lower() in existing:
            logger.info(f"Reddit source already exists: r/{subreddit}")
            continue

        try:
            await store.create_reddit_source(
                name=entry.get("name") or f"r/{subreddit}",
                subreddit=subreddit,
                authority=priority_to_authority(entry.get("priority")),
                type=entry.get("type"),
            )
        except (StoreError, ValueError) as e:
            logger.error(f"Failed to create Reddit source r/{subreddit}: {e}")
            continue

        existing.add(subreddit.lower())
        created += 1
        logger.info(f"Reddit source created: r/{subreddit}")

    return created


async def seed_all(store: ContentStore, path: Optional[str] = None) -> Dict[str, int]:
    data = load_seed_data(path)
    counts = {
        "blogs": await seed_blogs(store, data["sources"]),
        "linkedin": await seed_linkedin_sources(store, data["sources"]),
        "reddit": await seed_reddit_sources(store, data["subreddits"]),
    }
    logger.info(
        f"Seed complete: {counts['blogs']} blogs, {counts['linkedin']} LinkedIn, {counts['reddit']} Reddit created"
    )
    return counts
