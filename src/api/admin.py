"""
Request validation and JSON shapes for the source administration routes.
"""
from dataclasses import asdict
from typing import Any, Dict, Iterable, Optional
from urllib.parse import urlparse

from core.entities import Article, Blog, LinkedInSource, RedditSource, SourceType

SOURCE_TYPES = [source_type.value for source_type in SourceType]

BLOG_FIELDS = ("name", "url", "feed_url", "authority", "type")
LINKEDIN_FIELDS = ("name", "profile_url", "authority", "type", "active")
REDDIT_FIELDS = ("name", "subreddit", "authority", "type", "active")

_URL_FIELDS = {"url", "profile_url", "feed_url"}
_TEXT_FIELDS = {"name", "subreddit"} | _URL_FIELDS


class InvalidRequest(ValueError):
    pass


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_changes(body: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """
    Pick the allowed fields out of a request body and check each one.
    Raises InvalidRequest with a message fit for a 400 response.
    """
    changes: Dict[str, Any] = {}
    for field in allowed:
        if field not in body:
            continue
        value = body[field]

        if field == "feed_url" and value in (None, ""):
            changes[field] = None
            continue

        if field in _TEXT_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise InvalidRequest(f"{field} cannot be empty")
            value = value.strip()
            if field in _URL_FIELDS and not _is_url(value):
                raise InvalidRequest(f"Invalid URL format: {field}")
            if field == "subreddit":
                value = value.removeprefix("r/")
        elif field == "authority":
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
                raise InvalidRequest("Authority must be between 0 and 1")
            value = float(value)
        elif field == "type":
            if value not in SOURCE_TYPES:
                raise InvalidRequest(f"Invalid type. Must be one of: {', '.join(SOURCE_TYPES)}")
        elif field == "active":
            if not isinstance(value, bool):
                raise InvalidRequest("active must be true or false")

        changes[field] = value
    return changes


def require(changes: Dict[str, Any], *fields: str) -> None:
    for field in fields:
        if field not in changes:
            raise InvalidRequest(f"{field} is required")


def source_json(source: Blog | LinkedInSource | RedditSource, articles_count: Optional[int] = None) -> Dict[str, Any]:
    data = asdict(source)
    data["type"] = source.type.value
    if articles_count is not None:
        data["articles_count"] = articles_count
    return data


def article_json(article: Article) -> Dict[str, Any]:
    return asdict(article)
