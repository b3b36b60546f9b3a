import hashlib

MIN_CONTENT_LENGTH = 100
MIN_PAGE_LENGTH = 200
MIN_LINKEDIN_LENGTH = 50


def has_minimum_content(content: str | None, min_length: int = MIN_CONTENT_LENGTH) -> bool:
    """Reject empty or placeholder text before it costs an LLM call."""
    return content is not None and len(content) >= min_length


def content_hash(title: str, body: str) -> str:
    """
    SHA-256 of title + body, used to spot the same post cross-posted
    under a different permalink.
    """
    return hashlib.sha256(f"{title} {body}".encode("utf-8")).hexdigest()
