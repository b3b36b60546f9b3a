"""
Pydantic schemas for LLM replies
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.scoring import clamp_unit


class ContentAnalysis(BaseModel):
    """
    Normalized relevance/quality analysis for an article or post.
    """
    is_relevant: bool = False
    summary: str = ""
    key_points: List[str] = Field(default_factory=list)
    quality_score: float = 0.0
    relevance_reason: str = ""

    @field_validator("is_relevant", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("summary", "relevance_reason", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("key_points", mode="before")
    @classmethod
    def _points(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(point) for point in value if isinstance(point, (str, int, float))]

    @field_validator("quality_score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_unit(value)

    @classmethod
    def negative(cls) -> "ContentAnalysis":
        """Zero-valued, not-relevant result."""
        return cls()


class ArticleCandidate(BaseModel):
    title: str
    url: str
    published_at: Optional[str] = None

    @field_validator("published_at", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        if value in (None, "", "null"):
            return None
        return str(value)


class ArticleListResponse(BaseModel):
    """
    Reply of the article-list extraction prompt.

    Entries stay raw here and are validated one at a time with
    `ArticleCandidate`, so a single malformed entry is dropped on its own.
    """
    articles: List[Any]
