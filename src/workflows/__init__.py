"""
Workflows module - scrape pipelines per source kind.
"""
from workflows.base import ContentPipeline, ItemResult, ItemStatus, SourceResult
from workflows.blogs import BlogPipeline
from workflows.linkedin import LinkedInPipeline
from workflows.reddit import RedditPipeline
from workflows.pipeline_factory import ALL_KINDS, ScrapeSummary, create_pipeline, run_scrapes

__all__ = [
    "ContentPipeline",
    "ItemResult",
    "ItemStatus",
    "SourceResult",
    "BlogPipeline",
    "LinkedInPipeline",
    "RedditPipeline",
    "ALL_KINDS",
    "ScrapeSummary",
    "create_pipeline",
    "run_scrapes",
]
