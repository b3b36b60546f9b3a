"""
Pipeline Factory - creates pipelines by source kind and runs them in turn.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from services.context import AppContext
from workflows.base import ContentPipeline, SourceResult
from workflows.blogs import BlogPipeline
from workflows.linkedin import LinkedInPipeline
from workflows.reddit import RedditPipeline

logger = logging.getLogger(__name__)

PIPELINES = {
    "blogs": BlogPipeline,
    "linkedin": LinkedInPipeline,
    "reddit": RedditPipeline,
}

ALL_KINDS = tuple(PIPELINES)


@dataclass
class ScrapeSummary:
    kind: str
    success: bool = True
    error: Optional[str] = None
    sources: List[SourceResult] = field(default_factory=list)

    @property
    def saved(self) -> int:
        return sum(source.saved for source in self.sources)

    @property
    def relevant(self) -> int:
        return sum(source.relevant for source in self.sources)

    @property
    def skipped(self) -> int:
        return sum(source.skipped for source in self.sources)

    @property
    def errors(self) -> int:
        return sum(source.errors for source in self.sources)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "success": self.success,
            "error": self.error,
            "sources_processed": len(self.sources),
            "saved": self.saved,
            "relevant": self.relevant,
            "skipped": self.skipped,
            "errors": self.errors,
            "details": [source.to_dict() for source in self.sources],
        }


def create_pipeline(kind: str, context: AppContext, **options) -> ContentPipeline:
    """
    Build the pipeline for `kind` ("blogs", "linkedin" or "reddit").
    Extra options go to the pipeline constructor (max_posts, limit).
    """
    try:
        pipeline_cls = PIPELINES[kind]
    except KeyError:
        raise ValueError(f"Unknown pipeline kind: {kind}") from None
    return pipeline_cls(context, **options)


async def run_scrapes(
    kinds: Sequence[str],
    context: AppContext,
    options: Optional[Dict[str, dict]] = None,
) -> List[ScrapeSummary]:
    """
    Run the pipelines of each kind in order. A failing kind is reported in its
    summary and never stops the others.
    """
    options = options or {}
    summaries: List[ScrapeSummary] = []

    for kind in kinds:
        summary = ScrapeSummary(kind=kind)
        try:
            pipeline = create_pipeline(kind, context, **options.get(kind, {}))
            logger.info(f"Running {kind} pipeline")
            summary.sources = await pipeline.run()
        except Exception as e:
            logger.exception(f"Pipeline failed: {kind}: {e}")
            summary.success = False
            summary.error = str(e)
        summaries.append(summary)

    return summaries
