"""
Generic scrape pipeline shared by blogs, LinkedIn and Reddit.

Per item: duplicate check, content extraction, minimum-content gate,
classification, relevance filter, freshness filter, scoring, persistence.
Subclasses supply the per-source capabilities.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from core.schemas import ContentAnalysis
from processing.analyzer import AnalysisOutcome
from processing.prefilter import has_minimum_content
from services.context import AppContext

logger = logging.getLogger(__name__)

SourceT = TypeVar("SourceT")
ItemT = TypeVar("ItemT")


class ItemStatus(str, Enum):
    PERSISTED = "persisted"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class ItemResult:
    status: ItemStatus
    relevant: bool = False
    score: float = 0
    reason: Optional[str] = None

    @classmethod
    def skipped(cls, reason: str) -> "ItemResult":
        return cls(status=ItemStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "ItemResult":
        return cls(status=ItemStatus.ERROR, reason=reason)


@dataclass
class SourceResult:
    source: str
    found: int = 0
    saved: int = 0
    relevant: int = 0
    skipped: int = 0
    errors: int = 0
    error: Optional[str] = None
    scores: List[float] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        if not self.scores:
            return 0
        return round(sum(self.scores) / len(self.scores), 2)

    def record(self, result: ItemResult) -> None:
        if result.status is ItemStatus.PERSISTED:
            self.saved += 1
            self.scores.append(result.score)
            if result.relevant:
                self.relevant += 1
        elif result.status is ItemStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "found": self.found,
            "saved": self.saved,
            "relevant": self.relevant,
            "skipped": self.skipped,
            "errors": self.errors,
            "average_score": self.average_score,
            "error": self.error,
        }


class ContentPipeline(ABC, Generic[SourceT, ItemT]):
    """
    Runs every source of one kind, one item at a time, with fixed pauses.
    Per-item and per-source failures are logged and counted, never raised.
    """

    kind: str
    item_delay_ms: int = 0
    source_delay_ms: int = 0
    # None disables the minimum-content gate
    min_content_length: Optional[int] = None

    def __init__(self, context: AppContext):
        self.context = context
        self.config = context.config
        self.store = context.store
        self._sleep = context.sleep

    # -- capabilities ------------------------------------------------------

    @abstractmethod
    async def list_sources(self) -> List[SourceT]:
        ...

    @abstractmethod
    async def fetch_items(self, source: SourceT) -> List[ItemT]:
        ...

    @abstractmethod
    def source_name(self, source: SourceT) -> str:
        ...

    @abstractmethod
    def item_label(self, item: ItemT) -> str:
        ...

    @abstractmethod
    async def extract_content(self, source: SourceT, item: ItemT) -> Optional[str]:
        ...

    @abstractmethod
    async def classify(self, source: SourceT, item: ItemT, content: str) -> AnalysisOutcome:
        ...

    @abstractmethod
    def compute_score(self, analysis: ContentAnalysis, source: SourceT) -> float:
        ...

    @abstractmethod
    async def persist(
        self,
        source: SourceT,
        item: ItemT,
        content: str,
        outcome: AnalysisOutcome,
        score: float,
    ) -> None:
        ...

    async def duplicate_reason(self, item: ItemT) -> Optional[str]:
        return None

    def accepts(self, outcome: AnalysisOutcome) -> bool:
        return outcome.is_relevant

    def is_relevant(self, outcome: AnalysisOutcome, score: float) -> bool:
        return outcome.is_relevant

    def stale_reason(self, item: ItemT) -> Optional[str]:
        return None

    # -- driver ------------------------------------------------------------

    async def run(self) -> List[SourceResult]:
        sources = await self.list_sources()
        if not sources:
            logger.warning(f"[{self.kind}] No sources found, nothing to scrape")
            return []

        logger.info(f"[{self.kind}] Found {len(sources)} sources to scrape")

        results: List[SourceResult] = []
        for index, source in enumerate(sources):
            logger.info(f"[{self.kind}] [{index + 1}/{len(sources)}] Processing: {self.source_name(source)}")
            result = await self.run_source(source)
            results.append(result)
            logger.info(
                f"[{self.kind}] Done: {result.saved} saved, {result.relevant} relevant",
                extra={"source": result.source, "outcome": result.to_dict()},
            )

            if index < len(sources) - 1:
                await self._pause(self.source_delay_ms)

        total_saved = sum(r.saved for r in results)
        total_relevant = sum(r.relevant for r in results)
        logger.info(f"[{self.kind}] Scraping complete: {total_saved} saved, {total_relevant} relevant")
        return results

    async def run_source(self, source: SourceT) -> SourceResult:
        result = SourceResult(source=self.source_name(source))

        try:
            items = await self.fetch_items(source)
        except Exception as e:
            logger.error(f"[{self.kind}] Error fetching {result.source}: {e}")
            result.errors += 1
            result.error = str(e)
            return result

        result.found = len(items)
        if not items:
            logger.info(f"[{self.kind}] No items found for {result.source}")
            return result

        logger.info(f"[{self.kind}] Found {len(items)} items for {result.source}")

        for item in items:
            try:
                item_result = await self.process_item(source, item)
            except Exception as e:
                logger.error(f"[{self.kind}] Error processing {self.item_label(item)}: {e}")
                item_result = ItemResult.failed(str(e))

            result.record(item_result)
            await self._pause(self.item_delay_ms)

        return result

    async def process_item(self, source: SourceT, item: ItemT) -> ItemResult:
        label = self.item_label(item)

        reason = await self.duplicate_reason(item)
        if reason:
            return self._skip(label, reason)

        content = await self.extract_content(source, item)
        if self.min_content_length is not None and not has_minimum_content(content, self.min_content_length):
            return self._skip(label, "content too short")

        outcome = await self.classify(source, item, content or "")
        if not outcome.parsed:
            logger.warning(
                f"[{self.kind}] Unreadable classification for {label}, treating as not relevant",
                extra={"outcome": "unparseable"},
            )

        if not self.accepts(outcome):
            return self._skip(label, "not relevant")

        reason = self.stale_reason(item)
        if reason:
            return self._skip(label, reason)

        score = self.compute_score(outcome.analysis, source)
        await self.persist(source, item, content or "", outcome, score)

        relevant = self.is_relevant(outcome, score)
        logger.info(
            f"[{self.kind}] Saved ({'relevant, ' if relevant else ''}score: {score}): {label}",
            extra={"outcome": "persisted"},
        )
        return ItemResult(status=ItemStatus.PERSISTED, relevant=relevant, score=score)

    def _skip(self, label: str, reason: str) -> ItemResult:
        logger.info(f"[{self.kind}] Skipping ({reason}): {label}", extra={"outcome": "skipped"})
        return ItemResult.skipped(reason)

    async def _pause(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000)
