"""
BriefingPipeline - one daily run: aggregate content, read episode memory,
pick fresh articles, and afterwards record the produced episode.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from core.entities import Category, ContentBundle
from core.schemas import MAX_KEY_TOPICS, EpisodeMemory, EpisodeRecord
from processing.deduplicator import DeduplicationIndex
from processing.prompts import TOPIC_EXTRACTION_PROMPT
from processing.summarizer import Summarizer
from services.config import Config
from services.errors import MemoryStoreError
from services.memory_store import MemoryStore, upsert_and_trim
from services.usage_ledger import UsageLedger
from workflows.aggregator import Aggregator

logger = logging.getLogger(__name__)


@dataclass
class BriefingRun:
    date: date
    bundle: ContentBundle
    memory: EpisodeMemory
    version: Optional[str]
    digest: str

    @property
    def article_titles(self) -> List[str]:
        return [item.title for item in self.bundle[Category.ARTICLES]]


class BriefingPipeline:
    def __init__(
        self,
        config: Config,
        aggregator: Aggregator,
        memory_store: MemoryStore,
        summarizer: Summarizer,
        ledger: UsageLedger,
        today: Optional[date] = None,
    ):
        self.config = config
        self.aggregator = aggregator
        self.memory_store = memory_store
        self.summarizer = summarizer
        self.ledger = ledger
        self.today = today or datetime.now(ZoneInfo(config.timezone)).date()

    async def _read_memory(self):
        """Memory is best-effort: a failed read means no continuity and no dedup for this run."""
        try:
            return await self.memory_store.read()
        except MemoryStoreError as e:
            logger.warning(f"Episode memory unavailable, continuing without it: {e}")
            return EpisodeMemory(), None

    async def gather(self) -> BriefingRun:
        content = self.config.content
        bundle, (memory, version) = await asyncio.gather(
            self.aggregator.aggregate(content.enabled_categories(), content),
            self._read_memory(),
        )

        index = DeduplicationIndex(memory, today=self.today)
        if content.articles.enabled:
            articles = await self.aggregator.collect_articles(content.articles, index)
            bundle.extend(Category.ARTICLES, articles.items)
            bundle.add_usage([articles.usage])

        digest = index.continuity_digest(self.config.memory.continuity_days)
        if digest:
            logger.info(f"Continuity digest covers {len(digest.splitlines())} recent episode(s)")
        else:
            logger.info("No recent episodes, generating without continuity context")

        return BriefingRun(
            date=self.today,
            bundle=bundle,
            memory=memory,
            version=version,
            digest=digest,
        )

    async def extract_topics(self, script: str) -> List[str]:
        extraction = await self.summarizer.extract(script, TOPIC_EXTRACTION_PROMPT)
        if extraction.usage is not None:
            self.ledger.record(extraction.usage.provider, extraction.usage)
        topics = [topic.strip() for topic in extraction.items if isinstance(topic, str) and topic.strip()]
        return topics[:MAX_KEY_TOPICS]

    async def record_episode(
        self,
        run: BriefingRun,
        summary: str,
        script: str,
        article_titles: Optional[List[str]] = None,
    ) -> bool:
        """
        Upsert today's episode into memory and persist it with the version
        read at the start of the run. A failed write (including a version
        conflict) is logged and reported as False; it is never retried.
        """
        topics = await self.extract_topics(script)
        titles = run.article_titles if article_titles is None else article_titles

        record = EpisodeRecord(
            date=run.date.isoformat(),
            summary=summary.strip(),
            key_topics=topics,
            articles=titles or None,
        )
        updated = upsert_and_trim(run.memory, record, self.config.memory.max_episodes)

        try:
            await self.memory_store.write(updated, run.version)
        except MemoryStoreError as e:
            logger.error(f"Failed to save episode memory: {e}")
            return False

        run.memory = updated
        logger.info(f"Recorded episode {record.date} with {len(topics)} topic(s)")
        return True
