"""
Aggregator - concurrent fan-out over every configured source, fan-in into one ContentBundle.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import httpx

from core.entities import Category, ContentBundle, UsageRecord
from ingestion.articles import ArticleCollector
from ingestion.base import USER_AGENT, ContentItem, FetchResult, local_today
from ingestion.source_factory import CategoryPlan, CategorySummary, create_category_plans
from processing.deduplicator import DeduplicationIndex
from processing.summarizer import Summarizer
from services.config import ArticlesConfig, ContentConfig
from services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)

CategoryOutcome = Tuple[List[ContentItem], List[Optional[UsageRecord]]]


def create_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(headers={"User-Agent": USER_AGENT}, follow_redirects=True)


class Aggregator:
    """
    Runs every source of every enabled category concurrently.

    Never fails because a source failed: a category whose sources all failed
    yields an empty bucket. Configuration errors (unknown category, league or
    source type) surface before anything is fetched.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        ledger: Optional[UsageLedger] = None,
        client: Optional[httpx.AsyncClient] = None,
        timezone: str = "UTC",
        today: Optional[date] = None,
    ):
        self.summarizer = summarizer
        self.ledger = ledger
        self.client = client
        self.timezone = timezone
        self.today = today
        self.articles = ArticleCollector(summarizer)

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with create_http_client() as client:
            yield client

    def _record(self, usage: Iterable[Optional[UsageRecord]]) -> List[UsageRecord]:
        records = [record for record in usage if record is not None]
        if self.ledger is not None:
            for record in records:
                self.ledger.record(record.provider, record)
        return records

    async def _summarize(self, summary: CategorySummary, items: List[ContentItem]) -> FetchResult:
        """
        One call over the whole category. If it yields nothing the raw items
        are kept instead.
        """
        result = await self.summarizer.summarize(CategorySummary.render(items), summary.instruction)
        if not result.ok:
            logger.info(f"No summary for '{summary.title}', keeping {len(items)} raw item(s)")
            return FetchResult(items=items, usage=result.usage)

        return FetchResult(
            items=[
                ContentItem(
                    title=summary.title,
                    summary=result.text,
                    source=summary.source,
                    date=local_today(self.timezone, self.today).isoformat(),
                )
            ],
            usage=result.usage,
        )

    async def _run_category(self, client: httpx.AsyncClient, plan: CategoryPlan) -> CategoryOutcome:
        results = await asyncio.gather(*(source.fetch(client) for source in plan.sources))
        items = [item for result in results for item in result.items]
        usage = [result.usage for result in results]

        if plan.summary is not None and items and self.summarizer.available:
            summarized = await self._summarize(plan.summary, items)
            items = summarized.items
            usage.append(summarized.usage)

        return items, usage

    async def aggregate_plans(self, plans: List[CategoryPlan]) -> ContentBundle:
        bundle = ContentBundle()
        active = []
        for plan in plans:
            if not plan.is_active():
                logger.info(f"Skipping {plan.category.value}: outside its event window")
                continue
            active.append(plan)

        start = time.perf_counter()
        async with self._http() as client:
            outcomes = await asyncio.gather(
                *(self._run_category(client, plan) for plan in active),
                return_exceptions=True,
            )

        for plan, outcome in zip(active, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(
                    f"Category {plan.category.value} failed unexpectedly: {type(outcome).__name__}: {outcome}"
                )
                continue
            items, usage = outcome
            bundle.extend(plan.category, items)
            bundle.add_usage(self._record(usage))
            logger.info(f"{plan.category.value}: {len(items)} item(s)")

        elapsed = time.perf_counter() - start
        logger.info(f"Aggregated {bundle.total_items} item(s) from {len(active)} categories in {elapsed:.1f}s")
        return bundle

    async def aggregate(self, enabled_categories: Iterable[Category], content: ContentConfig) -> ContentBundle:
        """
        Fetch every enabled category. Every category key is present in the
        returned bundle, empty when disabled, inactive or failed.

        Raises:
            ConfigurationError: On an unknown category, league or source type
        """
        categories = [Category.parse(category) for category in enabled_categories]
        plans = create_category_plans(
            categories,
            content,
            self.summarizer,
            tz=self.timezone,
            today=self.today,
        )
        return await self.aggregate_plans(plans)

    async def collect_articles(
        self,
        config: ArticlesConfig,
        index: DeduplicationIndex,
    ) -> FetchResult:
        """Articles for in-depth discussion, skipping titles already covered."""
        async with self._http() as client:
            result = await self.articles.collect(client, config, index)
        self._record([result.usage])
        return result
