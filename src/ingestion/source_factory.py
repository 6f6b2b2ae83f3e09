"""
Source Factory - Creates ingestion adapters and per-category plans from configuration.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from core.entities import Category
from core.events import is_event_active
from ingestion.base import ContentItem, SourceClient, local_today
from ingestion.events import LiveEventAdapter
from ingestion.hackernews import HackerNewsAdapter
from ingestion.rss import NewsletterAdapter, RSSAdapter
from ingestion.scraper import ScrapeAdapter
from ingestion.sports import SportsGameAdapter, TeamFeedAdapter, TeamNewsAdapter
from ingestion.surf import SurfAdapter
from processing.prompts import news_prompt, real_estate_prompt
from processing.summarizer import Summarizer
from services.config import ContentConfig, FeedConfig, SourceConfig
from services.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategorySummary:
    """One summarization call over all raw items of a category."""
    instruction: str
    title: str
    source: str

    @staticmethod
    def render(items: List[ContentItem]) -> str:
        return "\n\n".join(
            f"Title: {item.title}\nSummary: {item.summary}\nSource: {item.source}"
            for item in items
        )


@dataclass
class CategoryPlan:
    category: Category
    sources: List[SourceClient] = field(default_factory=list)
    summary: Optional[CategorySummary] = None
    # Temporal gate; when it returns False the category is not fetched at all
    predicate: Optional[Callable[[], bool]] = None

    def is_active(self) -> bool:
        return self.predicate is None or self.predicate()


def create_source_adapter(source_config: SourceConfig, tz: str = "UTC") -> SourceClient:
    """
    Create an AI news source adapter from configuration.

    Raises:
        ConfigurationError: If the source type is unknown or required fields are missing
    """
    source_type = source_config.type.lower()
    name = source_config.name or source_type

    if source_type == "rss":
        if not source_config.url:
            raise ConfigurationError(f"RSS source '{name}' requires 'url'")
        return RSSAdapter(source_config.url, name, source_config.max_items)

    elif source_type == "scrape":
        if not source_config.url or source_config.selectors is None:
            raise ConfigurationError(f"Scrape source '{name}' requires 'url' and 'selectors'")
        return ScrapeAdapter(source_config.url, name, source_config.selectors, source_config.max_items)

    elif source_type == "hackernews":
        return HackerNewsAdapter(max_items=source_config.max_items, tz=tz)

    else:
        raise ConfigurationError(f"Unknown source type: {source_config.type}")


def _feed_adapters(feeds: List[FeedConfig], default_max: int) -> List[SourceClient]:
    return [
        RSSAdapter(feed.url, feed.label, feed.max_items or default_max)
        for feed in feeds
    ]


def _feed_descriptions(feeds: List[FeedConfig]) -> str:
    return ", ".join(
        f"{feed.label} ({feed.focus})" if feed.focus else feed.label
        for feed in feeds
    )


def create_category_plan(
    category: Category,
    content: ContentConfig,
    summarizer: Summarizer,
    tz: str = "UTC",
    today: Optional[date] = None,
) -> CategoryPlan:
    """
    Build the sources (and optional summary step) for one category.

    Raises:
        ConfigurationError: On an unknown category, source type or league
    """
    category = Category.parse(category)

    if category == Category.AI_NEWS:
        sources = [
            create_source_adapter(source, tz)
            for source in content.ai_news.sources
            if source.enabled
        ]
        return CategoryPlan(category, sources)

    if category == Category.NEWSLETTERS:
        if not content.newsletters.feed_url:
            return CategoryPlan(category)
        return CategoryPlan(category, [NewsletterAdapter(content.newsletters.feed_url, tz=tz, today=today)])

    if category == Category.NEWS:
        news = content.news
        return CategoryPlan(
            category,
            _feed_adapters(news.feeds, news.max_items_per_feed),
            CategorySummary(news_prompt(_feed_descriptions(news.feeds)), "News Update", "News Feeds"),
        )

    if category == Category.REAL_ESTATE:
        real_estate = content.real_estate
        return CategoryPlan(
            category,
            _feed_adapters(real_estate.feeds, real_estate.max_items_per_feed),
            CategorySummary(
                real_estate_prompt(real_estate.target_markets, real_estate.price_range),
                "Real Estate Market Analysis",
                "Real Estate Analysis",
            ),
        )

    if category == Category.SPORTS:
        sports = content.sports
        sources: List[SourceClient] = []
        for team in sports.teams:
            sources.append(SportsGameAdapter(team.league, team.name, summarizer, tz=tz, today=today))
            if sports.include_team_news and team.espn_news_id:
                sources.append(
                    TeamNewsAdapter(team.league, team.name, team.espn_news_id, summarizer, tz=tz, today=today)
                )
            if team.rss_feed_url:
                sources.append(
                    TeamFeedAdapter(
                        team.name,
                        team.rss_feed_url,
                        summarizer,
                        sports.team_feed_max_items,
                        tz=tz,
                        today=today,
                    )
                )
        return CategoryPlan(category, sources)

    if category == Category.INTERNATIONAL:
        return CategoryPlan(category, _feed_adapters(content.international.feeds, 3))

    if category == Category.SURF:
        surf = content.surf
        return CategoryPlan(category, [SurfAdapter(surf.spot_ids, surf.location, tz=tz, today=today)])

    if category in (Category.OLYMPICS, Category.WORLDCUP):
        event = content.sports.event(category.value)
        if event is None:
            return CategoryPlan(category)
        event_type = category.value
        predicate = (lambda: is_event_active(event_type, local_today(tz, today))) if event.only_during_event else None
        return CategoryPlan(
            category,
            [LiveEventAdapter(event_type, event.feeds, tz=tz, today=today)],
            predicate=predicate,
        )

    # Articles are collected after episode memory is read, not in the fan-out
    return CategoryPlan(category)


def create_category_plans(
    categories: List[Category],
    content: ContentConfig,
    summarizer: Summarizer,
    tz: str = "UTC",
    today: Optional[date] = None,
) -> List[CategoryPlan]:
    plans = [create_category_plan(category, content, summarizer, tz, today) for category in categories]
    for plan in plans:
        logger.info(f"Planned {plan.category.value}: {len(plan.sources)} source(s)")
    return plans
