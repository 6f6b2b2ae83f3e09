"""
Collect full articles for in-depth discussion.
Candidates come from newsletter/blog feeds, are filtered against episode
memory, fetched, reduced to their main text and analyzed with one call each.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import List

import httpx
from bs4 import BeautifulSoup

from ingestion.base import PAGE_TIMEOUT, ContentItem, FetchResult, http_get
from ingestion.rss import fetch_feed_entries
from processing.deduplicator import DeduplicationIndex
from processing.prompts import article_prompt
from processing.summarizer import Summarizer
from services.config import ArticlesConfig, FeedConfig

logger = logging.getLogger(__name__)

NEWSLETTER_FEED_SOURCE = "Kill The Newsletter"
DEFAULT_ARTICLE_SOURCE = "Curated Articles"

# Links pointing back at the newsletter-to-feed service are not articles
SELF_LINK_MARKER = "kill-the-newsletter.com/feeds"

NOISE_SELECTORS = "script, style, nav, header, footer, aside, .ad, .advertisement"
CONTENT_SELECTORS = ["article", "main", ".post-content", ".article-content", ".entry-content", "body"]

MIN_CONTENT_CHARS = 500
MIN_ARTICLE_CHARS = 200
MAX_ARTICLE_CHARS = 15000

_SPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class ArticleCandidate:
    title: str
    link: str
    source: str
    date: str = ""


def feed_sources(config: ArticlesConfig) -> List[FeedConfig]:
    """The legacy newsletter feed first, then the configured feeds."""
    sources: List[FeedConfig] = []
    if config.kill_the_newsletter_feed_url:
        sources.append(
            FeedConfig(
                url=config.kill_the_newsletter_feed_url,
                name=NEWSLETTER_FEED_SOURCE,
                max_items=config.max_per_episode,
            )
        )
    sources.extend(config.feeds)
    return sources


def extract_article_text(markup: str) -> str:
    """Main readable text of a page, whitespace collapsed and capped."""
    soup = BeautifulSoup(markup, "html.parser")
    for node in soup.select(NOISE_SELECTORS):
        node.decompose()

    text = ""
    for selector in CONTENT_SELECTORS:
        found = soup.select_one(selector)
        content = found.get_text(" ", strip=True) if found else ""
        if len(content) > MIN_CONTENT_CHARS:
            text = content
            break

    if not text:
        body = soup.body or soup
        text = body.get_text(" ", strip=True)

    return _SPACE_PATTERN.sub(" ", text).strip()[:MAX_ARTICLE_CHARS]


class ArticleCollector:
    def __init__(self, summarizer: Summarizer):
        self.summarizer = summarizer

    async def _feed_candidates(
        self,
        client: httpx.AsyncClient,
        feed: FeedConfig,
        index: DeduplicationIndex,
        lookback_days: int,
        default_cap: int,
    ) -> List[ArticleCandidate]:
        try:
            entries = await fetch_feed_entries(client, feed.url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to fetch feed '{feed.label}': {e}")
            return []

        candidates: List[ArticleCandidate] = []
        for entry in entries:
            if not entry.title or not entry.link or SELF_LINK_MARKER in entry.link:
                continue
            if index.was_covered(entry.title, lookback_days):
                logger.info(f"Skipping previously covered article: {entry.title}")
                continue
            candidates.append(
                ArticleCandidate(
                    title=entry.title,
                    link=entry.link,
                    source=feed.name or DEFAULT_ARTICLE_SOURCE,
                    date=entry.date,
                )
            )

        cap = feed.max_items if feed.max_items is not None else default_cap
        return candidates[:cap]

    async def find_candidates(
        self,
        client: httpx.AsyncClient,
        config: ArticlesConfig,
        index: DeduplicationIndex,
    ) -> List[ArticleCandidate]:
        """Uncovered candidates, capped per feed and then globally."""
        per_feed = await asyncio.gather(
            *(
                self._feed_candidates(client, feed, index, config.lookback_days, config.max_per_episode)
                for feed in feed_sources(config)
            )
        )
        pooled = [candidate for candidates in per_feed for candidate in candidates]
        return pooled[:config.max_per_episode]

    async def _analyze(self, client: httpx.AsyncClient, candidate: ArticleCandidate) -> FetchResult:
        try:
            response = await http_get(client, candidate.link, timeout=PAGE_TIMEOUT)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to fetch article '{candidate.title}': {e}")
            return FetchResult.empty()

        text = extract_article_text(response.text)
        if len(text) < MIN_ARTICLE_CHARS:
            logger.info(f"Article content too short, skipping: {candidate.title}")
            return FetchResult.empty()

        result = await self.summarizer.summarize(text, article_prompt(candidate.title, candidate.link))
        if not result.ok:
            return FetchResult.empty(usage=result.usage)

        logger.info(f"Analyzed article: {candidate.title}")
        return FetchResult(
            items=[
                ContentItem(
                    title=candidate.title,
                    summary=result.text,
                    source=candidate.source,
                    date=candidate.date,
                    url=candidate.link,
                )
            ],
            usage=result.usage,
        )

    async def collect(
        self,
        client: httpx.AsyncClient,
        config: ArticlesConfig,
        index: DeduplicationIndex,
    ) -> FetchResult:
        """
        Never raises. Returns analyzed articles plus the summed usage of every
        analysis call, or an empty result when nothing new is found.
        """
        if not config.enabled:
            return FetchResult.empty()

        candidates = await self.find_candidates(client, config, index)
        if not candidates:
            logger.info("No new articles found")
            return FetchResult.empty()

        if not self.summarizer.available:
            logger.info("Summarizer not available, skipping article analysis")
            return FetchResult.empty()

        logger.info(f"Found {len(candidates)} new article(s) to analyze")
        results = await asyncio.gather(*(self._analyze(client, candidate) for candidate in candidates))

        items = [item for result in results for item in result.items]
        usages = [result.usage for result in results if result.usage is not None]
        usage = sum(usages[1:], usages[0]) if usages else None
        return FetchResult(items=items, usage=usage)
