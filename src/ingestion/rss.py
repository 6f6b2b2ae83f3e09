"""
Ingestion from RSS and Atom feeds
"""
import calendar
import html
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

import feedparser
import httpx

from ingestion.base import (
    FEED_TIMEOUT,
    ContentItem,
    FetchResult,
    SourceClient,
    http_get,
    strip_html,
)

logger = logging.getLogger(__name__)

_CONTENT_HREF = re.compile(r"""href=(?:&quot;|["'])(.*?)(?:&quot;|["'])""", re.IGNORECASE)


@dataclass(frozen=True)
class FeedEntry:
    title: str
    summary: str
    date: str
    link: str
    published: Optional[datetime]


def is_atom(parsed: feedparser.FeedParserDict) -> bool:
    """Atom feeds carry `entry` nodes; everything else is read as RSS `item` nodes."""
    return str(parsed.get("version", "")).startswith("atom")


def _entry_datetime(entry: feedparser.FeedParserDict) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    # feedparser normalizes to UTC struct_time
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)


def _content_link(entry: feedparser.FeedParserDict) -> str:
    """First href inside the entry's embedded HTML content."""
    for content in entry.get("content", []) or []:
        match = _CONTENT_HREF.search(content.get("value", ""))
        if match:
            return html.unescape(match.group(1)).strip()
    return ""


def parse_feed_entries(payload: bytes | str) -> List[FeedEntry]:
    """Normalize RSS `item` / Atom `entry` nodes. Entries without a title are dropped."""
    parsed = feedparser.parse(payload)
    atom = is_atom(parsed)
    entries: List[FeedEntry] = []

    for entry in parsed.entries:
        title = strip_html(entry.get("title", ""), limit=None)
        if not title:
            continue

        summary_source = entry.get("summary", "")
        if not summary_source and entry.get("content"):
            summary_source = entry.content[0].get("value", "")

        link = _content_link(entry) if atom else ""
        if not link:
            link = entry.get("link", "")

        entries.append(
            FeedEntry(
                title=title,
                summary=strip_html(summary_source),
                date=entry.get("published") or entry.get("updated") or "",
                link=link.strip(),
                published=_entry_datetime(entry),
            )
        )

    return entries


def parse_feed(payload: bytes | str, source_name: str, max_items: int = 5) -> List[ContentItem]:
    return [
        ContentItem(
            title=entry.title,
            summary=entry.summary,
            source=source_name,
            date=entry.date,
        )
        for entry in parse_feed_entries(payload)[:max_items]
    ]


async def fetch_feed_entries(
    client: httpx.AsyncClient,
    url: str,
    timeout: float = FEED_TIMEOUT,
) -> List[FeedEntry]:
    response = await http_get(client, url, timeout=timeout)
    return parse_feed_entries(response.content)


class RSSAdapter(SourceClient):
    def __init__(self, feed_url: str, source_name: str, max_items: int = 5):
        self.feed_url = feed_url
        self.source_name = source_name
        self.max_items = max_items
        self.name = source_name

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        response = await http_get(client, self.feed_url)
        items = parse_feed(response.content, self.source_name, self.max_items)
        logger.debug(f"{self.source_name}: {len(items)} feed items")
        return FetchResult(items=items)


class NewsletterAdapter(SourceClient):
    """
    Newsletter digests re-published as a feed. Only entries dated today
    (in the briefing's timezone) are kept.
    """

    def __init__(
        self,
        feed_url: str,
        source_name: str = "Axios Newsletters",
        tz: str = "UTC",
        today: Optional[date] = None,
    ):
        self.feed_url = feed_url
        self.source_name = source_name
        self.name = source_name
        self.tz = ZoneInfo(tz)
        self._today = today

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        today = self._today or datetime.now(self.tz).date()
        entries = await fetch_feed_entries(client, self.feed_url)

        items = [
            ContentItem(
                title=entry.title,
                summary=entry.summary or entry.title,
                source=self.source_name,
                date=entry.date,
            )
            for entry in entries
            if entry.published and entry.published.astimezone(self.tz).date() == today
        ]

        logger.info(f"Found {len(items)} newsletter items from today")
        return FetchResult(items=items)
