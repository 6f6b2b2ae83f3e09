"""
Ingest AI stories from Hacker News
"""
import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import httpx

from ingestion.base import ContentItem, FetchResult, SourceClient, http_get

logger = logging.getLogger(__name__)

AI_KEYWORDS = [
    "ai", "ml", "machine learning", "deep learning", "llm", "gpt",
    "neural", "artificial intelligence", "openai", "anthropic", "claude",
    "databricks",
]


_AI_PATTERN = re.compile(r"\b(?:" + "|".join(re.escape(k) for k in AI_KEYWORDS) + r")\b", re.IGNORECASE)


def is_ai_related(title: str) -> bool:
    return _AI_PATTERN.search(title) is not None


class HackerNewsAdapter(SourceClient):
    BASE_URL = "https://hacker-news.firebaseio.com/v0"
    name = "Hacker News"

    def __init__(self, max_items: int = 5, scan_limit: int = 30, tz: str = "UTC"):
        self.max_items = max_items
        self.scan_limit = scan_limit
        self.tz = ZoneInfo(tz)

    async def _story(self, client: httpx.AsyncClient, story_id: int) -> Optional[Dict[str, Any]]:
        try:
            response = await http_get(client, f"{self.BASE_URL}/item/{story_id}.json")
            return response.json()
        except Exception as e:
            logger.debug(f"Hacker News story {story_id} skipped: {e}")
            return None

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        resp = await http_get(client, f"{self.BASE_URL}/topstories.json")
        story_ids = resp.json()[:self.scan_limit]

        stories = await asyncio.gather(*(self._story(client, sid) for sid in story_ids))

        items: List[ContentItem] = []
        for data in stories:
            if not data or not data.get("title"):
                continue
            if not is_ai_related(data["title"]):
                continue

            items.append(
                ContentItem(
                    title=data["title"],
                    summary=data["title"],
                    source="Hacker News",
                    date=datetime.fromtimestamp(data.get("time", 0), tz=self.tz).date().isoformat(),
                    url=data.get("url"),
                )
            )
            if len(items) >= self.max_items:
                break

        logger.info(f"Found {len(items)} AI stories")
        return FetchResult(items=items)
