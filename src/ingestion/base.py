"""
Base classes for Ingestion
"""
import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List, Optional
from zoneinfo import ZoneInfo

import httpx
from pydantic import BaseModel

from core.entities import UsageRecord

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"

FEED_TIMEOUT = 10.0
PAGE_TIMEOUT = 15.0

SUMMARY_MAX_CHARS = 300

_TAG_PATTERN = re.compile(r"<[^>]*>")
_SPACE_PATTERN = re.compile(r"\s+")


class ContentItem(BaseModel):
    """
    One normalized unit of fetched content.
    """
    title: str
    summary: str = ""
    source: str
    date: str = ""
    url: Optional[str] = None


@dataclass(frozen=True)
class FetchResult:
    items: List[ContentItem] = field(default_factory=list)
    usage: Optional[UsageRecord] = None

    @classmethod
    def empty(cls, usage: Optional[UsageRecord] = None) -> "FetchResult":
        return cls(items=[], usage=usage)


def strip_html(text: str, limit: Optional[int] = SUMMARY_MAX_CHARS) -> str:
    """Drop tags and collapse whitespace."""
    cleaned = _SPACE_PATTERN.sub(" ", _TAG_PATTERN.sub("", text or "")).strip()
    return cleaned[:limit] if limit is not None else cleaned


def local_today(tz: str = "UTC", today: Optional[date] = None) -> date:
    """The run's calendar day in `tz`, unless one was injected."""
    return today or datetime.now(ZoneInfo(tz)).date()


def keep_titled(items: Iterable[ContentItem]) -> List[ContentItem]:
    """Items without a title never enter a bundle."""
    return [item for item in items if item.title and item.title.strip()]


async def http_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float = FEED_TIMEOUT,
    **kwargs: Any,
) -> httpx.Response:
    """
    GET with a hard wall-clock bound on top of httpx's per-phase timeouts.
    Raises on transport errors, timeouts and non-2xx responses.
    """
    response = await asyncio.wait_for(
        client.get(url, timeout=timeout, **kwargs),
        timeout=timeout,
    )
    response.raise_for_status()
    return response


class SourceClient(ABC):
    """
    Base interface for all ingestion sources.
    """

    name: str = "source"

    async def fetch(self, client: httpx.AsyncClient) -> FetchResult:
        """
        Fetch items from the source.
        Must NEVER raise: failures are logged and reduce to an empty result.
        """
        try:
            result = await self._fetch(client)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Source {self.name} failed: {type(e).__name__}: {e}")
            return FetchResult.empty()

        return FetchResult(items=keep_titled(result.items), usage=result.usage)

    @abstractmethod
    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        raise NotImplementedError
