"""
Scrape listing pages (blogs, newsrooms) with CSS selectors
"""
import logging
from typing import List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from ingestion.base import ContentItem, FetchResult, SourceClient, http_get, strip_html
from services.config import SelectorConfig

logger = logging.getLogger(__name__)


def _first_text(element: Tag, selector: Optional[str]) -> str:
    if not selector:
        return ""
    found = element.select_one(selector)
    return found.get_text(" ", strip=True) if found else ""


def _resolve_link(element: Tag, selector: Optional[str], base_url: str) -> Optional[str]:
    if selector:
        target = element.select_one(selector)
    else:
        # The container itself is often the anchor
        target = element if element.name == "a" else None
    if target is None or not target.get("href"):
        return None
    return urljoin(base_url, str(target["href"]))


def scrape_listing(
    markup: str,
    *,
    base_url: str,
    source_name: str,
    selectors: SelectorConfig,
    max_items: int = 5,
) -> List[ContentItem]:
    """
    Extract up to `max_items` records from a listing page.
    A record whose title selector matches nothing is dropped.
    """
    soup = BeautifulSoup(markup, "html.parser")
    items: List[ContentItem] = []

    for element in soup.select(selectors.container)[:max_items]:
        title = _first_text(element, selectors.title)
        if not title:
            continue

        items.append(
            ContentItem(
                title=title,
                summary=strip_html(_first_text(element, selectors.summary)),
                date=_first_text(element, selectors.date),
                source=source_name,
                url=_resolve_link(element, selectors.link, base_url),
            )
        )

    return items


class ScrapeAdapter(SourceClient):
    def __init__(self, url: str, source_name: str, selectors: SelectorConfig, max_items: int = 5):
        self.url = url
        self.source_name = source_name
        self.selectors = selectors
        self.max_items = max_items
        self.name = source_name

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        response = await http_get(client, self.url)
        items = scrape_listing(
            response.text,
            base_url=str(response.url),
            source_name=self.source_name,
            selectors=self.selectors,
            max_items=self.max_items,
        )
        logger.info(f"Found {len(items)} items on {self.source_name}")
        return FetchResult(items=items)
