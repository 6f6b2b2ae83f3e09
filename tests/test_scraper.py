# tests/test_scraper.py
import httpx
import pytest
import respx

from ingestion.scraper import ScrapeAdapter, scrape_listing
from services.config import SelectorConfig

LISTING = """
<html><body>
  <article class="post">
    <h2><a href="/blog/one">Launch day</a></h2>
    <time>Mar 14, 2026</time>
    <p>We shipped <em>the thing</em>.</p>
  </article>
  <article class="post">
    <p>No heading here</p>
  </article>
  <article class="post">
    <h3><a href="https://other.example.com/two">Second post</a></h3>
    <p>More news.</p>
  </article>
  <article class="post">
    <h2>Third</h2>
  </article>
</body></html>
"""

SELECTORS = SelectorConfig(container="article.post", title="h2, h3", link="a")


def test_records_without_title_are_dropped():
    items = scrape_listing(LISTING, base_url="https://blog.example.com/", source_name="Blog", selectors=SELECTORS)

    assert [item.title for item in items] == ["Launch day", "Second post", "Third"]


def test_fields_and_links_are_resolved():
    [first, second, third] = scrape_listing(
        LISTING, base_url="https://blog.example.com/", source_name="Blog", selectors=SELECTORS
    )

    assert first.summary == "We shipped the thing ."
    assert first.date == "Mar 14, 2026"
    assert first.url == "https://blog.example.com/blog/one"
    assert second.url == "https://other.example.com/two"
    assert third.url is None
    assert first.source == "Blog"


def test_max_items_bounds_containers_considered():
    items = scrape_listing(
        LISTING, base_url="https://blog.example.com/", source_name="Blog", selectors=SELECTORS, max_items=2
    )
    assert [item.title for item in items] == ["Launch day"]


@pytest.mark.asyncio
async def test_adapter_fetches_and_parses_page():
    adapter = ScrapeAdapter("https://blog.example.com/news", "Blog", SELECTORS, max_items=5)

    with respx.mock:
        respx.get("https://blog.example.com/news").mock(return_value=httpx.Response(200, text=LISTING))
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert len(result.items) == 3
    assert result.items[0].url == "https://blog.example.com/blog/one"


@pytest.mark.asyncio
async def test_adapter_http_error_degrades_to_empty():
    adapter = ScrapeAdapter("https://blog.example.com/news", "Blog", SELECTORS)

    with respx.mock:
        respx.get("https://blog.example.com/news").mock(return_value=httpx.Response(503))
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert result.items == []
