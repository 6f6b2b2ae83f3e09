# tests/test_briefing.py
import json
import logging
from datetime import date, timedelta

import pytest

from core.entities import Category
from core.schemas import EpisodeMemory, EpisodeRecord
from delivery.file_delivery import BundleFileWriter
from ingestion.base import ContentItem
from processing.summarizer import Summarizer
from services.config import Config
from services.memory_store import MemoryStore
from services.usage_ledger import UsageLedger
from workflows.aggregator import Aggregator
from workflows.briefing import BriefingPipeline

from conftest import FakeBackend, FakeLLM

TODAY = date(2026, 3, 15)
KEY = "episode-memory.json"


def make_pipeline(backend: FakeBackend, llm=None):
    summarizer = Summarizer(llm)
    ledger = UsageLedger()
    aggregator = Aggregator(summarizer, ledger=ledger, today=TODAY)
    store = MemoryStore(backend, KEY, commit_message="Update test episode memory")
    return BriefingPipeline(Config(), aggregator, store, summarizer, ledger, today=TODAY), ledger


def seeded_memory(backend: FakeBackend, *days_ago: int) -> str:
    memory = EpisodeMemory(
        episodes=[
            EpisodeRecord(
                date=(TODAY - timedelta(days=n)).isoformat(),
                summary=f"Episode from {n} days ago",
                key_topics=[f"topic {n}"],
                articles=[f"Article {n}"],
            )
            for n in days_ago
        ]
    )
    return backend.seed(KEY, memory.to_json())


@pytest.mark.asyncio
async def test_first_run_reads_empty_memory_and_writes_without_token():
    backend = FakeBackend()
    pipeline, _ = make_pipeline(backend, FakeLLM('["Chip exports", "Warriors streak"]'))

    run = await pipeline.gather()

    assert run.memory.episodes == []
    assert run.version is None
    assert run.digest == ""
    for category in Category:
        assert run.bundle[category] == []

    assert await pipeline.record_episode(run, "Today we covered chips.", "script text")

    assert backend.puts[0]["version"] is None
    stored = json.loads(backend.blobs[KEY].content)
    assert stored["episodes"] == [
        {"date": "2026-03-15", "summary": "Today we covered chips.", "keyTopics": ["Chip exports", "Warriors streak"]}
    ]


@pytest.mark.asyncio
async def test_read_failure_proceeds_without_memory(caplog):
    pipeline, _ = make_pipeline(FakeBackend(fail_reads=True))

    with caplog.at_level(logging.WARNING):
        run = await pipeline.gather()

    assert run.memory.episodes == []
    assert run.version is None
    assert run.digest == ""
    assert any("Episode memory unavailable" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_existing_memory_feeds_digest_and_write_uses_read_version():
    backend = FakeBackend()
    version = seeded_memory(backend, 1, 3, 9)
    pipeline, _ = make_pipeline(backend, FakeLLM('["New topic"]'))

    run = await pipeline.gather()

    assert run.version == version
    assert run.digest.splitlines() == [
        "2026-03-14: Episode from 1 days ago [Topics: topic 1]",
        "2026-03-12: Episode from 3 days ago [Topics: topic 3]",
    ]

    assert await pipeline.record_episode(run, "summary", "script", article_titles=["Deep dive"])

    assert backend.puts[-1]["version"] == version
    stored = EpisodeMemory.from_json(backend.blobs[KEY].content)
    assert [e.date for e in stored.episodes] == ["2026-03-15", "2026-03-14", "2026-03-12", "2026-03-06"]
    assert stored.episodes[0].articles == ["Deep dive"]


@pytest.mark.asyncio
async def test_rerun_on_same_day_replaces_the_episode():
    backend = FakeBackend()
    pipeline, _ = make_pipeline(backend, FakeLLM('["t"]'))

    first = await pipeline.gather()
    await pipeline.record_episode(first, "first take", "script")
    second = await pipeline.gather()
    await pipeline.record_episode(second, "second take", "script")

    stored = EpisodeMemory.from_json(backend.blobs[KEY].content)
    assert [(e.date, e.summary) for e in stored.episodes] == [("2026-03-15", "second take")]


@pytest.mark.asyncio
async def test_conflicting_writer_is_logged_and_reported(caplog):
    backend = FakeBackend()
    seeded_memory(backend, 1)
    pipeline, _ = make_pipeline(backend, FakeLLM('["t"]'))

    run = await pipeline.gather()
    # A concurrent run commits first
    backend.seed(KEY, EpisodeMemory().to_json())

    with caplog.at_level(logging.ERROR):
        saved = await pipeline.record_episode(run, "summary", "script")

    assert saved is False
    assert any("Failed to save episode memory" in record.getMessage() for record in caplog.records)
    assert len(backend.puts) == 1


@pytest.mark.asyncio
async def test_article_titles_default_to_articles_bucket_and_topics_are_cleaned():
    backend = FakeBackend()
    topics = json.dumps(["  A  ", 42, "", "B", "C", "D", "E", "F", "G", "H", "I"])
    llm = FakeLLM(topics)
    pipeline, ledger = make_pipeline(backend, llm)

    run = await pipeline.gather()
    run.bundle.extend(Category.ARTICLES, [ContentItem(title="Long read", source="Blog")])
    await pipeline.record_episode(run, "summary", "the script")

    stored = EpisodeMemory.from_json(backend.blobs[KEY].content)
    assert stored.episodes[0].articles == ["Long read"]
    # Junk entries do not count against the limit
    assert stored.episodes[0].key_topics == ["A", "B", "C", "D", "E", "F", "G", "H"]
    assert ledger.total()["fake/model"].prompt_units == 10
    assert llm.prompts[0].endswith("the script")


@pytest.mark.asyncio
async def test_bundle_is_written_for_generation(tmp_path):
    backend = FakeBackend()
    seeded_memory(backend, 1)
    pipeline, _ = make_pipeline(backend)

    run = await pipeline.gather()
    run.bundle.extend(Category.NEWS, [ContentItem(title="Headline", summary="Body", source="Wire", url="https://x")])

    json_path, md_path = await BundleFileWriter(str(tmp_path), "test").deliver(run)

    assert json_path.name == "test_2026-03-15.json"
    payload = json.loads(json_path.read_text())
    assert payload["buckets"]["news"][0]["title"] == "Headline"
    assert set(payload["buckets"]) == {category.value for category in Category}
    assert payload["continuity_digest"] == run.digest
    markdown = md_path.read_text()
    assert "## News" in markdown
    assert "### Headline" in markdown
    assert "## Recent episodes" in markdown


@pytest.mark.asyncio
async def test_dotted_podcast_id_keeps_the_date_in_file_names(tmp_path):
    backend = FakeBackend()
    pipeline, _ = make_pipeline(backend)
    run = await pipeline.gather()
    writer = BundleFileWriter(str(tmp_path), "daily.briefing")

    json_path, md_path = await writer.deliver(run)
    run.date = TODAY + timedelta(days=1)
    await writer.deliver(run)

    assert json_path.name == "daily.briefing_2026-03-15.json"
    assert md_path.name == "daily.briefing_2026-03-15.md"
    assert sorted(path.name for path in tmp_path.glob("*.json")) == [
        "daily.briefing_2026-03-15.json",
        "daily.briefing_2026-03-16.json",
    ]
