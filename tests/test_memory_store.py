# tests/test_memory_store.py
import json
from datetime import date, timedelta

import pytest

from core.schemas import MAX_EPISODES, EpisodeMemory, EpisodeRecord
from services.errors import MemoryStoreError, VersionConflictError
from services.memory_store import MemoryStore, upsert_and_trim

from conftest import FakeBackend

KEY = "episode-memory.json"


def _record(day: date, summary: str = "") -> EpisodeRecord:
    return EpisodeRecord(date=day.isoformat(), summary=summary or f"Episode {day.isoformat()}")


def test_upsert_replaces_record_for_same_date():
    day = date(2026, 3, 15)
    memory = EpisodeMemory(episodes=[_record(day, "old"), _record(day - timedelta(days=1))])

    updated = upsert_and_trim(memory, _record(day, "new"))

    assert [e.date for e in updated.episodes] == [day.isoformat(), (day - timedelta(days=1)).isoformat()]
    assert updated.episodes[0].summary == "new"


def test_upsert_is_idempotent():
    day = date(2026, 3, 15)
    memory = EpisodeMemory(episodes=[_record(day - timedelta(days=i)) for i in range(1, 5)])
    record = _record(day, "today")

    once = upsert_and_trim(memory, record)
    twice = upsert_and_trim(once, record)

    assert twice == once
    assert sum(1 for e in twice.episodes if e.date == record.date) == 1


def test_upsert_does_not_mutate_input():
    memory = EpisodeMemory(episodes=[_record(date(2026, 3, 14))])
    upsert_and_trim(memory, _record(date(2026, 3, 15)))
    assert len(memory.episodes) == 1


def test_window_stays_bounded_and_keeps_most_recent_dates():
    memory = EpisodeMemory()
    start = date(2026, 1, 1)
    upserted = []

    for i in range(30):
        day = start + timedelta(days=i)
        memory = upsert_and_trim(memory, _record(day))
        upserted.append(day.isoformat())
        assert len(memory.episodes) <= MAX_EPISODES

    assert [e.date for e in memory.episodes] == list(reversed(upserted))[:MAX_EPISODES]


def test_new_date_evicts_oldest_of_full_window():
    today = date(2026, 3, 15)
    memory = EpisodeMemory(episodes=[_record(today - timedelta(days=i)) for i in range(1, 15)])

    updated = upsert_and_trim(memory, _record(today))

    dates = [e.date for e in updated.episodes]
    assert len(dates) == 14
    assert dates == [(today - timedelta(days=i)).isoformat() for i in range(0, 14)]
    assert (today - timedelta(days=14)).isoformat() not in dates


@pytest.mark.asyncio
async def test_read_not_found_is_empty_state_and_first_write_has_no_token():
    backend = FakeBackend()
    store = MemoryStore(backend, KEY)

    memory, version = await store.read()

    assert memory.episodes == []
    assert version is None

    await store.write(upsert_and_trim(memory, _record(date(2026, 3, 15))), version)

    assert backend.puts[0]["version"] is None
    assert KEY in backend.blobs


@pytest.mark.asyncio
async def test_round_trip_uses_camel_case_and_returns_version():
    backend = FakeBackend()
    payload = {"episodes": [{"date": "2026-03-14", "summary": "s", "keyTopics": ["a", "b"], "articles": ["Foo"]}]}
    seeded_version = backend.seed(KEY, json.dumps(payload))
    store = MemoryStore(backend, KEY)

    memory, version = await store.read()

    assert version == seeded_version
    assert memory.episodes[0].key_topics == ["a", "b"]

    await store.write(memory, version)
    written = json.loads(backend.blobs[KEY].content)
    assert written["episodes"][0]["keyTopics"] == ["a", "b"]
    assert "key_topics" not in written["episodes"][0]


@pytest.mark.asyncio
async def test_records_without_articles_serialize_without_the_field():
    backend = FakeBackend()
    store = MemoryStore(backend, KEY)

    await store.write(EpisodeMemory(episodes=[_record(date(2026, 3, 15))]), None)

    written = json.loads(backend.blobs[KEY].content)
    assert "articles" not in written["episodes"][0]


@pytest.mark.asyncio
async def test_stale_version_is_rejected():
    backend = FakeBackend()
    backend.seed(KEY, json.dumps({"episodes": []}))
    store = MemoryStore(backend, KEY)

    memory, version = await store.read()
    # Another writer gets in first
    await store.write(memory, version)

    with pytest.raises(VersionConflictError):
        await store.write(memory, version)


@pytest.mark.asyncio
async def test_malformed_memory_raises_store_error():
    backend = FakeBackend()
    backend.seed(KEY, "{not json")
    store = MemoryStore(backend, KEY)

    with pytest.raises(MemoryStoreError):
        await store.read()


@pytest.mark.asyncio
async def test_backend_failure_propagates_as_store_error():
    store = MemoryStore(FakeBackend(fail_reads=True), KEY)

    with pytest.raises(MemoryStoreError):
        await store.read()
