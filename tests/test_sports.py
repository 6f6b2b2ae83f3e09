# tests/test_sports.py
from datetime import date

import httpx
import pytest
import respx

from ingestion.sports import (
    SportsGameAdapter,
    TeamFeedAdapter,
    TeamNewsAdapter,
    find_team_event,
    resolve_league,
)
from processing.summarizer import Summarizer
from services.errors import ConfigurationError

from conftest import FakeLLM

ESPN_HOST = "site.api.espn.com"
TODAY = date(2026, 4, 2)


def scoreboard(*names: str) -> dict:
    return {
        "events": [
            {
                "id": "77",
                "name": "Dodgers at Giants",
                "status": {"type": {"detail": "Final/10"}},
                "competitions": [{"competitors": [
                    {"team": {"name": n, "displayName": f"San Francisco {n}", "shortDisplayName": n}}
                    for n in names
                ]}],
            }
        ]
    }


def test_league_lookup():
    assert resolve_league("NBA").sport == "basketball"
    assert resolve_league("nfl").path == "football/nfl"
    with pytest.raises(ConfigurationError):
        resolve_league("cricket")


def test_find_team_event_matches_any_name_form():
    board = scoreboard("Giants", "Dodgers")
    assert find_team_event(board, "San Francisco Giants")["id"] == "77"
    assert find_team_event(board, "Giants")["id"] == "77"
    assert find_team_event(board, "Padres") is None
    assert find_team_event({}, "Giants") is None


@pytest.mark.asyncio
async def test_no_game_yesterday_is_empty_not_an_error():
    adapter = SportsGameAdapter("nba", "Warriors", Summarizer(FakeLLM()), today=TODAY)

    with respx.mock:
        respx.get(host=ESPN_HOST, path="/apis/site/v2/sports/basketball/nba/scoreboard").mock(
            return_value=httpx.Response(200, json={"events": []})
        )
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert result.items == []
    assert result.usage is None


@pytest.mark.asyncio
async def test_mlb_recap_uses_scoreboard_summary_path():
    llm = FakeLLM("Giants walk it off in the tenth.")
    adapter = SportsGameAdapter("mlb", "Giants", Summarizer(llm), today=TODAY)

    with respx.mock:
        board = respx.get(host=ESPN_HOST, path="/apis/site/v2/sports/baseball/mlb/scoreboard").mock(
            return_value=httpx.Response(200, json=scoreboard("Giants", "Dodgers"))
        )
        summary = respx.get(host=ESPN_HOST, path="/apis/site/v2/sports/baseball/mlb/scoreboard/summary").mock(
            return_value=httpx.Response(200, json={"plays": []})
        )
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert board.calls.last.request.url.params["dates"] == "20260401"
    assert summary.calls.last.request.url.params["event"] == "77"
    [item] = result.items
    assert item.title == "Giants Recap: Dodgers at Giants"
    assert item.source == "ESPN Giants"
    assert item.summary == "Giants walk it off in the tenth."
    assert item.date == "2026-04-01"
    assert "MLB game JSON" in llm.prompts[0]
    assert result.usage is not None


@pytest.mark.asyncio
async def test_without_summarizer_game_status_is_reported():
    adapter = SportsGameAdapter("mlb", "Giants", Summarizer(None), today=TODAY)

    with respx.mock:
        respx.get(host=ESPN_HOST, path="/apis/site/v2/sports/baseball/mlb/scoreboard").mock(
            return_value=httpx.Response(200, json=scoreboard("Giants", "Dodgers"))
        )
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    [item] = result.items
    assert item.title == "Giants Game: Dodgers at Giants"
    assert item.summary == "Final/10"
    assert item.source == "ESPN"


@pytest.mark.asyncio
async def test_team_news_keeps_only_extracted_newsworthy_items():
    llm = FakeLLM('[{"headline": "Star guard signs extension", "summary": "Locks in the core."}, {"summary": "no headline"}]')
    adapter = TeamNewsAdapter("nba", "Warriors", "9", Summarizer(llm), today=TODAY)
    articles = {"articles": [
        {"headline": "Star guard signs extension", "description": "Four years", "published": "2026-04-01"},
        {"headline": "Game preview", "description": "Tonight", "published": "2026-04-01"},
    ]}

    with respx.mock:
        route = respx.get(host=ESPN_HOST, path="/apis/site/v2/sports/basketball/nba/news").mock(
            return_value=httpx.Response(200, json=articles)
        )
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert route.calls.last.request.url.params["team"] == "9"
    assert [item.title for item in result.items] == ["Warriors: Star guard signs extension"]
    assert result.items[0].source == "ESPN Warriors News"
    assert result.items[0].date == "2026-04-02"


@pytest.mark.asyncio
async def test_team_feed_without_summarizer_uses_raw_items():
    feed = (
        '<?xml version="1.0"?><rss version="2.0"><channel><title>Fans</title>'
        "<item><title>Trade deadline thoughts</title><description>We need a big</description></item>"
        "<item><title>Bench woes</title><description>Again</description></item>"
        "</channel></rss>"
    )
    adapter = TeamFeedAdapter("Warriors", "https://fans.example.com/rss", Summarizer(None), max_items=1)

    with respx.mock:
        respx.get("https://fans.example.com/rss").mock(return_value=httpx.Response(200, text=feed))
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert [item.title for item in result.items] == ["Warriors Analysis: Trade deadline thoughts"]
