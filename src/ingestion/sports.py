"""
Sports ingestion: ESPN game recaps, team news and fan-site feeds.
"""
import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from ingestion.base import ContentItem, FetchResult, SourceClient, http_get, local_today
from ingestion.rss import parse_feed
from processing.prompts import GAME_PROMPTS, fan_feed_prompt, team_news_prompt
from processing.summarizer import Summarizer
from services.errors import ConfigurationError

logger = logging.getLogger(__name__)

ESPN_BASE = "https://site.api.espn.com/apis/site/v2/sports"


@dataclass(frozen=True)
class League:
    key: str
    sport: str

    @property
    def path(self) -> str:
        return f"{self.sport}/{self.key}"


LEAGUES: Dict[str, League] = {
    "nba": League("nba", "basketball"),
    "mlb": League("mlb", "baseball"),
    "nfl": League("nfl", "football"),
}


def resolve_league(league: str) -> League:
    try:
        return LEAGUES[league.lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown league: {league}") from None


def yesterday(tz: str = "UTC", today: Optional[date] = None) -> date:
    return local_today(tz, today) - timedelta(days=1)


def find_team_event(scoreboard: Dict[str, Any], team_name: str) -> Optional[Dict[str, Any]]:
    """At most one event whose competitors include `team_name` (any of ESPN's name forms)."""
    for event in scoreboard.get("events") or []:
        competitions = event.get("competitions") or []
        if not competitions:
            continue
        for competitor in competitions[0].get("competitors") or []:
            team = competitor.get("team") or {}
            if team_name in (team.get("name"), team.get("displayName"), team.get("shortDisplayName")):
                return event
    return None


def _status_detail(event: Dict[str, Any]) -> str:
    return ((event.get("status") or {}).get("type") or {}).get("detail", "")


class SportsGameAdapter(SourceClient):
    """Yesterday's game for one team, narrated by the summarizer when available."""

    def __init__(
        self,
        league: str,
        team_name: str,
        summarizer: Summarizer,
        tz: str = "UTC",
        today: Optional[date] = None,
    ):
        self.league = resolve_league(league)
        self.team_name = team_name
        self.summarizer = summarizer
        self.tz = tz
        self._today = today
        self.name = f"ESPN {team_name}"

    def _summary_url(self, event_id: str) -> str:
        if self.league.key == "mlb":
            return f"{ESPN_BASE}/{self.league.path}/scoreboard/summary?event={event_id}"
        return f"{ESPN_BASE}/{self.league.path}/summary?event={event_id}"

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        game_day = yesterday(self.tz, self._today)
        logger.info(f"Fetching {self.team_name} game for {game_day.isoformat()}...")

        scoreboard = await http_get(
            client,
            f"{ESPN_BASE}/{self.league.path}/scoreboard",
            params={"dates": game_day.strftime("%Y%m%d")},
        )
        event = find_team_event(scoreboard.json(), self.team_name)
        if event is None:
            logger.info(f"No {self.team_name} game found for yesterday.")
            return FetchResult.empty()

        event_name = event.get("name", "")
        fallback = ContentItem(
            title=f"{self.team_name} Game: {event_name}",
            summary=_status_detail(event),
            source="ESPN",
            date=game_day.isoformat(),
        )
        if not self.summarizer.available:
            return FetchResult(items=[fallback])

        summary_data = await http_get(client, self._summary_url(str(event.get("id"))))
        result = await self.summarizer.summarize(
            json.dumps(summary_data.json()),
            f"{GAME_PROMPTS[self.league.key]}\n\nJSON Data:",
        )
        if not result.ok:
            return FetchResult(items=[fallback], usage=result.usage)

        return FetchResult(
            items=[
                ContentItem(
                    title=f"{self.team_name} Recap: {event_name}",
                    summary=result.text,
                    source=self.name,
                    date=game_day.isoformat(),
                )
            ],
            usage=result.usage,
        )


class TeamNewsAdapter(SourceClient):
    """ESPN team news filtered down to genuinely newsworthy items."""

    def __init__(
        self,
        league: str,
        team_name: str,
        espn_news_id: str,
        summarizer: Summarizer,
        tz: str = "UTC",
        today: Optional[date] = None,
    ):
        self.league = resolve_league(league)
        self.team_name = team_name
        self.espn_news_id = espn_news_id
        self.summarizer = summarizer
        self.tz = tz
        self._today = today
        self.name = f"ESPN {team_name} News"

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        if not self.summarizer.available:
            return FetchResult.empty()

        response = await http_get(
            client,
            f"{ESPN_BASE}/{self.league.path}/news",
            params={"team": self.espn_news_id, "limit": 10},
        )
        articles = [
            {
                "headline": article.get("headline"),
                "description": article.get("description"),
                "published": article.get("published"),
            }
            for article in response.json().get("articles") or []
        ]
        if not articles:
            return FetchResult.empty()

        extraction = await self.summarizer.extract(
            json.dumps(articles, indent=2),
            team_news_prompt(self.team_name),
        )

        today = local_today(self.tz, self._today).isoformat()
        items = [
            ContentItem(
                title=f"{self.team_name}: {entry.get('headline', '')}",
                summary=str(entry.get("summary", "")),
                source=self.name,
                date=today,
            )
            for entry in extraction.items
            if isinstance(entry, dict) and entry.get("headline")
        ]
        if items:
            logger.info(f"Found {len(items)} newsworthy {self.team_name} items")
        return FetchResult(items=items, usage=extraction.usage)


class TeamFeedAdapter(SourceClient):
    """Fan-site feed condensed into storylines with fan sentiment."""

    def __init__(
        self,
        team_name: str,
        feed_url: str,
        summarizer: Summarizer,
        max_items: int = 3,
        tz: str = "UTC",
        today: Optional[date] = None,
    ):
        self.team_name = team_name
        self.feed_url = feed_url
        self.summarizer = summarizer
        self.max_items = max_items
        self.tz = tz
        self._today = today
        self.name = f"{team_name} Fan Analysis"

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        response = await http_get(client, self.feed_url)
        raw_items = parse_feed(response.content, self.name, self.max_items)
        if not raw_items:
            return FetchResult.empty()

        if not self.summarizer.available:
            return FetchResult(
                items=[
                    item.model_copy(update={"title": f"{self.team_name} Analysis: {item.title}"})
                    for item in raw_items
                ]
            )

        raw_text = "\n\n---\n\n".join(f"Title: {item.title}\nContent: {item.summary}" for item in raw_items)
        extraction = await self.summarizer.extract(raw_text, fan_feed_prompt(self.team_name))

        today = local_today(self.tz, self._today).isoformat()
        items: List[ContentItem] = [
            ContentItem(
                title=f"{self.team_name} Fan Perspective",
                summary=str(entry.get("summary", "")),
                source=self.name,
                date=today,
            )
            for entry in extraction.items
            if isinstance(entry, dict) and entry.get("summary")
        ]
        return FetchResult(items=items, usage=extraction.usage)
