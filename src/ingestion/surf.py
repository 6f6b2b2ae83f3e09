"""
Surf conditions from the Surfline forecast endpoints
"""
import asyncio
import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from ingestion.base import ContentItem, FetchResult, SourceClient, http_get, local_today

logger = logging.getLogger(__name__)

SURFLINE_BASE = "https://services.surfline.com/kbyg/spots/forecasts"

COMPASS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def degrees_to_direction(degrees: float) -> str:
    # Half-up rounding: 11.25 degrees is NNE, not N
    return COMPASS[int(math.floor(degrees / 22.5 + 0.5)) % 16]


def _first(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    entries = (payload.get("data") or {}).get(key) or []
    return entries[0] if entries else {}


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def describe_conditions(
    location: str,
    wave_data: Dict[str, Any],
    wind_data: Dict[str, Any],
    tide_data: Dict[str, Any],
) -> Optional[str]:
    """One spoken-style line, or None when there is no wave forecast at all."""
    wave = _first(wave_data, "wave")
    if not wave:
        return None

    surf = wave.get("surf") or {}
    wave_height = (
        f"{_half_up(surf.get('min', 0))}-{_half_up(surf['max'])} ft" if surf.get("max") else "unknown"
    )

    swell = (wave.get("swells") or [{}])[0]
    swell_height = f"{swell['height']:.1f} ft" if swell.get("height") else "unknown"
    swell_period = f"{_half_up(swell['period'])}s" if swell.get("period") else "unknown"
    swell_direction = degrees_to_direction(swell["direction"]) if swell.get("direction") else "unknown"

    wind = _first(wind_data, "wind")
    wind_speed = f"{_half_up(wind['speed'])} mph" if wind.get("speed") else "unknown"
    wind_direction = degrees_to_direction(wind["direction"]) if wind.get("direction") else "unknown"

    tide = _first(tide_data, "tides")
    tide_type = tide.get("type") or "unknown"
    tide_height = f"{tide['height']:.1f} ft" if tide.get("height") else "unknown"

    return (
        f"{location}: {wave_height} waves, {swell_height} @ {swell_period} from {swell_direction}. "
        f"Wind: {wind_speed} {wind_direction}. Tide: {tide_type} at {tide_height}."
    )


class SurfAdapter(SourceClient):
    """Current conditions for the first configured spot."""

    name = "Surfline"

    def __init__(
        self,
        spot_ids: List[str],
        location: str,
        tz: str = "UTC",
        today: Optional[date] = None,
    ):
        self.spot_ids = spot_ids
        self.location = location
        self.tz = tz
        self._today = today

    async def _forecast(self, client: httpx.AsyncClient, kind: str, spot_id: str) -> Dict[str, Any]:
        response = await http_get(
            client,
            f"{SURFLINE_BASE}/{kind}",
            params={"spotId": spot_id, "days": 1},
        )
        return response.json()

    async def _fetch(self, client: httpx.AsyncClient) -> FetchResult:
        if not self.spot_ids:
            logger.info("No Surfline spot IDs configured, skipping surf conditions")
            return FetchResult.empty()

        spot_id = self.spot_ids[0]
        logger.info(f"Fetching surf conditions for {self.location}...")
        wave_data, wind_data, tide_data = await asyncio.gather(
            self._forecast(client, "wave", spot_id),
            self._forecast(client, "wind", spot_id),
            self._forecast(client, "tides", spot_id),
        )

        summary = describe_conditions(self.location, wave_data, wind_data, tide_data)
        if summary is None:
            logger.info(f"No wave data available for {self.location}")
            return FetchResult.empty()

        return FetchResult(
            items=[
                ContentItem(
                    title="Surf Conditions",
                    summary=summary,
                    source=self.name,
                    date=local_today(self.tz, self._today).isoformat(),
                )
            ]
        )
