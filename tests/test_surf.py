# tests/test_surf.py
import httpx
import pytest
import respx

from ingestion.surf import SurfAdapter, degrees_to_direction, describe_conditions

SURFLINE = "https://services.surfline.com/kbyg/spots/forecasts"

WAVE = {"data": {"wave": [{"surf": {"min": 2.4, "max": 3.6}, "swells": [{"height": 4.25, "period": 13.2, "direction": 280}]}]}}
WIND = {"data": {"wind": [{"speed": 7.6, "direction": 315}]}}
TIDES = {"data": {"tides": [{"type": "HIGH", "height": 5.04}]}}


@pytest.mark.parametrize(
    "degrees, expected",
    [(0, "N"), (11.25, "NNE"), (90, "E"), (200, "SSW"), (348.75, "N"), (359, "N")],
)
def test_degrees_to_direction(degrees, expected):
    assert degrees_to_direction(degrees) == expected


def test_describe_conditions_renders_one_line():
    assert describe_conditions("Ocean Beach", WAVE, WIND, TIDES) == (
        "Ocean Beach: 2-4 ft waves, 4.2 ft @ 13s from W. Wind: 8 mph NW. Tide: HIGH at 5.0 ft."
    )


def test_missing_pieces_read_as_unknown():
    line = describe_conditions("Ocean Beach", {"data": {"wave": [{"surf": {}}]}}, {}, {})
    assert line == (
        "Ocean Beach: unknown waves, unknown @ unknown from unknown. "
        "Wind: unknown unknown. Tide: unknown at unknown."
    )


def test_no_wave_forecast_is_none():
    assert describe_conditions("Ocean Beach", {"data": {"wave": []}}, WIND, TIDES) is None


@pytest.mark.asyncio
async def test_adapter_fetches_three_forecasts_for_first_spot():
    adapter = SurfAdapter(["spot-1", "spot-2"], "Ocean Beach")

    with respx.mock:
        wave = respx.get(f"{SURFLINE}/wave").mock(return_value=httpx.Response(200, json=WAVE))
        respx.get(f"{SURFLINE}/wind").mock(return_value=httpx.Response(200, json=WIND))
        respx.get(f"{SURFLINE}/tides").mock(return_value=httpx.Response(200, json=TIDES))
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert wave.calls.last.request.url.params["spotId"] == "spot-1"
    [item] = result.items
    assert item.title == "Surf Conditions"
    assert item.source == "Surfline"


@pytest.mark.asyncio
async def test_any_failure_empties_the_bucket():
    adapter = SurfAdapter(["spot-1"], "Ocean Beach")

    with respx.mock:
        respx.get(f"{SURFLINE}/wave").mock(return_value=httpx.Response(200, json=WAVE))
        respx.get(f"{SURFLINE}/wind").mock(return_value=httpx.Response(500))
        respx.get(f"{SURFLINE}/tides").mock(return_value=httpx.Response(200, json=TIDES))
        async with httpx.AsyncClient() as client:
            result = await adapter.fetch(client)

    assert result.items == []


@pytest.mark.asyncio
async def test_no_spots_configured_is_empty():
    async with httpx.AsyncClient() as client:
        result = await SurfAdapter([], "Nowhere").fetch(client)
    assert result.items == []
