"""Unit tests for Overpass place search and query escaping."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest
import respx

from mapchat.agent.tools.builtin.place_search_tool import (
    OverpassConfig,
    PlaceSearchTool,
    build_overpass_query,
    escape_overpass_regex,
)

URL = "https://overpass.test/api/interpreter"


def _tool(client: httpx.AsyncClient) -> PlaceSearchTool:
    return PlaceSearchTool(client=client, config=OverpassConfig(url=URL, timeout_seconds=5.0))


def test_escape_neutralizes_regex_and_quotes() -> None:
    assert escape_overpass_regex("cafe") == "cafe"
    assert escape_overpass_regex('a.b"c') == 'a\\\\.b\\"c'
    assert escape_overpass_regex("x\ny") == "x y"


def test_escape_cannot_break_out_of_the_string_literal() -> None:
    hostile = 'pub"];node(1);out;("'
    escaped = escape_overpass_regex(hostile)
    # every double quote is preceded by a backslash
    for index, char in enumerate(escaped):
        if char == '"':
            assert escaped[index - 1] == "\\"


def test_query_covers_poi_keys_and_limits_output() -> None:
    query = build_overpass_query("museum", lat=48.85, lng=2.35, radius_m=1500)
    assert query.startswith("[out:json][timeout:15];")
    assert "around:1500,48.85,2.35" in query
    for key in ("amenity", "tourism", "shop", "leisure"):
        assert f'node["{key}"]' in query
        assert f'node["{key}"~"museum",i]' in query
    assert query.rstrip().endswith("out center body 20;")


@pytest.mark.asyncio
@respx.mock
async def test_search_places_maps_elements() -> None:
    route = respx.post(URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "elements": [
                    {"type": "node", "lat": 48.86, "lon": 2.33, "tags": {"name": "Louvre", "tourism": "museum"}},
                    {"type": "node", "lat": 48.87, "lon": 2.34, "tags": {"amenity": "toilets"}},
                ]
            },
        )
    )
    async with httpx.AsyncClient() as client:
        result = await _tool(client).search_places(query="museum", lat=48.85, lng=2.35, radius_m=1000)

    assert result == {
        "results": [
            {"name": "Louvre", "lat": 48.86, "lng": 2.33, "tags": {"name": "Louvre", "tourism": "museum"}},
            {"name": "Unnamed", "lat": 48.87, "lng": 2.34, "tags": {"amenity": "toilets"}},
        ]
    }
    form = parse_qs(route.calls.last.request.content.decode("utf-8"))
    assert form["data"][0].startswith("[out:json]")


@pytest.mark.asyncio
@respx.mock
async def test_search_places_caps_results_at_twenty() -> None:
    elements = [{"lat": 1.0, "lon": float(i) / 100, "tags": {"name": f"Shop {i}"}} for i in range(25)]
    respx.post(URL).mock(return_value=httpx.Response(200, json={"elements": elements}))
    async with httpx.AsyncClient() as client:
        result = await _tool(client).search_places(query="shop", lat=1.0, lng=0.0, radius_m=1000)
    assert len(result["results"]) == 20


@pytest.mark.asyncio
@respx.mock
async def test_search_places_upstream_failure_becomes_error_result() -> None:
    respx.post(URL).mock(return_value=httpx.Response(504))
    async with httpx.AsyncClient() as client:
        result = await _tool(client).search_places(query="cafe", lat=1.0, lng=1.0, radius_m=500)
    assert result == {"error": "Overpass error: 504"}


@pytest.mark.asyncio
@respx.mock
async def test_search_places_timeout_becomes_error_result() -> None:
    respx.post(URL).mock(side_effect=httpx.ReadTimeout("slow"))
    async with httpx.AsyncClient() as client:
        result = await _tool(client).search_places(query="cafe", lat=1.0, lng=1.0, radius_m=500)
    assert result["error"].startswith("Search failed: ReadTimeout")
