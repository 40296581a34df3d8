"""Tool layer: nearby POI search through the Overpass API."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import httpx

from mapchat.infra.observability.logger import get_logger

logger = get_logger(__name__)

PLACE_RESULT_LIMIT = 20
_POI_KEYS = ("amenity", "tourism", "shop", "leisure")
_REGEX_SPECIALS = re.compile(r"[.*+?^${}()|\[\]\\]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class OverpassConfig:
    """Runtime config for the Overpass interpreter endpoint."""

    url: str
    timeout_seconds: float


def escape_overpass_regex(query: str) -> str:
    """Escape user text for use as a regex inside a double-quoted Overpass QL string.

    Regex metacharacters are escaped first so the text matches literally; the
    result is then escaped for the QL string literal so quotes and backslashes
    cannot terminate it.
    """
    cleaned = _CONTROL_CHARS.sub(" ", query).strip()
    as_regex = _REGEX_SPECIALS.sub(lambda match: "\\" + match.group(0), cleaned)
    return as_regex.replace("\\", "\\\\").replace('"', '\\"')


def build_overpass_query(query: str, *, lat: float, lng: float, radius_m: float) -> str:
    pattern = escape_overpass_regex(query)
    around = f"around:{int(radius_m)},{lat},{lng}"
    clauses: list[str] = []
    for key in _POI_KEYS:
        clauses.append(f'  node["{key}"]({around})["name"~"{pattern}",i];')
    for key in _POI_KEYS:
        clauses.append(f'  node["{key}"~"{pattern}",i]({around});')
    body = "\n".join(clauses)
    return f"[out:json][timeout:15];\n(\n{body}\n);\nout center body {PLACE_RESULT_LIMIT};"


class PlaceSearchTool:
    """Search OpenStreetMap POIs by name or category around a point."""

    def __init__(self, *, client: httpx.AsyncClient, config: OverpassConfig) -> None:
        self._client = client
        self._config = config

    async def search_places(
        self,
        *,
        query: str,
        lat: float,
        lng: float,
        radius_m: float,
    ) -> dict[str, Any]:
        overpass_query = build_overpass_query(query, lat=lat, lng=lng, radius_m=radius_m)
        try:
            response = await self._client.post(
                self._config.url,
                data={"data": overpass_query},
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            return {"error": f"Search failed: {type(exc).__name__}: {exc}"}
        if not response.is_success:
            return {"error": f"Overpass error: {response.status_code}"}
        try:
            data = response.json()
        except ValueError:
            return {"error": "Overpass returned a non-JSON response"}
        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            elements = []

        results: list[dict[str, Any]] = []
        for element in elements:
            if not isinstance(element, dict):
                continue
            tags = element.get("tags") if isinstance(element.get("tags"), dict) else {}
            results.append(
                {
                    "name": tags.get("name") or "Unnamed",
                    "lat": element.get("lat"),
                    "lng": element.get("lon"),
                    "tags": tags,
                }
            )
            if len(results) >= PLACE_RESULT_LIMIT:
                break
        logger.debug("overpass.results query=%s count=%s", query, len(results))
        return {"results": results}
