"""Tool layer: forward and reverse geocoding via Nominatim."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from mapchat.infra.http.rate_limiter import IntervalRateLimiter
from mapchat.infra.observability.logger import get_logger, short_text

logger = get_logger(__name__)

GEOCODE_RESULT_LIMIT = 5


@dataclass(frozen=True)
class NominatimConfig:
    """Runtime config for Nominatim web service calls."""

    base_url: str
    user_agent: str
    timeout_seconds: float


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class GeocodeTool:
    """Nominatim client; every request waits on the shared rate limiter first."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        config: NominatimConfig,
        rate_limiter: IntervalRateLimiter,
    ) -> None:
        self._client = client
        self._config = config
        self._rate_limiter = rate_limiter

    async def geocode(self, query: str) -> dict[str, Any]:
        """Resolve free text to up to five candidates. An empty list is not an error."""
        try:
            data, failure = await self._get_json(
                "/search",
                {
                    "q": query,
                    "format": "json",
                    "limit": GEOCODE_RESULT_LIMIT,
                    "addressdetails": 1,
                },
            )
        except httpx.HTTPError as exc:
            return {"error": f"Geocode failed: {type(exc).__name__}: {exc}"}
        if failure:
            return {"error": failure}
        if not isinstance(data, list):
            return {"error": "Geocode failed: unexpected response shape"}
        if not data:
            return {"results": [], "message": "No results found"}

        results: list[dict[str, Any]] = []
        for row in data[:GEOCODE_RESULT_LIMIT]:
            if not isinstance(row, dict):
                continue
            lat = _as_float(row.get("lat"))
            lng = _as_float(row.get("lon"))
            if lat is None or lng is None:
                continue
            results.append(
                {
                    "lat": lat,
                    "lng": lng,
                    "displayName": row.get("display_name"),
                    "placeType": row.get("type"),
                }
            )
        if not results:
            return {"results": [], "message": "No results found"}
        return {"results": results}

    async def reverse_geocode(self, lat: float, lng: float) -> dict[str, Any]:
        try:
            data, failure = await self._get_json(
                "/reverse",
                {
                    "lat": lat,
                    "lon": lng,
                    "format": "json",
                    "addressdetails": 1,
                },
            )
        except httpx.HTTPError as exc:
            return {"error": f"Reverse geocode failed: {type(exc).__name__}: {exc}"}
        if failure:
            return {"error": failure}
        if not isinstance(data, dict):
            return {"error": "Reverse geocode failed: unexpected response shape"}
        if data.get("error"):
            return {"error": str(data["error"])}
        return {
            "displayName": data.get("display_name"),
            "address": data.get("address"),
            "lat": _as_float(data.get("lat")),
            "lng": _as_float(data.get("lon")),
        }

    async def _get_json(self, path: str, params: dict[str, Any]) -> tuple[Any, str | None]:
        await self._rate_limiter.wait()
        url = self._config.base_url.rstrip("/") + path
        logger.debug("nominatim.request path=%s params=%s", path, short_text(str(params), limit=160))
        response = await self._client.get(
            url,
            params=params,
            headers={"User-Agent": self._config.user_agent},
            timeout=self._config.timeout_seconds,
        )
        if not response.is_success:
            return None, f"Nominatim error: {response.status_code}"
        try:
            return response.json(), None
        except ValueError:
            return None, "Nominatim returned a non-JSON response"
