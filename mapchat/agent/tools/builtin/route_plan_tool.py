"""Tool layer: OSRM routing, transport-mode cascade and route element synthesis."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from mapchat.agent.tools.element_ids import ElementIdAllocator
from mapchat.agent.tools.schemas import CalculateRouteArgs
from mapchat.infra.observability.logger import get_logger
from mapchat.protocol.messages import ActionToolCall, RouteMode, RouteResult

logger = get_logger(__name__)

WALKING_MAX_DISTANCE_M = 3000.0
CYCLING_MAX_DISTANCE_M = 15000.0
DEFAULT_ROUTE_COLOR = "#3b82f6"
NO_ROUTE_ERROR = "Could not find a route between these locations"

_OSRM_SERVICES: dict[RouteMode, str] = {
    "walking": "routed-foot",
    "cycling": "routed-bike",
    "driving": "routed-car",
}


@dataclass(frozen=True)
class OSRMConfig:
    """Runtime config for the OSRM demo routing service."""

    base_url: str
    timeout_seconds: float


class RouteFetcher(Protocol):
    async def fetch_route(
        self,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        mode: RouteMode,
    ) -> RouteResult | None: ...


class OSRMRouteClient:
    """Single-mode route lookups. Any failure is reported as "no route"."""

    def __init__(self, *, client: httpx.AsyncClient, config: OSRMConfig) -> None:
        self._client = client
        self._config = config

    def route_url(
        self,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        mode: RouteMode,
    ) -> str:
        service = _OSRM_SERVICES[mode]
        base = self._config.base_url.rstrip("/")
        return (
            f"{base}/{service}/route/v1/{mode}/"
            f"{start_lng},{start_lat};{end_lng},{end_lat}"
        )

    async def fetch_route(
        self,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        mode: RouteMode,
    ) -> RouteResult | None:
        url = self.route_url(start_lng, start_lat, end_lng, end_lat, mode)
        try:
            response = await self._client.get(
                url,
                params={"geometries": "geojson", "overview": "full"},
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning("osrm.failed mode=%s error=%s: %s", mode, type(exc).__name__, exc)
            return None
        if not response.is_success:
            logger.warning("osrm.failed mode=%s status=%s", mode, response.status_code)
            return None
        try:
            data = response.json()
        except ValueError:
            logger.warning("osrm.failed mode=%s error=non-json body", mode)
            return None
        if not isinstance(data, dict) or data.get("code") != "Ok":
            return None
        routes = data.get("routes")
        if not isinstance(routes, list) or not routes:
            return None
        route = routes[0]
        try:
            coordinates = [(float(point[0]), float(point[1])) for point in route["geometry"]["coordinates"]]
            return RouteResult(
                coordinates=coordinates,
                distance_m=float(route["distance"]),
                duration_s=float(route["duration"]),
                mode=mode,
            )
        except (KeyError, TypeError, ValueError, IndexError):
            logger.warning("osrm.failed mode=%s error=malformed route payload", mode)
            return None


class RouteModeSelector:
    """Pick a transport mode by distance when the caller does not force one.

    Walking is tried first; if the walking route is longer than 3 km the
    cycling route is fetched, and above 15 km the driving route. A failed
    walking or cycling lookup jumps straight to driving. A failed final
    driving lookup keeps the cycling route.
    """

    def __init__(self, fetcher: RouteFetcher) -> None:
        self._fetcher = fetcher

    async def resolve_route(
        self,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        *,
        preferred_mode: RouteMode | None = None,
    ) -> RouteResult | None:
        points = (start_lng, start_lat, end_lng, end_lat)
        if preferred_mode is not None:
            return await self._fetcher.fetch_route(*points, preferred_mode)

        walking = await self._fetcher.fetch_route(*points, "walking")
        if walking is None:
            return await self._fetcher.fetch_route(*points, "driving")
        if walking.distance_m <= WALKING_MAX_DISTANCE_M:
            return walking

        cycling = await self._fetcher.fetch_route(*points, "cycling")
        if cycling is None:
            return await self._fetcher.fetch_route(*points, "driving")
        if cycling.distance_m <= CYCLING_MAX_DISTANCE_M:
            return cycling

        driving = await self._fetcher.fetch_route(*points, "driving")
        return driving if driving is not None else cycling


def _format_km(distance_m: float) -> float:
    return round(distance_m / 1000.0, 1)


def _format_minutes(duration_s: float) -> int:
    return int(math.floor(duration_s / 60.0 + 0.5))


class RoutePlanTool:
    """Resolve `calculateRoute` into metadata for the model plus a route element."""

    def __init__(self, *, selector: RouteModeSelector) -> None:
        self._selector = selector

    async def calculate_route(
        self,
        args: CalculateRouteArgs,
        element_ids: ElementIdAllocator,
    ) -> tuple[dict[str, Any], ActionToolCall | None]:
        route = await self._selector.resolve_route(
            args.start_lng,
            args.start_lat,
            args.end_lng,
            args.end_lat,
            preferred_mode=args.mode,
        )
        if route is None:
            return {"error": NO_ROUTE_ERROR}, None

        distance_km = _format_km(route.distance_m)
        duration_min = _format_minutes(route.duration_s)
        overrides = args.parsed_properties()
        route_id = element_ids.claim(
            overrides.get("id") if isinstance(overrides.get("id"), str) else None,
            prefix="route",
        )
        properties = {
            "title": overrides.get("title") or f"{route.mode.capitalize()} Route",
            "description": overrides.get("description")
            or f"{distance_km}km, ~{duration_min} min ({route.mode})",
            "color": overrides.get("color") or DEFAULT_ROUTE_COLOR,
            "id": route_id,
        }
        action = ActionToolCall(
            name="addMapElement",
            args={
                "elementType": "route",
                "coordinates": json.dumps([list(point) for point in route.coordinates]),
                "properties": json.dumps(properties, ensure_ascii=False),
            },
        )
        logger.info(
            "route.resolved mode=%s distance_km=%s duration_min=%s route_id=%s",
            route.mode,
            distance_km,
            duration_min,
            route_id,
        )
        output = {
            "mode": route.mode,
            "distanceKm": distance_km,
            "durationMinutes": duration_min,
            "routeId": route_id,
        }
        return output, action
