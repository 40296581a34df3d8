"""Test fixtures shared by unit/integration tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mapchat.agent.context.context_builder import ContextBuilder
from mapchat.agent.llm.provider_adapter import ModelResponse, ModelToolCall
from mapchat.agent.runtime.map_runtime import MapChatRuntime
from mapchat.agent.tools.builtin.route_plan_tool import RouteModeSelector, RoutePlanTool
from mapchat.agent.tools.registry import ToolRegistry
from mapchat.protocol.messages import RouteMode, RouteResult

PROMPT_ROOT = Path(__file__).resolve().parents[1] / "agent" / "context" / "prompts"


class ScriptedModel:
    """Chat model stub that replays canned responses and records every turn."""

    def __init__(self, responses: list[ModelResponse | Exception], *, repeat_last: bool = False) -> None:
        self._responses = list(responses)
        self._repeat_last = repeat_last
        self.calls: list[dict[str, Any]] = []
        self.session_keys: list[str] = []

    def session(self, api_key: str) -> "ScriptedModel":
        self.session_keys.append(api_key)
        return self

    async def send_turn(
        self,
        *,
        instructions: str,
        history: list[dict[str, Any]],
        pending: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelResponse:
        self.calls.append(
            {
                "instructions": instructions,
                "history": list(history),
                "pending": list(pending),
                "tools": tools,
            }
        )
        index = len(self.calls) - 1
        if index < len(self._responses):
            item = self._responses[index]
        elif self._repeat_last and self._responses:
            item = self._responses[-1]
        else:
            raise AssertionError(f"model called {len(self.calls)} times, only {len(self._responses)} scripted")
        if isinstance(item, Exception):
            raise item
        return item


class StubRouteFetcher:
    """Route fetcher returning fixed per-mode results and recording attempted modes."""

    def __init__(self, routes: dict[str, RouteResult | None]) -> None:
        self._routes = routes
        self.calls: list[str] = []

    async def fetch_route(
        self,
        start_lng: float,
        start_lat: float,
        end_lng: float,
        end_lat: float,
        mode: RouteMode,
    ) -> RouteResult | None:
        self.calls.append(mode)
        return self._routes.get(mode)


class StubGeocodeTool:
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def geocode(self, query: str) -> dict[str, Any]:
        self.queries.append(query)
        return {"results": [{"lat": 51.5007, "lng": -0.1246, "displayName": query, "placeType": "attraction"}]}

    async def reverse_geocode(self, lat: float, lng: float) -> dict[str, Any]:
        return {"displayName": "Somewhere", "address": {}, "lat": lat, "lng": lng}


class StubPlaceSearchTool:
    def __init__(self) -> None:
        self.radii: list[float] = []

    async def search_places(self, *, query: str, lat: float, lng: float, radius_m: float) -> dict[str, Any]:
        self.radii.append(radius_m)
        return {"results": [{"name": f"{query} 1", "lat": lat, "lng": lng, "tags": {}}]}


def make_route(mode: RouteMode, distance_m: float, duration_s: float = 600.0) -> RouteResult:
    return RouteResult(
        coordinates=[(2.0, 48.0), (2.05, 48.05), (2.1, 48.1)],
        distance_m=distance_m,
        duration_s=duration_s,
        mode=mode,
    )


def tool_call(name: str, arguments: dict[str, Any], call_id: str | None = None) -> ModelToolCall:
    return ModelToolCall(call_id=call_id or f"call_{name}", name=name, arguments=arguments)


@pytest.fixture
def prompt_root() -> Path:
    return PROMPT_ROOT


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def route_fetcher():
    return StubRouteFetcher


@pytest.fixture
def route():
    return make_route


@pytest.fixture
def call():
    return tool_call


@pytest.fixture
def place_search():
    return StubPlaceSearchTool


@pytest.fixture
def build_registry():
    def _build(
        *,
        fetcher: StubRouteFetcher | None = None,
        geocode_tool: Any | None = None,
        place_search_tool: Any | None = None,
        tool_timeout_seconds: float = 5.0,
    ) -> ToolRegistry:
        fetcher = fetcher or StubRouteFetcher({"walking": make_route("walking", 1200.0, 900.0)})
        return ToolRegistry(
            geocode_tool=geocode_tool or StubGeocodeTool(),
            place_search_tool=place_search_tool or StubPlaceSearchTool(),
            route_plan_tool=RoutePlanTool(selector=RouteModeSelector(fetcher)),
            tool_timeout_seconds=tool_timeout_seconds,
        )

    return _build


@pytest.fixture
def build_runtime(build_registry):
    def _build(
        model: ScriptedModel,
        *,
        server_api_key: str = "server-key",
        max_iterations: int = 10,
        registry: ToolRegistry | None = None,
    ) -> MapChatRuntime:
        return MapChatRuntime(
            context_builder=ContextBuilder(prompt_root=PROMPT_ROOT),
            tool_registry=registry or build_registry(),
            model_provider=model,
            server_api_key=server_api_key,
            max_iterations=max_iterations,
        )

    return _build
