"""Composition layer: build and hold long-lived service objects for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import httpx

from mapchat.agent.context.context_builder import ContextBuilder
from mapchat.agent.llm.llm_config import LLMConfig, resolve_llm_config
from mapchat.agent.llm.provider_adapter import ModelProvider, ProviderAdapter
from mapchat.agent.runtime.map_runtime import MapChatRuntime
from mapchat.agent.tools.builtin import (
    GeocodeTool,
    NominatimConfig,
    OSRMConfig,
    OSRMRouteClient,
    OverpassConfig,
    PlaceSearchTool,
    RouteModeSelector,
    RoutePlanTool,
)
from mapchat.agent.tools.registry import ToolRegistry
from mapchat.core.config import Settings
from mapchat.infra.db.example_store import ExampleStore
from mapchat.infra.http.rate_limiter import IntervalRateLimiter

# Nominatim usage policy: at most one request per second, with margin.
NOMINATIM_MIN_INTERVAL_SECONDS = 1.1


@dataclass
class AppContainer:
    """Container object attached to FastAPI app state."""

    settings: Settings
    llm_config: LLMConfig
    http_client: httpx.AsyncClient
    nominatim_limiter: IntervalRateLimiter
    tool_registry: ToolRegistry
    runtime: MapChatRuntime
    example_store: ExampleStore


def build_container(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    model_provider: ModelProvider | None = None,
) -> AppContainer:
    """Construct runtime dependencies in one place."""
    client = http_client or httpx.AsyncClient(follow_redirects=True)
    llm_config = resolve_llm_config(settings)
    limiter = IntervalRateLimiter(
        max(NOMINATIM_MIN_INTERVAL_SECONDS, settings.nominatim_min_interval_seconds)
    )
    geocode_tool = GeocodeTool(
        client=client,
        config=NominatimConfig(
            base_url=settings.nominatim_base_url,
            user_agent=settings.nominatim_user_agent,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        rate_limiter=limiter,
    )
    place_search_tool = PlaceSearchTool(
        client=client,
        config=OverpassConfig(
            url=settings.overpass_url,
            timeout_seconds=settings.http_timeout_seconds,
        ),
    )
    route_tool = RoutePlanTool(
        selector=RouteModeSelector(
            OSRMRouteClient(
                client=client,
                config=OSRMConfig(
                    base_url=settings.osrm_base_url,
                    timeout_seconds=settings.http_timeout_seconds,
                ),
            )
        )
    )
    tool_registry = ToolRegistry(
        geocode_tool=geocode_tool,
        place_search_tool=place_search_tool,
        route_plan_tool=route_tool,
        tool_timeout_seconds=settings.agent_tool_timeout_seconds,
        strict_schema=settings.agent_tool_schema_strict,
    )
    project_root = Path(__file__).resolve().parents[1]
    context_builder = ContextBuilder(prompt_root=project_root / "agent" / "context" / "prompts")
    runtime = MapChatRuntime(
        context_builder=context_builder,
        tool_registry=tool_registry,
        model_provider=model_provider or ProviderAdapter(llm_config, client=client),
        server_api_key=llm_config.api_key,
        max_iterations=settings.agent_max_iterations,
    )
    return AppContainer(
        settings=settings,
        llm_config=llm_config,
        http_client=client,
        nominatim_limiter=limiter,
        tool_registry=tool_registry,
        runtime=runtime,
        example_store=ExampleStore(settings.examples_dir),
    )
