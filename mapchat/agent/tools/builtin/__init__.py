from mapchat.agent.tools.builtin.geocode_tool import GeocodeTool, NominatimConfig
from mapchat.agent.tools.builtin.place_search_tool import OverpassConfig, PlaceSearchTool
from mapchat.agent.tools.builtin.route_plan_tool import (
    OSRMConfig,
    OSRMRouteClient,
    RouteModeSelector,
    RoutePlanTool,
)

__all__ = [
    "GeocodeTool",
    "NominatimConfig",
    "OSRMConfig",
    "OSRMRouteClient",
    "OverpassConfig",
    "PlaceSearchTool",
    "RouteModeSelector",
    "RoutePlanTool",
]
