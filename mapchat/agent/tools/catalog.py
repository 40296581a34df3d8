"""Tool catalog: one table pairing every declaration with its dispatch class.

Declarations, the data/action name sets and the argument validators are all
derived from `TOOL_SPECS`, so a tool cannot be declared to the model without
also being classified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel

from mapchat.agent.tools.schemas import (
    AddMapElementArgs,
    CalculateRouteArgs,
    GeocodeArgs,
    RemoveMapElementArgs,
    ReverseGeocodeArgs,
    SearchPlacesArgs,
    SetMapViewArgs,
    UpdateMapElementArgs,
    provider_parameters,
)

ToolKind = Literal["data", "action"]
ToolClass = Literal["data", "action", "unknown"]


@dataclass(frozen=True)
class ToolSpec:
    """One tool advertised to the model."""

    name: str
    kind: ToolKind
    description: str
    args_model: type[BaseModel]

    def declaration(self, *, strict: bool) -> dict[str, Any]:
        """OpenAI-compatible function tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": provider_parameters(self.args_model),
                "strict": strict,
            },
        }


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="geocode",
        kind="data",
        description=(
            "Look up the coordinates of a place, address, or landmark by name. "
            "Returns lat/lng and display name. ALWAYS use this instead of guessing "
            "coordinates for specific addresses or places."
        ),
        args_model=GeocodeArgs,
    ),
    ToolSpec(
        name="reverseGeocode",
        kind="data",
        description=(
            "Look up the address or place name at given coordinates. "
            "Returns display name and structured address."
        ),
        args_model=ReverseGeocodeArgs,
    ),
    ToolSpec(
        name="searchPlaces",
        kind="data",
        description=(
            "Search for nearby places/POIs (restaurants, museums, parks, shops, etc.) "
            "around a location. Uses OpenStreetMap data. Returns up to 20 results with "
            "names, coordinates, and tags."
        ),
        args_model=SearchPlacesArgs,
    ),
    ToolSpec(
        name="calculateRoute",
        kind="data",
        description=(
            "Calculate a route between two points following actual roads/paths. "
            "Auto-selects the best transport mode based on distance (walking <3km, "
            "cycling 3-15km, driving >15km) unless specified. Returns distance and "
            "duration metadata. The route geometry is automatically added to the map."
        ),
        args_model=CalculateRouteArgs,
    ),
    ToolSpec(
        name="addMapElement",
        kind="action",
        description=(
            "Add a new element to the map. Use this to create pins for locations, areas "
            "for regions, routes for paths, arcs for connections between places, or lines."
        ),
        args_model=AddMapElementArgs,
    ),
    ToolSpec(
        name="updateMapElement",
        kind="action",
        description=(
            "Update properties of an existing map element by its ID. Use this to modify "
            "title, description, color, visibility, or other properties."
        ),
        args_model=UpdateMapElementArgs,
    ),
    ToolSpec(
        name="removeMapElement",
        kind="action",
        description="Remove an element from the map by its ID.",
        args_model=RemoveMapElementArgs,
    ),
    ToolSpec(
        name="setMapView",
        kind="action",
        description="Set the map view to focus on a specific location and zoom level.",
        args_model=SetMapViewArgs,
    ),
)

TOOLS_BY_NAME: dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}
if len(TOOLS_BY_NAME) != len(TOOL_SPECS):
    raise RuntimeError("duplicate tool name in TOOL_SPECS")

DATA_TOOL_NAMES: frozenset[str] = frozenset(spec.name for spec in TOOL_SPECS if spec.kind == "data")
ACTION_TOOL_NAMES: frozenset[str] = frozenset(spec.name for spec in TOOL_SPECS if spec.kind == "action")


def classify_tool(name: str) -> ToolClass:
    spec = TOOLS_BY_NAME.get(name)
    if spec is None:
        return "unknown"
    return spec.kind


def build_tool_definitions(*, strict: bool = False) -> list[dict[str, Any]]:
    """Full declaration list advertised on every model turn, data tools first."""
    return [spec.declaration(strict=strict) for spec in TOOL_SPECS]
