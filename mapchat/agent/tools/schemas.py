"""Tool argument schemas and provider-facing parameter schema builders."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from mapchat.protocol.map_elements import MapElementType, build_map_element
from mapchat.protocol.messages import RouteMode

DEFAULT_SEARCH_RADIUS_M = 1000.0
MAX_SEARCH_RADIUS_M = 5000.0


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _loads_json(raw: str, *, field_name: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{field_name} is not valid JSON: {exc.msg}") from exc


def _loads_json_object(raw: str, *, field_name: str) -> dict[str, Any]:
    decoded = _loads_json(raw, field_name=field_name)
    if not isinstance(decoded, dict):
        raise ValueError(f"{field_name} must be a JSON object")
    return decoded


# Data tools


class GeocodeArgs(_StrictModel):
    query: str = Field(
        ...,
        min_length=1,
        description='The place name or address to geocode (e.g. "Science Museum, London" or "Eiffel Tower")',
    )


class ReverseGeocodeArgs(_StrictModel):
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


class SearchPlacesArgs(_StrictModel):
    query: str = Field(
        ...,
        min_length=1,
        description=(
            'What to search for. Can be a place type (e.g. "restaurant", "museum", '
            '"toilet", "pharmacy") or a name'
        ),
    )
    lat: float = Field(..., ge=-90, le=90, description="Latitude of the center point to search around")
    lng: float = Field(..., ge=-180, le=180, description="Longitude of the center point to search around")
    radius_meters: float = Field(
        default=DEFAULT_SEARCH_RADIUS_M,
        ge=1,
        alias="radiusMeters",
        description="Search radius in meters (default 1000, max 5000)",
    )

    @field_validator("radius_meters", mode="before")
    @classmethod
    def _missing_radius_is_default(cls, value: Any) -> Any:
        # null, 0 and "" from the model mean "use the default radius".
        return value or DEFAULT_SEARCH_RADIUS_M

    @field_validator("radius_meters")
    @classmethod
    def _cap_radius(cls, value: float) -> float:
        return min(value, MAX_SEARCH_RADIUS_M)


class CalculateRouteArgs(_StrictModel):
    start_lng: float = Field(..., ge=-180, le=180, alias="startLng", description="Longitude of the starting point")
    start_lat: float = Field(..., ge=-90, le=90, alias="startLat", description="Latitude of the starting point")
    end_lng: float = Field(..., ge=-180, le=180, alias="endLng", description="Longitude of the destination")
    end_lat: float = Field(..., ge=-90, le=90, alias="endLat", description="Latitude of the destination")
    mode: RouteMode | None = Field(
        default=None,
        description=(
            'Optional transport mode: "walking", "driving", or "cycling". '
            "Only set if the user explicitly requests a specific mode."
        ),
    )
    properties: str | None = Field(
        default=None,
        description="JSON string with route properties: { title, description, color? }",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _blank_mode_is_auto(cls, value: Any) -> Any:
        if isinstance(value, str):
            normalized = value.strip().lower()
            return normalized or None
        return value

    def parsed_properties(self) -> dict[str, Any]:
        """Route styling overrides; unparsable input falls back to defaults."""
        if not self.properties:
            return {}
        try:
            decoded = json.loads(self.properties)
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}


# Action tools


class AddMapElementArgs(_StrictModel):
    element_type: MapElementType = Field(
        ...,
        alias="elementType",
        description='Type of element: "pin", "area", "route", "arc", or "line"',
    )
    coordinates: str = Field(
        ...,
        description=(
            'JSON string of coordinates. For pin: "[lng, lat]". For area: "[[[lng,lat], ...]]". '
            'For route/line: "[[lng,lat], ...]". For arc: "{ source: [lng,lat], target: [lng,lat] }"'
        ),
    )
    properties: str = Field(
        ...,
        description=(
            "JSON string with element properties: { title, description, color?, icon? "
            '(emoji for pins, e.g. "⚔️" for battles, "🏰" for castles), '
            "timeRange?: { start, end? }, article?: { title, content } }"
        ),
    )

    @model_validator(mode="after")
    def _payload_fits_element_type(self) -> "AddMapElementArgs":
        coordinates = _loads_json(self.coordinates, field_name="coordinates")
        properties = _loads_json_object(self.properties, field_name="properties")
        try:
            build_map_element(
                element_type=self.element_type,
                element_id=str(properties.get("id") or "pending"),
                coordinates=coordinates,
                properties=properties,
            )
        except ValidationError as exc:
            problems = "; ".join(
                ".".join(str(part) for part in err["loc"]) + ": " + err["msg"] for err in exc.errors()
            )
            raise ValueError(f"{self.element_type} payload rejected: {problems}") from exc
        return self

    def parsed_properties(self) -> dict[str, Any]:
        return json.loads(self.properties)


class MapElementPatch(BaseModel):
    """Subset of feature properties `updateMapElement` may change."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = None
    description: str | None = None
    color: str | None = None
    visible: bool | None = None
    time_range: dict[str, Any] | None = Field(default=None, alias="timeRange")
    article: dict[str, Any] | None = None


class UpdateMapElementArgs(_StrictModel):
    element_id: str = Field(..., min_length=1, alias="elementId", description="The ID of the element to update")
    new_properties: str = Field(
        ...,
        alias="newProperties",
        description="JSON string with properties to update: { title?, description?, color?, visible?, timeRange?, article? }",
    )

    @field_validator("new_properties")
    @classmethod
    def _patch_is_object(cls, value: str) -> str:
        MapElementPatch.model_validate(_loads_json_object(value, field_name="newProperties"))
        return value


class RemoveMapElementArgs(_StrictModel):
    element_id: str = Field(..., min_length=1, alias="elementId", description="The ID of the element to remove")


class SetMapViewArgs(_StrictModel):
    longitude: float = Field(..., ge=-180, le=180, description="Longitude of the center point")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude of the center point")
    zoom: float = Field(
        ...,
        ge=1,
        le=20,
        description="Zoom level (1-20, where 1 is world view and 20 is street level)",
    )


def provider_parameters(model: type[BaseModel]) -> dict[str, Any]:
    """Render an argument model as a plain JSON-schema object for function declarations.

    Pydantic annotates schemas with titles, `additionalProperties` and
    `anyOf [T, null]` unions for optionals; function-calling endpoints accept
    only the plain OpenAPI subset, so those are folded away here.
    """
    return _simplify(model.model_json_schema(by_alias=True))


def _simplify(node: Any) -> Any:
    if isinstance(node, list):
        return [_simplify(item) for item in node]
    if not isinstance(node, dict):
        return node
    any_of = node.get("anyOf")
    if isinstance(any_of, list):
        options = [item for item in any_of if not (isinstance(item, dict) and item.get("type") == "null")]
        if len(options) == 1:
            merged = {key: value for key, value in node.items() if key not in {"anyOf", "default"}}
            merged.update(options[0])
            return _simplify(merged)
    result: dict[str, Any] = {}
    for key, value in node.items():
        if key in {"title", "additionalProperties", "default"}:
            continue
        if key == "properties" and isinstance(value, dict):
            result[key] = {name: _simplify(item) for name, item in value.items()}
            continue
        result[key] = _simplify(value)
    return result
