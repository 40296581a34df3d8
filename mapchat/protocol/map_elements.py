"""Protocol layer: map feature models exchanged with the rendering client.

The core never stores these. They are used to read the caller's map-state
snapshot and to check that an ``addMapElement`` call can be materialized by the
client before it is handed over.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter


MapElementType = Literal["pin", "area", "route", "line", "arc"]

DEFAULT_PIN_ICON = "\U0001F4CD"


def _check_lng_lat(value: tuple[float, float]) -> tuple[float, float]:
    lng, lat = value
    if not -180.0 <= lng <= 180.0:
        raise ValueError(f"longitude {lng} out of range [-180, 180]")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"latitude {lat} out of range [-90, 90]")
    return value


LngLat = Annotated[tuple[float, float], AfterValidator(_check_lng_lat)]


class TimeRange(BaseModel):
    """ISO date range powering the client's timeline filter."""

    start: str
    end: str | None = None


class Article(BaseModel):
    """Long-form content attached to a feature."""

    title: str
    content: str
    images: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


class _BaseMapElement(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    color: str | None = None
    time_range: TimeRange | None = Field(default=None, alias="timeRange")
    article: Article | None = None
    visible: bool = True


class PinElement(_BaseMapElement):
    type: Literal["pin"]
    coordinates: LngLat
    icon: str | None = None


class AreaElement(_BaseMapElement):
    type: Literal["area"]
    coordinates: list[Annotated[list[LngLat], Field(min_length=3)]] = Field(..., min_length=1)


class RouteElement(_BaseMapElement):
    type: Literal["route"]
    coordinates: list[LngLat] = Field(..., min_length=2)


class LineElement(_BaseMapElement):
    type: Literal["line"]
    coordinates: list[LngLat] = Field(..., min_length=2)


class ArcElement(_BaseMapElement):
    type: Literal["arc"]
    source: LngLat
    target: LngLat


MapElement = Annotated[
    Union[PinElement, AreaElement, RouteElement, LineElement, ArcElement],
    Field(discriminator="type"),
]

MAP_ELEMENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(MapElement)


def build_map_element(
    *,
    element_type: MapElementType,
    element_id: str,
    coordinates: Any,
    properties: dict[str, Any],
) -> Any:
    """Materialize one feature the way the client does for `addMapElement`.

    Raises ``pydantic.ValidationError`` (or ``ValueError`` for a malformed arc
    payload) when the coordinates do not fit the element type.
    """
    payload: dict[str, Any] = {
        "id": element_id,
        "type": element_type,
        "title": properties.get("title") or "Untitled",
        "description": properties.get("description") or "",
        "color": properties.get("color"),
        "visible": True,
        "timeRange": properties.get("timeRange"),
        "article": properties.get("article"),
    }
    if element_type == "arc":
        if not isinstance(coordinates, dict):
            raise ValueError("arc coordinates must be an object with source and target")
        payload["source"] = coordinates.get("source")
        payload["target"] = coordinates.get("target")
    else:
        payload["coordinates"] = coordinates
    if element_type == "pin":
        payload["icon"] = properties.get("icon") or DEFAULT_PIN_ICON
    return MAP_ELEMENT_ADAPTER.validate_python(payload)


def snapshot_element_ids(elements: list[Any]) -> set[str]:
    """Collect ids from a client map-state snapshot, ignoring malformed rows."""
    ids: set[str] = set()
    for item in elements:
        if not isinstance(item, dict):
            continue
        element_id = item.get("id")
        if isinstance(element_id, str) and element_id:
            ids.add(element_id)
    return ids
