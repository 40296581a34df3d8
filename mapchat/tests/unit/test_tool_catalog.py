"""Unit tests for the tool catalog and classifier."""

from __future__ import annotations

from mapchat.agent.tools.catalog import (
    ACTION_TOOL_NAMES,
    DATA_TOOL_NAMES,
    TOOL_SPECS,
    build_tool_definitions,
    classify_tool,
)


def test_catalog_partitions_every_declared_tool() -> None:
    declared = {spec.name for spec in TOOL_SPECS}
    assert DATA_TOOL_NAMES == {"geocode", "reverseGeocode", "searchPlaces", "calculateRoute"}
    assert ACTION_TOOL_NAMES == {"addMapElement", "updateMapElement", "removeMapElement", "setMapView"}
    assert DATA_TOOL_NAMES.isdisjoint(ACTION_TOOL_NAMES)
    assert DATA_TOOL_NAMES | ACTION_TOOL_NAMES == declared


def test_classify_tool_reports_exactly_one_class() -> None:
    for name in DATA_TOOL_NAMES:
        assert classify_tool(name) == "data"
    for name in ACTION_TOOL_NAMES:
        assert classify_tool(name) == "action"
    assert classify_tool("flyTo") == "unknown"
    assert classify_tool("") == "unknown"


def test_tool_definitions_are_openai_function_shaped() -> None:
    definitions = build_tool_definitions()
    assert [item["function"]["name"] for item in definitions] == [spec.name for spec in TOOL_SPECS]
    for item in definitions:
        assert item["type"] == "function"
        parameters = item["function"]["parameters"]
        assert parameters["type"] == "object"
        assert "title" not in parameters
        assert "additionalProperties" not in parameters
        assert item["function"]["description"]


def test_tool_definitions_use_wire_names_and_optional_fields() -> None:
    by_name = {item["function"]["name"]: item["function"]["parameters"] for item in build_tool_definitions()}

    route = by_name["calculateRoute"]
    assert set(route["required"]) == {"startLng", "startLat", "endLng", "endLat"}
    assert route["properties"]["mode"]["enum"] == ["walking", "cycling", "driving"]
    assert "anyOf" not in route["properties"]["mode"]

    add = by_name["addMapElement"]
    assert set(add["required"]) == {"elementType", "coordinates", "properties"}
    assert add["properties"]["coordinates"]["type"] == "string"

    search = by_name["searchPlaces"]
    assert "radiusMeters" in search["properties"]
    assert "radiusMeters" not in search["required"]
