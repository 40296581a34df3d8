"""Unit tests for map element materialization and chat request validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mapchat.protocol.map_elements import (
    DEFAULT_PIN_ICON,
    ArcElement,
    PinElement,
    build_map_element,
    snapshot_element_ids,
)
from mapchat.protocol.messages import ChatRequest


def test_pin_gets_default_icon_and_title() -> None:
    element = build_map_element(element_type="pin", element_id="pin_1", coordinates=[2.29, 48.85], properties={})
    assert isinstance(element, PinElement)
    assert element.icon == DEFAULT_PIN_ICON
    assert element.title == "Untitled"
    assert element.coordinates == (2.29, 48.85)


def test_arc_takes_source_and_target() -> None:
    element = build_map_element(
        element_type="arc",
        element_id="arc_1",
        coordinates={"source": [-0.12, 51.5], "target": [2.35, 48.85]},
        properties={"title": "London to Paris", "timeRange": {"start": "1994-11-14"}},
    )
    assert isinstance(element, ArcElement)
    assert element.target == (2.35, 48.85)
    assert element.time_range is not None
    assert element.time_range.start == "1994-11-14"


@pytest.mark.parametrize(
    ("element_type", "coordinates"),
    [
        ("pin", [200.0, 10.0]),
        ("pin", [10.0, 95.0]),
        ("area", [[[0, 0], [1, 1]]]),
        ("line", [[0, 0]]),
        ("arc", [[0, 0], [1, 1]]),
    ],
)
def test_invalid_geometry_is_rejected(element_type: str, coordinates) -> None:
    with pytest.raises((ValidationError, ValueError)):
        build_map_element(element_type=element_type, element_id="x", coordinates=coordinates, properties={})


def test_snapshot_ids_skip_malformed_rows() -> None:
    rows = [{"id": "pin_1"}, {"id": ""}, {"title": "no id"}, "junk", {"id": 3}, {"id": "area_2"}]
    assert snapshot_element_ids(rows) == {"pin_1", "area_2"}


def test_chat_request_exposes_snapshot_ids() -> None:
    request = ChatRequest.model_validate(
        {
            "messages": [{"role": "user", "content": "hi"}],
            "mapState": '[{"id": "pin_1"}, {"id": "route_2"}]',
        }
    )
    assert request.map_element_ids() == {"pin_1", "route_2"}
    assert request.api_key is None


@pytest.mark.parametrize(
    "payload",
    [
        {"messages": []},
        {"messages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]},
        {"messages": [{"role": "user", "content": "   "}]},
        {"messages": [{"role": "system", "content": "hi"}]},
        {"messages": [{"role": "user", "content": "hi"}], "mapState": "{not json"},
        {"messages": [{"role": "user", "content": "hi"}], "mapState": '{"id": "pin_1"}'},
    ],
)
def test_chat_request_rejects_malformed_input(payload: dict) -> None:
    with pytest.raises(ValidationError):
        ChatRequest.model_validate(payload)
