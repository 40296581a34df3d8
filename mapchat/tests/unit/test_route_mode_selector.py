"""Unit tests for the walking -> cycling -> driving route cascade."""

from __future__ import annotations

import pytest

from mapchat.agent.tools.builtin.route_plan_tool import RouteModeSelector

pytestmark = pytest.mark.asyncio

POINTS = (2.0, 48.0, 2.1, 48.1)


async def test_walking_at_threshold_is_kept(route_fetcher, route) -> None:
    fetcher = route_fetcher({"walking": route("walking", 3000.0)})
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result is not None and result.mode == "walking"
    assert fetcher.calls == ["walking"]


async def test_walking_just_over_threshold_tries_cycling(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 3000.01),
            "cycling": route("cycling", 3200.0),
        }
    )
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result is not None and result.mode == "cycling"
    assert fetcher.calls == ["walking", "cycling"]


async def test_cycling_at_threshold_is_kept(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 16000.0),
            "cycling": route("cycling", 15000.0),
            "driving": route("driving", 14000.0),
        }
    )
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result is not None and result.mode == "cycling"
    assert fetcher.calls == ["walking", "cycling"]


async def test_long_distance_escalates_to_driving(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 40000.0),
            "cycling": route("cycling", 38000.0),
            "driving": route("driving", 42000.0),
        }
    )
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result is not None and result.mode == "driving"
    assert fetcher.calls == ["walking", "cycling", "driving"]


async def test_preferred_mode_skips_the_cascade(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 500.0),
            "driving": route("driving", 700.0),
        }
    )
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS, preferred_mode="driving")
    assert result is not None and result.mode == "driving"
    assert fetcher.calls == ["driving"]


async def test_preferred_mode_failure_has_no_fallback(route_fetcher, route) -> None:
    fetcher = route_fetcher({"walking": route("walking", 500.0)})
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS, preferred_mode="cycling")
    assert result is None
    assert fetcher.calls == ["cycling"]


async def test_walking_failure_goes_straight_to_driving(route_fetcher, route) -> None:
    driving = route("driving", 800.0)
    fetcher = route_fetcher({"walking": None, "cycling": route("cycling", 800.0), "driving": driving})
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result == driving
    assert fetcher.calls == ["walking", "driving"]


async def test_cycling_failure_falls_back_to_driving(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 9000.0),
            "cycling": None,
            "driving": route("driving", 9500.0),
        }
    )
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result is not None and result.mode == "driving"
    assert fetcher.calls == ["walking", "cycling", "driving"]


async def test_driving_failure_keeps_cycling_route(route_fetcher, route) -> None:
    cycling = route("cycling", 25000.0)
    fetcher = route_fetcher({"walking": route("walking", 26000.0), "cycling": cycling, "driving": None})
    result = await RouteModeSelector(fetcher).resolve_route(*POINTS)
    assert result == cycling


async def test_every_mode_failing_yields_none(route_fetcher) -> None:
    fetcher = route_fetcher({})
    assert await RouteModeSelector(fetcher).resolve_route(*POINTS) is None
    assert fetcher.calls == ["walking", "driving"]


async def test_selection_is_deterministic(route_fetcher, route) -> None:
    fetcher = route_fetcher(
        {
            "walking": route("walking", 5000.0),
            "cycling": route("cycling", 4800.0),
        }
    )
    selector = RouteModeSelector(fetcher)
    first = await selector.resolve_route(*POINTS)
    second = await selector.resolve_route(*POINTS)
    assert first == second
    assert fetcher.calls == ["walking", "cycling", "walking", "cycling"]
