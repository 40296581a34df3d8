"""Unified tool registry with schema validation and execution dispatch."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from mapchat.agent.tools.builtin.geocode_tool import GeocodeTool
from mapchat.agent.tools.builtin.place_search_tool import PlaceSearchTool
from mapchat.agent.tools.builtin.route_plan_tool import RoutePlanTool
from mapchat.agent.tools.catalog import TOOLS_BY_NAME, ToolClass, build_tool_definitions, classify_tool
from mapchat.agent.tools.element_ids import ElementIdAllocator
from mapchat.agent.tools.schemas import (
    AddMapElementArgs,
    CalculateRouteArgs,
    GeocodeArgs,
    ReverseGeocodeArgs,
    SearchPlacesArgs,
)
from mapchat.infra.observability.logger import get_logger, short_text
from mapchat.protocol.messages import ActionToolCall

logger = get_logger(__name__)

ACTION_ACK: dict[str, Any] = {"success": True}


@dataclass(frozen=True)
class DataOnly:
    """Data tool resolved; the output goes back to the model."""

    output: dict[str, Any]


@dataclass(frozen=True)
class DataWithAction:
    """Data tool that also produced a map action for the caller."""

    output: dict[str, Any]
    action: ActionToolCall


@dataclass(frozen=True)
class Deferred:
    """Action tool accepted; the caller applies it, the model gets an ack."""

    action: ActionToolCall

    @property
    def output(self) -> dict[str, Any]:
        return dict(ACTION_ACK)


@dataclass(frozen=True)
class Rejected:
    """Unknown tool or invalid arguments; the output carries the error."""

    output: dict[str, Any]


ToolOutcome = Union[DataOnly, DataWithAction, Deferred, Rejected]


@dataclass(frozen=True)
class ToolExecutionResult:
    """Normalized tool execution output."""

    call_id: str
    tool_name: str
    kind: ToolClass
    outcome: ToolOutcome

    @property
    def status(self) -> str:
        if isinstance(self.outcome, Rejected) or "error" in self.outcome.output:
            return "failed"
        return "completed"

    @property
    def output(self) -> dict[str, Any]:
        return self.outcome.output

    @property
    def action(self) -> ActionToolCall | None:
        if isinstance(self.outcome, (DataWithAction, Deferred)):
            return self.outcome.action
        return None


class ToolRegistry:
    """Schema-first runtime entrypoint for builtin and deferred map tools."""

    def __init__(
        self,
        *,
        geocode_tool: GeocodeTool,
        place_search_tool: PlaceSearchTool,
        route_plan_tool: RoutePlanTool,
        tool_timeout_seconds: float = 30.0,
        strict_schema: bool = False,
    ) -> None:
        self._geocode_tool = geocode_tool
        self._place_search_tool = place_search_tool
        self._route_plan_tool = route_plan_tool
        self._tool_timeout_seconds = tool_timeout_seconds
        self._strict_schema = strict_schema

    def tool_definitions(self) -> list[dict[str, Any]]:
        return build_tool_definitions(strict=self._strict_schema)

    async def execute(
        self,
        *,
        call_id: str,
        tool_name: str,
        raw_arguments: dict[str, Any],
        element_ids: ElementIdAllocator,
    ) -> ToolExecutionResult:
        kind = classify_tool(tool_name)
        if kind == "unknown":
            return self._result(call_id, tool_name, kind, Rejected({"error": f"Unknown tool: {tool_name}"}))

        try:
            validated = TOOLS_BY_NAME[tool_name].args_model.model_validate(raw_arguments)
        except ValidationError as exc:
            return self._failed(
                call_id=call_id,
                tool_name=tool_name,
                kind=kind,
                error_type="validation_error",
                message=f"Invalid arguments for {tool_name}",
                details=exc.errors(include_url=False, include_context=False, include_input=False),
            )

        if kind == "action":
            action = self._accept_action(tool_name, raw_arguments, validated, element_ids)
            return self._result(call_id, tool_name, kind, Deferred(action))

        try:
            outcome = await asyncio.wait_for(
                self._dispatch(tool_name=tool_name, validated=validated, element_ids=element_ids),
                timeout=self._tool_timeout_seconds,
            )
        except asyncio.TimeoutError:
            outcome = DataOnly({"error": f"{tool_name} timed out after {self._tool_timeout_seconds:g}s"})
        except Exception as exc:
            logger.exception("tool.crashed name=%s", tool_name)
            return self._failed(
                call_id=call_id,
                tool_name=tool_name,
                kind=kind,
                error_type="runtime_error",
                message=f"{type(exc).__name__}: {exc}",
            )
        return self._result(call_id, tool_name, kind, outcome)

    async def _dispatch(
        self,
        *,
        tool_name: str,
        validated: BaseModel,
        element_ids: ElementIdAllocator,
    ) -> ToolOutcome:
        if isinstance(validated, GeocodeArgs):
            return DataOnly(await self._geocode_tool.geocode(validated.query))
        if isinstance(validated, ReverseGeocodeArgs):
            return DataOnly(await self._geocode_tool.reverse_geocode(validated.lat, validated.lng))
        if isinstance(validated, SearchPlacesArgs):
            output = await self._place_search_tool.search_places(
                query=validated.query,
                lat=validated.lat,
                lng=validated.lng,
                radius_m=validated.radius_meters,
            )
            return DataOnly(output)
        if isinstance(validated, CalculateRouteArgs):
            output, action = await self._route_plan_tool.calculate_route(validated, element_ids)
            if action is None:
                return DataOnly(output)
            return DataWithAction(output, action)
        raise ValueError(f"unknown_tool:{tool_name}")

    def _accept_action(
        self,
        tool_name: str,
        raw_arguments: dict[str, Any],
        validated: BaseModel,
        element_ids: ElementIdAllocator,
    ) -> ActionToolCall:
        args = dict(raw_arguments)
        if isinstance(validated, AddMapElementArgs):
            properties = validated.parsed_properties()
            requested = properties.get("id")
            element_id = element_ids.claim(
                requested if isinstance(requested, str) else None,
                prefix=validated.element_type,
            )
            if element_id != requested:
                logger.info(
                    "tool.element_id name=%s requested=%s assigned=%s",
                    tool_name,
                    requested,
                    element_id,
                )
            properties["id"] = element_id
            args["properties"] = json.dumps(properties, ensure_ascii=False)
        return ActionToolCall(name=tool_name, args=args)

    def _result(
        self,
        call_id: str,
        tool_name: str,
        kind: ToolClass,
        outcome: ToolOutcome,
    ) -> ToolExecutionResult:
        result = ToolExecutionResult(call_id=call_id, tool_name=tool_name, kind=kind, outcome=outcome)
        if result.status == "failed":
            logger.info(
                "tool.failed name=%s kind=%s error=%s",
                tool_name,
                kind,
                short_text(json.dumps(result.output, ensure_ascii=False, default=str), limit=200),
            )
        return result

    def _failed(
        self,
        *,
        call_id: str,
        tool_name: str,
        kind: ToolClass,
        error_type: str,
        message: str,
        details: list[Any] | None = None,
    ) -> ToolExecutionResult:
        payload: dict[str, Any] = {
            "error": {
                "type": error_type,
                "message": message,
            }
        }
        if details is not None:
            payload["error"]["details"] = details
        return self._result(call_id, tool_name, kind, Rejected(payload))
