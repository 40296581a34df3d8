"""Protocol layer: request/response DTOs shared by API and orchestrator modules."""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mapchat.protocol.map_elements import snapshot_element_ids


ChatRoleType = Literal["user", "assistant"]
RouteMode = Literal["walking", "cycling", "driving"]


class ChatMessageDto(BaseModel):
    """One conversation message supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    role: ChatRoleType
    content: str


class ChatRequest(BaseModel):
    """Chat entrypoint request: full history plus the current map snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageDto] = Field(..., min_length=1)
    map_state: str = Field(
        default="[]",
        alias="mapState",
        description="JSON array of the map elements currently shown by the client.",
    )
    api_key: str | None = Field(default=None, alias="apiKey")

    @field_validator("messages")
    @classmethod
    def _last_message_from_user(cls, value: list[ChatMessageDto]) -> list[ChatMessageDto]:
        if value[-1].role != "user":
            raise ValueError("last message must come from the user")
        if not value[-1].content.strip():
            raise ValueError("last user message must not be empty")
        return value

    @field_validator("map_state")
    @classmethod
    def _map_state_is_json_array(cls, value: str) -> str:
        try:
            decoded = json.loads(value or "[]")
        except json.JSONDecodeError as exc:
            raise ValueError(f"mapState is not valid JSON: {exc.msg}") from exc
        if not isinstance(decoded, list):
            raise ValueError("mapState must be a JSON array")
        return value or "[]"

    @property
    def latest_message(self) -> ChatMessageDto:
        return self.messages[-1]

    @property
    def prior_messages(self) -> list[ChatMessageDto]:
        return self.messages[:-1]

    def map_elements(self) -> list[Any]:
        return json.loads(self.map_state)

    def map_element_ids(self) -> set[str]:
        return snapshot_element_ids(self.map_elements())


class ActionToolCall(BaseModel):
    """Deferred map action handed to the caller for execution."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ChatResponse(BaseModel):
    """Chat entrypoint response DTO."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    tool_calls: list[ActionToolCall] = Field(default_factory=list, alias="toolCalls")


class RouteResult(BaseModel):
    """One routed path as returned by the routing provider."""

    coordinates: list[tuple[float, float]] = Field(default_factory=list)
    distance_m: float
    duration_s: float
    mode: RouteMode


class ClientConfigDto(BaseModel):
    """Tells the client whether it must supply its own model API key."""

    model_config = ConfigDict(populate_by_name=True)

    has_server_key: bool = Field(..., alias="hasServerKey")


class ExampleMapDto(BaseModel):
    """Bundled example map that the client can load."""

    id: str
    title: str
    description: str
    thumbnail: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ExampleListDto(BaseModel):
    examples: list[ExampleMapDto] = Field(default_factory=list)
