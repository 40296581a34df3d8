"""Model provider: one chat-completions round-trip with function calling.

The runtime only sees `ChatModel.send_turn`, so tests swap in a scripted
model and the HTTP details stay here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Protocol
from uuid import uuid4

import httpx

from mapchat.agent.llm.llm_config import LLMConfig
from mapchat.infra.observability.logger import get_logger, short_text

logger = get_logger(__name__)

_AUTH_STATUSES = {401, 403}
_TEXT_PART_TYPES = {"text", "output_text"}


class ModelProviderError(RuntimeError):
    """Model endpoint failed or returned an unusable payload."""


class ModelAuthenticationError(ModelProviderError):
    """Model endpoint rejected the supplied credentials."""


@dataclass(frozen=True)
class ModelToolCall:
    """Function call requested by the model, arguments already decoded."""

    call_id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ModelResponse:
    """One assistant turn: optional text plus zero or more tool calls."""

    text: str | None = None
    tool_calls: list[ModelToolCall] = field(default_factory=list)
    response_id: str | None = None

    def as_assistant_message(self) -> dict[str, Any]:
        """Echo this turn back into history in chat-completions shape."""
        message: dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in self.tool_calls
            ]
        return message


class ChatModel(Protocol):
    """One model conversation bound to a credential."""

    async def send_turn(
        self,
        *,
        instructions: str,
        history: list[dict[str, Any]],
        pending: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelResponse: ...


class ModelProvider(Protocol):
    def session(self, api_key: str) -> ChatModel: ...


def build_chat_payload(
    config: LLMConfig,
    *,
    instructions: str,
    messages: list[dict[str, Any]],
    tools: list[dict[str, Any]],
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": config.model,
        "messages": [{"role": "system", "content": instructions}, *messages],
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
        "stream": False,
    }
    if not tools:
        return payload
    payload["tools"] = tools
    payload["tool_choice"] = config.tool_choice if config.tool_choice in {"auto", "required", "none"} else "auto"
    if not config.parallel_tool_calls:
        payload["parallel_tool_calls"] = False
    return payload


def parse_chat_completion(body: dict[str, Any]) -> ModelResponse:
    """Normalize the first choice of a chat-completions body.

    Tool calls without a function name are dropped; arguments that are not a
    JSON object decode to `{}` so argument validation reports them later.
    """
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ModelProviderError("chat completions api returned empty choices")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise ModelProviderError("chat completions api returned invalid message payload")

    calls = [
        parsed
        for parsed in (_tool_call(raw) for raw in message.get("tool_calls") or [])
        if parsed is not None
    ]
    response_id = body.get("id")
    return ModelResponse(
        text=_message_text(message.get("content")),
        tool_calls=calls,
        response_id=None if response_id is None else str(response_id),
    )


def _message_text(content: Any) -> str | None:
    if isinstance(content, list):
        parts = [
            str(part.get("text") or part.get("value") or "").strip()
            for part in content
            if isinstance(part, dict) and part.get("type") in _TEXT_PART_TYPES
        ]
        content = "\n".join(part for part in parts if part)
    if not isinstance(content, str):
        return None
    return content.strip() or None


def _tool_call(raw: Any) -> ModelToolCall | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("function"), dict):
        return None
    function = raw["function"]
    name = function.get("name")
    if not isinstance(name, str) or not name:
        return None
    arguments = function.get("arguments")
    if isinstance(arguments, str):
        arguments = _decode_object(arguments)
    if not isinstance(arguments, dict):
        arguments = {}
    return ModelToolCall(
        call_id=str(raw.get("id") or f"call_{uuid4().hex[:12]}"),
        name=name,
        arguments=arguments,
    )


def _decode_object(raw: str | bytes) -> dict[str, Any]:
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


def _compact_body(text: str | None, *, limit: int = 280) -> str:
    return short_text(text, limit=limit) or "unknown"


class ProviderAdapter:
    """Chat model backed by an OpenAI-compatible `/chat/completions` endpoint."""

    def __init__(self, config: LLMConfig, *, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def model(self) -> str:
        return self._config.model

    def session(self, api_key: str) -> "ProviderAdapter":
        """Same endpoint and model, bound to the given credential."""
        if api_key == self._config.api_key:
            return self
        return ProviderAdapter(replace(self._config, api_key=api_key), client=self._client)

    async def send_turn(
        self,
        *,
        instructions: str,
        history: list[dict[str, Any]],
        pending: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelResponse:
        if not self._config.profile_enabled:
            raise ModelProviderError(
                f"llm provider disabled by profile '{self._config.profile_name}'. "
                "switch AGENT_PROVIDER_PROFILE or enable this profile."
            )
        if not self._config.api_key.strip():
            raise ModelAuthenticationError("llm provider missing api key. set LLM_API_KEY.")

        messages = [*history, *pending]
        payload = build_chat_payload(self._config, instructions=instructions, messages=messages, tools=tools)
        logger.info(
            "llm.request model=%s tool_choice=%s tools=%s messages=%s last=%s",
            self._config.model,
            payload.get("tool_choice", "-"),
            len(tools),
            len(messages),
            short_text(str(messages[-1].get("content")) if messages else "", limit=80),
        )
        response = parse_chat_completion(await self._post(payload))
        logger.info(
            "llm.response response_id=%s tool_calls=%s text=%s",
            response.response_id,
            [call.name for call in response.tool_calls],
            short_text(response.text, limit=120),
        )
        return response

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        endpoint = self._config.base_url.rstrip("/") + "/chat/completions"
        try:
            resp = await self._client.post(
                endpoint,
                json=payload,
                headers={"Authorization": f"Bearer {self._config.api_key}", "Accept": "application/json"},
                timeout=self._config.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise ModelProviderError("timeout_error request timed out") from exc
        except httpx.HTTPError as exc:
            raise ModelProviderError(f"transport_error {type(exc).__name__}: {exc}") from exc

        if resp.status_code in _AUTH_STATUSES:
            raise ModelAuthenticationError(f"http_error status={resp.status_code}; body={_compact_body(resp.text)}")
        if not resp.is_success:
            raise ModelProviderError(
                f"http_error status={resp.status_code} reason={resp.reason_phrase}; body={_compact_body(resp.text)}"
            )
        body = _decode_object(resp.content)
        if not body:
            raise ModelProviderError("response body is not a JSON object")
        return body
