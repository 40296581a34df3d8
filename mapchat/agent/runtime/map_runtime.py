"""Map chat runtime: bounded model tool-loop that accumulates deferred map actions."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mapchat.agent.context.context_builder import ContextBuilder
from mapchat.agent.llm.provider_adapter import (
    ModelAuthenticationError,
    ModelProvider,
    ModelProviderError,
    ModelToolCall,
)
from mapchat.agent.runtime.loop_guard import LoopGuard
from mapchat.agent.tools.element_ids import ElementIdAllocator
from mapchat.agent.tools.registry import ToolExecutionResult, ToolRegistry
from mapchat.infra.observability.logger import get_logger, short_text
from mapchat.protocol.messages import ActionToolCall, ChatRequest, ChatResponse

logger = get_logger(__name__)


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


class MissingCredentialsError(RuntimeError):
    """Neither the request nor the server configuration carries a model API key."""


@dataclass
class ChatRunResult:
    """Outcome of one user turn, including why the loop stopped."""

    content: str = ""
    tool_calls: list[ActionToolCall] = field(default_factory=list)
    iterations: int = 0
    tool_rounds: int = 0
    state: LoopState = LoopState.AWAITING_MODEL
    stop_reason: str = "max_iterations"
    error: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.stop_reason == "cancelled"

    def to_response(self) -> ChatResponse:
        return ChatResponse(content=self.content, tool_calls=list(self.tool_calls))


def _tool_message(result: ToolExecutionResult) -> dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": result.call_id,
        "name": result.tool_name,
        "content": json.dumps(result.output, ensure_ascii=False, default=str),
    }


class MapChatRuntime:
    """Function-calling orchestrator: data tools resolve here, action tools go to the caller."""

    def __init__(
        self,
        *,
        context_builder: ContextBuilder,
        tool_registry: ToolRegistry,
        model_provider: ModelProvider,
        server_api_key: str = "",
        max_iterations: int = 10,
    ) -> None:
        self._context_builder = context_builder
        self._tool_registry = tool_registry
        self._model_provider = model_provider
        self._server_api_key = server_api_key
        self._max_iterations = max(1, max_iterations)

    @property
    def has_server_key(self) -> bool:
        return bool(self._server_api_key.strip())

    def resolve_api_key(self, request: ChatRequest) -> str:
        candidate = (request.api_key or "").strip() or self._server_api_key.strip()
        if not candidate:
            raise MissingCredentialsError("API key is required")
        return candidate

    async def run_chat(
        self,
        request: ChatRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ChatRunResult:
        """Run the tool loop for the newest user message.

        Raises `MissingCredentialsError` before any model call when no key is
        available, and lets `ModelAuthenticationError` propagate. Any other
        model failure ends the turn with the partial result.
        """
        api_key = self.resolve_api_key(request)
        model = self._model_provider.session(api_key)
        context = self._context_builder.build(request)
        tools = self._tool_registry.tool_definitions()
        element_ids = ElementIdAllocator(request.map_element_ids())

        history = list(context.history)
        pending = list(context.pending)
        result = ChatRunResult()
        guard = LoopGuard(self._max_iterations)
        logger.info(
            "chat.start history=%s map_elements=%s max_iterations=%s message=%s",
            len(history),
            len(request.map_elements()),
            self._max_iterations,
            short_text(request.latest_message.content, limit=140),
        )

        def cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        unexecuted = 0
        while True:
            if cancelled():
                result.stop_reason = "cancelled"
                break
            result.iterations += 1
            step = result.iterations
            result.state = LoopState.AWAITING_MODEL
            try:
                response = await model.send_turn(
                    instructions=context.instructions,
                    history=history,
                    pending=pending,
                    tools=tools,
                )
            except ModelAuthenticationError:
                raise
            except ModelProviderError as exc:
                logger.warning("chat.model_error step=%s error=%s", step, short_text(str(exc), limit=240))
                result.stop_reason = "model_error"
                result.error = str(exc)
                break
            logger.info(
                "chat.step step=%s tool_calls=%s has_text=%s rounds_left=%s",
                step,
                len(response.tool_calls),
                bool(response.text),
                guard.remaining,
            )

            # Text that arrives alongside tool calls is provisional; later text replaces it.
            if response.text:
                result.content = response.text
            if not response.tool_calls:
                result.state = LoopState.DONE
                result.stop_reason = "completed"
                break
            if guard.exhausted:
                unexecuted = len(response.tool_calls)
                break
            if cancelled():
                logger.info("chat.cancelled step=%s skipped_tool_calls=%s", step, len(response.tool_calls))
                result.stop_reason = "cancelled"
                break

            result.tool_rounds = guard.next()
            result.state = LoopState.DISPATCHING_TOOLS
            executions = await self._execute_tool_calls(response.tool_calls, element_ids)
            if cancelled():
                logger.info("chat.cancelled step=%s discarded_results=%s", step, len(executions))
                result.stop_reason = "cancelled"
                break

            for execution in executions:
                if execution.action is not None:
                    result.tool_calls.append(execution.action)
            history = history + pending + [response.as_assistant_message()]
            pending = [_tool_message(execution) for execution in executions]
            result.state = LoopState.AWAITING_MODEL

        if result.stop_reason == "max_iterations":
            logger.warning(
                "chat.max_iterations tool_rounds=%s unexecuted_tool_calls=%s",
                result.tool_rounds,
                unexecuted,
            )
        logger.info(
            "chat.done stop_reason=%s iterations=%s actions=%s reply=%s",
            result.stop_reason,
            result.iterations,
            [call.name for call in result.tool_calls],
            short_text(result.content, limit=160),
        )
        return result

    async def _execute_tool_calls(
        self,
        tool_calls: list[ModelToolCall],
        element_ids: ElementIdAllocator,
    ) -> list[ToolExecutionResult]:
        """Dispatch one model turn's calls concurrently; results keep invocation order."""
        for call in tool_calls:
            logger.info(
                "tool.call tool=%s call_id=%s args=%s",
                call.name,
                call.call_id,
                short_text(json.dumps(call.arguments, ensure_ascii=False), limit=220),
            )
        executions = await asyncio.gather(
            *(
                self._tool_registry.execute(
                    call_id=call.call_id,
                    tool_name=call.name,
                    raw_arguments=call.arguments,
                    element_ids=element_ids,
                )
                for call in tool_calls
            )
        )
        for execution in executions:
            if execution.status == "completed":
                logger.info(
                    "tool.completed tool=%s call_id=%s kind=%s action=%s",
                    execution.tool_name,
                    execution.call_id,
                    execution.kind,
                    execution.action.name if execution.action else "-",
                )
        return list(executions)
