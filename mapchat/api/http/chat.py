"""HTTP API layer: chat endpoint backed by the map chat runtime."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request, status

from mapchat.agent.llm.provider_adapter import ModelAuthenticationError
from mapchat.agent.runtime.map_runtime import MissingCredentialsError
from mapchat.api.deps import get_container
from mapchat.core.container import AppContainer
from mapchat.infra.observability.logger import get_logger
from mapchat.protocol.messages import ChatRequest, ChatResponse

router = APIRouter(prefix="/api", tags=["chat"])
logger = get_logger(__name__)

DISCONNECT_POLL_SECONDS = 0.5


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("chat.client_disconnected path=%s", request.url.path)
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.post("/chat", response_model=ChatResponse, response_model_by_alias=True)
async def chat(
    payload: ChatRequest,
    request: Request,
    container: AppContainer = Depends(get_container),
) -> ChatResponse:
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        result = await container.runtime.run_chat(payload, cancel_event=cancel_event)
    except MissingCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except ModelAuthenticationError as exc:
        logger.warning("chat.auth_rejected error=%s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Model provider rejected the API key",
        ) from exc
    finally:
        watcher.cancel()

    if result.error:
        logger.warning(
            "chat.partial stop_reason=%s actions=%s error=%s",
            result.stop_reason,
            len(result.tool_calls),
            result.error,
        )
    return result.to_response()
