"""HTTP API layer: client bootstrap config (whether a server-side model key exists)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mapchat.api.deps import get_container
from mapchat.core.container import AppContainer
from mapchat.protocol.messages import ClientConfigDto

router = APIRouter(prefix="/api", tags=["config"])


@router.get("/config", response_model=ClientConfigDto, response_model_by_alias=True)
def client_config(container: AppContainer = Depends(get_container)) -> ClientConfigDto:
    return ClientConfigDto(has_server_key=container.runtime.has_server_key)
