"""HTTP API layer: bundled example maps."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mapchat.api.deps import get_container
from mapchat.core.container import AppContainer
from mapchat.protocol.messages import ExampleListDto, ExampleMapDto

router = APIRouter(prefix="/api", tags=["examples"])


@router.get("/examples", response_model=ExampleListDto)
def list_examples(container: AppContainer = Depends(get_container)) -> ExampleListDto:
    rows = container.example_store.list_examples()
    return ExampleListDto(examples=[ExampleMapDto.model_validate(row) for row in rows])
