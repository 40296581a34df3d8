"""HTTP API layer: health and readiness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mapchat.api.deps import get_container
from mapchat.core.container import AppContainer

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: AppContainer = Depends(get_container)) -> dict:
    return {
        "status": "ok",
        "env": container.settings.env,
        "model": container.llm_config.model,
        "provider_profile": container.llm_config.profile_name,
        "provider_configured": container.llm_config.enabled,
        "examples": container.example_store.health(),
    }
