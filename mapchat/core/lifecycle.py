"""Lifecycle hooks for startup diagnostics and shared client teardown."""

from __future__ import annotations

from mapchat.core.container import AppContainer
from mapchat.infra.observability.logger import get_logger

logger = get_logger(__name__)


def on_startup(container: AppContainer) -> None:
    config = container.llm_config
    logger.info(
        "LLM provider: profile=%s model=%s base_url=%s server_key=%s",
        config.profile_name,
        config.model,
        config.base_url,
        container.runtime.has_server_key,
    )
    logger.info(
        "Nominatim throttle: %.2fs between requests",
        container.nominatim_limiter.interval_seconds,
    )


async def on_shutdown(container: AppContainer) -> None:
    await container.http_client.aclose()
    logger.info("MapChat agent shutdown complete.")
