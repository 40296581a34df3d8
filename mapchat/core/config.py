"""Configuration layer: load runtime settings from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]


def _resolve_path(path_like: str) -> Path:
    """Relative paths resolve against the cwd first, then the project root."""
    candidate = Path(path_like)
    if candidate.is_absolute() or candidate.exists():
        return candidate
    rooted = _PACKAGE_ROOT.parent / candidate
    return rooted if rooted.exists() else candidate


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return default if raw is None or not raw.strip() else int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return default if raw is None or not raw.strip() else float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    return default if not raw else _resolve_path(raw)


@dataclass(frozen=True)
class Settings:
    """Immutable application settings used across API/runtime layers."""

    app_name: str = "MapChat Agent API"
    app_version: str = "0.1.0"
    env: str = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    llm_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai"
    llm_model: str = "gemini-2.5-pro"
    llm_timeout_seconds: float = 60.0
    llm_temperature: float = 0.4
    llm_max_tokens: int = 8192
    agent_max_iterations: int = 10
    agent_tool_timeout_seconds: float = 30.0
    agent_tool_schema_strict: bool = False
    agent_provider_profiles_file: Path = _PACKAGE_ROOT / "agent" / "llm" / "profiles" / "provider_profiles.yaml"
    agent_provider_profile: str = "default"
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "MapChat/1.0"
    nominatim_min_interval_seconds: float = 1.1
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    osrm_base_url: str = "https://routing.openstreetmap.de"
    http_timeout_seconds: float = 15.0
    examples_dir: Path = _PACKAGE_ROOT.parent / "data" / "examples"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from process env with deterministic defaults.

        `LLM_API_KEY` wins; `GEMINI_API_KEY` is accepted for compatibility with
        existing MapChat deployments.
        """
        return cls(
            app_name=_env_str("APP_NAME", cls.app_name),
            app_version=_env_str("APP_VERSION", cls.app_version),
            env=_env_str("APP_ENV", cls.env),
            log_level=_env_str("LOG_LEVEL", cls.log_level),
            host=_env_str("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            cors_allow_origins=_env_str("CORS_ALLOW_ORIGINS", cls.cors_allow_origins),
            llm_api_key=os.getenv("LLM_API_KEY") or _env_str("GEMINI_API_KEY", cls.llm_api_key),
            llm_base_url=_env_str("LLM_BASE_URL", cls.llm_base_url),
            llm_model=_env_str("LLM_MODEL", cls.llm_model),
            llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds),
            llm_temperature=_env_float("LLM_TEMPERATURE", cls.llm_temperature),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS", cls.llm_max_tokens),
            agent_max_iterations=_env_int("AGENT_MAX_ITERATIONS", cls.agent_max_iterations),
            agent_tool_timeout_seconds=_env_float("AGENT_TOOL_TIMEOUT_SECONDS", cls.agent_tool_timeout_seconds),
            agent_tool_schema_strict=_env_bool("AGENT_TOOL_SCHEMA_STRICT", cls.agent_tool_schema_strict),
            agent_provider_profiles_file=_env_path("AGENT_PROVIDER_PROFILES_FILE", cls.agent_provider_profiles_file),
            agent_provider_profile=_env_str("AGENT_PROVIDER_PROFILE", cls.agent_provider_profile),
            nominatim_base_url=_env_str("NOMINATIM_BASE_URL", cls.nominatim_base_url),
            nominatim_user_agent=_env_str("NOMINATIM_USER_AGENT", cls.nominatim_user_agent),
            nominatim_min_interval_seconds=_env_float(
                "NOMINATIM_MIN_INTERVAL_SECONDS", cls.nominatim_min_interval_seconds
            ),
            overpass_url=_env_str("OVERPASS_URL", cls.overpass_url),
            osrm_base_url=_env_str("OSRM_BASE_URL", cls.osrm_base_url),
            http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", cls.http_timeout_seconds),
            examples_dir=_env_path("EXAMPLES_DIR", cls.examples_dir),
        )
