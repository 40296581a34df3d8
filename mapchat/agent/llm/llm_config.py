"""Resolve the model endpoint settings from env settings and a YAML provider profile."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import yaml

from mapchat.core.config import Settings

_T = TypeVar("_T")

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}
_TOOL_CHOICES = {"auto", "required", "none"}


@dataclass(frozen=True)
class LLMConfig:
    """Settings for one OpenAI-compatible chat completions endpoint."""

    api_key: str
    base_url: str
    model: str
    timeout_seconds: float
    temperature: float
    max_tokens: int
    tool_choice: str = "auto"
    parallel_tool_calls: bool = True
    profile_name: str = "default"
    profile_enabled: bool = True

    @property
    def enabled(self) -> bool:
        return self.profile_enabled and bool(self.api_key.strip())


class ProviderProfile:
    """Typed read access to one entry of the `profiles:` mapping."""

    def __init__(self, name: str, values: dict[str, Any] | None = None) -> None:
        self.name = name
        self._values = values or {}

    @classmethod
    def load(cls, profile_file: Path, name: str) -> "ProviderProfile":
        """Read `name` from the file, falling back to `default`, then to an empty profile.

        An entry may nest its endpoint keys under `llm:`; those win over
        top-level keys of the same entry.
        """
        path = _locate(profile_file)
        if path is None:
            return cls(name)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError):
            return cls(name)
        profiles = raw.get("profiles") if isinstance(raw, dict) else None
        if not isinstance(profiles, dict):
            return cls(name)
        entry = profiles.get(name)
        if not isinstance(entry, dict):
            entry = profiles.get("default")
        if not isinstance(entry, dict):
            return cls(name)
        values = {key: value for key, value in entry.items() if key != "llm"}
        nested = entry.get("llm")
        if isinstance(nested, dict):
            values.update(nested)
        return cls(name, values)

    def text(self, key: str, fallback: str) -> str:
        value = self._values.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return fallback

    def number(self, key: str, fallback: float) -> float:
        value = self._values.get(key)
        if isinstance(value, bool):
            return fallback
        try:
            return float(value)
        except (TypeError, ValueError):
            return fallback

    def integer(self, key: str, fallback: int) -> int:
        number = self.number(key, float(fallback))
        return int(number)

    def flag(self, key: str, fallback: bool) -> bool:
        value = self._values.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        return fallback


def _locate(profile_file: Path) -> Path | None:
    if profile_file.exists():
        return profile_file
    if not profile_file.is_absolute():
        rooted = Path(__file__).resolve().parents[3] / profile_file
        if rooted.exists():
            return rooted
    return None


def _explicit_or(value: _T, default: _T, profile_value: _T) -> _T:
    # A setting that differs from the built-in default came from env and wins.
    return value if value != default else profile_value


def resolve_llm_config(settings: Settings) -> LLMConfig:
    """Merge env settings over the selected provider profile."""
    profile = ProviderProfile.load(settings.agent_provider_profiles_file, settings.agent_provider_profile)
    defaults = Settings()
    enabled = profile.flag("enabled", True)

    base_url = _explicit_or(
        settings.llm_base_url,
        defaults.llm_base_url,
        profile.text("base_url", defaults.llm_base_url),
    )
    model = _explicit_or(
        settings.llm_model,
        defaults.llm_model,
        profile.text("model", defaults.llm_model),
    )
    timeout_seconds = _explicit_or(
        float(settings.llm_timeout_seconds),
        float(defaults.llm_timeout_seconds),
        profile.number("timeout_seconds", defaults.llm_timeout_seconds),
    )
    temperature = _explicit_or(
        float(settings.llm_temperature),
        float(defaults.llm_temperature),
        profile.number("temperature", defaults.llm_temperature),
    )
    max_tokens = _explicit_or(
        int(settings.llm_max_tokens),
        int(defaults.llm_max_tokens),
        profile.integer("max_tokens", defaults.llm_max_tokens),
    )
    tool_choice = profile.text("tool_choice", "auto").lower()

    return LLMConfig(
        api_key=settings.llm_api_key if enabled else "",
        base_url=base_url,
        model=model,
        timeout_seconds=max(1.0, timeout_seconds),
        temperature=max(0.0, temperature),
        max_tokens=max(32, max_tokens),
        tool_choice=tool_choice if tool_choice in _TOOL_CHOICES else "auto",
        parallel_tool_calls=profile.flag("parallel_tool_calls", True),
        profile_name=settings.agent_provider_profile,
        profile_enabled=enabled,
    )
