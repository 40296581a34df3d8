"""Unit tests for provider profile resolution."""

from __future__ import annotations

from pathlib import Path

from mapchat.agent.llm.llm_config import resolve_llm_config
from mapchat.core.config import Settings

PROFILES = """
profiles:
  default:
    base_url: https://profile.test/v1
    model: profile-model
    timeout_seconds: 20
    temperature: 0.1
    max_tokens: 2048
  serial:
    llm:
      model: serial-model
      parallel_tool_calls: false
      tool_choice: required
  local:
    enabled: false
    model: local-model
"""


def _settings(tmp_path: Path, **overrides) -> Settings:
    profile_file = tmp_path / "profiles.yaml"
    profile_file.write_text(PROFILES, encoding="utf-8")
    return Settings(llm_api_key="key", agent_provider_profiles_file=profile_file, **overrides)


def test_profile_values_fill_unset_settings(tmp_path: Path) -> None:
    config = resolve_llm_config(_settings(tmp_path))
    assert config.base_url == "https://profile.test/v1"
    assert config.model == "profile-model"
    assert config.timeout_seconds == 20.0
    assert config.max_tokens == 2048
    assert config.enabled is True


def test_explicit_settings_win_over_profile(tmp_path: Path) -> None:
    config = resolve_llm_config(_settings(tmp_path, llm_model="env-model"))
    assert config.model == "env-model"
    assert config.base_url == "https://profile.test/v1"


def test_nested_llm_block_is_merged(tmp_path: Path) -> None:
    config = resolve_llm_config(_settings(tmp_path, agent_provider_profile="serial"))
    assert config.model == "serial-model"
    assert config.parallel_tool_calls is False
    assert config.tool_choice == "required"
    assert config.profile_name == "serial"


def test_disabled_profile_drops_key(tmp_path: Path) -> None:
    config = resolve_llm_config(_settings(tmp_path, agent_provider_profile="local"))
    assert config.profile_enabled is False
    assert config.api_key == ""
    assert config.enabled is False


def test_unknown_profile_falls_back_to_default(tmp_path: Path) -> None:
    config = resolve_llm_config(_settings(tmp_path, agent_provider_profile="nope"))
    assert config.model == "profile-model"


def test_missing_profile_file_uses_settings(tmp_path: Path) -> None:
    settings = Settings(llm_api_key="key", agent_provider_profiles_file=tmp_path / "missing.yaml")
    config = resolve_llm_config(settings)
    assert config.model == Settings().llm_model
    assert config.base_url == Settings().llm_base_url
    assert config.enabled is True
