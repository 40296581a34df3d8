"""Context assembly for map chat turns."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mapchat.protocol.messages import ChatRequest

ID_GUIDANCE = (
    'When adding elements, generate unique IDs like "pin_1", "area_1", etc. '
    "Check the current map state to avoid duplicate IDs."
)


@dataclass(frozen=True)
class BuiltContext:
    """Prepared prompt payload for provider adapter."""

    instructions: str
    history: list[dict[str, Any]]
    pending: list[dict[str, Any]]


class ContextBuilder:
    """Build model instructions and messages from the caller's conversation."""

    def __init__(self, *, prompt_root: Path, base_prompt_file: str = "system_base.md") -> None:
        self._prompt_root = prompt_root
        self._base_prompt_file = base_prompt_file
        self._prompt_cache: dict[str, str] = {}

    def build(self, request: ChatRequest) -> BuiltContext:
        base_prompt = self._load_prompt(self._base_prompt_file)
        instructions = "\n\n".join(
            (
                base_prompt.strip(),
                f"CURRENT MAP STATE:\n{request.map_state}",
                ID_GUIDANCE,
            )
        )
        history = [{"role": message.role, "content": message.content} for message in request.prior_messages]
        pending = [{"role": "user", "content": request.latest_message.content}]
        return BuiltContext(instructions=instructions, history=history, pending=pending)

    def _load_prompt(self, filename: str) -> str:
        if filename in self._prompt_cache:
            return self._prompt_cache[filename]
        path = self._prompt_root / filename
        if not path.exists():
            content = ""
        else:
            content = path.read_text(encoding="utf-8")
        self._prompt_cache[filename] = content
        return content
