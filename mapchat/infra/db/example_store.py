"""Data layer: read-only store of bundled example maps (one JSON file per example)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mapchat.infra.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "No description available"


@dataclass(frozen=True)
class LoadStats:
    """Diagnostics collected while scanning the examples directory."""

    total_files: int
    loaded: int
    bad_files: int


def _meta_value(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value:
        return value
    meta = data.get("meta")
    if isinstance(meta, dict):
        return meta.get(key) or None
    return None


class ExampleStore:
    """Example map listing backed by `*.json` files in one directory."""

    def __init__(self, examples_dir: Path) -> None:
        self._examples_dir = examples_dir
        self._last_stats = LoadStats(total_files=0, loaded=0, bad_files=0)

    @property
    def examples_dir(self) -> Path:
        return self._examples_dir

    def list_examples(self) -> list[dict[str, Any]]:
        """Read every example from disk; files that fail to parse are skipped."""
        if not self._examples_dir.is_dir():
            self._last_stats = LoadStats(total_files=0, loaded=0, bad_files=0)
            return []

        files = sorted(path for path in self._examples_dir.iterdir() if path.suffix == ".json")
        rows: list[dict[str, Any]] = []
        bad_files = 0
        for path in files:
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                bad_files += 1
                logger.warning("examples.skip file=%s error=%s", path.name, exc)
                continue
            if not isinstance(data, dict):
                bad_files += 1
                logger.warning("examples.skip file=%s error=not a JSON object", path.name)
                continue
            thumbnail = _meta_value(data, "thumbnail")
            rows.append(
                {
                    "id": path.stem,
                    "title": str(_meta_value(data, "title") or path.stem),
                    "description": str(_meta_value(data, "description") or DEFAULT_DESCRIPTION),
                    "thumbnail": thumbnail if isinstance(thumbnail, str) else None,
                    "data": data,
                }
            )
        self._last_stats = LoadStats(total_files=len(files), loaded=len(rows), bad_files=bad_files)
        return rows

    def health(self) -> dict[str, Any]:
        return {
            "examples_dir": str(self._examples_dir),
            "exists": self._examples_dir.is_dir(),
            "total_files": self._last_stats.total_files,
            "loaded": self._last_stats.loaded,
            "bad_files": self._last_stats.bad_files,
        }
