"""Element id allocation that never collides with the caller's map snapshot."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Iterable

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_token(length: int = 6) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class ElementIdAllocator:
    """Per-turn registry of taken ids, seeded from the map-state snapshot."""

    def __init__(
        self,
        taken: Iterable[str] = (),
        *,
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self._taken: set[str] = set(taken)
        self._token_factory = token_factory

    def claim(self, preferred: str | None, *, prefix: str) -> str:
        """Keep `preferred` when it is free, otherwise mint `<prefix>_<token>`."""
        if isinstance(preferred, str):
            candidate = preferred.strip()
            if candidate and candidate not in self._taken:
                self._taken.add(candidate)
                return candidate
        while True:
            candidate = f"{prefix}_{self._token_factory()}"
            if candidate not in self._taken:
                self._taken.add(candidate)
                return candidate
