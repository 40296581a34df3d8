"""Iteration ceiling for the model tool-loop."""

from __future__ import annotations


class LoopGuard:
    """Count tool dispatch rounds so a model that keeps calling tools still stops.

    The model is called once up front and once after every round, so a turn
    makes at most `max_iterations + 1` model calls and the results of the last
    round are still reported back. Tool calls in the final model reply are not
    run. A ceiling below one is raised to one.
    """

    def __init__(self, max_iterations: int) -> None:
        self._ceiling = max(1, max_iterations)
        self._taken = 0

    def next(self) -> int:
        """Claim the next iteration number (1-based)."""
        if self.exhausted:
            raise RuntimeError("max_steps_reached")
        self._taken += 1
        return self._taken

    @property
    def step(self) -> int:
        return self._taken

    @property
    def remaining(self) -> int:
        return self._ceiling - self._taken

    @property
    def exhausted(self) -> bool:
        return self._taken >= self._ceiling
