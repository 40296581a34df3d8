"""Unit tests for the loop iteration ceiling."""

from __future__ import annotations

import pytest

from mapchat.agent.runtime.loop_guard import LoopGuard


def test_guard_counts_steps_until_exhausted() -> None:
    guard = LoopGuard(2)
    assert guard.remaining == 2
    assert guard.next() == 1
    assert guard.next() == 2
    assert guard.exhausted
    assert guard.remaining == 0
    with pytest.raises(RuntimeError, match="max_steps_reached"):
        guard.next()


def test_guard_allows_at_least_one_step() -> None:
    guard = LoopGuard(0)
    assert not guard.exhausted
    assert guard.next() == 1
    assert guard.exhausted
