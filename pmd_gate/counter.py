"""Per-action usage counting for collector decisions."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Protocol


class _CountedAction(Protocol):
    @property
    def accepts(self) -> bool: ...

    def describe(self) -> str: ...


class UsageCounter:
    """Counts how often each action was returned by a collector during one run."""

    def __init__(self) -> None:
        self._counts: Counter[_CountedAction] = Counter()

    def record(self, action: _CountedAction) -> bool:
        """Count one use of ``action`` and return whether it accepts the violation."""
        self._counts[action] += 1
        return action.accepts

    def count(self, action: _CountedAction) -> int:
        return self._counts[action]

    def unused(self, known_actions: Iterable[_CountedAction]) -> frozenset[_CountedAction]:
        """Return the actions from ``known_actions`` that were never recorded."""
        return frozenset(action for action in known_actions if self._counts[action] == 0)

    def items(self) -> list[tuple[_CountedAction, int]]:
        return list(self._counts.items())
