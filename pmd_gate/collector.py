"""Violation collector: decides which PMD violations fail the gate."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, replace
from pathlib import PurePath
from typing import Literal

from pmd_gate.counter import UsageCounter
from pmd_gate.violation import RulePriority, Violation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Action:
    """Verdict a collector returns for one violation."""

    kind: Literal["accept", "ignore"]
    reason: str = ""
    rules: tuple[str, ...] = ()
    locations: tuple[str, ...] = ()

    @property
    def accepts(self) -> bool:
        return self.kind == "accept"

    def describe(self) -> str:
        rules = ", ".join(self.rules) if self.rules else "all rules"
        text = f"{self.kind} {rules}"
        if self.locations:
            text += f" in {', '.join(self.locations)}"
        if self.reason:
            text += f" ({self.reason})"
        return text


ACCEPT = Action(kind="accept")
BELOW_MIN_PRIORITY = Action(kind="ignore", reason="below minimum priority")


def ignore(*rules: str, at: tuple[str, ...] | list[str] = (), reason: str = "") -> Action:
    """Build an ignore action for ``rules`` (all rules when empty) at ``at`` locations."""
    return Action(kind="ignore", reason=reason, rules=tuple(rules), locations=tuple(at))


class ViolationCollector:
    """Classifies violations against a minimum priority and registered ignore actions."""

    def __init__(
        self,
        min_priority: int = RulePriority.LOW,
        actions: tuple[Action, ...] = (),
    ) -> None:
        self.min_priority = int(min_priority)
        self.actions = tuple(actions)

    def because(self, reason: str, *actions: Action) -> ViolationCollector:
        """Return a collector that also applies ``actions``, tagged with ``reason``."""
        tagged = tuple(replace(action, reason=reason) for action in actions)
        return ViolationCollector(self.min_priority, self.actions + tagged)

    def just(self, *actions: Action) -> ViolationCollector:
        return ViolationCollector(self.min_priority, self.actions + tuple(actions))

    def with_min_priority(self, priority: int) -> ViolationCollector:
        return ViolationCollector(priority, self.actions)

    def classify(self, violation: Violation) -> Action:
        """Return the action that applies to ``violation``.

        Violations less severe than ``min_priority`` are ignored outright.
        Otherwise the most specific matching registered action wins, the
        earliest registered one on ties, and unmatched violations are accepted.
        """
        if violation.priority > self.min_priority:
            return BELOW_MIN_PRIORITY

        best: Action | None = None
        best_quality = 0
        for action in self.actions:
            quality = _match_quality(action, violation)
            if quality > best_quality:
                best = action
                best_quality = quality
        return best if best is not None else ACCEPT

    def unused_actions(self, counter: UsageCounter) -> frozenset[Action]:
        return counter.unused(self.actions)

    def report_unused(self, counter: UsageCounter) -> frozenset[Action]:
        """Log a warning listing registered actions that matched nothing."""
        unused = self.unused_actions(counter)
        if unused:
            ordered = [action for action in dict.fromkeys(self.actions) if action in unused]
            lines = "\n".join(f"  - {action.describe()}" for action in ordered)
            logger.warning("%d unused violation filter(s):\n%s", len(ordered), lines)
        return unused


def _match_quality(action: Action, violation: Violation) -> int:
    if action.rules:
        if violation.rule not in action.rules:
            return 0
        rule_score = 2
    else:
        rule_score = 1

    if action.locations:
        if not any(_location_matches(pattern, violation.filename) for pattern in action.locations):
            return 0
        location_score = 2
    else:
        location_score = 1
    return rule_score + location_score


def _location_matches(pattern: str, filename: str) -> bool:
    path = PurePath(filename.replace("\\", "/"))
    # a leading "**/" also matches zero directories
    patterns = [pattern]
    if pattern.startswith("**/"):
        patterns.append(pattern[3:])
    normalized = path.as_posix()
    if any(fnmatch.fnmatch(normalized, candidate) for candidate in patterns):
        return True
    # allow relative patterns against absolute report paths
    parts = path.parts
    for start in range(1, len(parts)):
        tail = "/".join(parts[start:])
        if any(fnmatch.fnmatch(tail, candidate) for candidate in patterns):
            return True
    return path.stem == pattern
