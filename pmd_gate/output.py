"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from pmd_gate import __version__
from pmd_gate.analyzer import PmdResult
from pmd_gate.collector import Action
from pmd_gate.violation import Violation

_PRIORITY_COLORS = {1: "red", 2: "red", 3: "yellow", 4: "cyan", 5: "cyan"}


def render_human(result: PmdResult) -> str:
    """Render a compact colorized summary."""
    if result.passed:
        lines = [click.style("PMD gate: passed", fg="green", bold=True)]
    else:
        lines = [
            click.style(
                f"PMD gate: {len(result.violations)} violation(s)",
                fg="red",
                bold=True,
            )
        ]
        for violation in result.violations:
            tag = click.style(
                f"[P{violation.priority}]",
                fg=_PRIORITY_COLORS.get(violation.priority, "white"),
            )
            lines.append(
                f"{tag} {violation.rule} {violation.location} {violation.description}".rstrip()
            )

    if result.unused_actions:
        lines.append(click.style("Unused ignore filters:", fg="yellow", bold=True))
        for description in _describe_actions(result.unused_actions):
            lines.append(f"- {description}")

    if result.processing_errors:
        lines.append(click.style("Processing errors:", fg="yellow", bold=True))
        for message in result.processing_errors:
            lines.append(f"- {message}")
    return "\n".join(lines)


def render_json(
    result: PmdResult,
    *,
    input_source: str,
    rulesets: list[str],
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(result, input_source=input_source, rulesets=rulesets)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    result: PmdResult,
    *,
    input_source: str,
    rulesets: list[str],
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    return {
        "passed": result.passed,
        "violations": [_serialize_violation(item) for item in result.violations],
        "unused_actions": [
            _serialize_action(item)
            for item in sorted(result.unused_actions, key=lambda action: action.describe())
        ],
        "processing_errors": list(result.processing_errors),
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "input_source": input_source,
            "rulesets": list(rulesets),
            "version": __version__,
        },
    }


def _serialize_violation(violation: Violation) -> dict[str, Any]:
    return {
        "rule": violation.rule,
        "rule_set": violation.rule_set,
        "priority": violation.priority,
        "filename": violation.filename,
        "begin_line": violation.begin_line,
        "begin_column": violation.begin_column,
        "end_line": violation.end_line,
        "end_column": violation.end_column,
        "description": violation.description,
        "external_info_url": violation.external_info_url,
    }


def _serialize_action(action: Action) -> dict[str, Any]:
    return {
        "kind": action.kind,
        "reason": action.reason,
        "rules": list(action.rules),
        "locations": list(action.locations),
    }


def _describe_actions(actions: frozenset[Action]) -> list[str]:
    return sorted(action.describe() for action in actions)
