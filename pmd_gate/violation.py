"""Violation model and PMD JSON report reader."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any


class RulePriority(IntEnum):
    """PMD rule priorities. Lower value means higher severity."""

    HIGH = 1
    MEDIUM_HIGH = 2
    MEDIUM = 3
    MEDIUM_LOW = 4
    LOW = 5


@dataclass(frozen=True, slots=True)
class Violation:
    """A single rule violation reported by PMD."""

    rule: str
    priority: int
    filename: str
    begin_line: int = 1
    begin_column: int = 1
    end_line: int = 1
    end_column: int = 1
    description: str = ""
    rule_set: str = ""
    external_info_url: str = ""

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.begin_line}:{self.begin_column}"


@dataclass(frozen=True, slots=True)
class PmdReport:
    """Violations and diagnostics read from one PMD report."""

    violations: tuple[Violation, ...] = ()
    processing_errors: tuple[str, ...] = ()
    configuration_errors: tuple[str, ...] = ()
    pmd_version: str | None = None
    suppressed: int = 0


def load_pmd_report(path: Path) -> PmdReport:
    """Read and parse a PMD JSON report file."""
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in PMD report {path}: {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read PMD report {path}: {exc}") from exc
    return parse_pmd_report(loaded)


def parse_pmd_report(data: Any) -> PmdReport:
    """Convert a decoded PMD JSON report into a ``PmdReport``."""
    if not isinstance(data, dict):
        raise ValueError("PMD report must be a JSON object")

    files = data.get("files", [])
    if not isinstance(files, list):
        raise ValueError("PMD report 'files' must be a list")

    violations: list[Violation] = []
    for file_entry in files:
        if not isinstance(file_entry, dict):
            raise ValueError("PMD report file entries must be objects")
        filename = str(file_entry.get("filename", "<unknown>"))
        raw_violations = file_entry.get("violations", [])
        if not isinstance(raw_violations, list):
            raise ValueError(f"PMD report violations for {filename} must be a list")
        for raw in raw_violations:
            violations.append(_parse_violation(raw, filename))

    pmd_version = data.get("pmdVersion")
    return PmdReport(
        violations=tuple(violations),
        processing_errors=_parse_errors(data.get("processingErrors")),
        configuration_errors=_parse_errors(data.get("configurationErrors")),
        pmd_version=str(pmd_version) if pmd_version is not None else None,
        suppressed=len(data.get("suppressedViolations") or []),
    )


def _parse_violation(raw: Any, filename: str) -> Violation:
    if not isinstance(raw, dict):
        raise ValueError(f"PMD report violation in {filename} must be an object")
    begin_line = _as_int(raw.get("beginline", 1), "beginline")
    begin_column = _as_int(raw.get("begincolumn", 1), "begincolumn")
    return Violation(
        rule=str(raw.get("rule", "unknown")),
        priority=_as_int(raw.get("priority", int(RulePriority.MEDIUM)), "priority"),
        filename=filename,
        begin_line=begin_line,
        begin_column=begin_column,
        end_line=_as_int(raw.get("endline", begin_line), "endline"),
        end_column=_as_int(raw.get("endcolumn", begin_column), "endcolumn"),
        description=str(raw.get("description", "")).strip(),
        rule_set=str(raw.get("ruleset", "")),
        external_info_url=str(raw.get("externalInfoUrl", "")),
    )


def _parse_errors(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if not isinstance(value, list):
        raise ValueError("PMD report error lists must be lists")
    messages: list[str] = []
    for item in value:
        if isinstance(item, dict):
            where = item.get("filename") or item.get("rule") or "<unknown>"
            message = item.get("message") or item.get("detail") or "error"
            messages.append(f"{where}: {message}")
        else:
            messages.append(str(item))
    return tuple(messages)


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"PMD report field '{field_name}' must be an integer")
    return raw
