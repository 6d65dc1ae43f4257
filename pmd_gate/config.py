"""Configuration loading for pmd-gate."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pmd_gate.analyzer import AnalyzerConfig
from pmd_gate.collector import ViolationCollector, ignore
from pmd_gate.rulesets import RulesetSelection, resolve_ruleset
from pmd_gate.violation import RulePriority

CONFIG_FILENAMES = (".pmd-gate.toml", "pmd-gate.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("pmd_gate", "pmd-gate")


@dataclass(slots=True)
class PmdConfig:
    """PMD process settings."""

    executable: str = "pmd"
    threads: int = 0
    timeout_seconds: int = 600
    aux_classpath: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "executable": self.executable,
            "threads": self.threads,
            "timeout_seconds": self.timeout_seconds,
            "aux_classpath": self.aux_classpath,
        }


@dataclass(slots=True)
class IgnoreConfig:
    """One ``[[ignore]]`` table."""

    rules: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"rules": list(self.rules), "locations": list(self.locations), "reason": self.reason}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    sources: list[str] = field(default_factory=list)
    rulesets: list[str] = field(default_factory=list)
    min_priority: int = int(RulePriority.LOW)
    fail_on_unused: bool = False
    pmd: PmdConfig = field(default_factory=PmdConfig)
    ignores: list[IgnoreConfig] = field(default_factory=list)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "sources": list(self.sources),
            "rulesets": list(self.rulesets),
            "min_priority": self.min_priority,
            "fail_on_unused": self.fail_on_unused,
            "pmd": self.pmd.to_dict(),
            "ignore": [item.to_dict() for item in self.ignores],
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def build_collector(app_config: AppConfig) -> ViolationCollector:
    """Build the violation collector described by ``app_config``."""
    collector = ViolationCollector(min_priority=_as_priority(app_config.min_priority, "min_priority"))
    for item in app_config.ignores:
        action = ignore(*item.rules, at=item.locations)
        collector = collector.because(item.reason, action) if item.reason else collector.just(action)
    return collector


def build_ruleset_selection(app_config: AppConfig) -> RulesetSelection:
    return RulesetSelection().with_rulesets(*(resolve_ruleset(name) for name in app_config.rulesets))


def build_analyzer_config(app_config: AppConfig) -> AnalyzerConfig:
    return AnalyzerConfig(
        sources=tuple(app_config.sources),
        executable=app_config.pmd.executable,
        threads=app_config.pmd.threads,
        timeout_seconds=app_config.pmd.timeout_seconds,
        aux_classpath=app_config.pmd.aux_classpath,
    )


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'sources = ["src/main/java"]',
            'rulesets = ["bestpractices", "errorprone", "design"]',
            "min_priority = 3",
            "fail_on_unused = false",
            "",
            "[pmd]",
            'executable = "pmd"',
            "threads = 0",
            "timeout_seconds = 600",
            '# aux_classpath = "target/classes"',
            "",
            "[[ignore]]",
            'reason = "generated code"',
            'locations = ["**/generated/**"]',
            "",
            "[[ignore]]",
            'reason = "logging through System.out is intended in the CLI"',
            'rules = ["SystemPrintln"]',
            'locations = ["src/main/java/com/example/cli/**"]',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    pmd_mapping = _as_table(mapping.get("pmd"), "pmd")

    raw_format = mapping.get("format", "human")
    format_value = str(raw_format).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    rulesets = _as_str_list(mapping.get("rulesets"), "rulesets")
    for name in rulesets:
        if not name.strip():
            raise ValueError("rulesets must not contain empty names")

    return AppConfig(
        format=format_value,
        sources=_as_str_list(mapping.get("sources"), "sources"),
        rulesets=rulesets,
        min_priority=_as_priority(mapping.get("min_priority", int(RulePriority.LOW)), "min_priority"),
        fail_on_unused=_as_bool(mapping.get("fail_on_unused", False), "fail_on_unused"),
        pmd=_parse_pmd_config(pmd_mapping),
        ignores=_parse_ignore_list(mapping.get("ignore")),
        source=source,
    )


def _parse_pmd_config(value: dict[str, Any]) -> PmdConfig:
    threads = _as_int(value.get("threads", 0), "pmd.threads")
    if threads < 0:
        raise ValueError("pmd.threads must be >= 0")
    timeout = _as_int(value.get("timeout_seconds", 600), "pmd.timeout_seconds")
    if timeout <= 0:
        raise ValueError("pmd.timeout_seconds must be > 0")
    aux_classpath = value.get("aux_classpath")
    return PmdConfig(
        executable=_as_str(value.get("executable", "pmd"), "pmd.executable"),
        threads=threads,
        timeout_seconds=timeout,
        aux_classpath=(
            _as_str(aux_classpath, "pmd.aux_classpath") if aux_classpath is not None else None
        ),
    )


def _parse_ignore_list(value: Any) -> list[IgnoreConfig]:
    items = _as_table_list(value, "ignore")
    parsed: list[IgnoreConfig] = []
    for item in items:
        rules = _as_str_list(item.get("rules"), "ignore.rules")
        locations = _as_str_list(item.get("locations"), "ignore.locations")
        if not rules and not locations:
            raise ValueError("ignore entries need at least one of rules or locations")
        parsed.append(
            IgnoreConfig(
                rules=rules,
                locations=locations,
                reason=_as_str(item.get("reason", ""), "ignore.reason"),
            )
        )
    return parsed


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_priority(raw: Any, field_name: str) -> int:
    value = _as_int(raw, field_name)
    try:
        return int(RulePriority(value))
    except ValueError as exc:
        raise ValueError(f"{field_name} must be between 1 and 5") from exc


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
