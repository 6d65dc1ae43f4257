"""Tests for config loading and runtime object construction."""

from __future__ import annotations

from pathlib import Path

import pytest

from pmd_gate.collector import ACCEPT, BELOW_MIN_PRIORITY
from pmd_gate.config import (
    AppConfig,
    IgnoreConfig,
    build_analyzer_config,
    build_collector,
    build_ruleset_selection,
    default_config_template,
    load_app_config,
)
from pmd_gate.rulesets import DESIGN, ERROR_PRONE
from pmd_gate.violation import Violation


def test_load_app_config_prefers_dot_file_over_pyproject(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(["[tool.pmd_gate]", 'format = "human"', "min_priority = 1"]),
        encoding="utf-8",
    )
    (repo / ".pmd-gate.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                'sources = ["src/main/java"]',
                'rulesets = ["design", "errorprone"]',
                "min_priority = 3",
                "fail_on_unused = true",
                "",
                "[pmd]",
                'executable = "/opt/pmd/bin/pmd"',
                "threads = 2",
                "",
                "[[ignore]]",
                'reason = "generated"',
                'locations = ["**/generated/**"]',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.format == "json"
    assert config.sources == ["src/main/java"]
    assert config.rulesets == ["design", "errorprone"]
    assert config.min_priority == 3
    assert config.fail_on_unused is True
    assert config.pmd.executable == "/opt/pmd/bin/pmd"
    assert config.pmd.threads == 2
    assert config.pmd.timeout_seconds == 600
    assert len(config.ignores) == 1
    assert config.ignores[0].reason == "generated"
    assert config.source == str(repo / ".pmd-gate.toml")


def test_load_app_config_reads_pyproject_hyphenated_key(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(['[tool."pmd-gate"]', 'rulesets = ["security"]']),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.rulesets == ["security"]
    assert config.source == str(repo / "pyproject.toml")


def test_load_app_config_defaults_without_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)
    assert config == AppConfig()


def test_load_app_config_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Config file does not exist"):
        load_app_config(tmp_path, config_path=Path("nope.toml"))


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("min_priority = 9", "min_priority must be between 1 and 5"),
        ('min_priority = "high"', "min_priority must be an integer"),
        ("fail_on_unused = 1", "fail_on_unused must be a boolean"),
        ('rulesets = "design"', "rulesets must be a list of strings"),
        ('rulesets = [" "]', "rulesets must not contain empty names"),
        ("[pmd]\nthreads = -1", "pmd.threads must be >= 0"),
        ("[pmd]\ntimeout_seconds = 0", "pmd.timeout_seconds must be > 0"),
        ('[[ignore]]\nreason = "nothing"', "at least one of rules or locations"),
        ("ignore = 3", "ignore must be a list of tables"),
        ("format = [", "Invalid TOML"),
    ],
)
def test_load_app_config_rejects_invalid_values(tmp_path: Path, body: str, message: str) -> None:
    (tmp_path / ".pmd-gate.toml").write_text(body, encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_app_config(tmp_path)


def test_build_collector_applies_priority_and_ignores() -> None:
    config = AppConfig(min_priority=2)
    config.ignores = [
        IgnoreConfig(rules=["SystemPrintln"], locations=["**/cli/**"], reason="cli output"),
        IgnoreConfig(rules=["GodClass"]),
    ]

    collector = build_collector(config)

    assert collector.min_priority == 2
    assert [action.reason for action in collector.actions] == ["cli output", ""]
    assert collector.classify(_violation("SystemPrintln", 1, "src/cli/Main.java")).reason == (
        "cli output"
    )
    assert collector.classify(_violation("SystemPrintln", 1, "src/core/Main.java")) == ACCEPT
    assert collector.classify(_violation("Anything", 3, "src/A.java")) == BELOW_MIN_PRIORITY


def test_build_ruleset_selection_resolves_short_keys() -> None:
    selection = build_ruleset_selection(
        AppConfig(rulesets=["design", "ErrorProne", "config/custom.xml", "design"])
    )
    assert selection.names() == [DESIGN.name, ERROR_PRONE.name, "config/custom.xml"]


def test_build_analyzer_config_copies_pmd_settings() -> None:
    config = AppConfig(sources=["src"])
    config.pmd.threads = 3
    config.pmd.aux_classpath = "lib/*"

    analyzer_config = build_analyzer_config(config)

    assert analyzer_config.sources == ("src",)
    assert analyzer_config.threads == 3
    assert analyzer_config.aux_classpath == "lib/*"


def test_default_config_template_round_trips(tmp_path: Path) -> None:
    (tmp_path / ".pmd-gate.toml").write_text(default_config_template(), encoding="utf-8")
    config = load_app_config(tmp_path)
    assert config.rulesets == ["bestpractices", "errorprone", "design"]
    assert len(build_collector(config).actions) == 2


def _violation(rule: str, priority: int, filename: str) -> Violation:
    return Violation(rule=rule, priority=priority, filename=filename)
