"""Tests for reading PMD JSON reports."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pmd_gate.violation import RulePriority, load_pmd_report, parse_pmd_report


def test_parse_pmd_report_reads_violations_and_errors() -> None:
    report = parse_pmd_report(
        {
            "pmdVersion": "7.2.0",
            "files": [
                {
                    "filename": "src/A.java",
                    "violations": [
                        {
                            "beginline": 3,
                            "begincolumn": 8,
                            "endline": 5,
                            "endcolumn": 2,
                            "description": "  Avoid really long methods.\n",
                            "rule": "ExcessiveMethodLength",
                            "ruleset": "Design",
                            "priority": 3,
                            "externalInfoUrl": "https://docs.pmd-code.org/rules/design",
                        },
                        {"rule": "GodClass", "priority": 1},
                    ],
                },
                {"filename": "src/B.java", "violations": []},
            ],
            "suppressedViolations": [{"rule": "X"}],
            "processingErrors": [{"filename": "src/C.java", "message": "ParseException"}],
            "configurationErrors": [{"rule": "Broken", "message": "missing property"}],
        }
    )

    assert report.pmd_version == "7.2.0"
    assert report.suppressed == 1
    assert [v.rule for v in report.violations] == ["ExcessiveMethodLength", "GodClass"]
    first = report.violations[0]
    assert first.filename == "src/A.java"
    assert first.description == "Avoid really long methods."
    assert (first.begin_line, first.begin_column, first.end_line, first.end_column) == (3, 8, 5, 2)
    assert first.rule_set == "Design"
    assert first.external_info_url.startswith("https://")
    assert report.processing_errors == ("src/C.java: ParseException",)
    assert report.configuration_errors == ("Broken: missing property",)


def test_parse_pmd_report_fills_defaults() -> None:
    report = parse_pmd_report({"files": [{"filename": "X.java", "violations": [{}]}]})
    violation = report.violations[0]
    assert violation.rule == "unknown"
    assert violation.priority == RulePriority.MEDIUM
    assert violation.location == "X.java:1:1"
    assert report.pmd_version is None


def test_parse_pmd_report_accepts_empty_report() -> None:
    report = parse_pmd_report({})
    assert report.violations == ()
    assert report.processing_errors == ()


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ([], "must be a JSON object"),
        ({"files": {}}, "'files' must be a list"),
        ({"files": ["x"]}, "file entries must be objects"),
        ({"files": [{"filename": "A.java", "violations": [{"priority": "high"}]}]}, "priority"),
        ({"files": [{"filename": "A.java", "violations": [{"priority": True}]}]}, "priority"),
    ],
)
def test_parse_pmd_report_rejects_malformed_reports(payload: object, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        parse_pmd_report(payload)


def test_load_pmd_report_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "pmd.json"
    path.write_text(
        json.dumps({"files": [{"filename": "A.java", "violations": [{"rule": "R"}]}]}),
        encoding="utf-8",
    )
    assert load_pmd_report(path).violations[0].rule == "R"


def test_load_pmd_report_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "pmd.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_pmd_report(path)


def test_load_pmd_report_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Cannot read PMD report"):
        load_pmd_report(tmp_path / "missing.json")
