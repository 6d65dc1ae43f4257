"""PMD subprocess runner."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from subprocess import TimeoutExpired, run

from pmd_gate.violation import PmdReport, load_pmd_report

logger = logging.getLogger(__name__)

REPORT_FILENAME = "pmd-report.json"

# 4: violations found, 5: recoverable processing errors
_OK_EXIT_CODES = frozenset({0, 4, 5})


class PmdError(RuntimeError):
    """Raised when the PMD process cannot be run or fails."""


@dataclass(frozen=True, slots=True)
class PmdRequest:
    """Everything needed for one PMD invocation."""

    sources: tuple[str, ...]
    rulesets: tuple[str, ...]
    executable: str = "pmd"
    threads: int = 0
    timeout_seconds: int = 600
    aux_classpath: str | None = None


def build_pmd_command(request: PmdRequest, report_file: Path) -> list[str]:
    """Return the PMD command line writing a JSON report to ``report_file``."""
    command = [
        request.executable,
        "check",
        "--dir",
        ",".join(request.sources),
        "--rulesets",
        ",".join(request.rulesets),
        "--format",
        "json",
        "--report-file",
        str(report_file),
        "--threads",
        str(request.threads),
        "--no-progress",
        "--no-cache",
    ]
    if request.aux_classpath:
        command.extend(["--aux-classpath", request.aux_classpath])
    return command


def run_pmd(request: PmdRequest) -> PmdReport:
    """Run PMD and return the parsed report."""
    with tempfile.TemporaryDirectory(prefix="pmd-gate-") as tmpdir:
        report_file = Path(tmpdir) / REPORT_FILENAME
        command = build_pmd_command(request, report_file)
        logger.debug("Running %s", " ".join(command))
        try:
            completed = run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=request.timeout_seconds,
            )
        except FileNotFoundError as exc:
            raise PmdError(f"PMD executable not found: {request.executable}") from exc
        except TimeoutExpired as exc:
            raise PmdError(f"PMD timed out after {request.timeout_seconds}s") from exc

        if completed.returncode not in _OK_EXIT_CODES:
            stderr = (completed.stderr or "").strip()
            raise PmdError(stderr or f"PMD exited with status {completed.returncode}")

        if not report_file.exists():
            raise PmdError(f"PMD did not write a report to {report_file}")

        try:
            report = load_pmd_report(report_file)
        except ValueError as exc:
            raise PmdError(str(exc)) from exc

    for message in report.processing_errors:
        logger.warning("PMD processing error: %s", message)
    for message in report.configuration_errors:
        logger.warning("PMD configuration error: %s", message)
    logger.debug("PMD reported %d violation(s)", len(report.violations))
    return report
