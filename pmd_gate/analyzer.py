"""Run PMD and turn its violations into a gate result."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from pmd_gate.collector import Action, ViolationCollector
from pmd_gate.counter import UsageCounter
from pmd_gate.engine import PmdRequest, run_pmd
from pmd_gate.rulesets import Ruleset, RulesetSelection
from pmd_gate.violation import PmdReport, Violation

logger = logging.getLogger(__name__)


class AnalyzerError(ValueError):
    """Raised when the analyzer is not configured well enough to run."""


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    """Source paths and PMD process settings."""

    sources: tuple[str, ...] = ()
    executable: str = "pmd"
    threads: int = 0
    timeout_seconds: int = 600
    aux_classpath: str | None = None


@dataclass(frozen=True, slots=True)
class PmdResult:
    """Accepted violations, sorted, plus filters that matched nothing."""

    violations: tuple[Violation, ...] = ()
    unused_actions: frozenset[Action] = field(default_factory=frozenset)
    processing_errors: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.violations


def violation_sort_key(violation: Violation) -> tuple[int, str]:
    return (violation.priority, violation.rule)


def process_violations(
    violations: Iterable[Violation] | None,
    collector: ViolationCollector | None,
) -> PmdResult:
    """Classify, count and sort ``violations`` with ``collector``.

    Only accepted violations are kept. They are ordered by priority, most
    severe first, then by rule name. Registered collector actions that
    matched no violation are returned as unused and logged.
    """
    if collector is None:
        return PmdResult()

    counter = UsageCounter()
    accepted: list[Violation] = []
    for violation in violations or ():
        if counter.record(collector.classify(violation)):
            accepted.append(violation)

    accepted.sort(key=violation_sort_key)
    for action, uses in counter.items():
        logger.debug("%s: %d violation(s)", action.describe(), uses)
    unused = collector.report_unused(counter)
    return PmdResult(violations=tuple(accepted), unused_actions=unused)


class PmdAnalyzer:
    """Configures a PMD run and post-processes its report."""

    def __init__(
        self,
        config: AnalyzerConfig,
        collector: ViolationCollector,
        rulesets: RulesetSelection | None = None,
        runner: Callable[[PmdRequest], PmdReport] = run_pmd,
    ) -> None:
        self.config = config
        self.collector = collector
        self.rulesets = rulesets if rulesets is not None else RulesetSelection()
        self._runner = runner

    def with_rulesets(self, *rulesets: Ruleset) -> PmdAnalyzer:
        return PmdAnalyzer(
            self.config,
            self.collector,
            self.rulesets.with_rulesets(*rulesets),
            self._runner,
        )

    def without_rulesets(self, *rulesets: Ruleset) -> PmdAnalyzer:
        return PmdAnalyzer(
            self.config,
            self.collector,
            self.rulesets.without_rulesets(*rulesets),
            self._runner,
        )

    def analyze(self) -> PmdResult:
        """Run PMD over the configured sources and return the filtered result."""
        if self.rulesets.is_empty():
            raise AnalyzerError(
                "No rulesets defined. Use with_rulesets() to define some; "
                "see pmd_gate.rulesets for predefined rule sets."
            )
        if not self.config.sources:
            raise AnalyzerError("No source paths defined.")

        report = self._runner(
            PmdRequest(
                sources=self.config.sources,
                rulesets=tuple(self.rulesets.names()),
                executable=self.config.executable,
                threads=self.config.threads,
                timeout_seconds=self.config.timeout_seconds,
                aux_classpath=self.config.aux_classpath,
            )
        )
        return with_processing_errors(
            process_violations(report.violations, self.collector),
            report,
        )


def with_processing_errors(result: PmdResult, report: PmdReport) -> PmdResult:
    return PmdResult(
        violations=result.violations,
        unused_actions=result.unused_actions,
        processing_errors=report.processing_errors + report.configuration_errors,
    )
