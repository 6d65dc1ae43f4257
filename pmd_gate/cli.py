"""CLI entrypoint for pmd-gate."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from pmd_gate import __version__
from pmd_gate.analyzer import PmdAnalyzer, PmdResult, process_violations, with_processing_errors
from pmd_gate.config import (
    AppConfig,
    build_analyzer_config,
    build_collector,
    build_ruleset_selection,
    default_config_template,
    load_app_config,
)
from pmd_gate.engine import PmdError
from pmd_gate.output import render_human, render_json
from pmd_gate.rulesets import RulesetSelection, list_ruleset_info
from pmd_gate.violation import load_pmd_report

app = typer.Typer(
    name="pmd-gate",
    no_args_is_help=True,
    help="Run PMD as a quality gate and fail on unfiltered violations.",
)

PMD_FAILURE_EXIT_CODE = 3


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@app.command("check")
def check_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    source: Annotated[
        list[str] | None, typer.Option("--source", help="Source path to analyze.")
    ] = None,
    ruleset: Annotated[
        list[str] | None,
        typer.Option("--ruleset", help="Rule set key (e.g. design) or PMD reference."),
    ] = None,
    min_priority: Annotated[
        int | None, typer.Option("--min-priority", help="Ignore violations less severe than this.")
    ] = None,
    pmd: Annotated[str | None, typer.Option("--pmd", help="PMD executable.")] = None,
    threads: Annotated[int | None, typer.Option(help="PMD worker threads.")] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on_unused: Annotated[
        bool | None,
        typer.Option("--fail-on-unused/--no-fail-on-unused", help="Fail on unused filters."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Run PMD over the sources and fail if violations remain."""
    app_config = _load_config_or_raise(repo, config_file)
    _apply_overrides(
        app_config,
        source=source,
        ruleset=ruleset,
        min_priority=min_priority,
        pmd=pmd,
        threads=threads,
        fail_on_unused=fail_on_unused,
    )
    output_format = _resolve_format(format, app_config)
    app_config.sources = [str(_resolve_path(repo, item)) for item in app_config.sources]

    try:
        analyzer = PmdAnalyzer(
            build_analyzer_config(app_config),
            build_collector(app_config),
            build_ruleset_selection(app_config),
        )
        result = analyzer.analyze()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
    except PmdError as exc:
        typer.echo(f"PMD failed: {exc}", err=True)
        raise typer.Exit(code=PMD_FAILURE_EXIT_CODE) from exc

    _emit(result, output_format=output_format, input_source="pmd", rulesets=analyzer.rulesets)
    _exit_for(result, fail_on_unused=app_config.fail_on_unused)


@app.command("report")
def report_command(
    report_file: Annotated[
        Path, typer.Option("--report-file", help="Existing PMD JSON report to gate on.")
    ],
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    min_priority: Annotated[
        int | None, typer.Option("--min-priority", help="Ignore violations less severe than this.")
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on_unused: Annotated[
        bool | None,
        typer.Option("--fail-on-unused/--no-fail-on-unused", help="Fail on unused filters."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Gate on a PMD JSON report produced elsewhere."""
    app_config = _load_config_or_raise(repo, config_file)
    _apply_overrides(app_config, min_priority=min_priority, fail_on_unused=fail_on_unused)
    output_format = _resolve_format(format, app_config)

    try:
        report = load_pmd_report(report_file)
        collector = build_collector(app_config)
        rulesets = build_ruleset_selection(app_config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    result = with_processing_errors(process_violations(report.violations, collector), report)
    _emit(
        result,
        output_format=output_format,
        input_source=f"report_file:{report_file}",
        rulesets=rulesets,
    )
    _exit_for(result, fail_on_unused=app_config.fail_on_unused)


@app.command("rulesets")
def rulesets_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List predefined rule sets and whether they are selected."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    selected = set(_build_selection_or_raise(app_config).names())
    info = list_ruleset_info()

    if output_format == "json":
        payload = {
            "rulesets": [
                {
                    "key": item.key,
                    "name": item.name,
                    "description": item.description,
                    "selected": item.name in selected,
                }
                for item in info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Predefined rule sets:"]
    for item in info:
        status = "selected" if item.name in selected else "not selected"
        lines.append(f"- {item.key} ({item.name}) [{status}] - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    payload = app_config.to_dict()
    payload["selected_rulesets"] = _build_selection_or_raise(app_config).names()

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- sources: {payload['sources']}",
        f"- rulesets: {payload['selected_rulesets']}",
        f"- min_priority: {payload['min_priority']}",
        f"- fail_on_unused: {payload['fail_on_unused']}",
        f"- pmd.executable: {payload['pmd']['executable']}",
        f"- ignore filters: {len(payload['ignore'])}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".pmd-gate.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".pmd-gate.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report selected rule sets."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    selection = _build_selection_or_raise(app_config)
    try:
        collector = build_collector(app_config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc

    payload = {
        "ok": True,
        "source": app_config.source,
        "rulesets": selection.names(),
        "ignore_filters": len(collector.actions),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- rulesets: {payload['rulesets']}",
                f"- ignore_filters: {payload['ignore_filters']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_selection_or_raise(app_config: AppConfig) -> RulesetSelection:
    try:
        return build_ruleset_selection(app_config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rulesets") from exc


def _apply_overrides(
    app_config: AppConfig,
    *,
    source: list[str] | None = None,
    ruleset: list[str] | None = None,
    min_priority: int | None = None,
    pmd: str | None = None,
    threads: int | None = None,
    fail_on_unused: bool | None = None,
) -> None:
    if source:
        app_config.sources = list(source)
    if ruleset:
        app_config.rulesets = list(ruleset)
    if min_priority is not None:
        if not 1 <= min_priority <= 5:
            raise typer.BadParameter(
                "--min-priority must be between 1 and 5", param_hint="--min-priority"
            )
        app_config.min_priority = min_priority
    if pmd is not None:
        app_config.pmd.executable = pmd
    if threads is not None:
        if threads < 0:
            raise typer.BadParameter("--threads must be >= 0", param_hint="--threads")
        app_config.pmd.threads = threads
    if fail_on_unused is not None:
        app_config.fail_on_unused = fail_on_unused


def _resolve_format(value: str | None, app_config: AppConfig) -> str:
    output_format = (value or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    return output_format


def _resolve_path(repo: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else (repo.resolve() / path)


def _emit(
    result: PmdResult,
    *,
    output_format: str,
    input_source: str,
    rulesets: RulesetSelection,
) -> None:
    if output_format == "json":
        typer.echo(render_json(result, input_source=input_source, rulesets=rulesets.names()))
    else:
        typer.echo(render_human(result))


def _exit_for(result: PmdResult, *, fail_on_unused: bool) -> None:
    if not result.passed:
        raise typer.Exit(code=1)
    if fail_on_unused and result.unused_actions:
        raise typer.Exit(code=1)
