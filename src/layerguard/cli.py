"""layerguard CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from layerguard import __version__

if TYPE_CHECKING:
    from layerguard.infrastructure.config import ArchitectureConfig
    from layerguard.remediation.engine import RemediationReport

_PROJECT_OPTION = click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .layerguard/config.yml under the project root).",
)


@click.group()
@click.version_option(version=__version__, prog_name="layerguard")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """layerguard - layered architecture checker with guarded remediation."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)


def _load(project: Path | None, config_path: Path | None) -> ArchitectureConfig:
    """Load the config or exit 2."""
    from layerguard.infrastructure.config import ConfigError, load_config

    try:
        return load_config(project or Path.cwd(), config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


# -- check ------------------------------------------------------------------


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@_PROJECT_OPTION
@_CONFIG_OPTION
def check(*, fmt: str | None, project: Path | None, config_path: Path | None) -> None:
    """Check the project against its layering rules.

    Exit codes: 0 = pass or warnings only, 1 = at least one HIGH
    violation, 2 = configuration or discovery error.
    """
    from layerguard.graph.analyzer import analyze
    from layerguard.graph.report import Verdict
    from layerguard.infrastructure.discovery import DiscoveryError
    from layerguard.render import format_json, format_porcelain, format_rich

    config = _load(project, config_path)

    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    try:
        result = analyze(config)
    except DiscoveryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": format_rich,
        "json": format_json,
        "porcelain": format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if result.verdict is Verdict.FAIL:
        sys.exit(1)


# -- fix --------------------------------------------------------------------


def _print_fix_report(report: RemediationReport) -> None:
    from rich.console import Console
    from rich.table import Table

    from layerguard.remediation.fixes import fix_kind

    console = Console()
    table = Table(title=f"Fixes ({report.mode.value})", box=None, padding=(0, 1))
    table.add_column("state", style="cyan")
    table.add_column("kind")
    table.add_column("file")
    table.add_column("detail")

    styles = {
        "applied": "green",
        "safety_checked": "green",
        "rejected": "yellow",
        "failed": "red",
    }
    for record in report.records:
        state = record.state.value
        detail = record.reason or record.fix.description
        if record.introduced:
            detail += ": " + "; ".join(v.message for v in record.introduced)
        table.add_row(
            f"[{styles.get(state, 'white')}]{state}[/]",
            fix_kind(record.fix),
            str(record.fix.path),
            detail,
        )
    console.print(table)

    if report.bundle is not None:
        console.print(f"Backup: {report.bundle.path}")
    if report.aborted:
        console.print(f"[red]Aborted:[/] {report.error}")
    if report.post_high is not None:
        console.print(f"HIGH violations: {report.pre_high} -> {report.post_high}")
    if report.rolled_back:
        console.print("[red]Regression detected, changes rolled back.[/]")


@main.command()
@click.option(
    "--dry-run",
    "mode",
    flag_value="dry-run",
    default="dry-run",
    help="Report what would change (default).",
)
@click.option("--apply", "mode", flag_value="apply", help="Write accepted fixes.")
@click.option(
    "--force",
    "mode",
    flag_value="force",
    help="Write accepted fixes and let created files overwrite existing ones.",
)
@click.option(
    "--no-reanalyze",
    is_flag=True,
    default=False,
    help="Skip the post-fix analysis and regression rollback.",
)
@_PROJECT_OPTION
@_CONFIG_OPTION
def fix(
    *,
    mode: str,
    no_reanalyze: bool,
    project: Path | None,
    config_path: Path | None,
) -> None:
    """Propose and apply safe fixes for architecture violations.

    Every fix is simulated first; a fix that would introduce a new
    violation is rejected in every mode.  Exit code 2 when the batch was
    aborted because the backup could not be written.
    """
    from layerguard.graph.analyzer import analyze
    from layerguard.infrastructure.discovery import DiscoveryError
    from layerguard.remediation.engine import RemediationEngine
    from layerguard.remediation.fixes import FixMode

    config = _load(project, config_path)
    engine = RemediationEngine(config, reanalyze=not no_reanalyze)

    try:
        baseline = analyze(config)
        fixes = engine.propose(baseline.violations)
        if not fixes:
            click.echo("No fixes to propose.")
            return
        report = engine.run(fixes, FixMode(mode), baseline=baseline)
    except DiscoveryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    _print_fix_report(report)
    if report.aborted:
        sys.exit(2)


# -- rollback ---------------------------------------------------------------


@main.command()
@click.option(
    "--bundle",
    "bundle_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Bundle to restore (default: the newest one).",
)
@_PROJECT_OPTION
@_CONFIG_OPTION
def rollback(*, bundle_path: Path | None, project: Path | None, config_path: Path | None) -> None:
    """Restore files from a backup bundle."""
    from layerguard.infrastructure.backup import BackupFailure
    from layerguard.remediation.engine import RemediationEngine

    config = _load(project, config_path)
    engine = RemediationEngine(config)
    try:
        result = engine.rollback(bundle_path)
    except BackupFailure as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    for path in result.restored:
        click.echo(f"restored {path}")
    for path in result.removed:
        click.echo(f"removed  {path}")
    for path, message in result.failed:
        click.echo(f"failed   {path}: {message}", err=True)
    if not result.ok:
        sys.exit(1)


# -- graph ------------------------------------------------------------------


@main.command()
@_PROJECT_OPTION
@_CONFIG_OPTION
def graph(*, project: Path | None, config_path: Path | None) -> None:
    """Print module -> module value dependencies."""
    from layerguard.graph.analyzer import analyze
    from layerguard.graph.cycles import module_adjacency
    from layerguard.infrastructure.discovery import DiscoveryError

    config = _load(project, config_path)
    try:
        result = analyze(config)
    except DiscoveryError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    adj = module_adjacency(result.graph.edges)
    if not adj:
        click.echo("No module dependencies.")
        return
    for src in sorted(adj):
        for dst in sorted(adj[src]):
            click.echo(f"{src} -> {dst}")
