import json
import logging
from contextlib import nullcontext
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from attest_cli import __version__
from attest_cli.aggregate import aggregate
from attest_cli.config import load_config
from attest_cli.detectors.scoring import CommitScorer, score_commits
from attest_cli.exceptions import AttestError, ConfigurationError, InputError
from attest_cli.git_client import get_commits, get_repo
from attest_cli.loader import filter_by_range, load_json_commits, newest, parse_time_expr, validate_commits
from attest_cli.render import FORMATS, ReportRenderer, resolve_targets
from attest_cli.ui import console, display_report, err_console, print_banner

logger = logging.getLogger(__name__)

app = typer.Typer(help="Attest AI-Assistance Attribution CLI", add_completion=False)


class OutputFormat(str, Enum):
    text = "text"
    json = "json"
    html = "html"
    all = "all"


def _configure_logging(verbose: bool, quiet: bool):
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=verbose)],
        force=True,
    )


def _fail(error: AttestError):
    err_console.print(f"[bold red]{error.category}[/bold red]: {escape(str(error))}", highlight=False)
    raise typer.Exit(error.exit_code)


def _load_records(path: str, input_file: Optional[Path], since, until, max_count: Optional[int]):
    if input_file is not None:
        records = load_json_commits(input_file)
        records = validate_commits(records)
        records = filter_by_range(records, since, until)
        return newest(records, max_count) if max_count else records

    repo = get_repo(path)
    return validate_commits(get_commits(repo, since=since, until=until, max_count=max_count))


@app.command(name="analyze")
def analyze_cmd(
    path: str = typer.Option(".", help="Path to the Git repository"),
    input_file: Optional[Path] = typer.Option(None, "--input", "-i", help="Read commit records from a JSON file instead of git"),
    since: Optional[str] = typer.Option(None, help="Only commits after this time ('2 weeks ago', 'yesterday', ISO date)"),
    until: Optional[str] = typer.Option(None, help="Only commits before this time"),
    top: Optional[int] = typer.Option(None, "--top", "-n", min=1, help="Number of top commits to report [default: 10]"),
    fmt: OutputFormat = typer.Option(OutputFormat.text, "--format", "-f", help="Output format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (suffix replaced per format with --format all)"),
    show_details: bool = typer.Option(False, "--show-details", help="Show the indicator breakdown for each top commit"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (TOML)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Parallel scoring workers"),
    max_count: Optional[int] = typer.Option(None, "--max-count", min=1, help="Maximum number of commits to read"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors and requested output"),
):
    """Score commits for AI-assistance likelihood and render a repository report."""
    _configure_logging(verbose, quiet)

    try:
        settings = load_config(config, top_n=top, workers=workers)
        catalog = settings.build_catalog()
    except ConfigurationError as e:
        _fail(e)

    formats = list(FORMATS) if fmt is OutputFormat.all else [fmt.value]
    targets = resolve_targets(formats, output)
    to_console = "text" in targets and targets["text"] is None

    try:
        since_dt = parse_time_expr(since, field="since") if since else None
        until_dt = parse_time_expr(until, field="until") if until else None
        records = _load_records(path, input_file, since_dt, until_dt, max_count)
    except InputError as e:
        _fail(e)

    if to_console and not quiet and console.is_terminal:
        print_banner()

    scorer = CommitScorer(catalog, settings)
    with console.status("[cyan]Scoring commits...", spinner="dots") if to_console and not quiet else nullcontext():
        scored = score_commits(records, scorer, workers=settings.workers)
    report = aggregate(scored, since=since_dt, until=until_dt, top_n=settings.top_n)
    logger.debug("Aggregated %d commits (%.1f%% AI-assisted)", report.total_commits, report.ai_assisted_percentage)

    renderer = ReportRenderer(show_details=show_details)
    if to_console:
        display_report(report, show_details=show_details)
    if "json" in targets and targets["json"] is None:
        typer.echo(renderer.render(report, "json"), nl=False)

    outcome = renderer.write_reports(report, {f: p for f, p in targets.items() if p is not None})
    if not quiet:
        for written_fmt, written_path in outcome.written.items():
            err_console.print(f"[green]✔[/green] Wrote {written_fmt} report to [bold]{escape(str(written_path))}[/bold]")
    for error in outcome.errors:
        err_console.print(f"[bold red]{error.category}[/bold red]: {escape(str(error))}", highlight=False)
    if not outcome.ok:
        raise typer.Exit(2)


@app.command(name="catalog")
def catalog_cmd(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (TOML)"),
    export_json: bool = typer.Option(False, "--json", help="Export the catalog as JSON"),
):
    """List the active indicator catalog in declaration order."""
    _configure_logging(False, False)
    try:
        catalog = load_config(config).build_catalog()
    except ConfigurationError as e:
        _fail(e)

    if export_json:
        entries = [
            {
                "label": i.label,
                "pattern": i.pattern,
                "category": i.category.value,
                "value": i.value,
                "regex": i.regex,
                "model_hint": i.model_hint,
            }
            for i in catalog
        ]
        typer.echo(json.dumps(entries, indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Indicator Catalog ({len(catalog)} entries)", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Category", width=22)
    table.add_column("Indicator")
    table.add_column("Points", justify="right")
    table.add_column("Model Hint")
    for position, indicator in enumerate(catalog):
        table.add_row(
            str(position),
            indicator.category.value,
            escape(indicator.label),
            f"{indicator.value:g}",
            escape(indicator.model_hint or "—"),
        )
    console.print(table)


@app.command(name="version")
def version_cmd():
    """Print the attest version."""
    typer.echo(f"attest {__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
