from __future__ import annotations

from typing import Optional

import plotille
import pyfiglet
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from attest_cli.models import AnalysisReport, ConfidenceTier, ScoredCommit

console = Console()
err_console = Console(stderr=True)

TIER_STYLES = {
    ConfidenceTier.HUMAN: "green",
    ConfidenceTier.POSSIBLE_AI: "yellow",
    ConfidenceTier.LIKELY_AI: "red",
    ConfidenceTier.HIGH_CONFIDENCE_AI: "bold red",
}


def print_banner():
    ascii_banner = pyfiglet.figlet_format("ATTEST", font="slant")
    console.print(f"[bold magenta]{ascii_banner}[/bold magenta]", highlight=False)
    console.print("[dim]" + "─" * 80 + "[/dim]\n")


def _fmt_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "—"


def format_score(score: float, tier: ConfidenceTier) -> str:
    color = TIER_STYLES[tier]
    return f"[{color}]{score:.2f} ({tier.value})[/{color}]"


def format_indicators(commit: ScoredCommit) -> str:
    if not commit.indicators and not commit.bonuses:
        return "[dim]No indicators matched[/dim]"

    formatted = []
    for hit in commit.indicators:
        bullet = "[bold red]•[/bold red]" if hit.points >= 5 else "[yellow]•[/yellow]"
        formatted.append(f"{bullet} {escape(hit.label)} [dim]({hit.category.value}, +{hit.points:g})[/dim]")
    for bonus in commit.bonuses:
        formatted.append(f"[cyan]+[/cyan] {bonus.name} [dim](+{bonus.amount:g})[/dim]")
    return "\n".join(formatted)


def build_verdict_panel(report: AnalysisReport) -> Panel:
    """Bold summary panel, driven by the report's precomputed percentage."""
    pct = report.ai_assisted_percentage
    if report.total_commits == 0:
        verdict_icon, verdict_label, verdict_color = "⚪", "NO COMMITS IN RANGE", "bold white"
        risk_msg = "Nothing to analyze for the selected time range."
    elif pct >= 50.0:
        verdict_icon, verdict_label, verdict_color = "🔴", "LIKELY AI-ASSISTED", "bold red"
        risk_msg = "High AI dependency detected. Manual code review strongly recommended."
    elif pct >= 20.0:
        verdict_icon, verdict_label, verdict_color = "🟡", "MIXED — PARTIALLY AI-ASSISTED", "bold yellow"
        risk_msg = "Moderate AI usage signals. Some commits warrant closer human review."
    else:
        verdict_icon, verdict_label, verdict_color = "🟢", "LIKELY HUMAN-WRITTEN", "bold green"
        risk_msg = "Low AI usage signals detected across the analyzed commits."

    summary_text = (
        f"[{verdict_color}]{verdict_icon}  VERDICT: {verdict_label}[/{verdict_color}]\n\n"
        f"  Time Range          : {_fmt_time(report.since)} → {_fmt_time(report.until)}\n"
        f"  Commits Analyzed    : {report.total_commits}\n"
        f"  AI-Assisted         : [{verdict_color}]{pct:.1f}%[/{verdict_color}]"
        f" ({report.ai_assisted_commits} commits)\n"
        f"  Average Score       : {report.average_score:.2f}\n"
        f"  Highest Score       : {report.highest_score:.2f}\n\n"
        f"  [dim]{risk_msg}[/dim]"
    )
    return Panel(
        summary_text,
        title="[bold]Analysis Complete[/bold]",
        border_style=verdict_color.replace("bold ", ""),
        expand=False,
        padding=(1, 4),
    )


def build_tier_table(report: AnalysisReport) -> Table:
    table = Table(title="Confidence Tiers", show_header=True, header_style="bold cyan")
    table.add_column("Tier", width=20)
    table.add_column("Commits", justify="right")
    for tier in ConfidenceTier:
        color = TIER_STYLES[tier]
        table.add_row(f"[{color}]{tier.value}[/{color}]", str(report.tier_counts.get(tier, 0)))
    return table


def build_top_table(report: AnalysisReport, show_details: bool = False) -> Table:
    table = Table(title=f"Top {report.top_n} Commits by AI Score", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=3)
    table.add_column("Commit", style="dim", width=9)
    table.add_column("Author", width=18)
    table.add_column("AI Score", justify="center", width=24)
    table.add_column("Model", width=16)
    table.add_column("Indicators" if show_details else "Subject")
    for rank, commit in enumerate(report.top_commits, start=1):
        last = format_indicators(commit) if show_details else escape(commit.subject)
        table.add_row(
            str(rank),
            commit.short_hash,
            escape(commit.author_name),
            format_score(commit.score, commit.tier),
            escape(commit.model),
            last,
        )
    return table


def build_model_table(report: AnalysisReport) -> Table:
    table = Table(title="Attributed Models", show_header=True, header_style="bold cyan")
    table.add_column("Model", width=24)
    table.add_column("Commits", justify="right")
    for model, count in report.model_counts.items():
        table.add_row(escape(model), str(count))
    return table


def build_author_table(report: AnalysisReport) -> Table:
    table = Table(title="Author Leaderboard", show_header=True, header_style="bold cyan")
    table.add_column("Rank", style="dim", width=6)
    table.add_column("Author", width=25)
    table.add_column("Commits Analyzed", justify="center")
    table.add_column("Average AI Score", justify="center")
    table.add_column("AI-Assisted Commits", justify="center", style="red")
    for i, stats in enumerate(report.author_stats):
        avg = stats.average_score
        if avg >= 7.0:
            avg_str = f"[bold red]{avg:.2f}[/bold red]"
        elif avg >= 3.0:
            avg_str = f"[yellow]{avg:.2f}[/yellow]"
        else:
            avg_str = f"[green]{avg:.2f}[/green]"
        ai = str(stats.ai_assisted) if stats.ai_assisted > 0 else "[dim]0[/dim]"
        table.add_row(str(i + 1), escape(stats.author), str(stats.commits), avg_str, ai)
    return table


def build_trend_chart(report: AnalysisReport, with_colors: bool = True) -> Optional[str]:
    """Daily average score as a plotille line chart; None with fewer than 3 days."""
    days = report.daily_activity
    if len(days) < 3:
        return None

    scores = [d.average_score for d in days]
    x_data = list(range(1, len(scores) + 1))

    fig = plotille.Figure()
    fig.width = 60
    fig.height = 15
    fig.with_colors = with_colors
    fig.set_x_limits(min_=1, max_=len(scores))
    fig.set_y_limits(min_=0.0, max_=max(max(scores), 1.0))
    fig.y_label = "Avg Score"
    fig.x_label = f"Days ({days[0].day} -> {days[-1].day})"

    pct = report.ai_assisted_percentage
    plot_color = "green" if pct < 20.0 else "yellow" if pct < 50.0 else "red"
    fig.plot(x_data, scores, lc=plot_color)
    return fig.show()


def report_renderables(report: AnalysisReport, show_details: bool = False, with_colors: bool = True) -> list:
    renderables = [build_verdict_panel(report), build_tier_table(report)]
    if report.top_commits:
        renderables.append(build_top_table(report, show_details))
    if report.model_counts:
        renderables.append(build_model_table(report))
    if report.author_stats:
        renderables.append(build_author_table(report))
    chart = build_trend_chart(report, with_colors=with_colors)
    if chart:
        renderables.append(Group(
            Text("AI Score Trend by Day (High = AI, Low = Human)", style="bold cyan"),
            Text.from_ansi(chart),
        ))
    return renderables


def display_report(report: AnalysisReport, show_details: bool = False):
    for renderable in report_renderables(report, show_details):
        console.print()
        console.print(renderable)
    console.print()
