"""
Report Renderer
───────────────
Serializes one AnalysisReport into text, JSON or HTML. Rendering only formats
values already on the report; nothing is recomputed, so every format
generated from the same report instance agrees with the others.

  text: the console renderables (attest_cli.ui) captured without color
  json: report_to_dict(), stable key order, schema_version first
  html: self-contained page with tables plus the JSON payload embedded
"""

from __future__ import annotations

import html
import io
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence

from rich.console import Console

from attest_cli import __version__
from attest_cli.exceptions import RenderError
from attest_cli.models import AnalysisReport, ConfidenceTier, ScoredCommit
from attest_cli.ui import report_renderables

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"
FORMATS = ("text", "json", "html")
SUFFIXES = {"text": ".txt", "json": ".json", "html": ".html"}
DEFAULT_OUTPUT = Path("attest-report")
TEXT_WIDTH = 110


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _commit_to_dict(commit: ScoredCommit) -> dict:
    return {
        "hash": commit.hash,
        "timestamp": _iso(commit.timestamp),
        "author": commit.author_name,
        "subject": commit.subject,
        "score": commit.score,
        "tier": commit.tier.value,
        "model": commit.model,
        "indicators": [
            {
                "label": hit.label,
                "category": hit.category.value,
                "points": hit.points,
                "model_hint": hit.model_hint,
            }
            for hit in commit.indicators
        ],
        "bonuses": [{"name": b.name, "amount": b.amount} for b in commit.bonuses],
    }


def report_to_dict(report: AnalysisReport) -> dict:
    return {
        "schema_version": SCHEMA_VERSION,
        "since": _iso(report.since),
        "until": _iso(report.until),
        "total_commits": report.total_commits,
        "tier_counts": {tier.value: report.tier_counts.get(tier, 0) for tier in ConfidenceTier},
        "ai_assisted_percentage": report.ai_assisted_percentage,
        "average_score": report.average_score,
        "highest_score": report.highest_score,
        "top_n": report.top_n,
        "top_commits": [_commit_to_dict(c) for c in report.top_commits],
        "model_counts": dict(report.model_counts),
        "author_stats": [
            {
                "author": a.author,
                "commits": a.commits,
                "ai_assisted": a.ai_assisted,
                "average_score": a.average_score,
            }
            for a in report.author_stats
        ],
        "daily_activity": [
            {
                "day": d.day,
                "commits": d.commits,
                "ai_assisted": d.ai_assisted,
                "average_score": d.average_score,
            }
            for d in report.daily_activity
        ],
    }


_CSS = """
body { font-family: -apple-system, 'Segoe UI', Helvetica, Arial, sans-serif; margin: 2rem auto; max-width: 1100px; color: #1f2328; }
h1 { margin-bottom: 0.2rem; }
h2 { margin-top: 2rem; border-bottom: 1px solid #d0d7de; padding-bottom: 0.3rem; }
table { border-collapse: collapse; width: 100%; margin-top: 0.5rem; }
th, td { border: 1px solid #d0d7de; padding: 6px 10px; text-align: left; vertical-align: top; }
th { background: #f6f8fa; }
td.num { text-align: right; font-variant-numeric: tabular-nums; }
.muted { color: #656d76; }
.tier-Human { color: #1a7f37; }
.tier-PossibleAI { color: #9a6700; }
.tier-LikelyAI { color: #cf222e; }
.tier-HighConfidenceAI { color: #cf222e; font-weight: bold; }
ul.indicators { margin: 0; padding-left: 1.1rem; }
code { font-family: ui-monospace, SFMono-Regular, Menlo, monospace; }
""".strip()


def _e(value) -> str:
    return html.escape(str(value), quote=True)


def _table(headers: Sequence[str], rows: Iterable[Sequence[str]], numeric: Sequence[int] = ()) -> str:
    head = "".join(f"<th>{_e(h)}</th>" for h in headers)
    body = []
    for row in rows:
        cells = "".join(
            f'<td class="num">{cell}</td>' if i in numeric else f"<td>{cell}</td>"
            for i, cell in enumerate(row)
        )
        body.append(f"<tr>{cells}</tr>")
    if not body:
        body.append(f'<tr><td colspan="{len(headers)}" class="muted">None</td></tr>')
    return f"<table><thead><tr>{head}</tr></thead><tbody>{''.join(body)}</tbody></table>"


def _indicator_list(commit: dict) -> str:
    items = [
        f"<li>{_e(i['label'])} <span class=\"muted\">({_e(i['category'])}, +{i['points']:g})</span></li>"
        for i in commit["indicators"]
    ]
    items += [
        f"<li>bonus: {_e(b['name'])} <span class=\"muted\">(+{b['amount']:g})</span></li>"
        for b in commit["bonuses"]
    ]
    return f"<ul class=\"indicators\">{''.join(items)}</ul>" if items else '<span class="muted">none</span>'


def _render_html(data: dict) -> str:
    summary_rows = [
        ("Time range", f"{_e(data['since'] or '—')} → {_e(data['until'] or '—')}"),
        ("Total commits", _e(data["total_commits"])),
        ("AI-assisted", f"{data['ai_assisted_percentage']:.1f}%"),
        ("Average score", f"{data['average_score']:.2f}"),
        ("Highest score", f"{data['highest_score']:.2f}"),
    ]
    tier_rows = [(f'<span class="tier-{_e(t)}">{_e(t)}</span>', _e(n)) for t, n in data["tier_counts"].items()]
    top_rows = [
        (
            _e(rank),
            f"<code>{_e(c['hash'][:7])}</code>",
            _e(c["timestamp"]),
            _e(c["author"]),
            f"{c['score']:.2f}",
            f'<span class="tier-{_e(c["tier"])}">{_e(c["tier"])}</span>',
            _e(c["model"]),
            f"{_e(c['subject'])}{_indicator_list(c)}",
        )
        for rank, c in enumerate(data["top_commits"], start=1)
    ]
    model_rows = [(_e(m), _e(n)) for m, n in data["model_counts"].items()]
    author_rows = [
        (_e(a["author"]), _e(a["commits"]), _e(a["ai_assisted"]), f"{a['average_score']:.2f}")
        for a in data["author_stats"]
    ]
    day_rows = [
        (_e(d["day"]), _e(d["commits"]), _e(d["ai_assisted"]), f"{d['average_score']:.2f}")
        for d in data["daily_activity"]
    ]
    payload = json.dumps(data, ensure_ascii=False).replace("</", "<\\/")

    sections = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        "<title>Attest AI Attribution Report</title>",
        f"<style>{_CSS}</style>",
        "</head>",
        "<body>",
        "<h1>AI Attribution Report</h1>",
        f'<p class="muted">attest {_e(__version__)} · schema {_e(data["schema_version"])}</p>',
        "<h2>Summary</h2>",
        _table(("Metric", "Value"), summary_rows, numeric=(1,)),
        "<h2>Confidence Tiers</h2>",
        _table(("Tier", "Commits"), tier_rows, numeric=(1,)),
        f"<h2>Top {_e(data['top_n'])} Commits</h2>",
        _table(("#", "Commit", "Timestamp", "Author", "Score", "Tier", "Model", "Subject / Indicators"),
               top_rows, numeric=(0, 4)),
        "<h2>Attributed Models</h2>",
        _table(("Model", "Commits"), model_rows, numeric=(1,)),
        "<h2>Authors</h2>",
        _table(("Author", "Commits", "AI-assisted", "Average score"), author_rows, numeric=(1, 2, 3)),
        "<h2>Daily Activity</h2>",
        _table(("Day (UTC)", "Commits", "AI-assisted", "Average score"), day_rows, numeric=(1, 2, 3)),
        f'<script type="application/json" id="attest-data">{payload}</script>',
        "</body>",
        "</html>",
    ]
    return "\n".join(sections) + "\n"


@dataclass
class RenderOutcome:
    written: dict[str, Path] = field(default_factory=dict)
    errors: list[RenderError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ReportRenderer:
    def __init__(self, show_details: bool = False, width: int = TEXT_WIDTH):
        self.show_details = show_details
        self.width = width

    def render(self, report: AnalysisReport, fmt: str) -> str:
        if fmt == "text":
            return self._render_text(report)
        if fmt == "json":
            return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False) + "\n"
        if fmt == "html":
            return _render_html(report_to_dict(report))
        raise RenderError(fmt, f"unknown format (expected one of: {', '.join(FORMATS)})")

    def render_many(self, report: AnalysisReport, formats: Sequence[str]) -> dict[str, str]:
        return {fmt: self.render(report, fmt) for fmt in formats}

    def _render_text(self, report: AnalysisReport) -> str:
        buffer = io.StringIO()
        capture = Console(
            file=buffer,
            width=self.width,
            color_system=None,
            force_terminal=False,
            highlight=False,
            emoji=False,
            legacy_windows=False,
        )
        for renderable in report_renderables(report, self.show_details, with_colors=False):
            capture.print(renderable)
            capture.print()
        return buffer.getvalue()

    def write_reports(
        self,
        report: AnalysisReport,
        targets: dict[str, Path],
    ) -> RenderOutcome:
        """Write each format to its target. A failing format never stops the others."""
        outcome = RenderOutcome()
        for fmt, path in targets.items():
            try:
                content = self.render(report, fmt)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            except RenderError as e:
                outcome.errors.append(e)
                continue
            except OSError as e:
                logger.debug("Writing %s report to %s failed", fmt, path, exc_info=True)
                outcome.errors.append(RenderError(fmt, e.strerror or str(e), path=str(path)))
                continue
            logger.debug("Wrote %s report to %s", fmt, path)
            outcome.written[fmt] = path
        return outcome


def resolve_targets(formats: Sequence[str], output: Optional[Path]) -> dict[str, Optional[Path]]:
    """Map each format to a file path, or None for terminal/stdout output.

    With one format, `output` is used as-is. With several, its suffix is
    replaced per format. Without `output`, text goes to the terminal, JSON to
    stdout when it is the only format, and files default to attest-report.*.
    """
    if output is None:
        targets = {}
        for fmt in formats:
            if fmt == "text" or (fmt == "json" and len(formats) == 1):
                targets[fmt] = None
            else:
                targets[fmt] = DEFAULT_OUTPUT.with_suffix(SUFFIXES[fmt])
        return targets
    if len(formats) == 1:
        return {formats[0]: output}
    return {fmt: output.with_suffix(SUFFIXES[fmt]) for fmt in formats}
