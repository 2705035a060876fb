"""Commit-record loading and validation.

Records reach the scorer only through validate_commits(); scoring assumes
every record has a non-empty unique hash, an author, a UTC timestamp and a
string message.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from attest_cli.exceptions import InputError
from attest_cli.models import CommitRecord, to_utc

logger = logging.getLogger(__name__)

_RELATIVE = re.compile(
    r"^(\d+)\s*(s|secs?|seconds?|m|mins?|minutes?|h|hrs?|hours?|d|days?|w|wks?|weeks?|months?|y|years?)(\s+ago)?$"
)
_UNIT_SECONDS = {
    "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 7 * 86400,
}
_METRIC_FIELDS = ("lines_added", "lines_removed", "files_changed")


def parse_time_expr(expr: str, now: Optional[datetime] = None, field: str = "since") -> datetime:
    """Parse an absolute or relative time expression into a UTC datetime.

    Accepts ISO-8601 dates/timestamps, "now", "today", "yesterday" and
    relative forms such as "2 weeks ago", "36 hours ago" or "3d".
    """
    now = to_utc(now or datetime.now(timezone.utc))
    text = (expr or "").strip().lower()
    if not text:
        raise InputError("Empty time expression", field=field)

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if text == "now":
        return now
    if text == "today":
        return midnight
    if text == "yesterday":
        return midnight - timedelta(days=1)

    m = _RELATIVE.match(text)
    if m:
        try:
            amount, unit = int(m.group(1)), m.group(2)
            if unit.startswith("mo"):
                return now - timedelta(days=30 * amount)
            if unit.startswith("y"):
                return now - timedelta(days=365 * amount)
            return now - timedelta(seconds=amount * _UNIT_SECONDS[unit[0]])
        except (OverflowError, ValueError):
            raise InputError(f"Time expression '{expr}' is out of range", field=field)

    try:
        return to_utc(datetime.fromisoformat(expr.strip()))
    except (OverflowError, ValueError):
        raise InputError(f"Unrecognized time expression '{expr}'", field=field)


def _parse_timestamp(value: Any, record: str) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise InputError(f"Timestamp {value!r} is out of range", record=record, field="timestamp")
    if isinstance(value, str) and value.strip():
        try:
            return to_utc(datetime.fromisoformat(value.strip()))
        except (OverflowError, ValueError):
            pass
    raise InputError(f"Invalid timestamp {value!r}", record=record, field="timestamp")


def _optional_metric(data: Mapping, name: str):
    value = data.get(name)
    # Malformed metrics are kept as-is; the clustering heuristic skips them.
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


def record_from_mapping(data: Mapping, index: int) -> CommitRecord:
    if not isinstance(data, Mapping):
        raise InputError(f"Commit entry must be an object, got {type(data).__name__}", record=f"#{index}")
    record = str(data.get("hash") or f"#{index}")
    for name in ("hash", "author_name", "timestamp", "message"):
        if name not in data or data[name] is None:
            raise InputError(f"Missing required field '{name}'", record=record, field=name)
    return CommitRecord(
        hash=str(data["hash"]).strip(),
        author_name=str(data["author_name"]),
        author_email=str(data.get("author_email") or ""),
        timestamp=_parse_timestamp(data["timestamp"], record),
        message=data["message"] if isinstance(data["message"], str) else str(data["message"]),
        **{name: _optional_metric(data, name) for name in _METRIC_FIELDS},
    )


def load_json_commits(path: Path) -> list[CommitRecord]:
    """Read commit records from a JSON file: a list, or {"commits": [...]}."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InputError(f"Cannot read commit file '{path}': {e.strerror or e}")
    except json.JSONDecodeError as e:
        raise InputError(f"Commit file '{path}' is not valid JSON: {e.msg} (line {e.lineno})")
    except UnicodeDecodeError as e:
        raise InputError(f"Commit file '{path}' is not valid UTF-8: {e.reason} at byte {e.start}")

    if isinstance(payload, Mapping):
        payload = payload.get("commits")
    if not isinstance(payload, list):
        raise InputError(f"Commit file '{path}' must contain a list of commits", field="commits")

    records = [record_from_mapping(entry, i) for i, entry in enumerate(payload)]
    logger.debug("Loaded %d commit records from %s", len(records), path)
    return records


def validate_commits(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Check required fields and hash uniqueness; normalize timestamps to UTC."""
    validated = []
    seen = {}
    for index, commit in enumerate(commits):
        if not isinstance(commit, CommitRecord):
            raise InputError(f"Expected a CommitRecord, got {type(commit).__name__}", record=f"#{index}")
        if not isinstance(commit.hash, str) or not commit.hash.strip():
            raise InputError("Commit hash must be a non-empty string", record=f"#{index}", field="hash")
        if commit.hash in seen:
            raise InputError(f"Duplicate commit hash (first seen at #{seen[commit.hash]})",
                             record=commit.hash, field="hash")
        seen[commit.hash] = index
        if not isinstance(commit.author_name, str) or not commit.author_name.strip():
            raise InputError("Author name is required", record=commit.hash, field="author_name")
        if not isinstance(commit.author_email, str):
            raise InputError("Author email must be a string", record=commit.hash, field="author_email")
        if not isinstance(commit.timestamp, datetime):
            raise InputError("Timestamp must be a datetime", record=commit.hash, field="timestamp")
        if not isinstance(commit.message, str):
            raise InputError("Message must be a string", record=commit.hash, field="message")

        if commit.timestamp.tzinfo is not timezone.utc:
            commit = replace(commit, timestamp=to_utc(commit.timestamp))
        validated.append(commit)
    return validated


def filter_by_range(
    commits: Iterable[CommitRecord],
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[CommitRecord]:
    return [
        c for c in commits
        if (since is None or c.timestamp >= since) and (until is None or c.timestamp <= until)
    ]


def newest(commits: Iterable[CommitRecord], count: int) -> list[CommitRecord]:
    """The `count` most recent commits, newest first, like `git log -n`."""
    return sorted(commits, key=lambda c: (c.timestamp, c.hash), reverse=True)[:count]
