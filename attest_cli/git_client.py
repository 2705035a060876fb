import logging
from datetime import datetime
from typing import Optional

import git

from attest_cli.exceptions import InputError
from attest_cli.models import CommitRecord, to_utc

logger = logging.getLogger(__name__)


def get_repo(path: str = "."):
    try:
        return git.Repo(path, search_parent_directories=True)
    except git.exc.NoSuchPathError:
        raise InputError(f"Path '{path}' does not exist.", field="path")
    except git.exc.InvalidGitRepositoryError:
        raise InputError(f"'{path}' is not a valid Git repository.", field="path")


def _commit_stats(commit: git.Commit):
    try:
        total = commit.stats.total
        return total.get("insertions"), total.get("deletions"), total.get("files")
    except (ValueError, git.exc.GitCommandError):
        # Shallow clones lose the parent tree at the boundary commit
        logger.debug("No diff stats for %s", commit.hexsha[:7])
        return None, None, None


def to_record(commit: git.Commit, with_stats: bool = True) -> CommitRecord:
    added, removed, files = _commit_stats(commit) if with_stats else (None, None, None)
    return CommitRecord(
        hash=commit.hexsha,
        author_name=commit.author.name or "",
        author_email=commit.author.email or "",
        timestamp=to_utc(commit.committed_datetime),
        message=commit.message,
        lines_added=added,
        lines_removed=removed,
        files_changed=files,
    )


def get_commits(
    repo: git.Repo,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    max_count: Optional[int] = None,
    with_stats: bool = True,
) -> list[CommitRecord]:
    kwargs = {}
    if since is not None:
        kwargs["since"] = since.isoformat()
    if until is not None:
        kwargs["until"] = until.isoformat()
    if max_count:
        kwargs["max_count"] = max_count
    try:
        commits = list(repo.iter_commits(**kwargs))
    except ValueError:
        # ValueError implies no commits on the reference (like 'main' doesn't exist yet)
        return []
    except git.exc.GitCommandError as e:
        raise InputError(f"git log failed: {e.stderr.strip() if e.stderr else e}")

    logger.debug("Read %d commits from %s", len(commits), repo.working_dir)
    return [to_record(c, with_stats) for c in commits]
