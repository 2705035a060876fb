"""Shared fixtures for attest tests."""

import json

import pytest

from attest_cli.config import AnalysisConfig
from attest_cli.detectors.catalog import build_catalog
from attest_cli.detectors.scoring import CommitScorer
from tests.helpers import make_commit


@pytest.fixture
def default_catalog():
    return build_catalog()


@pytest.fixture
def scorer(default_catalog):
    return CommitScorer(default_catalog, AnalysisConfig())


@pytest.fixture
def tool_catalog():
    """Small fixed catalog where copilot is declared before claude."""
    return build_catalog([
        {"pattern": "copilot", "category": "tool_mention", "model_hint": "GitHub Copilot"},
        {"pattern": "claude", "category": "tool_mention", "model_hint": "Claude AI"},
        {"pattern": "comprehensive error handling", "category": "high_confidence"},
        {"pattern": "edge cases", "category": "technical_marker"},
    ])


@pytest.fixture
def sample_commits():
    return [
        make_commit("c0", "fix typo", minutes=0),
        make_commit("c1", "feat(auth): add JWT validation with comprehensive error handling", minutes=30),
        make_commit(
            "c2",
            "refactor(core): restructure pipeline\n\n"
            "This commit introduces a production-ready implementation with robust error handling.\n"
            "- Added type hints\n- Covered edge cases\n- Improved test coverage\n\n"
            "Co-authored-by: Claude <noreply@anthropic.com>",
            minutes=60,
            author="Sam Roe",
            email="sam@example.com",
        ),
        make_commit("c3", "Update README", minutes=24 * 60, author="Sam Roe", email="sam@example.com"),
        make_commit("c4", "chore: bump deps, suggested by copilot", minutes=48 * 60),
    ]


@pytest.fixture
def commits_file(tmp_path, sample_commits):
    payload = [
        {
            "hash": c.hash,
            "author_name": c.author_name,
            "author_email": c.author_email,
            "timestamp": c.timestamp.isoformat(),
            "message": c.message,
        }
        for c in sample_commits
    ]
    path = tmp_path / "commits.json"
    path.write_text(json.dumps(payload))
    return path

