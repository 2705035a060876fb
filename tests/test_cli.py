"""End-to-end tests for the attest command line."""

import json

import git
import pytest
from typer.testing import CliRunner

from attest_cli import __version__
from attest_cli.detectors.catalog import DEFAULT_INDICATORS
from attest_cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _analyze(*args):
    return runner.invoke(app, ["analyze", *args])


class TestAnalyzeJsonInput:
    def test_json_to_stdout(self, commits_file):
        result = _analyze("--input", str(commits_file), "--format", "json", "-q")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_commits"] == 5
        assert data["ai_assisted_percentage"] == 40.0
        assert data["top_commits"][0]["hash"] == "c2"

    def test_top_and_workers(self, commits_file):
        result = _analyze("--input", str(commits_file), "-f", "json", "-q", "--top", "2", "--workers", "3")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["top_n"] == 2
        assert [c["hash"] for c in data["top_commits"]] == ["c2", "c1"]

    def test_since_filters_records(self, commits_file):
        result = _analyze("--input", str(commits_file), "-f", "json", "-q", "--since", "2025-10-08")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_commits"] == 2
        assert data["since"] == "2025-10-08T00:00:00+00:00"

    def test_empty_range_still_reports(self, commits_file):
        result = _analyze("--input", str(commits_file), "-f", "json", "-q", "--since", "2030-01-01")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_commits"] == 0
        assert data["top_commits"] == []

    def test_max_count_keeps_newest(self, commits_file):
        result = _analyze("--input", str(commits_file), "-f", "json", "-q", "--max-count", "2")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_commits"] == 2
        assert [c["hash"] for c in data["top_commits"]] == ["c4", "c3"]

    def test_text_report(self, commits_file):
        result = _analyze("--input", str(commits_file))

        assert result.exit_code == 0, result.output
        assert "Analysis Complete" in result.output
        assert "Confidence Tiers" in result.output

    def test_all_formats_to_files(self, commits_file, tmp_path):
        result = _analyze("--input", str(commits_file), "--format", "all", "--output", str(tmp_path / "out" / "report"))

        assert result.exit_code == 0, result.output
        for suffix in (".txt", ".json", ".html"):
            assert (tmp_path / "out" / f"report{suffix}").exists()
        assert json.loads((tmp_path / "out" / "report.json").read_text())["total_commits"] == 5

    def test_project_config_applies(self, commits_file, isolated_cwd):
        (isolated_cwd / "attest.toml").write_text("[thresholds]\npossible_ai = 1.0\nlikely_ai = 4.0\nhigh_confidence_ai = 30.0\n")
        result = _analyze("--input", str(commits_file), "-f", "json", "-q")

        assert result.exit_code == 0, result.output
        tiers = json.loads(result.stdout)["tier_counts"]
        assert tiers == {"Human": 2, "PossibleAI": 0, "LikelyAI": 3, "HighConfidenceAI": 0}


class TestExitCodes:
    def test_malformed_input_exits_1(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps([{"hash": "x", "author_name": "J", "timestamp": "2025-10-07", "message": "a"},
                                   {"hash": "x", "author_name": "J", "timestamp": "2025-10-07", "message": "b"}]))
        result = _analyze("--input", str(bad), "-f", "json")

        assert result.exit_code == 1
        assert "InputError" in result.output
        assert "Duplicate commit hash" in result.output

    def test_bad_time_expression_exits_1(self, commits_file):
        result = _analyze("--input", str(commits_file), "--until", "whenever")
        assert result.exit_code == 1
        assert "InputError" in result.output

    def test_bad_config_exits_1(self, commits_file, tmp_path):
        config = tmp_path / "bad.toml"
        config.write_text("[thresholds]\npossible_ai = 9.0\nlikely_ai = 7.0\n")
        result = _analyze("--input", str(commits_file), "--config", str(config))

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_write_failure_exits_2(self, commits_file, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = _analyze("--input", str(commits_file), "-f", "json", "-o", str(blocker / "report.json"))

        assert result.exit_code == 2
        assert "RenderError" in result.output

    @pytest.mark.parametrize("args", [
        ("--since", "999999999 years ago"),
        ("--until", "9" * 5000 + " days ago"),
    ])
    def test_out_of_range_time_exits_1(self, commits_file, args):
        result = _analyze("--input", str(commits_file), *args)
        assert result.exit_code == 1
        assert "InputError" in result.output
        assert "Traceback" not in result.output

    def test_undecodable_file_exits_1(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_bytes(b"[\xff]")
        result = _analyze("--input", str(bad), "-f", "json")

        assert result.exit_code == 1
        assert "InputError" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)

    def test_timestamp_overflow_exits_1(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('[{"hash": "abc", "author_name": "J", "timestamp": 1e20, "message": "x"}]')
        result = _analyze("--input", str(bad), "-f", "json")

        assert result.exit_code == 1
        assert "InputError" in result.output

    def test_not_a_repository_exits_1(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        result = _analyze("--path", str(plain), "-f", "json", "-q")
        assert result.exit_code == 1


class TestAnalyzeGitRepository:
    def test_reads_history(self, tmp_path):
        repo = git.Repo.init(tmp_path / "repo")
        author = git.Actor("Jane Doe", "jane@example.com")
        for name, message in [("a.txt", "Initial commit"),
                              ("b.txt", "feat: add b with comprehensive error handling\n\nCo-authored-by: Claude")]:
            (tmp_path / "repo" / name).write_text("hello\n")
            repo.index.add([name])
            repo.index.commit(message, author=author, committer=author)

        result = _analyze("--path", str(tmp_path / "repo"), "-f", "json", "-q")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_commits"] == 2
        assert data["top_commits"][0]["model"] == "Claude AI"
        assert data["tier_counts"]["HighConfidenceAI"] == 1


class TestOtherCommands:
    def test_catalog_json(self):
        result = runner.invoke(app, ["catalog", "--json"])

        assert result.exit_code == 0, result.output
        entries = json.loads(result.stdout)
        assert len(entries) == len(DEFAULT_INDICATORS)
        assert entries[0]["category"] == "high_confidence"

    def test_catalog_table(self):
        result = runner.invoke(app, ["catalog"])
        assert result.exit_code == 0, result.output
        assert "Indicator Catalog" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output
