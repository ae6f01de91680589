"""CLI integration tests for diffreader."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import diffreader.cli as cli
from diffreader import __version__

runner = CliRunner()


@pytest.fixture
def sample_diff_file(tmp_path: Path, sample_diff_output: str) -> Path:
    path = tmp_path / "changes.diff"
    path.write_text(sample_diff_output)
    return path


class TestMain:
    """Tests for the top-level callback."""

    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert f"diffreader version {__version__}" in result.output

    def test_no_command_prints_banner(self):
        result = runner.invoke(cli.app, [])

        assert result.exit_code == 0
        assert "git diff parser" in result.output


class TestParseCommand:
    """Tests for `diffreader parse`."""

    def test_table_output(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["parse", str(sample_diff_file)])

        assert result.exit_code == 0, result.output
        assert "src/main.py" in result.output
        assert "assets/logo.png" in result.output
        assert "binary" in result.output
        assert "deleted" in result.output

    def test_json_from_stdin(self, sample_diff_output: str):
        result = runner.invoke(cli.app, ["parse", "--json"], input=sample_diff_output)

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert [entry["file_path"] for entry in payload] == [
            "src/main.py",
            "src/utils.py",
            "src/app.py",
            "assets/logo.png",
        ]
        assert payload[0]["change_type"] == "added"
        assert payload[0]["hunks"][0]["lines"][0]["type"] == "addition"
        assert payload[0]["raw_diff"] is None
        assert payload[3]["hunks"] == []

    def test_json_with_raw_diff(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["parse", "--json", "--raw", str(sample_diff_file)])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload[3]["raw_diff"].startswith("diff --git a/assets/logo.png")

    def test_parallel_matches_sequential(self, sample_diff_file: Path):
        sequential = runner.invoke(cli.app, ["parse", "--json", str(sample_diff_file)])
        parallel = runner.invoke(cli.app, ["parse", "--json", "--jobs", "2", str(sample_diff_file)])

        assert parallel.exit_code == 0, parallel.output
        assert json.loads(parallel.stdout) == json.loads(sequential.stdout)

    def test_invalid_jobs(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["parse", "--jobs", "0", str(sample_diff_file)])

        assert result.exit_code == 2

    def test_empty_input(self):
        result = runner.invoke(cli.app, ["parse"], input="")

        assert result.exit_code == 0
        assert "No file changes found" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(cli.app, ["parse", str(tmp_path / "missing.diff")])

        assert result.exit_code == 2
        assert "Path does not exist" in result.output

    def test_directory_is_rejected(self, tmp_path: Path):
        result = runner.invoke(cli.app, ["parse", str(tmp_path)])

        assert result.exit_code == 2
        assert "Path is not a file" in result.output

    def test_strict_reports_location(self):
        diff_text = "diff --git a/f.py b/f.py\n@@ bad @@\n"

        result = runner.invoke(cli.app, ["parse", "--strict"], input=diff_text)

        assert result.exit_code == 1
        assert "Parse error" in result.output
        assert "Malformed hunk header" in result.output
        assert "File: f.py" in result.output
        assert "Line: 2" in result.output

    def test_lenient_by_default(self):
        diff_text = "diff --git a/f.py b/f.py\n@@ bad @@\n"

        result = runner.invoke(cli.app, ["parse", "--json"], input=diff_text)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[0]["hunks"] == []

    def test_strict_from_environment(self, monkeypatch):
        monkeypatch.setenv("DIFFREADER_STRICT", "true")

        result = runner.invoke(cli.app, ["parse"], input="diff --git a/f b/f\n@@ bad @@\n")

        assert result.exit_code == 1

    def test_lenient_flag_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("DIFFREADER_STRICT", "true")

        result = runner.invoke(
            cli.app, ["parse", "--lenient"], input="diff --git a/f b/f\n@@ bad @@\n"
        )

        assert result.exit_code == 0, result.output

    def test_verbose_logs_skipped_constructs(self):
        result = runner.invoke(
            cli.app, ["--verbose", "parse"], input="diff --git a/f b/f\n@@ bad @@\n"
        )

        assert result.exit_code == 0
        assert "Malformed hunk header" in result.output

    def test_verbose_parallel_matches_sequential(self):
        diff_text = "diff --git a/a b/a\n@@ bad-a @@\ndiff --git a/b b/b\n@@ bad-b @@\n"

        sequential = runner.invoke(cli.app, ["-v", "parse"], input=diff_text)
        parallel = runner.invoke(cli.app, ["-v", "parse", "--jobs", "2"], input=diff_text)

        assert parallel.exit_code == 0, parallel.output
        assert "Malformed hunk header (line 2): @@ bad-a @@" in sequential.output
        assert "Malformed hunk header (line 2): @@ bad-a @@" in parallel.output
        assert "Malformed hunk header (line 4): @@ bad-b @@" in parallel.output
        assert parallel.output == sequential.output


class TestStatsCommand:
    """Tests for `diffreader stats`."""

    def test_stats_output(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["stats", str(sample_diff_file)])

        assert result.exit_code == 0, result.output
        assert "Files: 4" in result.output
        assert "Additions: +8" in result.output
        assert "Deletions: -5" in result.output
        assert "Net change: +3" in result.output
        assert "Binary files: 1" in result.output
        assert "Modified: 2" in result.output

    def test_stats_json(self, sample_diff_output: str):
        result = runner.invoke(cli.app, ["stats", "--json"], input=sample_diff_output)

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["additions"] == 8
        assert payload["deletions"] == 5
        assert payload["change_types"] == {"added": 1, "deleted": 1, "modified": 2}

    def test_numstat(self):
        numstat = "10\t2\tsrc/app.py\n-\t-\tlogo.png\n"

        result = runner.invoke(cli.app, ["stats", "--numstat", "--json"], input=numstat)

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["files"] == 2
        assert payload["additions"] == 10
        assert payload["binary_files"] == 1

    def test_numstat_strict_error(self):
        result = runner.invoke(cli.app, ["stats", "--numstat", "--strict"], input="garbage\n")

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestShowCommand:
    """Tests for `diffreader show`."""

    def test_show_file(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["show", "src/app.py", str(sample_diff_file)])

        assert result.exit_code == 0, result.output
        assert "src/app.py (modified)" in result.output
        assert "@@ -1,5 +1,6 @@ class App:" in result.output
        assert "    1 +import new_module" in result.output
        assert "    1     2  def main():" in result.output
        assert "@@ -20,3 +21,3 @@ def helper():" in result.output

    def test_show_binary(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["show", "assets/logo.png", str(sample_diff_file)])

        assert result.exit_code == 0
        assert "Binary file" in result.output

    def test_show_by_old_path(self, renamed_diff_output: str):
        result = runner.invoke(cli.app, ["show", "oldname.py"], input=renamed_diff_output)

        assert result.exit_code == 0, result.output
        assert "oldname.py → newname.py (renamed)" in result.output

    def test_show_missing_path(self, sample_diff_file: Path):
        result = runner.invoke(cli.app, ["show", "nope.py", str(sample_diff_file)])

        assert result.exit_code == 1
        assert "No changes for nope.py" in result.output
