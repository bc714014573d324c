"""Tests for promptfit.cli.

Exercises the Typer CLI app via CliRunner. Token counting is forced onto
the character estimate so no tokenizer data has to be downloaded.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from promptfit import __version__
from promptfit.cli import app
from tests.conftest import make_diff

runner = CliRunner()


@pytest.fixture
def estimate_only() -> Iterator[None]:
    with patch("promptfit.tokens.session.get_default_counter", side_effect=ImportError("no")):
        yield


@pytest.fixture
def diff_file(tmp_path: Path) -> Path:
    path = tmp_path / "change.diff"
    path.write_text(make_diff(files=3, hunks_per_file=3), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# main callback (--version)
# ---------------------------------------------------------------------------


class TestMainCallback:
    """The root callback with --version flag."""

    def test_version_flag_prints_version_and_exits(self) -> None:
        result = runner.invoke(app, ["--version", "info"])
        assert result.exit_code == 0
        assert "promptfit" in result.output
        assert __version__ in result.output

    def test_short_version_flag(self) -> None:
        result = runner.invoke(app, ["-v", "info"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_subcommand_exits_with_error(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 2

    def test_help_flag(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Token budgeting" in result.output
        assert "count" in result.output
        assert "truncate-diff" in result.output


# ---------------------------------------------------------------------------
# info command
# ---------------------------------------------------------------------------


class TestInfoCommand:
    """The ``info`` subcommand."""

    def test_info_shows_versions_and_settings(self) -> None:
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert __version__ in result.output
        assert sys.version.split()[0] in result.output
        assert "pydantic" in result.output
        assert "0.95" in result.output

    def test_info_shows_missing_dependency(self) -> None:
        with patch.dict(sys.modules, {"tiktoken": None}):
            result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "not installed" in result.output


# ---------------------------------------------------------------------------
# count command
# ---------------------------------------------------------------------------


class TestCountCommand:
    """The ``count`` subcommand."""

    def test_count_with_estimate(self, tmp_path: Path, estimate_only: None) -> None:
        test_file = tmp_path / "sample.txt"
        test_file.write_text("Hello world, this is a test.", encoding="utf-8")

        result = runner.invoke(app, ["count", str(test_file)])
        assert result.exit_code == 0
        assert "sample.txt (7 tokens, estimate)" in result.output
        assert "Heuristic estimate: 7 tokens" in result.output

    def test_count_nonexistent_path(self) -> None:
        result = runner.invoke(app, ["count", "/no/such/file.txt"])
        assert result.exit_code == 1
        assert "does not exist" in result.output


# ---------------------------------------------------------------------------
# truncate-diff command
# ---------------------------------------------------------------------------


class TestTruncateDiffCommand:
    """The ``truncate-diff`` subcommand."""

    def test_fitting_diff_is_printed_unchanged(
        self, diff_file: Path, estimate_only: None
    ) -> None:
        result = runner.invoke(app, ["truncate-diff", str(diff_file), "--target", "10000"])
        assert result.exit_code == 0
        assert diff_file.read_text(encoding="utf-8") in result.output
        assert "3 file(s)" in result.output

    def test_hunk_mode_keeps_whole_hunks(self, diff_file: Path, estimate_only: None) -> None:
        result = runner.invoke(app, ["truncate-diff", str(diff_file), "-t", "150", "--hunks"])
        assert result.exit_code == 0
        assert "Some hunks omitted" in result.output
        assert "src/module_0.py" in result.output
        assert "-old value 0 2" in result.output
        assert "module_1" not in result.output

    def test_line_mode_marks_partial_content(
        self, diff_file: Path, estimate_only: None
    ) -> None:
        result = runner.invoke(app, ["truncate-diff", str(diff_file), "-t", "150"])
        assert result.exit_code == 0
        assert "partially truncated" in result.output
        assert "(target 150)" in result.output

    def test_target_is_required(self, diff_file: Path) -> None:
        result = runner.invoke(app, ["truncate-diff", str(diff_file)])
        assert result.exit_code == 2

    def test_nonexistent_diff(self) -> None:
        result = runner.invoke(app, ["truncate-diff", "/no/such.diff", "-t", "10"])
        assert result.exit_code == 1
        assert "does not exist" in result.output
