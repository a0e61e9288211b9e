"""Tests for the command line interface."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from semgraph import __version__
from semgraph.cli import app

runner = CliRunner()


@pytest.fixture
def params_csv(lavaan_params, tmp_path: Path) -> Path:
    path = tmp_path / "params.csv"
    lavaan_params.to_csv(path, index=False)
    return path


@pytest.fixture
def grid_csv(tmp_path: Path) -> Path:
    path = tmp_path / "layout.csv"
    path.write_text(",visual,,textual,\nx1,x2,,x4,x5\n", encoding="utf-8")
    return path


class TestRender:
    def test_stdout(self, params_csv):
        result = runner.invoke(app, ["render", str(params_csv)])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("<svg")
        assert result.stdout.count("<ellipse") == 2

    def test_output_file(self, params_csv, tmp_path):
        target = tmp_path / "out.svg"
        result = runner.invoke(app, ["render", str(params_csv), "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8").startswith("<svg")
        assert "Wrote" in result.stdout

    def test_grid_layout(self, params_csv, grid_csv):
        result = runner.invoke(app, ["render", str(params_csv), "--layout", str(grid_csv)])
        assert result.exit_code == 0, result.output
        assert "<svg" in result.stdout

    def test_options(self, params_csv):
        result = runner.invoke(
            app, ["render", str(params_csv), "-a", "circular", "--angle", "90", "--label", "est", "--variances"]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout.count("<path") == 7

    def test_unknown_algorithm(self, params_csv):
        result = runner.invoke(app, ["render", str(params_csv), "-a", "zigzag"])
        assert result.exit_code == 1

    def test_incomplete_grid(self, params_csv, tmp_path):
        grid = tmp_path / "partial.csv"
        grid.write_text("visual,textual\n", encoding="utf-8")
        result = runner.invoke(app, ["render", str(params_csv), "--layout", str(grid)])
        assert result.exit_code == 1

    def test_bad_label(self, params_csv):
        result = runner.invoke(app, ["render", str(params_csv), "--label", "{nonsense}"])
        assert result.exit_code == 1

    def test_unreadable_csv(self, tmp_path):
        empty = tmp_path / "empty.csv"
        empty.write_text("", encoding="utf-8")
        result = runner.invoke(app, ["render", str(empty)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["render", str(tmp_path / "absent.csv")])
        assert result.exit_code == 1


class TestTable:
    def test_unreadable_csv(self, tmp_path):
        empty = tmp_path / "empty.csv"
        empty.write_text("", encoding="utf-8")
        result = runner.invoke(app, ["table", str(empty)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)

    def test_unrecognised_columns(self, tmp_path):
        other = tmp_path / "other.csv"
        other.write_text("a,b\n1,2\n", encoding="utf-8")
        result = runner.invoke(app, ["table", str(other)])
        assert result.exit_code == 1

    def test_edges(self, params_csv):
        result = runner.invoke(app, ["table", str(params_csv)])
        assert result.exit_code == 0, result.output
        assert "visual" in result.stdout
        assert "both" in result.stdout

    def test_nodes(self, params_csv):
        result = runner.invoke(app, ["table", str(params_csv), "-e", "nodes"])
        assert result.exit_code == 0, result.output
        assert "oval" in result.stdout
        assert "rect" in result.stdout


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
