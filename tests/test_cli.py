"""Tests for the rowcalc command line."""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl
import pytest
from click.testing import CliRunner

from rowcalc import __version__
from rowcalc.cli import main, parse_cell_value


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def csv_path(tmp_path: Path) -> Path:
    path = tmp_path / "rows.csv"
    path.write_text("a,b\n1,2\n3,0\n")
    return path


class TestParseCellValue:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1", 1),
            ("-4", -4),
            ("2.5", 2.5),
            ("1e3", 1000.0),
            ("TRUE", True),
            ("false", False),
            ("abc", "abc"),
        ],
    )
    def test_parse(self, text: str, expected) -> None:
        value = parse_cell_value(text)
        assert value == expected
        assert type(value) is type(expected)


class TestEvalCommand:
    def test_value(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "=c1+c2", "1", "2"])
        assert result.exit_code == 0
        assert result.output == "3\n"

    def test_string_result(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", '=IF(c1, "yes", "no")', "true"])
        assert result.exit_code == 0
        assert result.output.strip() == "yes"

    def test_error_result(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "=c1/c2", "1", "0"])
        assert result.exit_code == 1
        assert "error: 'Infinity'" in result.output

    def test_json(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "--json", "=SUM(c1:c3)", "1", "x", "2"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"value": 3, "error": None, "kind": None}

    def test_json_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "--json", "=c5"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["kind"] == "column_index_out_of_range"

    def test_parse_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["eval", "=c1 +", "1"])
        assert result.exit_code == 1
        assert "Formula parse error" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])
        assert __version__ in result.output


class TestTableCommand:
    def test_stdout(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        result = runner.invoke(main, ["table", str(csv_path), "=c1/c2", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "a,b,result,error"
        assert lines[1] == "1,2,0.5,"
        assert lines[2].endswith("'Infinity'")

    def test_output_file(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        out_path = tmp_path / "out.csv"
        result = runner.invoke(
            main,
            ["table", str(csv_path), "=c1*2", "-o", str(out_path), "--project-dir", str(tmp_path)],
        )
        assert result.exit_code == 0
        assert "Wrote 2 row(s)" in result.output
        assert "(0 failed)" in result.output
        df = pl.read_csv(out_path)
        assert df["result"].to_list() == [2, 6]

    def test_failed_count(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        out_path = tmp_path / "out.csv"
        result = runner.invoke(
            main,
            ["table", str(csv_path), "=c1/c2", "-o", str(out_path), "--project-dir", str(tmp_path)],
        )
        assert "(1 failed)" in result.output

    def test_config_column_names(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        (tmp_path / "rowcalc.yaml").write_text("result_column: total\nerror_column: problem\n")
        result = runner.invoke(main, ["table", str(csv_path), "=c1+c2", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "a,b,total,problem"

    def test_parse_error(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        result = runner.invoke(main, ["table", str(csv_path), "=(", "--project-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "Formula parse error" in result.output

    def test_missing_csv(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["table", str(tmp_path / "nope.csv"), "=c1"])
        assert result.exit_code != 0


class TestEventsCommand:
    def test_no_events(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["events", "--project-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No events." in result.output

    def test_events_after_table(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        runner.invoke(main, ["table", str(csv_path), "=c1/c2", "--project-dir", str(tmp_path)])

        result = runner.invoke(main, ["events", "--project-dir", str(tmp_path), "--json"])
        assert result.exit_code == 0
        events = json.loads(result.output)
        assert [e["event_type"] for e in events] == [
            "table_eval_completed",
            "formula_row_error",
            "table_eval_started",
        ]

    def test_batch_log(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        from rowcalc.tables import evaluate_frame, load_rows_csv
        from rowcalc.logging.events import set_project_dir

        set_project_dir(tmp_path)
        evaluate_frame(load_rows_csv(csv_path), "=c1+c2", batch_id="first")
        evaluate_frame(load_rows_csv(csv_path), "=c1/c2", batch_id="second")

        result = runner.invoke(
            main, ["events", "--project-dir", str(tmp_path), "--batch", "first", "--json"]
        )
        assert result.exit_code == 0
        events = json.loads(result.output)
        assert [e["event_type"] for e in events] == ["table_eval_completed", "table_eval_started"]

        result = runner.invoke(
            main,
            ["events", "--project-dir", str(tmp_path), "--batch", "second", "--level", "warning", "--json"],
        )
        assert [e["event_type"] for e in json.loads(result.output)] == ["formula_row_error"]

    def test_level_filter(self, runner: CliRunner, csv_path: Path, tmp_path: Path) -> None:
        runner.invoke(main, ["table", str(csv_path), "=c1/c2", "--project-dir", str(tmp_path)])

        result = runner.invoke(main, ["events", "--project-dir", str(tmp_path), "--level", "warning"])
        assert result.exit_code == 0
        assert "formula_row_error [row_eval_error]" in result.output
        assert "table_eval_started" not in result.output
