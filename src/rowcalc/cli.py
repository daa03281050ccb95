"""Command-line interface for rowcalc."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from rowcalc import __version__


def parse_cell_value(text: str) -> int | float | str | bool:
    """Convert a command-line value to a column value.

    ``true``/``false`` (any case) become booleans, numeric text becomes an
    int or float, anything else stays a string.
    """
    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


@click.group()
@click.version_option(version=__version__, prog_name="rowcalc")
def main() -> None:
    """rowcalc -- evaluate spreadsheet formulas against rows of column values.

    Columns are referenced as c1, c2, ... (1-based).
    """


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("formula")
@click.argument("values", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(formula: str, values: tuple[str, ...], as_json: bool) -> None:
    """Evaluate FORMULA against a row given as VALUES (c1 c2 ...)."""
    from rowcalc.formulas import FormulaParseError, evaluate
    from rowcalc.tables import format_value

    row = [parse_cell_value(v) for v in values]
    try:
        result = evaluate(row, formula)
    except FormulaParseError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json")))
    elif result.is_error:
        click.echo(f"error: {result.error}")
    else:
        click.echo(format_value(result.value))

    if result.is_error:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


@main.command("table")
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("formula")
@click.option("--output", "-o", "output", default=None, type=click.Path(dir_okay=False), help="Write CSV here instead of stdout.")
@click.option("--workers", "workers", default=None, type=int, help="Worker processes (overrides max_workers in rowcalc.yaml).")
@click.option("--project-dir", "project_dir", default=".", type=click.Path(file_okay=False), help="Directory holding rowcalc.yaml and logs/.")
def table_cmd(csv_path: str, formula: str, output: str | None, workers: int | None, project_dir: str) -> None:
    """Evaluate FORMULA against every row of CSV_PATH."""
    from rowcalc.formulas import FormulaParseError
    from rowcalc.logging.events import set_project_dir
    from rowcalc.project import load_project_config
    from rowcalc.tables import evaluate_frame, load_rows_csv

    pdir = Path(project_dir)
    try:
        config = load_project_config(pdir)
    except (ValueError, OSError) as e:
        raise click.ClickException(str(e))
    set_project_dir(pdir)

    df = load_rows_csv(Path(csv_path))
    try:
        out = evaluate_frame(
            df,
            formula,
            result_column=config["result_column"],
            error_column=config["error_column"],
            max_workers=workers if workers is not None else int(config["max_workers"]),
        )
    except FormulaParseError as e:
        raise click.ClickException(str(e))

    if output:
        out.write_csv(output)
        failed = out.height - out[config["error_column"]].null_count()
        click.echo(f"Wrote {out.height} row(s) to {output} ({failed} failed)")
    else:
        click.echo(out.write_csv(), nl=False)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.option("--project-dir", "project_dir", default=".", type=click.Path(file_okay=False))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]))
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--batch", "batch_id", default=None, help="Read the log of one table evaluation.")
@click.option("--limit", default=50, type=int, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def events_cmd(
    project_dir: str,
    level: str | None,
    event_type: str | None,
    batch_id: str | None,
    limit: int,
    as_json: bool,
) -> None:
    """Show logged events, newest first."""
    from rowcalc.logging.sink import EventSink

    sink = EventSink(Path(project_dir))
    if batch_id:
        events = sink.read_batch_log(batch_id, level=level, event_type=event_type, limit=limit)
    else:
        events = sink.read_global(level=level, event_type=event_type, limit=limit)

    if as_json:
        click.echo(json.dumps(events, indent=2))
        return
    if not events:
        click.echo("No events.")
        return
    for e in events:
        code = f" [{e['error_code']}]" if e.get("error_code") else ""
        click.echo(f"{e.get('ts', '')}  {e.get('level', ''):<7}  {e.get('event_type', '')}{code}  {e.get('message', '')}")
