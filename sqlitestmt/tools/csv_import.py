from __future__ import annotations

import argparse
import csv
import dataclasses
import json
import os
from typing import Any, Sequence

import sqlitestmt


@dataclasses.dataclass
class ImportReport:
    csv_path: str
    db_path: str
    table: str
    transaction: str = "DEFERRED"
    columns: list[str] = dataclasses.field(default_factory=list)
    created_table: bool = False
    rows_inserted: int = 0


def report_to_dict(report: ImportReport) -> dict[str, Any]:
    return {
        "csv_path": report.csv_path,
        "db_path": report.db_path,
        "table": report.table,
        "transaction": report.transaction,
        "columns": list(report.columns),
        "created_table": report.created_table,
        "rows_inserted": report.rows_inserted,
    }


def write_report_json(report: ImportReport, path: str) -> None:
    payload = json.dumps(report_to_dict(report), ensure_ascii=False, indent=2, sort_keys=True)
    if path == "-":
        print(payload)
        return
    with open(path, "w", encoding="utf-8") as f:
        f.write(payload)
        f.write("\n")


class CsvImportError(RuntimeError):
    pass


def _quote_ident(name: str) -> str:
    # Double-quote identifiers. Escape embedded quotes.
    return '"' + name.replace('"', '""') + '"'


class CsvRecordIterator(sqlitestmt.DataIterator):
    """Binds CSV records onto an INSERT, one text parameter per column."""

    def __init__(self, reader, width: int, *, empty_as_null: bool = False, progress=None, task=None):
        self._reader = reader
        self._width = width
        self._empty_as_null = empty_as_null
        self._progress = progress
        self._task = task
        self._pending: list[str] | None = None
        self.count = 0

    def has_next(self) -> bool:
        while self._pending is None:
            row = next(self._reader, None)
            if row is None:
                return False
            # Blank lines carry no record.
            if row:
                self._pending = row
        return True

    def bind_next(self, statement: sqlitestmt.Statement) -> None:
        if not self.has_next():
            raise CsvImportError("No more records")
        row = self._pending
        self._pending = None
        if len(row) != self._width:
            raise CsvImportError(
                f"Line {self._reader.line_num}: expected {self._width} fields, got {len(row)}"
            )
        for idx, field in enumerate(row, start=1):
            if self._empty_as_null and field == "":
                statement.bind_null(idx)
            else:
                statement.bind_text(idx, field)
        self.count += 1
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)


def _count_records(csv_path: str, *, delimiter: str, encoding: str) -> int:
    with open(csv_path, newline="", encoding=encoding) as f:
        return max(sum(1 for row in csv.reader(f, delimiter=delimiter) if row) - 1, 0)


def import_csv(
    csv_path: str,
    db_path: str,
    *,
    table: str,
    create: bool = False,
    delimiter: str = ",",
    encoding: str = "utf-8",
    transaction: str = "DEFERRED",
    empty_as_null: bool = False,
    show_progress: bool = True,
) -> ImportReport:
    """Load every record of a CSV file into ``table`` as one transaction.

    The header row names the target columns. Either all records are inserted
    or, on the first failure, none are.
    """
    if not os.path.exists(csv_path):
        raise CsvImportError(f"CSV file not found: {csv_path}")

    kind = sqlitestmt.TransactionType[transaction.strip().upper()]
    report = ImportReport(csv_path=csv_path, db_path=db_path, table=table, transaction=kind.value)

    progress = None
    console = None
    task = None
    if show_progress:
        from rich.console import Console
        from rich.progress import (
            BarColumn,
            Progress,
            SpinnerColumn,
            TaskProgressColumn,
            TextColumn,
            TimeElapsedColumn,
            TimeRemainingColumn,
        )

        console = Console()
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}[/bold]"),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            transient=False,
        )

    conn = sqlitestmt.connect(db_path)
    try:
        with open(csv_path, newline="", encoding=encoding) as f:
            reader = csv.reader(f, delimiter=delimiter)
            header = next(reader, None)
            if not header:
                raise CsvImportError(f"CSV file has no header row: {csv_path}")
            report.columns = [h.strip() for h in header]

            if create:
                cols = ", ".join(_quote_ident(c) for c in report.columns)
                conn.execute(f"CREATE TABLE IF NOT EXISTS {_quote_ident(table)} ({cols})")
                report.created_table = True

            if progress is not None:
                total = _count_records(csv_path, delimiter=delimiter, encoding=encoding)
                task = progress.add_task(f"Import {table}", total=total)
                progress.start()

            records = CsvRecordIterator(
                reader,
                len(report.columns),
                empty_as_null=empty_as_null,
                progress=progress,
                task=task,
            )
            sql = "INSERT INTO {} ({}) VALUES ({})".format(
                _quote_ident(table),
                ", ".join(_quote_ident(c) for c in report.columns),
                ", ".join("?" for _ in report.columns),
            )
            # execute_many finalizes on success; the with block covers failures.
            with conn.prepare(sql) as stmt:
                report.rows_inserted = stmt.execute_many(records, kind)

        # Stop progress rendering before printing the summary.
        if progress is not None:
            progress.stop()
            progress = None

        if console is not None:
            from rich.panel import Panel
            from rich.table import Table

            summary = Table.grid(padding=(0, 1))
            summary.add_column(justify="right", style="bold")
            summary.add_column()
            summary.add_row("From", csv_path)
            summary.add_row("To", f"{db_path} :: {table}")
            summary.add_row("Columns", str(len(report.columns)))
            summary.add_row("Rows", str(report.rows_inserted))
            summary.add_row("Transaction", report.transaction)

            console.print(Panel(summary, title="CSV → SQLite", border_style="green"))

    finally:
        if progress is not None:
            progress.stop()
        conn.close()

    return report


def main(argv: Sequence[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Load a CSV file into a SQLite table in a single transaction")
    p.add_argument("csv_path", help="Path to the CSV file (first row is the header)")
    p.add_argument("db_path", help="Path to the SQLite database file")
    p.add_argument("--table", required=True, help="Destination table")
    p.add_argument("--create", action="store_true", help="Create the table from the header if missing")
    p.add_argument("--delimiter", default=",", help="Field delimiter (default ',')")
    p.add_argument("--encoding", default="utf-8", help="CSV file encoding")
    p.add_argument(
        "--transaction",
        default="deferred",
        choices=["deferred", "immediate", "exclusive"],
        help="Transaction type used for the load",
    )
    p.add_argument("--empty-as-null", action="store_true", help="Insert empty fields as NULL")
    p.add_argument("--no-progress", action="store_true", help="Disable rich progress output")
    p.add_argument(
        "--report-json",
        default=None,
        help="Write a JSON import report to this path (use '-' for stdout)",
    )
    args = p.parse_args(argv)

    report = import_csv(
        args.csv_path,
        args.db_path,
        table=args.table,
        create=bool(args.create),
        delimiter=args.delimiter,
        encoding=args.encoding,
        transaction=args.transaction,
        empty_as_null=bool(args.empty_as_null),
        show_progress=not bool(args.no_progress),
    )

    if args.report_json:
        write_report_json(report, str(args.report_json))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
