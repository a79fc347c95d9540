"""Turns raw CSV text into a CsvDocument."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

from recordbridge.core.exceptions import ParseError
from recordbridge.models.document import ColumnStats, CsvDocument, DataStatistics


def _scan_line(line: str) -> tuple[list[str], bool]:
    """Split one logical line into trimmed fields.

    Returns the fields and whether the line ended inside a quoted value that
    opened at the start of a field. A quote opened mid-field only toggles
    comma handling for the rest of the line.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    opened_at_field_start = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                if not in_quotes:
                    opened_at_field_start = not "".join(current).strip()
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields, in_quotes and opened_at_field_start


def parse_line(line: str) -> list[str]:
    """Parse a single CSV line with double-quote escaping."""
    return _scan_line(line)[0]


def _logical_records(lines: list[str]) -> list[list[str]]:
    """Join physical lines that continue a quoted value, then parse them.

    Blank lines outside quoted values are dropped.
    """
    records: list[list[str]] = []
    i = 0
    while i < len(lines):
        buffer = lines[i]
        i += 1
        if not buffer.strip():
            continue
        fields, open_quote = _scan_line(buffer)
        while open_quote:
            if i >= len(lines):
                raise ParseError("unterminated quoted field")
            buffer = f"{buffer}\n{lines[i]}"
            i += 1
            fields, open_quote = _scan_line(buffer)
        records.append(fields)
    return records


def parse_text(text: str) -> CsvDocument:
    """Parse CSV text; the first record is the header row.

    Short rows are padded with empty strings and extra cells are dropped.
    """
    stripped = text.strip()
    if not stripped:
        raise ParseError("empty file")

    lines = [line[:-1] if line.endswith("\r") else line for line in stripped.split("\n")]
    records = _logical_records(lines)
    headers = records[0]

    duplicates = sorted(h for h, n in Counter(headers).items() if n > 1)
    if duplicates:
        raise ParseError(f"duplicate header names: {', '.join(duplicates)}")

    rows = []
    for cells in records[1:]:
        rows.append({
            header: cells[index] if index < len(cells) else ""
            for index, header in enumerate(headers)
        })
    return CsvDocument(headers=headers, rows=rows)


def load_file(path: str | Path, encoding: str = "utf-8-sig") -> CsvDocument:
    """Read and parse a ``.csv`` file from disk."""
    path = Path(path)
    if path.suffix.lower() != ".csv":
        raise ParseError(f"not a CSV file: {path.name}")
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"file reading failed for {path.name}: {exc}") from exc
    return parse_text(text)


def compute_statistics(document: CsvDocument) -> DataStatistics:
    """Per-column fill, uniqueness and width counts."""
    stats = {header: ColumnStats() for header in document.headers}
    uniques: dict[str, set[str]] = {header: set() for header in document.headers}
    empty_rows = 0

    for row in document.rows:
        row_empty = True
        for header in document.headers:
            value = row[header].strip()
            column = stats[header]
            if value:
                row_empty = False
                column.non_empty += 1
                uniques[header].add(value)
                column.max_length = max(column.max_length, len(value))
            else:
                column.empty += 1
        if row_empty:
            empty_rows += 1

    for header, values in uniques.items():
        stats[header].unique_count = len(values)

    return DataStatistics(
        total_rows=document.row_count,
        total_columns=len(document.headers),
        empty_rows=empty_rows,
        column_stats=stats,
    )
