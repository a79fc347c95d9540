"""Parsed CSV document and column statistics."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class CsvDocument(BaseModel):
    """Ordered headers plus row records keyed by header. Immutable once parsed."""

    model_config = {"frozen": True}

    headers: list[str]
    rows: list[dict[str, str]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _rows_match_headers(self) -> "CsvDocument":
        expected = set(self.headers)
        for index, row in enumerate(self.rows):
            if set(row) != expected:
                raise ValueError(f"row {index} keys do not match headers")
        return self

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, header: str) -> list[str]:
        """All values of one column in row order."""
        if header not in self.headers:
            raise KeyError(header)
        return [row[header] for row in self.rows]

    def preview(self, limit: int = 5) -> list[dict[str, str]]:
        return [dict(row) for row in self.rows[:limit]]


class ColumnStats(BaseModel):
    non_empty: int = 0
    empty: int = 0
    unique_count: int = 0
    max_length: int = 0


class DataStatistics(BaseModel):
    """Summary counts for a loaded document."""

    total_rows: int = 0
    total_columns: int = 0
    empty_rows: int = 0  # rows where every cell is blank
    column_stats: dict[str, ColumnStats] = Field(default_factory=dict)
