"""Column-keyed views over DuckDB query results for the repositories."""

from __future__ import annotations

import duckdb

QueryResult = duckdb.DuckDBPyConnection | duckdb.DuckDBPyRelation


def _column_names(result: QueryResult) -> list[str]:
    return [desc[0] for desc in result.description or ()]


def _rows_to_dicts(result: QueryResult) -> list[dict[str, object]]:
    """Return every remaining row as a dictionary."""
    columns = _column_names(result)
    return [dict(zip(columns, row, strict=True)) for row in result.fetchall()]


def _first_row_dict(result: QueryResult) -> dict[str, object] | None:
    """Return the next row as a dictionary, or None when the query matched nothing."""
    columns = _column_names(result)
    row = result.fetchone()
    if row is None:
        return None
    return dict(zip(columns, row, strict=True))
