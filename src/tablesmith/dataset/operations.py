"""Dataset operations: ingestion stamping, search, totals and edits."""

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Any, Optional

from pydantic import BaseModel

from ..schema.classifier import to_number
from ..schema.models import ColumnType, ParsedFile
from ..schema.signature import signature_of
from .models import Dataset, Row, SourceFile, new_id

logger = logging.getLogger(__name__)


class ColumnEdit(BaseModel):
    """One column as configured in the column editor."""

    name: str
    type: ColumnType = ColumnType.TEXT
    original_name: str  # Tracks renames


# Ingestion


def build_source_file(parsed: ParsedFile, file_id: Optional[str] = None) -> SourceFile:
    """Create the manifest record for a parsed file."""
    return SourceFile(
        id=file_id or new_id(),
        name=parsed.name,
        size=parsed.size,
        last_modified=parsed.last_modified,
        headers=list(parsed.headers),
        row_count=len(parsed.rows),
        skipped_count=len(parsed.skipped_rows),
        warnings=list(parsed.warnings),
        schema_signature=signature_of(parsed.headers),
    )


def stamp_rows(parsed: ParsedFile, source: SourceFile) -> list[Row]:
    """Give every row of a parsed file a fresh identifier and its file provenance."""
    return [
        Row(values=dict(values), file_id=source.id, file_name=source.name)
        for values in parsed.rows
    ]


def ingest_files(files: Sequence[ParsedFile]) -> tuple[list[SourceFile], list[Row]]:
    """Stamp the rows of several files, keeping file order."""
    sources: list[SourceFile] = []
    rows: list[Row] = []
    for parsed in files:
        source = build_source_file(parsed)
        sources.append(source)
        rows.extend(stamp_rows(parsed, source))
    return sources, rows


# Search


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


def value_matches_keyword(cell_value: Any, keyword: str, case_insensitive: bool = True) -> bool:
    """Substring match of a keyword inside a cell value."""
    haystack = _stringify(cell_value)
    if case_insensitive:
        return keyword.lower() in haystack.lower()
    return keyword in haystack


def filter_rows_by_column(
    rows: Iterable[Mapping[str, Any]],
    column: str,
    keyword: str,
    case_insensitive: bool = True,
) -> list[dict[str, str]]:
    """
    Keep rows whose ``column`` contains ``keyword``.

    Rows without the column are skipped. Matched rows come back with every
    value converted to a string.
    """
    matches: list[dict[str, str]] = []
    for row in rows:
        if column not in row:
            continue
        if value_matches_keyword(row[column], keyword, case_insensitive):
            matches.append({key: _stringify(value) for key, value in row.items()})
    return matches


def filter_rows(dataset: Dataset, search_text: str, columns: Sequence[str]) -> list[Row]:
    """
    Case-insensitive search across the selected columns.

    Empty search text or an empty column selection returns every row.
    """
    if not search_text.strip() or not columns:
        return list(dataset.rows)
    needle = search_text.lower()
    return [
        row
        for row in dataset.rows
        if any(needle in row.get(column).lower() for column in columns)
    ]


def column_totals(dataset: Dataset, rows: Optional[Sequence[Row]] = None) -> dict[str, float]:
    """Sum every number column over the given rows (all rows by default)."""
    rows = dataset.rows if rows is None else rows
    totals: dict[str, float] = {}
    for header in dataset.headers:
        if dataset.column_type(header) != ColumnType.NUMBER:
            continue
        total = 0.0
        for row in rows:
            number = to_number(row.get(header))
            if number is not None:
                total += number
        totals[header] = total
    return totals


# Edits


def remove_rows(dataset: Dataset, rids: Collection[str]) -> Dataset:
    """Delete rows by identifier."""
    if not rids:
        return dataset
    remaining = [row for row in dataset.rows if row.rid not in rids]
    logger.info(f"Removed {len(dataset.rows) - len(remaining)} rows")
    return dataset.model_copy(update={"rows": remaining})


def remove_file(dataset: Dataset, file_id: str) -> Dataset:
    """Drop a file from the manifest together with its rows."""
    files = [f for f in dataset.files if f.id != file_id]
    rows = [row for row in dataset.rows if row.file_id != file_id]
    update: dict[str, Any] = {"files": files, "rows": rows}
    if not files:
        update["headers"] = []
        update["column_types"] = {}
    logger.info(f"Removed file {file_id} ({len(dataset.rows) - len(rows)} rows)")
    return dataset.model_copy(update=update)


def update_cell(dataset: Dataset, rid: str, column: str, value: str) -> Dataset:
    """
    Edit a single cell.

    Raises:
        KeyError: If the row or the column does not exist
    """
    if column not in dataset.headers:
        raise KeyError(f"Unknown column '{column}'")
    rows = list(dataset.rows)
    for index, row in enumerate(rows):
        if row.rid == rid:
            rows[index] = row.model_copy(update={"values": {**row.values, column: value}})
            return dataset.model_copy(update={"rows": rows})
    raise KeyError(f"Unknown row '{rid}'")


def column_edits_for(dataset: Dataset) -> list[ColumnEdit]:
    """Starting point for the column editor: current order, names and types."""
    return [
        ColumnEdit(name=header, type=dataset.column_type(header), original_name=header)
        for header in dataset.headers
    ]


def sort_columns_alphabetically(edits: Sequence[ColumnEdit]) -> list[ColumnEdit]:
    return sorted(edits, key=lambda edit: edit.name.lower())


def apply_column_edits(dataset: Dataset, edits: Sequence[ColumnEdit]) -> Dataset:
    """
    Rename, reorder and retype columns.

    Args:
        dataset: Dataset to edit
        edits: Every current column exactly once, in the new order

    Returns:
        Dataset with re-keyed rows and the new column types

    Raises:
        ValueError: If names are empty or duplicated, or columns are missing
    """
    names = [edit.name.strip() for edit in edits]
    if any(not name for name in names):
        raise ValueError("Column names must not be empty")
    if len(set(names)) != len(names):
        raise ValueError("Column names must be unique")
    originals = [edit.original_name for edit in edits]
    if sorted(originals) != sorted(dataset.headers):
        raise ValueError("Column edits must cover every column exactly once")

    renames = {
        edit.original_name: name
        for edit, name in zip(edits, names)
        if edit.original_name != name
    }
    rows = list(dataset.rows)
    if renames:
        rows = [
            row.model_copy(
                update={
                    "values": {renames.get(key, key): value for key, value in row.values.items()}
                }
            )
            for row in rows
        ]
        logger.info(f"Renamed columns: {renames}")

    return dataset.model_copy(
        update={
            "headers": names,
            "rows": rows,
            "column_types": {name: edit.type for edit, name in zip(edits, names)},
        }
    )
