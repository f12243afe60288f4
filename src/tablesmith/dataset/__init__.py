"""In-memory dataset and its operations."""

from .models import Dataset, Row, SourceFile
from .operations import (
    ColumnEdit,
    apply_column_edits,
    column_edits_for,
    column_totals,
    filter_rows,
    filter_rows_by_column,
    ingest_files,
    remove_file,
    remove_rows,
    sort_columns_alphabetically,
    update_cell,
    value_matches_keyword,
)

__all__ = [
    "Dataset",
    "Row",
    "SourceFile",
    "ColumnEdit",
    "apply_column_edits",
    "column_edits_for",
    "column_totals",
    "filter_rows",
    "filter_rows_by_column",
    "ingest_files",
    "remove_file",
    "remove_rows",
    "sort_columns_alphabetically",
    "update_cell",
    "value_matches_keyword",
]
