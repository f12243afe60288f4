"""Keyword search across CSV files."""

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from ..dataset.operations import filter_rows_by_column
from .reader import PathLike, read_csv_file

logger = logging.getLogger(__name__)


class SearchResult(BaseModel):
    """Matched rows from several files under one combined header."""

    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def search_csv_files(
    paths: Sequence[PathLike],
    column: str,
    keyword: str,
    case_insensitive: bool = True,
) -> SearchResult:
    """
    Search one column of several CSV files for a keyword.

    Headers are combined in first-appearance order. Files that cannot be read
    or lack the column only contribute warnings.
    """
    result = SearchResult()

    for path in paths:
        parsed = read_csv_file(path)
        result.warnings.extend(parsed.warnings)
        if not parsed.is_valid:
            continue

        for header in parsed.headers:
            if header not in result.headers:
                result.headers.append(header)

        if column not in parsed.headers:
            result.warnings.append(
                f'Warning: column "{column}" not found in file: {Path(path).resolve()}'
            )
            continue

        matched = filter_rows_by_column(parsed.rows, column, keyword, case_insensitive)
        logger.info(f"Matched {len(matched)} of {len(parsed.rows)} rows in {parsed.name}")
        result.rows.extend(matched)

    return result
