"""Column type inference from sampled cell values."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from ..config import settings
from .classifier import is_numeric_like
from .models import ColumnType

logger = logging.getLogger(__name__)

NUMERIC_NAME_HINTS = (
    "id",
    "count",
    "qty",
    "quantity",
    "amount",
    "total",
    "price",
    "num",
    "number",
    "rate",
    "score",
    "age",
    "year",
    "sum",
    "balance",
    "cost",
)

NUMERIC_NAME_PATTERN = re.compile(
    r"\b(" + "|".join(NUMERIC_NAME_HINTS) + r")\b", re.IGNORECASE
)


def has_numeric_name(header: str) -> bool:
    """Check whether a header name hints at numeric content."""
    return NUMERIC_NAME_PATTERN.search(header) is not None


def numeric_ratio(values: Iterable[Any]) -> Optional[float]:
    """
    Share of non-blank values that look numeric.

    Returns:
        The ratio in [0, 1], or None if every value is blank
    """
    non_empty = [v for v in values if v is not None and str(v).strip() != ""]
    if not non_empty:
        return None
    numeric_count = sum(1 for v in non_empty if is_numeric_like(v))
    return numeric_count / len(non_empty)


def infer_column_type(
    header: str,
    values: Iterable[Any],
    numeric_threshold: Optional[float] = None,
    heuristic_threshold: Optional[float] = None,
) -> ColumnType:
    """Infer the type of a single column from its values and header name."""
    numeric_threshold = (
        settings.numeric_ratio_threshold if numeric_threshold is None else numeric_threshold
    )
    heuristic_threshold = (
        settings.heuristic_ratio_threshold
        if heuristic_threshold is None
        else heuristic_threshold
    )

    ratio = numeric_ratio(values)
    if ratio is None:
        return ColumnType.TEXT
    if ratio >= numeric_threshold:
        return ColumnType.NUMBER
    # A numeric-sounding name lowers the bar instead of overriding the data
    if has_numeric_name(header) and ratio >= heuristic_threshold:
        return ColumnType.NUMBER
    return ColumnType.TEXT


def infer_column_types(
    headers: Sequence[str],
    sample_rows: Sequence[Any],
    overrides: Optional[Mapping[str, ColumnType]] = None,
    sample_size: Optional[int] = None,
    numeric_threshold: Optional[float] = None,
    heuristic_threshold: Optional[float] = None,
) -> dict[str, ColumnType]:
    """
    Infer a type for every header.

    Each header is decided on its own: a caller-supplied override wins
    unconditionally, otherwise the first ``sample_size`` rows are classified.

    Args:
        headers: Column headers to type
        sample_rows: Rows as mappings or dataset Rows
        overrides: Confirmed types that bypass inference
        sample_size: Rows to sample (defaults to settings.type_sample_size)
        numeric_threshold: Numeric ratio that makes any column a number
        heuristic_threshold: Lower ratio for columns with a numeric-sounding name

    Returns:
        Mapping of header to ColumnType
    """
    limit = settings.type_sample_size if sample_size is None else sample_size
    sample = list(sample_rows[:limit])
    result: dict[str, ColumnType] = {}

    for header in headers:
        if overrides and overrides.get(header):
            result[header] = ColumnType(overrides[header])
            continue
        result[header] = infer_column_type(
            header,
            (r.get(header) for r in sample),
            numeric_threshold=numeric_threshold,
            heuristic_threshold=heuristic_threshold,
        )

    logger.debug(f"Inferred types over {len(sample)} rows: {result}")
    return result
