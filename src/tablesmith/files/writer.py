"""CSV export."""

import logging
from collections.abc import Mapping, Sequence
from typing import Optional, TextIO, Union

import pandas as pd

from ..dataset.models import Dataset, Row

logger = logging.getLogger(__name__)


def write_csv(
    headers: Sequence[str],
    rows: Sequence[Union[Row, Mapping[str, str]]],
    stream: TextIO,
):
    """Write rows in header order; missing cells are written empty."""
    records = [[row.get(h, "") for h in headers] for row in rows]
    frame = pd.DataFrame(records, columns=list(headers), dtype=str)
    frame.to_csv(stream, index=False, lineterminator="\n")


def export_dataset(dataset: Dataset, stream: TextIO, rows: Optional[Sequence[Row]] = None):
    """Export the dataset (or a filtered subset of its rows)."""
    rows = dataset.rows if rows is None else rows
    write_csv(dataset.headers, rows, stream)
    logger.info(f"Exported {len(rows)} rows, {len(dataset.headers)} columns")
