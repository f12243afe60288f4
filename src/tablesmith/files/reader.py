"""CSV decoding into headers, string rows and diagnostics."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Union

import pandas as pd

from ..schema.models import ParsedFile

logger = logging.getLogger(__name__)

EXTRA_FIELDS_KEY = "__parsed_extra"

PathLike = Union[str, Path]


def _skipped_row(headers: list[str], fields: list[str]) -> dict[str, str]:
    row = dict(zip(headers, fields))
    row[EXTRA_FIELDS_KEY] = ",".join(fields[len(headers):])
    return row


def read_csv_file(path: PathLike) -> ParsedFile:
    """
    Parse a CSV file into string cells.

    Every cell is kept as text (no NA conversion). Rows with more fields than
    the header are skipped and returned separately. Problems never raise:
    they come back as warnings on a file with no headers.

    Args:
        path: Path of the CSV file

    Returns:
        ParsedFile with headers, rows, warnings and skipped rows
    """
    path = Path(path)
    name = path.name
    if not path.exists():
        logger.warning(f"File not found: {path}")
        return ParsedFile(name=name, warnings=[f"Warning: file not found: {path}"])

    stat = path.stat()
    skipped_fields: list[list[str]] = []

    def on_bad_line(fields: list[str]):
        skipped_fields.append(fields)
        return None

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
            engine="python",
            on_bad_lines=on_bad_line,
        )
    except pd.errors.EmptyDataError:
        warning = f"Warning: could not read header from: {path.resolve()}"
        logger.warning(warning)
        return ParsedFile(
            name=name, warnings=[warning], size=stat.st_size, last_modified=stat.st_mtime
        )
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        warning = f"Error parsing {name}: {e}"
        logger.warning(warning)
        return ParsedFile(
            name=name, warnings=[warning], size=stat.st_size, last_modified=stat.st_mtime
        )

    headers = [str(column) for column in df.columns]
    df.columns = headers
    rows = df.fillna("").astype(str).to_dict(orient="records")
    skipped_rows = [_skipped_row(headers, fields) for fields in skipped_fields]

    if skipped_rows:
        logger.warning(
            f"Skipped {len(skipped_rows)} row(s) from {name} due to schema mismatch"
        )

    return ParsedFile(
        name=name,
        headers=headers,
        rows=rows,
        skipped_rows=skipped_rows,
        size=stat.st_size,
        last_modified=stat.st_mtime,
    )


async def read_csv_files(paths: Sequence[PathLike]) -> list[ParsedFile]:
    """Parse several files concurrently; results keep the order of ``paths``."""
    return list(await asyncio.gather(*(asyncio.to_thread(read_csv_file, p) for p in paths)))
