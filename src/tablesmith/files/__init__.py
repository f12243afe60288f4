"""CSV reading, writing and searching."""

from .reader import read_csv_file, read_csv_files
from .writer import write_csv, export_dataset
from .search import SearchResult, search_csv_files

__all__ = [
    "read_csv_file",
    "read_csv_files",
    "write_csv",
    "export_dataset",
    "SearchResult",
    "search_csv_files",
]
