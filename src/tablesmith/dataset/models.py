"""Data models for the in-memory dataset."""

import time
import uuid
from typing import Optional

from pydantic import BaseModel, Field

from ..schema.models import ColumnType


def new_id() -> str:
    """Generate a row or file identifier."""
    return str(uuid.uuid4())


class Row(BaseModel):
    """A single row of the dataset."""

    rid: str = Field(default_factory=new_id)  # Assigned once, never reused
    values: dict[str, str] = Field(default_factory=dict)
    file_id: Optional[str] = None
    file_name: Optional[str] = None

    def get(self, header: str, default: str = "") -> str:
        """Read a cell; absent cells read as empty string."""
        return self.values.get(header, default)

    def __getitem__(self, header: str) -> str:
        return self.get(header)


class SourceFile(BaseModel):
    """Manifest record for a file whose rows are in the dataset."""

    id: str = Field(default_factory=new_id)
    name: str
    size: int = 0
    last_modified: float = 0.0
    appended_at: float = Field(default_factory=time.time)
    headers: list[str] = Field(default_factory=list)
    row_count: int = 0
    skipped_count: int = 0
    warnings: list[str] = Field(default_factory=list)
    schema_signature: str = ""


class Dataset(BaseModel):
    """Unified table: ordered headers, rows, warnings, file manifest and types."""

    headers: list[str] = Field(default_factory=list)
    rows: list[Row] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    files: list[SourceFile] = Field(default_factory=list)
    column_types: dict[str, ColumnType] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return len(self.headers) == 0

    def row_by_id(self, rid: str) -> Optional[Row]:
        for row in self.rows:
            if row.rid == rid:
                return row
        return None

    def column_type(self, header: str) -> ColumnType:
        return self.column_types.get(header, ColumnType.TEXT)
