"""Data models for schema reconciliation and type inference."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ColumnType(str, Enum):
    """Semantic type of a column."""

    TEXT = "text"
    NUMBER = "number"


class MatchKind(str, Enum):
    """How a source column was matched to an existing column."""

    EXACT = "exact"
    CASE_INSENSITIVE = "case-insensitive"
    FUZZY = "fuzzy"
    MANUAL = "manual"  # Set by the user during reconciliation


class UnifierStatus(str, Enum):
    """Lifecycle state of a schema unification."""

    PROPOSED = "proposed"
    EDITED = "edited"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


TypeProfile = dict[str, ColumnType]


class ColumnMatch(BaseModel):
    """Best existing column found for a new column name."""

    column: str
    confidence: float = Field(ge=0.0, le=1.0)
    match_kind: MatchKind


class ColumnMapping(BaseModel):
    """Mapping of one incoming column onto the unified schema."""

    source_column: str
    target_column: Optional[str] = None  # None means create a new column
    target_type: ColumnType = ColumnType.TEXT
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    match_kind: Optional[MatchKind] = None  # None when no suggestion was found

    @property
    def output_column(self) -> str:
        """Column the source values are written to on commit."""
        return self.target_column if self.target_column is not None else self.source_column


class ParsedFile(BaseModel):
    """A CSV file as yielded by the decoding layer."""

    name: str
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    skipped_rows: list[dict[str, str]] = Field(default_factory=list)
    size: int = 0
    last_modified: float = 0.0

    @property
    def is_valid(self) -> bool:
        return len(self.headers) > 0


class UnificationSummary(BaseModel):
    """Counts describing a proposed unification."""

    total_new_columns: int
    mapped_to_existing: int
    new_columns_created: int
    final_column_count: int


class UnificationClosedError(Exception):
    """Raised when a committed or cancelled unification is edited."""

    pass


class UnknownColumnError(ValueError):
    """Raised when a unification edit names a column it does not know."""

    pass
