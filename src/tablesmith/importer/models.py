"""Import actions returned by the orchestrator."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from ..dataset.models import Dataset, Row, SourceFile
from ..schema.models import ColumnType
from .unifier import SchemaUnifier


class ImportMode(str, Enum):
    """How an upload combines with the current dataset."""

    REPLACE = "replace"
    APPEND = "append"


@dataclass
class ImportFailure:
    """A fatal problem with an import attempt; the dataset is unchanged."""

    title: str
    message: str


@dataclass
class StagedImport:
    """A uniform-schema import waiting for type review."""

    headers: list[str]
    rows: list[Row]
    files: list[SourceFile]
    warnings: list[str]
    types: dict[str, ColumnType]
    signature: str
    mode: ImportMode = ImportMode.REPLACE

    def set_type(self, header: str, column_type: ColumnType):
        """Change the reviewed type of one column."""
        if header not in self.headers:
            raise ValueError(f"Unknown column '{header}'")
        self.types[header] = ColumnType(column_type)


@dataclass
class TypeReviewRequest:
    """The caller should let the user review ``staged.types`` and confirm."""

    staged: StagedImport


@dataclass
class UnificationRequest:
    """The caller should let the user edit the unifier and confirm."""

    unifier: SchemaUnifier


@dataclass
class ImportCommitted:
    """The import was applied; ``dataset`` is the new state."""

    dataset: Dataset
    used_cached_profile: bool = False
    warnings: list[str] = field(default_factory=list)


ImportAction = Union[ImportFailure, TypeReviewRequest, UnificationRequest, ImportCommitted]
