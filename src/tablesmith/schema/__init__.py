"""Schema reconciliation and column type inference."""

from .models import (
    ColumnType,
    MatchKind,
    UnifierStatus,
    TypeProfile,
    ColumnMatch,
    ColumnMapping,
    ParsedFile,
    UnificationSummary,
    UnificationClosedError,
    UnknownColumnError,
)
from .classifier import is_numeric_like, to_number
from .inference import infer_column_types, infer_column_type
from .signature import signature_of, same_schema, all_same_schema, first_mismatch
from .matcher import (
    find_best_match,
    generate_mapping_suggestions,
    format_confidence,
    levenshtein_distance,
    similarity,
)

__all__ = [
    "ColumnType",
    "MatchKind",
    "UnifierStatus",
    "TypeProfile",
    "ColumnMatch",
    "ColumnMapping",
    "ParsedFile",
    "UnificationSummary",
    "UnificationClosedError",
    "UnknownColumnError",
    "is_numeric_like",
    "to_number",
    "infer_column_types",
    "infer_column_type",
    "signature_of",
    "same_schema",
    "all_same_schema",
    "first_mismatch",
    "find_best_match",
    "generate_mapping_suggestions",
    "format_confidence",
    "levenshtein_distance",
    "similarity",
]
