"""Interactive reconciliation of an incoming schema with an existing dataset."""

import logging
from collections.abc import Mapping, Sequence
from typing import Optional

from ..config import settings
from ..dataset.models import Dataset, Row
from ..dataset.operations import build_source_file
from ..schema.inference import infer_column_types
from ..schema.matcher import generate_mapping_suggestions
from ..schema.models import (
    ColumnMapping,
    ColumnType,
    MatchKind,
    ParsedFile,
    UnificationClosedError,
    UnificationSummary,
    UnifierStatus,
    UnknownColumnError,
)

logger = logging.getLogger(__name__)


class SchemaUnifier:
    """
    Proposes and edits a mapping of incoming columns onto existing columns.

    Lifecycle: PROPOSED -> EDITED (any number of edits) -> COMMITTED or
    CANCELLED. Nothing outside this object changes until commit.
    """

    def __init__(
        self,
        existing_headers: Sequence[str],
        files: Sequence[ParsedFile],
        min_confidence: Optional[float] = None,
        sample_rows_per_file: Optional[int] = None,
        existing_types: Optional[Mapping[str, ColumnType]] = None,
        numeric_threshold: Optional[float] = None,
        heuristic_threshold: Optional[float] = None,
    ):
        """
        Initialize the unifier and compute the default proposal.

        Args:
            existing_headers: Columns of the current dataset, in order
            files: Incoming parsed files (all with headers)
            min_confidence: Minimum fuzzy match confidence
            sample_rows_per_file: Rows per file pooled for type inference
            existing_types: Current dataset types, kept for existing columns
                that no incoming column maps to
            numeric_threshold: Numeric ratio threshold for type inference
            heuristic_threshold: Ratio threshold for numeric-sounding names
        """
        self.existing_headers = list(existing_headers)
        self.files = list(files)
        self.min_confidence = (
            settings.min_match_confidence if min_confidence is None else min_confidence
        )
        self.sample_rows_per_file = (
            settings.unifier_sample_rows
            if sample_rows_per_file is None
            else sample_rows_per_file
        )
        self.existing_types = dict(existing_types or {})
        self.numeric_threshold = numeric_threshold
        self.heuristic_threshold = heuristic_threshold
        self.status = UnifierStatus.PROPOSED
        self.mappings: dict[str, ColumnMapping] = {}
        self.final_column_order: list[str] = []
        self.final_column_types: dict[str, ColumnType] = {}
        self._manual_order = False
        self.propose()

    @property
    def source_columns(self) -> list[str]:
        """Headers of all incoming files, de-duplicated in first-appearance order."""
        return list(dict.fromkeys(h for f in self.files for h in f.headers))

    @property
    def is_open(self) -> bool:
        return self.status in (UnifierStatus.PROPOSED, UnifierStatus.EDITED)

    def _sample_rows(self) -> list[dict[str, str]]:
        """First rows of every file, pooled and keyed by their output columns."""
        return [
            {
                m.output_column: values[m.source_column]
                for m in self.mappings.values()
                if m.source_column in values
            }
            for f in self.files
            for values in f.rows[: self.sample_rows_per_file]
        ]

    def _ensure_open(self):
        if not self.is_open:
            raise UnificationClosedError(f"Unification is already {self.status.value}")

    def _default_order(self) -> list[str]:
        """Mapped existing columns, then unmapped existing, then new columns."""
        used = {m.target_column for m in self.mappings.values() if m.target_column}
        mapped = [h for h in self.existing_headers if h in used]
        unmapped = [h for h in self.existing_headers if h not in used]
        new_columns = [
            m.source_column for m in self.mappings.values() if m.target_column is None
        ]
        return list(dict.fromkeys(mapped + unmapped + new_columns))

    def _unmapped_existing_types(self) -> dict[str, ColumnType]:
        used = {m.target_column for m in self.mappings.values() if m.target_column}
        return {
            h: t
            for h, t in self.existing_types.items()
            if h in self.existing_headers and h not in used
        }

    def _infer(self, columns: Sequence[str]) -> dict[str, ColumnType]:
        """Infer types from the samples; unmapped existing columns keep their type."""
        return infer_column_types(
            columns,
            self._sample_rows(),
            self._unmapped_existing_types(),
            numeric_threshold=self.numeric_threshold,
            heuristic_threshold=self.heuristic_threshold,
        )

    def _infer_missing_types(self, columns: Sequence[str]):
        missing = [c for c in columns if c not in self.final_column_types]
        if missing:
            self.final_column_types.update(self._infer(missing))

    def _sync_target_types(self):
        for source, mapping in self.mappings.items():
            column_type = self.final_column_types.get(mapping.output_column, ColumnType.TEXT)
            if mapping.target_type != column_type:
                self.mappings[source] = mapping.model_copy(update={"target_type": column_type})

    def propose(self):
        """Compute mappings, column order and types from scratch."""
        suggestions = generate_mapping_suggestions(
            self.source_columns, self.existing_headers, self.min_confidence
        )
        self.mappings = {}
        for column, suggestion in suggestions.items():
            self.mappings[column] = ColumnMapping(
                source_column=column,
                target_column=suggestion.column if suggestion else None,
                target_type=ColumnType.TEXT,
                confidence=suggestion.confidence if suggestion else 0.0,
                match_kind=suggestion.match_kind if suggestion else None,
            )

        self.final_column_order = self._default_order()
        self._manual_order = False
        all_columns = list(dict.fromkeys(self.existing_headers + self.final_column_order))
        self.final_column_types = self._infer(all_columns)
        self._sync_target_types()
        self.status = UnifierStatus.PROPOSED

        summary = self.summary()
        logger.info(
            f"Proposed unification of {len(self.files)} file(s): "
            f"{summary.mapped_to_existing} mapped, {summary.new_columns_created} new, "
            f"{summary.final_column_count} final columns"
        )

    def set_mapping_target(self, source_column: str, target_column: Optional[str]):
        """
        Point a source column at an existing column, or at a new column (None).

        The mapping becomes a manual one. The column order is recomputed unless
        the user has reordered it; a manual order keeps its sequence and only
        gains or loses the affected columns.

        Raises:
            UnknownColumnError: If the source or target column is unknown
            UnificationClosedError: If the unification was committed or cancelled
        """
        self._ensure_open()
        if source_column not in self.mappings:
            raise UnknownColumnError(f"Unknown source column '{source_column}'")
        if target_column is not None and target_column not in self.existing_headers:
            raise UnknownColumnError(f"Unknown target column '{target_column}'")

        self.mappings[source_column] = self.mappings[source_column].model_copy(
            update={"target_column": target_column, "match_kind": MatchKind.MANUAL}
        )
        default_order = self._default_order()
        if self._manual_order:
            kept = [c for c in self.final_column_order if c in default_order]
            added = [c for c in default_order if c not in kept]
            self.final_column_order = kept + added
        else:
            self.final_column_order = default_order
        self._infer_missing_types(self.final_column_order)
        self._sync_target_types()
        self.status = UnifierStatus.EDITED
        logger.debug(f"Mapped '{source_column}' -> {target_column or '(new column)'}")

    def set_column_type(self, column: str, column_type: ColumnType):
        """Change the type of a final column."""
        self._ensure_open()
        if column not in self.final_column_order:
            raise UnknownColumnError(f"Unknown column '{column}'")
        self.final_column_types[column] = ColumnType(column_type)
        self._sync_target_types()
        self.status = UnifierStatus.EDITED

    def set_final_column_order(self, order: Sequence[str]):
        """
        Replace the column order; it stays until the next reset.

        Raises:
            ValueError: If the order is not a permutation of the final columns
        """
        self._ensure_open()
        order = list(order)
        if len(order) != len(set(order)) or set(order) != set(self.final_column_order):
            raise ValueError("Column order must contain every final column exactly once")
        self.final_column_order = order
        self._manual_order = True
        self.status = UnifierStatus.EDITED

    def reset(self):
        """Discard every manual edit and recompute the proposal."""
        self._ensure_open()
        self.propose()

    def cancel(self):
        """Abandon the unification."""
        self._ensure_open()
        self.status = UnifierStatus.CANCELLED
        logger.info("Unification cancelled")

    def summary(self) -> UnificationSummary:
        mapped = sum(1 for m in self.mappings.values() if m.target_column)
        return UnificationSummary(
            total_new_columns=len(self.mappings),
            mapped_to_existing=mapped,
            new_columns_created=len(self.mappings) - mapped,
            final_column_count=len(self.final_column_order),
        )

    def build_rows(self, parsed: ParsedFile, file_id: str) -> list[Row]:
        """Re-key a file's rows onto the final columns."""
        rows = []
        for values in parsed.rows:
            unified = dict.fromkeys(self.final_column_order, "")
            for mapping in self.mappings.values():
                if mapping.source_column in values:
                    unified[mapping.output_column] = values[mapping.source_column]
            rows.append(Row(values=unified, file_id=file_id, file_name=parsed.name))
        return rows

    def commit(self, dataset: Dataset) -> Dataset:
        """
        Merge the incoming files into the dataset using the current mapping.

        Existing rows come first, extended with empty cells for new columns,
        followed by the incoming rows in file order.

        Returns:
            The unified dataset; ``dataset`` itself is left unchanged
        """
        self._ensure_open()
        headers = list(self.final_column_order)

        existing_rows = [
            row.model_copy(
                update={"values": {**dict.fromkeys(headers, ""), **row.values}}
            )
            for row in dataset.rows
        ]
        new_rows: list[Row] = []
        sources = []
        warnings = []
        for parsed in self.files:
            source = build_source_file(parsed)
            sources.append(source)
            warnings.extend(parsed.warnings)
            new_rows.extend(self.build_rows(parsed, source.id))

        self._infer_missing_types(headers)
        column_types = {h: self.final_column_types[h] for h in headers}

        self.status = UnifierStatus.COMMITTED
        logger.info(
            f"Committed unification: {len(headers)} columns, "
            f"{len(new_rows)} new rows from {len(sources)} file(s)"
        )
        return Dataset(
            headers=headers,
            rows=existing_rows + new_rows,
            warnings=dataset.warnings + warnings,
            files=dataset.files + sources,
            column_types=column_types,
        )
