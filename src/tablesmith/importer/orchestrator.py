"""Import orchestration: fast path, type review and schema unification."""

import logging
from collections.abc import Sequence
from typing import Optional, Union

from ..config import Settings, settings as default_settings
from ..dataset.models import Dataset
from ..dataset.operations import ColumnEdit, apply_column_edits, ingest_files
from ..files.reader import PathLike, read_csv_files
from ..profiles.store import InMemoryTypeProfileStore, TypeProfileStore
from ..schema.inference import infer_column_types
from ..schema.models import ParsedFile, TypeProfile
from ..schema.signature import first_mismatch, same_schema, signature_of
from .models import (
    ImportAction,
    ImportCommitted,
    ImportFailure,
    ImportMode,
    StagedImport,
    TypeReviewRequest,
    UnificationRequest,
)
from .unifier import SchemaUnifier

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """
    Decides how a batch of parsed files enters the dataset.

    This is the main entry point for imports. It coordinates the schema
    comparator, the type profile cache, type inference and the schema
    unifier. Import problems are returned as ImportFailure results and never
    raised. The dataset and the profile cache only change in the confirm
    methods (or on the direct commit paths of plan_import).
    """

    def __init__(
        self,
        store: Optional[TypeProfileStore] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Type profile cache (in-memory if not provided)
            config: Settings to use (module settings if not provided)
        """
        self.store = store or InMemoryTypeProfileStore()
        self.settings = config or default_settings

    async def _lookup_profile(self, signature: str) -> Optional[TypeProfile]:
        try:
            return await self.store.get(signature)
        except Exception as e:
            logger.warning(f"Type profile lookup failed, falling back to review: {e}")
            return None

    def _infer(self, headers: Sequence[str], rows, overrides=None):
        return infer_column_types(
            headers,
            rows,
            overrides,
            sample_size=self.settings.type_sample_size,
            numeric_threshold=self.settings.numeric_ratio_threshold,
            heuristic_threshold=self.settings.heuristic_ratio_threshold,
        )

    async def plan_import(
        self,
        dataset: Dataset,
        mode: Union[ImportMode, str],
        parsed_files: Sequence[ParsedFile],
    ) -> ImportAction:
        """
        Work out what a newly parsed batch of files should do.

        Args:
            dataset: Current dataset
            mode: "replace" or "append"
            parsed_files: Output of the CSV decoding layer, one per file

        Returns:
            ImportFailure, TypeReviewRequest, UnificationRequest or
            ImportCommitted (fast paths that need no review)
        """
        mode = ImportMode(mode)
        warnings = [w for parsed in parsed_files for w in parsed.warnings]
        for parsed in parsed_files:
            if parsed.skipped_rows:
                message = (
                    f"Skipped {len(parsed.skipped_rows)} row(s) from {parsed.name} "
                    f"due to schema mismatch"
                )
                logger.warning(message)
                warnings.append(message)

        valid = [parsed for parsed in parsed_files if parsed.is_valid]
        if not valid:
            logger.warning(f"No valid CSV headers in {len(parsed_files)} file(s)")
            return ImportFailure(title="No valid CSV headers", message="\n".join(warnings))

        if mode == ImportMode.REPLACE or dataset.is_empty:
            return await self._plan_uniform(dataset, mode, valid, warnings)

        offending = first_mismatch([p.headers for p in valid], dataset.headers)
        if offending is None:
            sources, rows = ingest_files(valid)
            logger.info(f"Appending {len(rows)} rows from {len(valid)} file(s)")
            updated = dataset.model_copy(
                update={
                    "rows": dataset.rows + rows,
                    "files": dataset.files + sources,
                    "warnings": dataset.warnings + warnings,
                }
            )
            return ImportCommitted(dataset=updated, warnings=warnings)

        logger.info(
            f"Schema of {len(valid)} file(s) differs from the dataset, starting unification"
        )
        unifier = SchemaUnifier(
            dataset.headers,
            valid,
            min_confidence=self.settings.min_match_confidence,
            sample_rows_per_file=self.settings.unifier_sample_rows,
            existing_types=dataset.column_types,
            numeric_threshold=self.settings.numeric_ratio_threshold,
            heuristic_threshold=self.settings.heuristic_ratio_threshold,
        )
        return UnificationRequest(unifier=unifier)

    async def _plan_uniform(
        self,
        dataset: Dataset,
        mode: ImportMode,
        valid: list[ParsedFile],
        warnings: list[str],
    ) -> ImportAction:
        headers = list(valid[0].headers)
        offending = first_mismatch([p.headers for p in valid], headers)
        if offending is not None:
            logger.warning(f"Schema mismatch: expected {headers}, got {offending}")
            return ImportFailure(
                title="Schema mismatch",
                message=f"Expected: {', '.join(headers)}\nGot: {', '.join(offending)}",
            )

        sources, rows = ingest_files(valid)
        signature = signature_of(headers)
        known = await self._lookup_profile(signature)

        if known is not None:
            logger.info(f"Known schema {signature}, applying cached type profile")
            updated = Dataset(
                headers=headers,
                rows=rows,
                warnings=dataset.warnings + warnings,
                files=sources,
                column_types=self._infer(headers, rows, overrides=known),
            )
            return ImportCommitted(dataset=updated, used_cached_profile=True, warnings=warnings)

        staged = StagedImport(
            headers=headers,
            rows=rows,
            files=sources,
            warnings=warnings,
            types=self._infer(headers, rows),
            signature=signature,
            mode=mode,
        )
        logger.info(f"Staged {len(rows)} rows for type review")
        return TypeReviewRequest(staged=staged)

    async def confirm_type_review(self, dataset: Dataset, staged: StagedImport) -> ImportCommitted:
        """
        Commit a reviewed import and remember its types.

        An append into a dataset with the same columns merges the profile key
        by key; otherwise the dataset is replaced and the profile overwritten.
        """
        appending = (
            staged.mode == ImportMode.APPEND
            and not dataset.is_empty
            and same_schema(staged.headers, dataset.headers)
        )
        if appending:
            updated = dataset.model_copy(
                update={
                    "rows": dataset.rows + staged.rows,
                    "files": dataset.files + staged.files,
                    "warnings": dataset.warnings + staged.warnings,
                    "column_types": {**dataset.column_types, **staged.types},
                }
            )
            await self.store.merge(staged.signature, staged.types)
        else:
            updated = Dataset(
                headers=list(staged.headers),
                rows=list(staged.rows),
                warnings=dataset.warnings + staged.warnings,
                files=list(staged.files),
                column_types=dict(staged.types),
            )
            await self.store.put(staged.signature, dict(staged.types))

        logger.info(f"Committed {len(staged.rows)} reviewed rows")
        return ImportCommitted(dataset=updated, warnings=list(staged.warnings))

    async def confirm_unification(self, dataset: Dataset, unifier: SchemaUnifier) -> ImportCommitted:
        """Commit a schema unification into the dataset."""
        updated = unifier.commit(dataset)
        if self.settings.learn_unified_profiles:
            await self.store.put(signature_of(updated.headers), dict(updated.column_types))
        added = updated.warnings[len(dataset.warnings):]
        return ImportCommitted(dataset=updated, warnings=added)

    async def save_column_edits(self, dataset: Dataset, edits: Sequence[ColumnEdit]) -> Dataset:
        """
        Apply column editor changes and remember the new schema's types.

        Raises:
            ValueError: If the edits are invalid
        """
        updated = apply_column_edits(dataset, edits)
        await self.store.put(signature_of(updated.headers), dict(updated.column_types))
        return updated

    async def import_paths(
        self,
        dataset: Dataset,
        mode: Union[ImportMode, str],
        paths: Sequence[PathLike],
    ) -> ImportAction:
        """Parse every path concurrently, then plan the import."""
        parsed_files = await read_csv_files(paths)
        return await self.plan_import(dataset, mode, parsed_files)
