"""Import orchestration and schema unification."""

from .models import (
    ImportMode,
    ImportFailure,
    StagedImport,
    TypeReviewRequest,
    UnificationRequest,
    ImportCommitted,
    ImportAction,
)
from .unifier import SchemaUnifier
from .orchestrator import ImportOrchestrator

__all__ = [
    "ImportMode",
    "ImportFailure",
    "StagedImport",
    "TypeReviewRequest",
    "UnificationRequest",
    "ImportCommitted",
    "ImportAction",
    "SchemaUnifier",
    "ImportOrchestrator",
]
