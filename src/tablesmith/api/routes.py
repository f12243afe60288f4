"""API routes for TableSmith."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..config import settings
from ..profiles.store import TypeProfileStore
from ..schema.inference import infer_column_types
from ..schema.matcher import format_confidence, generate_mapping_suggestions
from ..schema.models import ColumnType, MatchKind
from ..schema.signature import first_mismatch, signature_of

router = APIRouter()


def get_profile_store() -> TypeProfileStore:
    """Get the global profile store (overridable in tests)."""
    from .app import get_store

    return get_store()


class InferTypesRequest(BaseModel):
    """Request to infer column types from sample rows."""

    headers: list[str]
    rows: list[dict[str, str]] = Field(default_factory=list)
    overrides: dict[str, ColumnType] = Field(default_factory=dict)
    sample_size: Optional[int] = Field(default=None, ge=1)


class SignatureRequest(BaseModel):
    """Request for the signature of a header list."""

    headers: list[str]


class CompareRequest(BaseModel):
    """Request to compare several header lists against a reference."""

    header_lists: list[list[str]]
    reference: Optional[list[str]] = None


class SuggestionsRequest(BaseModel):
    """Request for column mapping suggestions."""

    new_columns: list[str]
    existing_columns: list[str]
    min_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class SuggestionResponse(BaseModel):
    """Best match for one new column."""

    column: Optional[str] = None
    confidence: float = 0.0
    match_kind: Optional[MatchKind] = None
    label: Optional[str] = None


class ProfilePutRequest(BaseModel):
    """Request to store a type profile for a header list."""

    headers: list[str]
    profile: dict[str, ColumnType]


# Health


@router.get("/health")
async def health_check():
    """Health check endpoint with non-secret diagnostics."""
    return {
        "status": "ok",
        "service": "tablesmith",
        "config": {
            "database_path": str(settings.database_path),
            "type_sample_size": settings.type_sample_size,
            "min_match_confidence": settings.min_match_confidence,
            "learn_unified_profiles": settings.learn_unified_profiles,
        },
    }


# Schema endpoints


@router.post("/types/infer")
async def infer_types(request: InferTypesRequest):
    """Infer a type for every header from the sample rows."""
    types = infer_column_types(
        request.headers,
        request.rows,
        request.overrides,
        sample_size=request.sample_size,
    )
    return {"types": {header: t.value for header, t in types.items()}}


@router.post("/schema/signature")
async def schema_signature(request: SignatureRequest):
    """Get the canonical signature of a header list."""
    return {"signature": signature_of(request.headers)}


@router.post("/schema/compare")
async def compare_schemas(request: CompareRequest):
    """Check whether every header list matches the reference exactly."""
    if not request.header_lists and request.reference is None:
        raise HTTPException(status_code=400, detail="No header lists to compare")

    reference = request.reference
    if reference is None:
        reference = request.header_lists[0]
    mismatch = first_mismatch(request.header_lists, reference)
    return {
        "same": mismatch is None,
        "reference": reference,
        "mismatch": mismatch,
    }


@router.post("/schema/suggestions")
async def mapping_suggestions(request: SuggestionsRequest):
    """Suggest the best existing column for every new column."""
    min_confidence = request.min_confidence
    if min_confidence is None:
        min_confidence = settings.min_match_confidence

    suggestions = generate_mapping_suggestions(
        request.new_columns, request.existing_columns, min_confidence
    )
    result = {}
    for column, match in suggestions.items():
        if match is None:
            result[column] = SuggestionResponse()
        else:
            result[column] = SuggestionResponse(
                column=match.column,
                confidence=match.confidence,
                match_kind=match.match_kind,
                label=format_confidence(match.confidence),
            )
    return {"suggestions": result}


# Profile endpoints


@router.get("/profiles")
async def list_profiles(store: TypeProfileStore = Depends(get_profile_store)):
    """List every cached type profile."""
    profiles = await store.all()
    return {
        "profiles": [
            {
                "signature": signature,
                "profile": {header: t.value for header, t in profile.items()},
            }
            for signature, profile in profiles.items()
        ]
    }


@router.get("/profiles/lookup")
async def lookup_profile(
    signature: str,
    store: TypeProfileStore = Depends(get_profile_store),
):
    """Get the cached profile for a signature."""
    profile = await store.get(signature)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {
        "signature": signature,
        "profile": {header: t.value for header, t in profile.items()},
    }


@router.put("/profiles")
async def put_profile(
    request: ProfilePutRequest,
    store: TypeProfileStore = Depends(get_profile_store),
):
    """Store a profile under the signature of the given headers."""
    unknown = [header for header in request.profile if header not in request.headers]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Profile has columns not in headers: {', '.join(unknown)}",
        )

    signature = signature_of(request.headers)
    await store.put(signature, dict(request.profile))
    return {"status": "stored", "signature": signature}


@router.delete("/profiles")
async def delete_profile(
    signature: str,
    store: TypeProfileStore = Depends(get_profile_store),
):
    """Evict the cached profile for a signature."""
    deleted = await store.delete(signature)
    if not deleted:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"status": "deleted"}
