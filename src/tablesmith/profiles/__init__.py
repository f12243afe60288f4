"""Persistence of confirmed column types by schema signature."""

from .store import (
    TypeProfileStore,
    InMemoryTypeProfileStore,
    SqliteTypeProfileStore,
    profile_from_json,
    profile_to_json,
)

__all__ = [
    "TypeProfileStore",
    "InMemoryTypeProfileStore",
    "SqliteTypeProfileStore",
    "profile_from_json",
    "profile_to_json",
]
