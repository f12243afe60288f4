"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio

from tablesmith.config import Settings
from tablesmith.profiles import InMemoryTypeProfileStore, SqliteTypeProfileStore
from tablesmith.schema import ParsedFile


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings with test values."""
    return Settings(
        database_path=tmp_path / "test.db",
        type_sample_size=100,
        numeric_ratio_threshold=0.8,
        heuristic_ratio_threshold=0.5,
        min_match_confidence=0.6,
        unifier_sample_rows=5,
        learn_unified_profiles=False,
        host="127.0.0.1",
        port=8000,
        debug=False,
        cors_allow_origins=["*"],
    )


@pytest.fixture
def make_parsed() -> Callable[..., ParsedFile]:
    """Factory for parsed files as the CSV reader would return them."""

    def _make(name: str, headers: list[str], rows: list[dict[str, str]], **kwargs) -> ParsedFile:
        return ParsedFile(name=name, headers=headers, rows=rows, **kwargs)

    return _make


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing text files into the test directory."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def memory_store() -> InMemoryTypeProfileStore:
    """Create an empty in-memory profile store."""
    return InMemoryTypeProfileStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path):
    """Create a test SQLite profile store."""
    store = SqliteTypeProfileStore(tmp_path / "profiles" / "test_profiles.db")
    await store.initialize()
    yield store
    await store.close()
