"""Type profile cache: confirmed column types keyed by schema signature."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from ..config import settings
from ..schema.models import ColumnType, TypeProfile

logger = logging.getLogger(__name__)


def profile_to_json(profile: TypeProfile) -> str:
    """Serialize a profile as a {header: "text" | "number"} JSON object."""
    return json.dumps(
        {header: ColumnType(t).value for header, t in profile.items()}, ensure_ascii=False
    )


def profile_from_json(raw: str) -> TypeProfile:
    """Parse a stored profile, coercing values to ColumnType."""
    return {header: ColumnType(t) for header, t in json.loads(raw).items()}


class TypeProfileStore(ABC):
    """Key-value storage for type profiles. No eviction policy is applied."""

    @abstractmethod
    async def get(self, signature: str) -> Optional[TypeProfile]:
        """Get the profile stored for a signature, if any."""

    @abstractmethod
    async def put(self, signature: str, profile: TypeProfile):
        """Store a profile, replacing any previous one for the signature."""

    @abstractmethod
    async def delete(self, signature: str) -> bool:
        """Evict a profile. Returns True if one was removed."""

    @abstractmethod
    async def all(self) -> dict[str, TypeProfile]:
        """Get every stored profile."""

    async def merge(self, signature: str, profile: TypeProfile) -> TypeProfile:
        """
        Merge a profile key by key over the one already stored.

        Returns:
            The merged profile that was written
        """
        merged = dict(await self.get(signature) or {})
        merged.update(profile)
        await self.put(signature, merged)
        return merged


class InMemoryTypeProfileStore(TypeProfileStore):
    """In-memory profile cache guarded by an asyncio.Lock."""

    def __init__(self, profiles: Optional[dict[str, TypeProfile]] = None):
        self._profiles: dict[str, TypeProfile] = {
            signature: dict(profile) for signature, profile in (profiles or {}).items()
        }
        self._lock = asyncio.Lock()

    async def get(self, signature: str) -> Optional[TypeProfile]:
        async with self._lock:
            profile = self._profiles.get(signature)
            return dict(profile) if profile is not None else None

    async def put(self, signature: str, profile: TypeProfile):
        async with self._lock:
            self._profiles[signature] = {h: ColumnType(t) for h, t in profile.items()}

    async def delete(self, signature: str) -> bool:
        async with self._lock:
            return self._profiles.pop(signature, None) is not None

    async def all(self) -> dict[str, TypeProfile]:
        async with self._lock:
            return {signature: dict(p) for signature, p in self._profiles.items()}

    def size(self) -> int:
        """Get the number of cached profiles."""
        return len(self._profiles)


class SqliteTypeProfileStore(TypeProfileStore):
    """Profile cache persisted in SQLite."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else settings.database_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self):
        """Initialize the database and create the table if it doesn't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS type_profiles (
                signature TEXT PRIMARY KEY,
                profile TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        await self._connection.commit()
        logger.info(f"SqliteTypeProfileStore initialized at {self.db_path}")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _conn(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SqliteTypeProfileStore is not initialized")
        return self._connection

    async def get(self, signature: str) -> Optional[TypeProfile]:
        async with self._conn().execute(
            "SELECT profile FROM type_profiles WHERE signature = ?", (signature,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return profile_from_json(row[0])
        return None

    async def put(self, signature: str, profile: TypeProfile):
        conn = self._conn()
        await conn.execute(
            """
            INSERT OR REPLACE INTO type_profiles (signature, profile, updated_at)
            VALUES (?, ?, ?)
            """,
            (
                signature,
                profile_to_json(profile),
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        await conn.commit()
        logger.info(f"Stored type profile for {signature} ({len(profile)} columns)")

    async def delete(self, signature: str) -> bool:
        conn = self._conn()
        cursor = await conn.execute(
            "DELETE FROM type_profiles WHERE signature = ?", (signature,)
        )
        await conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted type profile for {signature}")
        return deleted

    async def all(self) -> dict[str, TypeProfile]:
        async with self._conn().execute(
            "SELECT signature, profile FROM type_profiles ORDER BY updated_at"
        ) as cursor:
            rows = await cursor.fetchall()
            return {row[0]: profile_from_json(row[1]) for row in rows}
