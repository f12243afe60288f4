"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..profiles.store import SqliteTypeProfileStore
from .routes import router

# Global profile store instance
_store: Optional[SqliteTypeProfileStore] = None


def get_store() -> SqliteTypeProfileStore:
    """Get the global type profile store."""
    global _store
    if _store is None:
        _store = SqliteTypeProfileStore()
    return _store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    store = get_store()
    await store.initialize()
    yield
    await store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="TableSmith",
        description="CSV import, schema reconciliation and column type inference",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    return app
