"""Configuration management for TableSmith."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    # Database path for the type profile cache
    database_path: Path = Path(os.getenv("DATABASE_PATH", "data/tablesmith.db"))

    # Type inference
    type_sample_size: int = int(os.getenv("TYPE_SAMPLE_SIZE", "100"))
    numeric_ratio_threshold: float = float(os.getenv("NUMERIC_RATIO_THRESHOLD", "0.8"))
    heuristic_ratio_threshold: float = float(os.getenv("HEURISTIC_RATIO_THRESHOLD", "0.5"))

    # Schema reconciliation
    min_match_confidence: float = float(os.getenv("MIN_MATCH_CONFIDENCE", "0.6"))
    unifier_sample_rows: int = int(os.getenv("UNIFIER_SAMPLE_ROWS", "5"))
    # Write unified types to the profile cache on unifier commit
    learn_unified_profiles: bool = os.getenv("LEARN_UNIFIED_PROFILES", "false").lower() == "true"

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
