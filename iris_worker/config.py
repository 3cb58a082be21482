from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


_PACKAGE_DIR = Path(__file__).resolve().parent
# Later files win: the package-level .env overrides the repo-level one
ENV_FILES = (str(_PACKAGE_DIR.parent / ".env"), str(_PACKAGE_DIR / ".env"))


class Settings(BaseSettings):
    """Application settings.

    Values come from IRIS_* environment variables or from optional .env files
    at the repo root and in the package directory. Real environment variables
    take precedence over .env entries.
    """

    # HTTP
    cors_allow_origins: str = Field(
        "http://localhost:5173,http://localhost:3000", description="Comma-separated origins"
    )

    # Model service (Ollama-compatible /api/generate)
    ollama_host: str = Field("http://localhost:11434", description="Base URL of the model server")
    ollama_model: str = Field("llama3.2", description="Model identifier sent with every request")
    model_timeout_s: float = Field(30.0, gt=0, description="Hard timeout for one extraction call")
    model_temperature: float = 0.1
    model_top_p: float = 0.8
    model_max_tokens: int = Field(512, ge=1, description="num_predict cap on the model output")

    # Extraction
    reference_year: int = Field(2025, description="Year assumed when a date omits it")
    history_limit: Optional[int] = Field(None, ge=1, description="Only read the last N messages")

    # Storage
    store_backend: str = Field("memory", description="memory|sqlite")
    db_path: str = Field("iris.db", description="SQLite file used by the sqlite backend")

    # Logging
    log_level: str = Field("INFO", description="Level name or number for the app loggers")

    class Config:
        env_prefix = "IRIS_"
        case_sensitive = False
        protected_namespaces = ()
        env_file = ENV_FILES
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
