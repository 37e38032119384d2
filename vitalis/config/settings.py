"""
Vitalis - Centralized Configuration
====================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Provider Credentials
--------------------
Every external credential is **optional**.  A missing key is not an
error: the matching provider runs in fallback mode instead.

- ``HUGGINGFACE_API_KEY`` → live E5 embeddings, else the deterministic
  semantic mock.
- ``GOOGLE_API_KEY``      → live Gemini generation, else keyword answers.
- ``VECTOR_DB_URI``       → live LanceDB index, else the built-in
  three-passage mock corpus.

All keys are typed as ``SecretStr`` so the raw value is never exposed
in repr, logs, or tracebacks.

Timeouts & Retries
------------------
Embedding calls time out after 15s (60s for batches) and retry a
"model warming up" response up to three times with a fixed delay.
Generation calls time out after 30s and are never retried.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Indices [1000, 1024) of every fallback vector carry the per-text signature.
FALLBACK_SIGNATURE_WIDTH = 24


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).

    Attributes
    ----------
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    LOG_LEVEL : str | None
        Explicit log level name overriding the ``ENV`` default.
    HUGGINGFACE_API_KEY : SecretStr | None
        Hugging Face inference token for the E5 embedding model.
    EMBEDDING_MODEL_URL : str
        Inference endpoint of the embedding model.
    EMBEDDING_DIMENSIONS : int
        Vector length ``D`` produced by every embedding path.
    GOOGLE_API_KEY : SecretStr | None
        API key for Google AI Studio (Gemini).
    LLM_MODEL : str
        Model identifier for the response-generation LLM.
    VECTOR_DB_URI : str | None
        LanceDB location: a local directory or a ``db://`` cloud URI.
    VECTOR_DB_API_KEY : SecretStr | None
        API key for a LanceDB Cloud URI (unused for local directories).
    VECTOR_TABLE_NAME : str
        Table holding the reference passages.
    SEARCH_RESULTS_LIMIT : int
        Passages retrieved per chat query.
    HEALTH_INFO_RESULTS_LIMIT : int
        Passages retrieved per health-topic request.
    MAX_MESSAGE_LENGTH : int
        Longest accepted user message (after trimming).
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: str | None = None

    # ── Embeddings (Hugging Face E5) ───────────────────────────────────
    HUGGINGFACE_API_KEY: SecretStr | None = None
    EMBEDDING_MODEL_URL: str = "https://api-inference.huggingface.co/models/intfloat/multilingual-e5-large"
    EMBEDDING_DIMENSIONS: int = 1024
    EMBED_TIMEOUT_SECONDS: float = 15.0
    EMBED_BATCH_TIMEOUT_SECONDS: float = 60.0
    EMBED_BATCH_SIZE: int = 8
    EMBED_BATCH_PAUSE_SECONDS: float = 0.2
    EMBED_MAX_RETRIES: int = 3
    EMBED_RETRY_DELAY_SECONDS: float = 1.0

    # ── Generation (Gemini) ────────────────────────────────────────────
    GOOGLE_API_KEY: SecretStr | None = None
    LLM_MODEL: str = "gemini-pro"
    LLM_TIMEOUT_SECONDS: float = 30.0

    # ── Vector Store (LanceDB) ─────────────────────────────────────────
    VECTOR_DB_URI: str | None = None
    VECTOR_DB_API_KEY: SecretStr | None = None
    VECTOR_TABLE_NAME: str = "health-chatbot-index"

    # ── Retrieval & Validation ─────────────────────────────────────────
    SEARCH_RESULTS_LIMIT: int = 3
    HEALTH_INFO_RESULTS_LIMIT: int = 5
    MAX_MESSAGE_LENGTH: int = 1000

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("HUGGINGFACE_API_KEY", "GOOGLE_API_KEY", "VECTOR_DB_API_KEY", mode="before")
    @classmethod
    def _blank_secret_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


    @field_validator("VECTOR_DB_URI", mode="before")
    @classmethod
    def _blank_uri_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v


    @field_validator("EMBEDDING_DIMENSIONS")
    @classmethod
    def _dimensions_hold_signature(cls, v: int) -> int:
        if v <= FALLBACK_SIGNATURE_WIDTH:
            raise ValueError(f"EMBEDDING_DIMENSIONS must be > {FALLBACK_SIGNATURE_WIDTH}, got {v}")
        return v


    @field_validator("EMBED_BATCH_SIZE")
    @classmethod
    def _batch_size_range(cls, v: int) -> int:
        if not 1 <= v <= 64:
            raise ValueError(f"EMBED_BATCH_SIZE must be 1–64, got {v}")
        return v

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from vitalis.config.settings import settings
settings = Settings()
