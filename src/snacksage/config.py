"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    GEMINI_API_KEY: Google Generative Language API key (embeddings and LLM)
    EMBEDDING_MODEL: Embedding model used for chunks and queries
    LLM_MODEL: Generative model used for recipe text
    CHUNK_SIZE: Target size in characters for document chunks
    CHUNK_OVERLAP: Overlap in characters between chunks
    EMBEDDING_DELAY_SECONDS: Pause between embedding calls during indexing
    KNOWLEDGE_BASE_PATH: Reference document indexed at startup
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    gemini_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Google Generative Language API key",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language REST API",
    )

    # ==========================================================================
    # Model Configuration
    # ==========================================================================
    embedding_model: str = Field(
        default="text-embedding-004",
        description="Embedding model for document/query embeddings",
    )
    embedding_dimension: int = Field(
        default=768,
        ge=1,
        description="Dimension of embedding vectors (must match model)",
    )
    embedding_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout for a single embedding request",
    )
    embedding_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per embedding call when rate limited",
    )

    llm_model: str = Field(
        default="gemini-2.0-flash-exp",
        description="Generative model for recipe text",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Temperature for LLM generation",
    )
    llm_max_tokens: int = Field(
        default=2048,
        ge=1,
        le=8192,
        description="Maximum tokens for LLM response",
    )
    llm_timeout_seconds: int = Field(
        default=120,
        ge=1,
        description="Request timeout for generation calls",
    )

    # ==========================================================================
    # Chunking Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=100,
        le=8000,
        description="Target size in characters for document chunks",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        le=2000,
        description="Approximate characters carried over between chunks",
    )

    # ==========================================================================
    # Indexing / Retrieval Configuration
    # ==========================================================================
    embedding_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        le=10.0,
        description="Pause between consecutive embedding calls while indexing",
    )
    knowledge_base_path: Path = Field(
        default=Path("data/goodfood.pdf"),
        description="Reference document indexed for grounding",
    )
    build_index_on_startup: bool = Field(
        default=True,
        description="Build the knowledge index in the background when the API starts",
    )
    retrieval_top_k: int = Field(
        default=3,
        ge=1,
        le=50,
        description="Number of chunks to retrieve per query",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind API server",
    )
    api_port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Port for API server",
    )
    frontend_url: str = Field(
        default="*",
        description="Origin allowed by CORS",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    phoenix_endpoint: str = Field(
        default="http://localhost:6006",
        description="Arize Phoenix collector endpoint",
    )
    enable_tracing: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing to Phoenix",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 1000)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("knowledge_base_path")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Resolve paths to absolute paths."""
        return v.resolve()

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def gemini_api_key_value(self) -> Optional[str]:
        """Get the actual API key value (use sparingly)."""
        if self.gemini_api_key:
            return self.gemini_api_key.get_secret_value()
        return None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# Convenience alias
settings = get_settings()
