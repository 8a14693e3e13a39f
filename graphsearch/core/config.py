"""
Configuration management for graphsearch.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. The API, the CLI and the synchronizer all consume the shared
`settings` instance so that index names and the key property stay consistent
between the write path and the query path.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    # General application settings
    API_TITLE: str = "Graph Search API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    LOG_LEVEL: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Search backend
    ELASTICSEARCH_URL: AnyUrl = Field("http://localhost:9200")
    ELASTICSEARCH_USER: Optional[str] = None
    ELASTICSEARCH_PASSWORD: Optional[str] = None
    ELASTICSEARCH_TIMEOUT_SECONDS: PositiveInt = 30

    # Graph store
    NEO4J_URI: AnyUrl = Field("neo4j://localhost:7687")
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = "password"
    NEO4J_DATABASE: Optional[str] = None

    # Mapping
    INDEX_PREFIX: str = Field("graph", min_length=1)
    KEY_PROPERTY: str = Field("uuid", min_length=1)
    MAPPING: str = "default"
    MAPPING_FILE: Optional[Path] = None
    BULK_BATCH_SIZE: PositiveInt = 500
    ENSURE_INDICES_ON_STARTUP: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("MAPPING")
    def _known_mapping(cls, value: str) -> str:
        # Imported lazily: the registry pulls in the mapping variants.
        from graphsearch.mapping.registry import MAPPINGS

        name = value.strip().lower()
        if name not in MAPPINGS:
            raise ValueError(f"Unknown mapping '{value}'. Expected one of: {', '.join(sorted(MAPPINGS))}")
        return name


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
