"""Configuration loader for the textbook RAG preparation toolkit."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Physical AI Textbook RAG"
    version: str = "1.0.0"
    language: str = "en"


class ChunkingConfig(BaseModel):
    """Chapter chunking configuration (sizes are in words)."""

    target_words: int = Field(default=300, gt=0)
    overlap_words: int = Field(default=50, ge=0)
    allow_degenerate_overlap: bool = False


class EmbeddingConfig(BaseModel):
    """Embedding API configuration."""

    provider: str = "openrouter"
    model: str = "text-embedding-3-small"
    dimensions: int = 1536
    base_url: str = "https://openrouter.ai/api/v1"
    timeout_seconds: float = 30


class VectorStoreConfig(BaseModel):
    """Vector database configuration."""

    provider: str = "qdrant"
    url: str = "http://localhost:6333"
    collection_name: str = "book_content"
    auto_upload: bool = False
    timeout_seconds: float = 30


class PipelineConfig(BaseModel):
    """Pacing and progress settings for the preparation pipeline."""

    embedding_delay_seconds: float = Field(default=0.1, ge=0)
    chapter_delay_seconds: float = Field(default=0.5, ge=0)
    progress_log_interval: int = Field(default=10, gt=0)


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    chapters_dir: str = "./docs"
    sqlite_path: str = "./db/app.db"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # API keys loaded from environment
    openrouter_api_key: str | None = None
    qdrant_api_key: str | None = None


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.

    Raises:
        ValueError: If the YAML cannot be parsed.
        pydantic.ValidationError: If the YAML contains invalid values.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            try:
                yaml_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid config file {config_file}: {exc}") from exc
        if not isinstance(yaml_data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping")

    config = AppConfig(**yaml_data)

    # Override API keys from environment
    config.openrouter_api_key = os.getenv("OPENROUTER_API_KEY")
    config.qdrant_api_key = os.getenv("QDRANT_API_KEY")

    return config
