"""Application settings loaded from environment variables via pydantic-settings.

Values are read from two sources, highest priority first:

  1. Environment variables, e.g. ``CHUNK_MAX_SIZE=4000``
  2. A ``.env`` file in the working directory

Field ``chunk_max_size`` maps to env var ``CHUNK_MAX_SIZE``.  Defaults apply
when neither source sets a value.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """NeuralDoc application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Vectorization & chunking ===
    embedding_dimension: int = Field(default=1536, ge=1)
    chunk_max_size: int = Field(default=6000, ge=1)

    # === Ingestion concurrency ===
    # Batch size and in-batch fan-out bound are the same number.
    file_batch_concurrency: int = Field(default=100, ge=1)
    url_batch_concurrency: int = Field(default=50, ge=1)

    # === Web crawling ===
    crawl_max_pages: int = Field(default=10, ge=0)
    crawl_fetch_concurrency: int = Field(default=10, ge=1)
    fetch_timeout_seconds: float = 15.0
    crawl_user_agent: str = "Mozilla/5.0 (compatible; DocumentBot/1.0)"

    # === Retrieval ===
    semantic_top_k: int = 5
    context_top_k: int = 3
    max_context_chunks: int = 8
    max_keyword_matches: int = 3
    keyword_match_similarity: float = 0.5

    # === Chat ===
    chat_history_limit: int = 12
    chat_context_window: int = 16
    max_sources: int = 3
    response_excerpts: int = 3

    # === Uploads & storage ===
    max_upload_bytes: int = 100 * 1024 * 1024
    upload_dir: str = "data/uploads"
    repository_backend: str = "memory"  # "memory" | "sqlite"
    sqlite_db_path: str = "data/neuraldoc.db"
    config_path: str = "config/config.yaml"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
