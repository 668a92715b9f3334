"""Application settings loaded from environment variables via pydantic-settings.

Values come from environment variables first, then the project-root
``.env`` file, then the defaults below.  Field ``rate_limit_per_hour`` maps
to env var ``RATE_LIMIT_PER_HOUR`` and so on.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """mediaquery application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Inference (OpenAI or any OpenAI-compatible endpoint) ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # e.g. a TogetherAI or local vLLM endpoint
    openai_text_model: str = ""
    openai_embedding_model: str = ""

    # === Storage ===
    media_db_path: str = "data/media.db"
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "media_alt_text"

    # === Page fetching for deep analysis ===
    # When set, pages are fetched as ``{cors_proxy_url}?url=<page>``.
    cors_proxy_url: str = ""
    page_fetch_timeout: float = 15.0

    # === Admission gate ===
    api_key: str = ""
    require_api_key: bool = True
    enable_rate_limiting: bool = True
    rate_limit_per_hour: int = 100
    rate_limit_window_seconds: int = 3600
    client_ip_header: str = "CF-Connecting-IP"

    # === Caching ===
    analysis_cache_ttl_seconds: int = 604800  # one week
    cache_max_size: int = 10000

    # === Ingestion ===
    max_batch_size: int = 500
    embedding_concurrency: int = 16

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
