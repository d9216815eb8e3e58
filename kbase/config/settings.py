"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first) environment variables, then
the ``.env`` file in the working directory, then the defaults below.  Field
``openai_api_key`` maps to env var ``OPENAI_API_KEY`` and so on.

``COLLECTION_EMBEDDING_MODELS`` is parsed as JSON, e.g.
``{"legal_docs": "text-embedding-3-large"}``, binding individual
collections to a specific embedding model.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """kbase application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Vector store ===
    vector_db_provider: str = "chromadb"
    chromadb_persist_dir: str = "./data/chromadb"

    # === Blob storage ===
    blob_storage_dir: str = "./data/knowledgebase"
    # Prefix for document URLs handed back by the lister; the API serves
    # the bytes itself, so the default points at the file endpoint.
    blob_public_base_url: str = "/api/v1/knowledge"

    # === Metadata store ===
    metadata_db_path: str = "data/knowledge_meta.db"

    # === Embeddings ===
    # Empty key = OpenAI not configured -> fall through to Ollama.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = ""
    ollama_base_url: str = "http://localhost:11434"
    collection_embedding_models: dict[str, str] = Field(default_factory=dict)

    # === Chunking defaults ===
    default_chunk_size: int = Field(default=1024, ge=1)
    default_chunk_overlap: int = Field(default=12, ge=0)
    default_split_by: str = "sentence"

    # === Concurrency & timeouts ===
    upload_concurrency: int = Field(default=1, ge=1)
    chunk_concurrency: int = Field(default=1, ge=1)
    external_call_timeout: float = 30.0
    remote_fetch_timeout: float = 20.0
    remote_fetch_max_bytes: int = 50 * 1024 * 1024

    # === Audit ===
    default_user_id: str = "system"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @field_validator("default_split_by")
    @classmethod
    def _normalise_split_by(cls, value: str) -> str:
        return value.strip().lower()

    def get_available_embedding_providers(self) -> list[str]:
        """Return the embedding backends that have enough config to be tried."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers
