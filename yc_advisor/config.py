import os
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings with validation.
    Uses Pydantic Settings for automatic env var loading and type validation.
    """

    # --- Model Configuration ---
    advisor_model: str = Field(
        default="gpt-4o",
        description="LLM that writes the advisor answer for each turn",
    )

    summary_model: str = Field(
        default="gpt-4o-mini",
        description="Fast LLM for periodic conversation summaries",
    )

    embeddings_provider: str = Field(
        default="openai",
        description="Embeddings provider (openai or google)",
    )

    embeddings_model: str = Field(
        default="text-embedding-ada-002",
        description="Embeddings model name (must match the indexed vectors)",
    )

    # --- LLM Service Configuration ---
    llm_timeout: int = Field(
        default=60,
        description="Timeout in seconds for LLM calls",
        ge=5,
        le=300,
    )
    llm_max_retries: int = Field(
        default=3,
        description="Maximum retry attempts for failed LLM calls",
        ge=1,
        le=5,
    )
    llm_rate_limit: int = Field(
        default=5,
        description="Maximum concurrent LLM requests (rate limiting)",
        ge=1,
        le=20,
    )
    embeddings_cache_size: int = Field(
        default=100,
        description="LRU cache size for embeddings queries",
        ge=0,
        le=1000,
    )

    # --- Retrieval ---
    retrieval_top_k: int = Field(
        default=2, description="Matches requested from the vector index", ge=1, le=20
    )
    match_function: str = Field(
        default="match_documents",
        description="Supabase RPC performing the similarity search",
    )

    # --- Conversation ---
    thread_retention_hours: int = Field(
        default=24, description="Idle hours before a thread leaves the registry", ge=1
    )
    thread_sweep_interval_seconds: int = Field(
        default=3600, description="Interval between registry sweeps", ge=1
    )
    stream_max_duration: int = Field(
        default=300,
        description="Maximum seconds a single chat stream may stay open",
        ge=10,
        le=900,
    )
    summarization_turn_threshold: int = Field(
        default=3,
        description="Completed turns between two conversation summaries",
        ge=1,
        le=50,
    )

    # --- Server ---
    log_level: str = Field(default="INFO", description="Root logging level")
    structured_logging: bool = Field(
        default=True, description="Emit JSON log lines instead of plain text"
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )

    # --- API Keys (Required) ---
    openai_api_key: str = Field(..., description="OpenAI API key")
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_service_key: str = Field(..., description="Supabase service key")
    google_api_key: str | None = Field(
        default=None, description="Google API key, only needed for Gemini models"
    )

    class Config:
        """Pydantic config."""

        env_file = os.getenv("DOTENV_PATH", ".env")
        case_sensitive = False
        extra = "ignore"

    def api_key_for(self, model_name: str) -> str:
        """Returns the provider key matching a model or embeddings name."""
        if "gemini" in model_name or model_name == "google":
            if not self.google_api_key:
                raise ValueError(f"GOOGLE_API_KEY is required for '{model_name}'")
            return self.google_api_key
        return self.openai_api_key


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get or create settings instance.
    Singleton pattern for consistent configuration.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
