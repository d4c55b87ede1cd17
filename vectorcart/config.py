"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

GOOGLE_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMSettings(BaseSettings):
    """Generative model configuration.

    Talks to any OpenAI-compatible chat completions API. The default points
    at Gemini through Google's OpenAI-compatible endpoint.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default=GOOGLE_OPENAI_BASE_URL,
        description="Chat completions API base URL",
    )
    model: str = Field(
        default="gemini-2.5-flash",
        description="Model name to use for generation",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key (not required for local servers)",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=2048,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.3,
        description="Sampling temperature",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration.

    The Hugging Face feature-extraction API is tried first; the
    OpenAI-compatible endpoint is the fallback.
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    hf_base_url: str = Field(
        default="https://router.huggingface.co/hf-inference/models",
        description="Hugging Face inference base URL",
    )
    hf_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Primary embedding model",
    )
    hf_api_token: SecretStr | None = Field(
        default=None,
        description="Hugging Face API token (primary skipped when unset)",
    )
    fallback_base_url: str = Field(
        default=GOOGLE_OPENAI_BASE_URL,
        description="OpenAI-compatible embeddings base URL",
    )
    fallback_model: str = Field(
        default="text-embedding-004",
        description="Fallback embedding model",
    )
    fallback_api_key: SecretStr | None = Field(
        default=None,
        description="Fallback API key (fallback skipped when unset)",
    )
    dimensions: int | None = Field(
        default=384,
        description="Expected vector size; vectors of any other size are rejected",
    )
    batch_size: int = Field(
        default=5,
        description="Texts embedded concurrently per chunk",
    )
    batch_delay: float = Field(
        default=0.1,
        description="Pause between chunks in seconds",
    )
    timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
    )
    max_text_length: int = Field(
        default=512,
        description="Maximum characters sent to a provider",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="products",
        description="Product collection name",
    )
    upsert_batch_size: int = Field(
        default=100,
        description="Points per upsert request",
    )
    upsert_batch_delay: float = Field(
        default=1.0,
        description="Pause between upsert batches in seconds",
    )
    capacity: int = Field(
        default=100_000,
        description="Planned collection capacity used for the fullness ratio",
    )
    timeout: int = Field(
        default=30,
        description="Request timeout in seconds",
    )


class SearchSettings(BaseSettings):
    """Search endpoint defaults."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    default_limit: int = Field(default=10, description="Results per search")
    default_min_score: float = Field(
        default=0.45,
        description="Similarity floor applied by the search endpoint",
    )
    recommendation_limit: int = Field(
        default=5,
        description="Recommendations per product",
    )
    max_compare_items: int = Field(
        default=5,
        description="Maximum products per comparison",
    )


class SynthesisSettings(BaseSettings):
    """Response synthesis configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNTHESIS_")

    max_prompt_items: int = Field(
        default=10,
        description="Maximum products enumerated in a prompt",
    )
    description_chars: int = Field(
        default=300,
        description="Description characters included per product",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    synthesis: SynthesisSettings = Field(default_factory=SynthesisSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
