"""Tests for application configuration."""

import os
from unittest.mock import patch

from vectorcart.config import (
    GOOGLE_OPENAI_BASE_URL,
    EmbeddingSettings,
    Environment,
    LLMSettings,
    QdrantSettings,
    SearchSettings,
    Settings,
    SynthesisSettings,
    get_settings,
)


class TestLLMSettings:
    """Tests for LLM configuration."""

    def test_default_values(self) -> None:
        """Defaults point at Gemini's OpenAI-compatible endpoint."""
        settings = LLMSettings()
        assert settings.base_url == GOOGLE_OPENAI_BASE_URL
        assert settings.model == "gemini-2.5-flash"
        assert settings.timeout == 30.0
        assert settings.temperature == 0.3

    def test_api_key_is_secret(self) -> None:
        """API key is masked when printed."""
        settings = LLMSettings()
        assert "not-required" not in str(settings.api_key)
        assert settings.api_key.get_secret_value() == "not-required"

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"LLM_MODEL": "gemini-2.0-flash"}):
            assert LLMSettings().model == "gemini-2.0-flash"


class TestEmbeddingSettings:
    """Tests for embedding configuration."""

    def test_default_values(self) -> None:
        """MiniLM is primary and both providers need credentials."""
        settings = EmbeddingSettings()
        assert settings.hf_model == "sentence-transformers/all-MiniLM-L6-v2"
        assert settings.dimensions == 384
        assert settings.batch_size == 5
        assert settings.max_text_length == 512

    def test_tokens_are_secret(self) -> None:
        """Provider credentials are masked."""
        with patch.dict(os.environ, {"EMBEDDING_HF_API_TOKEN": "hf_secret"}):
            settings = EmbeddingSettings()
            assert settings.hf_api_token is not None
            assert "hf_secret" not in str(settings.hf_api_token)
            assert settings.hf_api_token.get_secret_value() == "hf_secret"

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"EMBEDDING_BATCH_SIZE": "10"}):
            assert EmbeddingSettings().batch_size == 10


class TestQdrantSettings:
    """Tests for Qdrant configuration."""

    def test_default_values(self) -> None:
        """Default values for Qdrant."""
        settings = QdrantSettings()
        assert settings.url == "http://localhost:6333"
        assert settings.api_key is None
        assert settings.collection_name == "products"
        assert settings.upsert_batch_size == 100

    def test_api_key_is_secret_when_set(self) -> None:
        """API key is masked when set."""
        with patch.dict(os.environ, {"QDRANT_API_KEY": "secret-key"}):
            settings = QdrantSettings()
            assert settings.api_key is not None
            assert "secret-key" not in str(settings.api_key)


class TestSearchSettings:
    """Tests for search defaults."""

    def test_default_values(self) -> None:
        settings = SearchSettings()
        assert settings.default_limit == 10
        assert settings.default_min_score == 0.45
        assert settings.recommendation_limit == 5
        assert settings.max_compare_items == 5

    def test_synthesis_defaults(self) -> None:
        settings = SynthesisSettings()
        assert settings.max_prompt_items == 10
        assert settings.description_chars == 300


class TestSettings:
    """Tests for main application settings."""

    def test_default_environment(self) -> None:
        """Default environment is development."""
        assert Settings().environment == Environment.DEVELOPMENT

    def test_nested_settings_loaded(self) -> None:
        """Nested settings are initialized."""
        settings = Settings()
        assert isinstance(settings.llm, LLMSettings)
        assert isinstance(settings.embedding, EmbeddingSettings)
        assert isinstance(settings.qdrant, QdrantSettings)
        assert isinstance(settings.search, SearchSettings)
        assert isinstance(settings.synthesis, SynthesisSettings)

    def test_environment_enum(self) -> None:
        """Environment can be set via string."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            assert Settings().environment == Environment.PRODUCTION


class TestGetSettings:
    """Tests for settings singleton."""

    def test_caching(self) -> None:
        """Settings are cached."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
