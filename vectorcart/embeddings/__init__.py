"""Embedding service module."""

from vectorcart.embeddings.backends import (
    EmbeddingBackend,
    HuggingFaceEmbeddingBackend,
    OpenAICompatibleEmbeddingBackend,
    normalize_vector_shape,
)
from vectorcart.embeddings.models import EmbeddingResult, ProviderAttempt
from vectorcart.embeddings.preprocessing import TextPreprocessor
from vectorcart.embeddings.service import (
    EmbeddingService,
    FallbackEmbeddingService,
    build_product_text,
)

__all__ = [
    "EmbeddingBackend",
    "EmbeddingResult",
    "EmbeddingService",
    "FallbackEmbeddingService",
    "HuggingFaceEmbeddingBackend",
    "OpenAICompatibleEmbeddingBackend",
    "ProviderAttempt",
    "TextPreprocessor",
    "build_product_text",
    "normalize_vector_shape",
]
