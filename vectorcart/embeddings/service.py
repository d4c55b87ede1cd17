"""Embedding service interface and the fallback implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from vectorcart.config import EmbeddingSettings, get_settings
from vectorcart.embeddings.backends import (
    EmbeddingBackend,
    HuggingFaceEmbeddingBackend,
    OpenAICompatibleEmbeddingBackend,
)
from vectorcart.embeddings.models import EmbeddingResult, ProviderAttempt
from vectorcart.embeddings.preprocessing import TextPreprocessor
from vectorcart.exceptions import (
    ConfigurationError,
    EmbeddingError,
    EmbeddingUnavailableError,
    MalformedResponseError,
)
from vectorcart.logging_config import get_logger
from vectorcart.observability.metrics import (
    track_embedding_fallback,
    track_embedding_request,
)

logger = get_logger(__name__)

# Source field names per product text part, in embedding order
PRODUCT_TEXT_FIELDS: tuple[tuple[str, ...], ...] = (
    ("product_name", "title", "name"),
    ("category", "product_category_tree"),
    ("description", "about_product"),
    ("brand",),
    ("product_specifications", "specifications"),
)


def build_product_text(product: Mapping[str, Any]) -> str:
    """Join the searchable text fields of a product record.

    Empty fields are skipped; parts are joined with single spaces.
    """
    parts: list[str] = []
    for aliases in PRODUCT_TEXT_FIELDS:
        for key in aliases:
            value = product.get(key)
            if value is not None and str(value).strip():
                parts.append(str(value).strip())
                break
    return " ".join(parts)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            InvalidInputError: If the text is empty after normalization.
            EmbeddingUnavailableError: If no provider could embed it.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Args:
            texts: Texts to embed.

        Returns:
            One EmbeddingResult per text, in input order.

        Raises:
            EmbeddingUnavailableError: If any text could not be embedded.
        """
        ...

    async def embed_product(self, product: Mapping[str, Any]) -> EmbeddingResult:
        """Embed the searchable text of a product record."""
        return await self.embed(build_product_text(product))

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the primary model name."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int | None:
        """Get the expected embedding dimensions, if known."""
        ...


class FallbackEmbeddingService(EmbeddingService):
    """Embeds text by trying an ordered list of backends.

    The first backend is the primary. Every attempt produces a
    ``ProviderAttempt``; the first successful one wins. When all fail,
    ``EmbeddingUnavailableError`` carries the primary's error message.

    Batches run in chunks: texts inside a chunk are embedded concurrently,
    chunks are sent one after the other with a short pause between them.
    Batches are atomic: one failed text fails the whole call.
    """

    def __init__(
        self,
        backends: Sequence[EmbeddingBackend],
        settings: EmbeddingSettings | None = None,
        preprocessor: TextPreprocessor | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            backends: Backends in fallback order, primary first.
            settings: Embedding configuration.
            preprocessor: Text normalizer.

        Raises:
            ConfigurationError: If no backend is given.
        """
        if not backends:
            raise ConfigurationError("At least one embedding backend is required")

        self._backends = list(backends)
        self._settings = settings or get_settings().embedding
        self._preprocessor = preprocessor or TextPreprocessor(
            max_length=self._settings.max_text_length
        )

    @classmethod
    def from_settings(
        cls,
        settings: EmbeddingSettings | None = None,
    ) -> "FallbackEmbeddingService":
        """Build the chain from configuration.

        Backends without credentials are left out.

        Raises:
            ConfigurationError: If no backend has credentials.
        """
        settings = settings or get_settings().embedding
        backends: list[EmbeddingBackend] = []
        if settings.hf_api_token is not None:
            backends.append(HuggingFaceEmbeddingBackend(settings=settings))
        if settings.fallback_api_key is not None:
            backends.append(OpenAICompatibleEmbeddingBackend(settings=settings))

        if not backends:
            raise ConfigurationError(
                "No embedding provider configured",
                details={"env": ["EMBEDDING_HF_API_TOKEN", "EMBEDDING_FALLBACK_API_KEY"]},
            )
        return cls(backends, settings=settings)

    @property
    def backends(self) -> list[EmbeddingBackend]:
        return list(self._backends)

    @property
    def model_name(self) -> str:
        return self._backends[0].model_name

    @property
    def dimensions(self) -> int | None:
        return self._settings.dimensions

    async def close(self) -> None:
        """Close every backend's HTTP client."""
        for backend in self._backends:
            await backend.close()

    async def embed(self, text: str) -> EmbeddingResult:
        clean_text = self._preprocessor.normalize(text)

        attempts: list[ProviderAttempt] = []
        for position, backend in enumerate(self._backends):
            attempt = await self._attempt(backend, clean_text)
            attempts.append(attempt)

            if attempt.ok and attempt.embedding is not None:
                if position > 0:
                    track_embedding_fallback(backend.name)
                    logger.info(
                        f"Embedding served by fallback backend {backend.name}",
                        extra={"failed": [a.backend for a in attempts[:-1]]},
                    )
                return EmbeddingResult(
                    text=clean_text,
                    embedding=attempt.embedding,
                    model=attempt.model,
                    backend=attempt.backend,
                    dimensions=len(attempt.embedding),
                )

        primary_error = attempts[0].error or "embedding failed"
        raise EmbeddingUnavailableError(
            primary_error,
            details={"attempts": [a.model_dump(exclude={"embedding"}) for a in attempts]},
        )

    async def embed_batch(self, texts: Sequence[str]) -> list[EmbeddingResult]:
        if not texts:
            return []

        # Reject bad input before any request is sent
        for text in texts:
            self._preprocessor.normalize(text)

        results: list[EmbeddingResult] = []
        chunk_size = max(1, self._settings.batch_size)

        for start in range(0, len(texts), chunk_size):
            chunk = texts[start : start + chunk_size]
            outcomes = await asyncio.gather(
                *(self.embed(text) for text in chunk),
                return_exceptions=True,
            )

            failures: list[dict[str, Any]] = []
            for offset, outcome in enumerate(outcomes):
                if isinstance(outcome, Exception):
                    failures.append({"index": start + offset, "error": str(outcome)})
                elif isinstance(outcome, BaseException):
                    raise outcome

            if failures:
                logger.error(
                    f"Batch embedding failed for {len(failures)} of {len(texts)} texts",
                    extra={"failed_indexes": [f["index"] for f in failures]},
                )
                raise EmbeddingUnavailableError(
                    f"{len(failures)} of {len(texts)} texts could not be embedded",
                    details={"failures": failures, "completed": len(results)},
                )

            results.extend(o for o in outcomes if isinstance(o, EmbeddingResult))

            if start + chunk_size < len(texts) and self._settings.batch_delay > 0:
                await asyncio.sleep(self._settings.batch_delay)

        return results

    async def _attempt(self, backend: EmbeddingBackend, text: str) -> ProviderAttempt:
        """Ask one backend for a vector, never raising provider errors."""
        start = time.perf_counter()
        try:
            async with asyncio.timeout(self._settings.timeout):
                vector = await backend.embed_text(text)
            self._check_dimensions(backend, vector)
        except EmbeddingError as e:
            error = e.message
        except TimeoutError:
            error = f"{backend.name} timed out after {self._settings.timeout}s"
        else:
            track_embedding_request(backend.name, time.perf_counter() - start)
            return ProviderAttempt(
                backend=backend.name,
                model=backend.model_name,
                embedding=vector,
            )

        track_embedding_request(
            backend.name, time.perf_counter() - start, success=False
        )
        logger.warning(
            f"Embedding backend {backend.name} failed: {error}",
            extra={"backend": backend.name},
        )
        return ProviderAttempt(
            backend=backend.name,
            model=backend.model_name,
            error=error,
        )

    def _check_dimensions(self, backend: EmbeddingBackend, vector: list[float]) -> None:
        expected = self._settings.dimensions
        if expected is not None and len(vector) != expected:
            raise MalformedResponseError(
                f"{backend.name} returned {len(vector)} dimensions, expected {expected}",
                details={"backend": backend.name},
            )
