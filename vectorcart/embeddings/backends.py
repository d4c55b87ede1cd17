"""Remote embedding backends.

Each backend turns one normalized text into one vector through a single
HTTP call. Fallback ordering lives in the embedding service, not here.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from vectorcart.config import EmbeddingSettings, get_settings
from vectorcart.exceptions import EmbeddingError, ErrorCode, MalformedResponseError
from vectorcart.logging_config import get_logger

logger = get_logger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_vector(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(_is_number(v) for v in value)


def normalize_vector_shape(data: Any) -> list[float]:
    """Accept either a vector or a one-element batch holding a vector.

    Args:
        data: Decoded provider response.

    Returns:
        The vector as floats.

    Raises:
        MalformedResponseError: If neither shape matches.
    """
    if _is_vector(data):
        return [float(v) for v in data]
    if isinstance(data, list) and len(data) == 1 and _is_vector(data[0]):
        return [float(v) for v in data[0]]
    raise MalformedResponseError(
        "Unexpected embedding response format",
        details={"type": type(data).__name__},
    )


class EmbeddingBackend(ABC):
    """Abstract base class for a single embedding API."""

    name: str = "backend"

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @abstractmethod
    async def embed_text(self, text: str) -> list[float]:
        """Embed one normalized text.

        Raises:
            EmbeddingError: If the request fails.
            MalformedResponseError: If the response has no usable vector.
        """
        ...

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> Any:
        """POST a JSON payload and decode the JSON answer."""
        client = await self._get_client()

        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"{self.name} embedding request failed: {status}",
                extra={"url": url, "status": status},
            )
            raise EmbeddingError(
                f"{self.name} returned {status}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"backend": self.name, "status_code": status},
            ) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.error(
                f"{self.name} embedding request error: {e}",
                extra={"url": url},
            )
            raise EmbeddingError(
                f"Failed to connect to {self.name}: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"backend": self.name, "url": url},
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"{self.name} returned invalid JSON",
                details={"backend": self.name},
            ) from e


class HuggingFaceEmbeddingBackend(EmbeddingBackend):
    """Hugging Face Inference feature-extraction pipeline.

    Sentence-transformer models answer with a pooled vector, but some
    deployments wrap it in a one-element batch; both are accepted.
    """

    name = "huggingface"

    @property
    def model_name(self) -> str:
        return self._settings.hf_model

    async def embed_text(self, text: str) -> list[float]:
        url = (
            f"{self._settings.hf_base_url.rstrip('/')}/"
            f"{self._settings.hf_model}/pipeline/feature-extraction"
        )
        headers: dict[str, str] = {}
        if self._settings.hf_api_token is not None:
            token = self._settings.hf_api_token.get_secret_value()
            headers["Authorization"] = f"Bearer {token}"

        data = await self._post(
            url,
            {"inputs": text, "options": {"wait_for_model": True}},
            headers,
        )
        return normalize_vector_shape(data)


class OpenAICompatibleEmbeddingBackend(EmbeddingBackend):
    """Embedding backend for OpenAI-style ``/embeddings`` APIs.

    Works with:
    - Google Gemini (OpenAI-compatible endpoint)
    - OpenAI API
    - text-embeddings-inference (TEI) servers
    """

    name = "openai-compatible"

    @property
    def model_name(self) -> str:
        return self._settings.fallback_model

    async def embed_text(self, text: str) -> list[float]:
        url = f"{self._settings.fallback_base_url.rstrip('/')}/embeddings"
        payload: dict[str, Any] = {
            "input": text,
            "model": self._settings.fallback_model,
        }
        if self._settings.dimensions is not None:
            payload["dimensions"] = self._settings.dimensions

        headers: dict[str, str] = {}
        if self._settings.fallback_api_key is not None:
            api_key = self._settings.fallback_api_key.get_secret_value()
            headers["Authorization"] = f"Bearer {api_key}"

        data = await self._post(url, payload, headers)

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                f"Invalid response from {self.name}: {e}",
                details={"backend": self.name},
            ) from e

        if not _is_vector(embedding):
            raise MalformedResponseError(
                f"Invalid embedding in {self.name} response",
                details={"backend": self.name},
            )
        return [float(v) for v in embedding]
