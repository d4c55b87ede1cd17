"""Embedding data models."""

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Result of an embedding operation.

    Attributes:
        text: The normalized text that was embedded.
        embedding: The embedding vector.
        model: The model used to generate the embedding.
        backend: Name of the backend that answered.
        dimensions: Number of dimensions in the embedding.
    """

    model_config = {"frozen": True}

    text: str = Field(description="Normalized text")
    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    backend: str = Field(description="Backend that produced the vector")
    dimensions: int = Field(description="Vector dimensions")

    def model_post_init(self, __context: object) -> None:
        """Validate dimensions match embedding length."""
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )


class ProviderAttempt(BaseModel):
    """Outcome of asking one backend for a vector.

    Exactly one of ``embedding`` and ``error`` is set.
    """

    backend: str = Field(description="Backend name")
    model: str = Field(description="Backend model")
    embedding: list[float] | None = Field(default=None, description="Vector on success")
    error: str | None = Field(default=None, description="Failure reason")

    @property
    def ok(self) -> bool:
        return self.embedding is not None
