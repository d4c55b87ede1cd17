"""Vector index data models."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vectorcart.vectorstore.canonical import canonicalize_metadata


class ProductMetadata(BaseModel):
    """Canonical product metadata stored alongside each vector.

    Serialized with ``by_alias=True`` the keys are the camelCase names the
    cart layer reads.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    title: str = Field(default="", description="Product title")
    category: str = Field(default="", description="Category path")
    brand: str = Field(default="", description="Brand name")
    price: float = Field(default=0.0, description="Selling price")
    original_price: float = Field(
        default=0.0,
        alias="originalPrice",
        description="Price before discount",
    )
    discount: float = Field(default=0.0, description="Discount percentage")
    rating: float = Field(default=0.0, description="Average rating out of 5")
    review_count: int = Field(
        default=0,
        alias="reviewCount",
        description="Number of ratings",
    )
    description: str = Field(default="", description="Truncated description")
    image: str = Field(default="", description="Image URL")
    url: str = Field(default="", description="Canonical product URL")
    features: str = Field(default="", description="Truncated feature text")

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ProductMetadata":
        """Build metadata from a record using any supported field names."""
        return cls.model_validate(canonicalize_metadata(raw))

    def to_payload(self) -> dict[str, Any]:
        """Wire form with camelCase keys."""
        return self.model_dump(by_alias=True)


class IndexedItem(BaseModel):
    """A product stored in the vector index.

    Attributes:
        id: Unique product identifier.
        vector: The embedding vector.
        metadata: Canonical product metadata. Raw mappings are canonicalized.
    """

    id: str = Field(min_length=1, description="Unique product identifier")
    vector: list[float] = Field(description="Embedding vector")
    metadata: ProductMetadata = Field(
        default_factory=ProductMetadata,
        description="Product metadata",
    )

    @field_validator("metadata", mode="before")
    @classmethod
    def _canonicalize(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return ProductMetadata.from_raw(value)
        return value

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        vector: list[float],
        position: int = 0,
    ) -> "IndexedItem":
        """Build an item from a source product record.

        The id comes from ``product_id`` or ``id``, else from the record's
        position in its source file.
        """
        item_id = record.get("product_id") or record.get("id") or f"product_{position}"
        return cls(id=str(item_id), vector=vector, metadata=record)


class SearchHit(BaseModel):
    """Result from a vector similarity query.

    Attributes:
        id: Product identifier.
        score: Similarity score (higher is more similar).
        item: Product metadata. Vectors are never returned.
    """

    id: str = Field(description="Product identifier")
    score: float = Field(description="Similarity score")
    item: ProductMetadata = Field(
        default_factory=ProductMetadata,
        description="Product metadata",
    )


class IndexStats(BaseModel):
    """Aggregate index statistics."""

    model_config = ConfigDict(populate_by_name=True)

    total_count: int = Field(alias="totalCount", description="Stored vectors")
    fullness_ratio: float = Field(
        alias="fullnessRatio",
        description="Stored vectors relative to planned capacity",
    )
    dimension: int = Field(description="Vector dimensions")
