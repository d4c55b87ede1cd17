"""RAG pipeline data models."""

from pydantic import BaseModel, ConfigDict, Field

from vectorcart.vectorstore.models import SearchHit


class ItemRecommendation(BaseModel):
    """Why one result is recommended.

    Attributes:
        reason: Short justification for the product.
        key_benefits: Main selling points.
    """

    model_config = ConfigDict(populate_by_name=True)

    reason: str = Field(description="Why the product is recommended")
    key_benefits: str = Field(alias="keyBenefits", description="Main selling points")


class RankedProduct(SearchHit):
    """A search hit together with its recommendation."""

    recommendation: ItemRecommendation = Field(description="Per-product recommendation")


class SynthesizedResponse(BaseModel):
    """Explained search results.

    Attributes:
        query: The query the results answer.
        explanation: Why the results match.
        recommendations: Recommendation per result position.
        summary: Short summary of all results.
        results: Ranked products, in search order.
        message: Set when nothing matched.
        degraded: True when a template replaced model output.
        total_results: Number of results.
    """

    query: str = Field(description="Original query")
    explanation: str = Field(default="", description="Why the results match")
    recommendations: dict[int, ItemRecommendation] = Field(
        default_factory=dict,
        description="Recommendation keyed by result position",
    )
    summary: str = Field(default="", description="Summary of all results")
    results: list[RankedProduct] = Field(
        default_factory=list,
        description="Ranked products",
    )
    message: str | None = Field(default=None, description="No-results message")
    degraded: bool = Field(default=False, description="Template fallback used")
    total_results: int = Field(default=0, description="Number of results")


class ComparisonResult(BaseModel):
    """Model verdict over two or more products.

    Indexes are 0-based positions in the compared list.
    """

    model_config = ConfigDict(populate_by_name=True)

    best_overall: int = Field(default=0, ge=0, alias="bestOverall")
    best_price: int = Field(default=0, ge=0, alias="bestPrice")
    best_rated: int = Field(default=0, ge=0, alias="bestRated")
    comparison: str = Field(description="How the products differ")
    recommendation: str = Field(description="Which product to choose and why")
    degraded: bool = Field(default=False, exclude=True)


class ModelRecommendation(BaseModel):
    """One entry of the model's ``recommendations`` array."""

    model_config = ConfigDict(populate_by_name=True)

    product_index: int = Field(alias="productIndex")
    reason: str = Field(min_length=1)
    key_benefits: str = Field(alias="keyBenefits", min_length=1)


class ModelExplanation(BaseModel):
    """Shape the explanation prompt asks the model for."""

    explanation: str = Field(min_length=1)
    recommendations: list[ModelRecommendation] = Field(default_factory=list)
    summary: str = Field(min_length=1)


class SearchQuery(BaseModel):
    """Input for a product search.

    Attributes:
        query: Free-text query.
        limit: Neighbours requested from the index.
        min_score: Minimum similarity score.
    """

    query: str = Field(min_length=1, description="Free-text query")
    limit: int = Field(default=10, ge=1, le=100, description="Results to retrieve")
    min_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Minimum similarity score",
    )
