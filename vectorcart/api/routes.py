"""API routes for product search."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from vectorcart.api.dependencies import (
    get_orchestrator,
    get_pipeline,
    get_search_settings,
    get_vector_index,
)
from vectorcart.config import SearchSettings
from vectorcart.logging_config import get_logger
from vectorcart.rag.models import (
    ComparisonResult,
    ItemRecommendation,
    RankedProduct,
    SearchQuery,
    SynthesizedResponse,
)
from vectorcart.rag.pipeline import ProductRAGPipeline
from vectorcart.retrieval.orchestrator import SearchOrchestrator
from vectorcart.vectorstore.models import IndexStats, ProductMetadata, SearchHit
from vectorcart.vectorstore.service import VectorIndex

logger = get_logger(__name__)


# Create router
router = APIRouter(prefix="/api/v1/products", tags=["Products"])


def _now() -> str:
    return datetime.now(UTC).isoformat()


class SearchRequest(BaseModel):
    """Request body for product search."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1, description="Free-text query")
    limit: int | None = Field(default=None, ge=1, le=100, description="Results")
    min_score: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        alias="minScore",
        description="Minimum similarity score",
    )


class CompareRequest(BaseModel):
    """Request body for product comparison."""

    model_config = ConfigDict(populate_by_name=True)

    product_ids: list[str] = Field(alias="productIds", description="Products to compare")


class ProductResult(BaseModel):
    """A product in a result list."""

    id: str = Field(description="Product identifier")
    score: float = Field(description="Similarity score")
    product: ProductMetadata = Field(description="Product metadata")
    recommendation: ItemRecommendation | None = Field(
        default=None,
        description="Why the product is recommended",
    )

    @classmethod
    def from_hit(cls, hit: SearchHit) -> "ProductResult":
        recommendation = hit.recommendation if isinstance(hit, RankedProduct) else None
        return cls(id=hit.id, score=hit.score, product=hit.item, recommendation=recommendation)


class SearchResponse(BaseModel):
    """Explained search results."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    explanation: str
    products: list[ProductResult]
    summary: str
    total_results: int = Field(alias="totalResults")
    timestamp: str
    message: str | None = None
    degraded: bool = False


class RecommendationsResponse(BaseModel):
    """Explained neighbours of one product."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    recommendations: list[ProductResult]
    explanation: str
    summary: str
    total_results: int = Field(alias="totalResults")
    timestamp: str


class CompareResponse(BaseModel):
    """Products and the comparison over them."""

    model_config = ConfigDict(populate_by_name=True)

    products: list[ProductMetadata]
    comparison: ComparisonResult
    total_products: int = Field(alias="totalProducts")
    timestamp: str


class ProductDetail(ProductMetadata):
    """Product metadata with its id and review summary."""

    id: str
    review_summary: str = Field(alias="reviewSummary")


class ProductDetailResponse(BaseModel):
    product: ProductDetail
    timestamp: str


class ProductListResponse(BaseModel):
    """Plain product list for trending and category browsing."""

    model_config = ConfigDict(populate_by_name=True)

    products: list[ProductResult]
    category: str | None = None
    total_results: int = Field(alias="totalResults")
    timestamp: str


def _search_response(result: SynthesizedResponse) -> SearchResponse:
    return SearchResponse(
        query=result.query,
        explanation=result.explanation,
        products=[ProductResult.from_hit(hit) for hit in result.results],
        summary=result.summary,
        total_results=result.total_results,
        timestamp=_now(),
        message=result.message,
        degraded=result.degraded,
    )


def _product_list(hits: list[SearchHit], category: str | None = None) -> ProductListResponse:
    return ProductListResponse(
        products=[ProductResult.from_hit(hit) for hit in hits],
        category=category,
        total_results=len(hits),
        timestamp=_now(),
    )


@router.post("/search", response_model=SearchResponse)
async def search_products(
    request: SearchRequest,
    pipeline: ProductRAGPipeline = Depends(get_pipeline),
    search_settings: SearchSettings = Depends(get_search_settings),
) -> SearchResponse:
    """Semantic product search with explanations."""
    query = SearchQuery(
        query=request.query,
        limit=request.limit or search_settings.default_limit,
        min_score=(
            search_settings.default_min_score
            if request.min_score is None
            else request.min_score
        ),
    )
    result = await pipeline.search(query)
    return _search_response(result)


@router.post("/compare", response_model=CompareResponse)
async def compare_products(
    request: CompareRequest,
    pipeline: ProductRAGPipeline = Depends(get_pipeline),
) -> CompareResponse:
    """Compare two to five products."""
    products, comparison = await pipeline.compare(request.product_ids)
    return CompareResponse(
        products=products,
        comparison=comparison,
        total_products=len(products),
        timestamp=_now(),
    )


@router.get("/stats", response_model=IndexStats)
async def index_stats(
    vector_index: VectorIndex = Depends(get_vector_index),
) -> IndexStats:
    """Vector index statistics."""
    return await vector_index.stats()


@router.get("/trending/all", response_model=ProductListResponse)
async def trending_products(
    limit: int = Query(default=20, ge=1, le=100),
    category: str | None = Query(default=None),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> ProductListResponse:
    """Popular products, optionally within a category."""
    hits = await orchestrator.trending_products(limit=limit, category=category)
    return _product_list(hits, category)


@router.get("/category/{category}", response_model=ProductListResponse)
async def products_by_category(
    category: str,
    limit: int = Query(default=20, ge=1, le=100),
    min_rating: float = Query(default=0.0, ge=0.0, le=5.0, alias="minRating"),
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
) -> ProductListResponse:
    """Products in a category, filtered by rating."""
    hits = await orchestrator.products_by_category(
        category,
        limit=limit,
        min_rating=min_rating,
    )
    return _product_list(hits, category)


@router.get("/{item_id}/recommendations", response_model=RecommendationsResponse)
async def product_recommendations(
    item_id: str,
    limit: int | None = Query(default=None, ge=1, le=50),
    pipeline: ProductRAGPipeline = Depends(get_pipeline),
    search_settings: SearchSettings = Depends(get_search_settings),
) -> RecommendationsResponse:
    """Explained products similar to one product."""
    result = await pipeline.recommend(
        item_id,
        limit=limit or search_settings.recommendation_limit,
    )
    return RecommendationsResponse(
        product_id=item_id,
        recommendations=[ProductResult.from_hit(hit) for hit in result.results],
        explanation=result.explanation,
        summary=result.summary,
        total_results=result.total_results,
        timestamp=_now(),
    )


@router.get("/{item_id}", response_model=ProductDetailResponse)
async def product_details(
    item_id: str,
    pipeline: ProductRAGPipeline = Depends(get_pipeline),
) -> ProductDetailResponse:
    """One product with an AI review summary."""
    hit, summary = await pipeline.product_details(item_id)
    return ProductDetailResponse(
        product=ProductDetail(id=hit.id, review_summary=summary, **hit.item.model_dump()),
        timestamp=_now(),
    )
