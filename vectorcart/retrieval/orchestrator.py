"""Search orchestration over the embedding service and vector index."""

import math
from collections.abc import Sequence

from vectorcart.embeddings.service import EmbeddingService
from vectorcart.exceptions import (
    InsufficientItemsError,
    InvalidInputError,
    VectorCartError,
)
from vectorcart.logging_config import get_logger
from vectorcart.observability.metrics import track_search_request
from vectorcart.vectorstore.models import ProductMetadata, SearchHit
from vectorcart.vectorstore.service import VectorIndex

logger = get_logger(__name__)

MIN_COMPARE_ITEMS = 2
MAX_COMPARE_ITEMS = 5
TRENDING_QUERY = "popular trending products"


def popularity_score(item: ProductMetadata) -> float:
    """Rating-weighted popularity used to rank trending products."""
    return item.rating * 0.7 + math.log(item.review_count + 1) * 0.3


class SearchOrchestrator:
    """Semantic search, neighbour recommendations and comparison lookups.

    Score filtering happens client-side after the index returns its
    ``top_k`` neighbours, so callers may receive fewer than ``top_k`` hits.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndex,
        max_compare_items: int = MAX_COMPARE_ITEMS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            embedding_service: Service for query embeddings.
            vector_index: Product index.
            max_compare_items: Upper bound on ids per comparison.
        """
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._max_compare_items = max_compare_items

    async def semantic_search(
        self,
        query: str,
        top_k: int = 10,
        min_score: float = 0.0,
    ) -> list[SearchHit]:
        """Find products semantically similar to a free-text query.

        Args:
            query: Free-text query.
            top_k: Neighbours requested from the index.
            min_score: Hits scoring below this are dropped.

        Returns:
            Hits in the index's order (descending score), filtered.

        Raises:
            InvalidInputError: If the query is empty or top_k < 1.
            EmbeddingUnavailableError: If the query cannot be embedded.
            VectorStoreError: If the index query fails.
        """
        if top_k < 1:
            raise InvalidInputError("top_k must be at least 1", details={"top_k": top_k})

        embedding = await self._embedding_service.embed(query)
        hits = await self._vector_index.query(embedding.embedding, top_k=top_k)

        filtered = [hit for hit in hits if hit.score >= min_score]

        scores = [hit.score for hit in hits]
        avg_score = sum(scores) / len(scores) if scores else 0.0
        logger.info(
            f"Found {len(hits)} similar products (avg score: {avg_score:.3f}). "
            f"After minScore {min_score}: {len(filtered)}",
            extra={"top_k": top_k, "query_length": len(query)},
        )
        track_search_request(len(filtered), filtered[0].score if filtered else 0.0)

        return filtered

    async def recommend_similar(self, item_id: str, top_k: int = 5) -> list[SearchHit]:
        """Find the nearest neighbours of an indexed product.

        One extra neighbour is requested because the source product is
        usually its own nearest match.

        Raises:
            InvalidInputError: If item_id is empty or top_k < 1.
            ItemNotFoundError: If the product is not indexed.
        """
        if not item_id:
            raise InvalidInputError("Product ID is required")
        if top_k < 1:
            raise InvalidInputError("top_k must be at least 1", details={"top_k": top_k})

        source = await self._vector_index.fetch(item_id)
        hits = await self._vector_index.query(source.vector, top_k=top_k + 1)

        return [hit for hit in hits if hit.id != item_id][:top_k]

    async def compare_items(self, item_ids: Sequence[str]) -> list[ProductMetadata]:
        """Resolve the products to compare.

        Each id is looked up independently; a failed lookup is logged and
        skipped.

        Raises:
            InvalidInputError: If the id count is outside [2, max].
            InsufficientItemsError: If fewer than two ids resolve.
        """
        if not (MIN_COMPARE_ITEMS <= len(item_ids) <= self._max_compare_items):
            raise InvalidInputError(
                f"Provide between {MIN_COMPARE_ITEMS} and "
                f"{self._max_compare_items} product IDs for comparison",
                details={"count": len(item_ids)},
            )

        products: list[ProductMetadata] = []
        for item_id in item_ids:
            try:
                hits = await self.semantic_search(f"product_id:{item_id}", top_k=1)
            except VectorCartError as e:
                logger.error(
                    f"Error fetching product {item_id}: {e.message}",
                    extra={"id": item_id, "error_code": e.code.value},
                )
                continue

            if hits:
                products.append(hits[0].item)
            else:
                logger.warning(f"No product resolved for {item_id}")

        if len(products) < MIN_COMPARE_ITEMS:
            raise InsufficientItemsError(
                "Not enough valid products found for comparison",
                details={"requested": len(item_ids), "resolved": len(products)},
            )
        return products

    async def find_product(self, item_id: str) -> SearchHit:
        """Look up one product by id.

        Raises:
            ItemNotFoundError: If the product is not indexed.
        """
        if not item_id:
            raise InvalidInputError("Product ID is required")

        item = await self._vector_index.fetch(item_id)
        return SearchHit(id=item.id, score=1.0, item=item.metadata)

    async def trending_products(
        self,
        limit: int = 20,
        category: str | None = None,
    ) -> list[SearchHit]:
        """Popular products, optionally within a category.

        Hits are re-ranked by ``popularity_score`` instead of similarity.
        """
        query = f"{TRENDING_QUERY} {category}" if category else TRENDING_QUERY
        hits = await self.semantic_search(query, top_k=limit)
        return sorted(hits, key=lambda hit: popularity_score(hit.item), reverse=True)

    async def products_by_category(
        self,
        category: str,
        limit: int = 20,
        min_rating: float = 0.0,
    ) -> list[SearchHit]:
        """Products whose category contains ``category``.

        Twice ``limit`` neighbours are requested so the category and rating
        filters still leave enough hits.
        """
        if not category or not category.strip():
            raise InvalidInputError("Category is required")

        hits = await self.semantic_search(category, top_k=limit * 2)
        wanted = category.lower()
        matching = [
            hit
            for hit in hits
            if wanted in hit.item.category.lower() and hit.item.rating >= min_rating
        ]
        return matching[:limit]
