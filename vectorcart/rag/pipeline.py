"""Product RAG pipeline."""

from collections.abc import Sequence

from vectorcart.logging_config import get_logger
from vectorcart.rag.models import ComparisonResult, SearchQuery, SynthesizedResponse
from vectorcart.rag.synthesizer import ResponseSynthesizer
from vectorcart.retrieval.orchestrator import SearchOrchestrator
from vectorcart.vectorstore.models import ProductMetadata, SearchHit

logger = get_logger(__name__)


class ProductRAGPipeline:
    """Orchestrates retrieval and synthesis.

    Combines the search orchestrator and the response synthesizer into the
    operations the HTTP layer serves.
    """

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        synthesizer: ResponseSynthesizer,
    ) -> None:
        """Initialize the pipeline.

        Args:
            orchestrator: Search orchestrator.
            synthesizer: Response synthesizer.
        """
        self._orchestrator = orchestrator
        self._synthesizer = synthesizer

    @property
    def orchestrator(self) -> SearchOrchestrator:
        return self._orchestrator

    async def search(self, request: SearchQuery) -> SynthesizedResponse:
        """Search products and explain the results.

        Args:
            request: The search request.

        Returns:
            SynthesizedResponse; empty results carry a no-match message.
        """
        logger.info(
            "Processing product search",
            extra={"query_length": len(request.query), "limit": request.limit},
        )

        hits = await self._orchestrator.semantic_search(
            query=request.query,
            top_k=request.limit,
            min_score=request.min_score,
        )
        return await self._synthesizer.explain_results(request.query, hits)

    async def recommend(self, item_id: str, limit: int = 5) -> SynthesizedResponse:
        """Explain the nearest neighbours of one product."""
        hits = await self._orchestrator.recommend_similar(item_id, top_k=limit)
        return await self._synthesizer.explain_results(
            f"Products similar to {item_id}",
            hits,
        )

    async def compare(
        self,
        item_ids: Sequence[str],
    ) -> tuple[list[ProductMetadata], ComparisonResult]:
        """Resolve products and compare them.

        Returns:
            The resolved products and the comparison over them.
        """
        products = await self._orchestrator.compare_items(item_ids)
        comparison = await self._synthesizer.compare(products)

        logger.info(
            "Compared products",
            extra={"requested": len(item_ids), "compared": len(products)},
        )
        return products, comparison

    async def product_details(self, item_id: str) -> tuple[SearchHit, str]:
        """Look up one product and summarize it.

        Returns:
            The product hit and its review summary.
        """
        hit = await self._orchestrator.find_product(item_id)
        summary = await self._synthesizer.summarize_item(hit.item)
        return hit, summary
