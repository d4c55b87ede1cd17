"""Seeding the product index from JSON catalogues."""

import asyncio
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vectorcart.embeddings.service import EmbeddingService
from vectorcart.exceptions import InvalidInputError, VectorCartError
from vectorcart.logging_config import get_logger
from vectorcart.retrieval.orchestrator import SearchOrchestrator
from vectorcart.vectorstore.models import IndexedItem, IndexStats, SearchHit
from vectorcart.vectorstore.service import QdrantVectorIndex

logger = get_logger(__name__)

SMOKE_TEST_QUERIES = (
    "wireless bluetooth headphones",
    "laptop for gaming",
    "kitchen appliances",
    "smartphone with good camera",
)
PROGRESS_EVERY = 50


def _read_json_array(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        raise InvalidInputError(f"File not found: {path}", details={"path": str(path)})

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInputError(
            f"Invalid JSON in {path}: {e}",
            details={"path": str(path)},
        ) from e

    if not isinstance(data, list):
        raise InvalidInputError(
            f"Expected a JSON array in {path}",
            details={"path": str(path), "type": type(data).__name__},
        )
    return data


class ProductSeeder:
    """Embeds product records and stores them in the vector index.

    Records are embedded one at a time; a record that fails is logged and
    skipped so one bad product never aborts a seeding run.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: QdrantVectorIndex,
        delay: float = 0.2,
    ) -> None:
        """Initialize the seeder.

        Args:
            embedding_service: Service used to embed products.
            vector_index: Destination index.
            delay: Pause between products, in seconds.
        """
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._delay = delay

    @staticmethod
    def load_products(path: str | Path) -> list[dict[str, Any]]:
        """Read product records from a JSON array file.

        Raises:
            InvalidInputError: If the file is missing or not a JSON array.
        """
        products = _read_json_array(Path(path))
        logger.info(f"Found {len(products)} products to process")
        return products

    async def build_items(self, products: Sequence[Mapping[str, Any]]) -> list[IndexedItem]:
        """Embed every product, skipping the ones that fail."""
        items: list[IndexedItem] = []
        total = len(products)

        for position, product in enumerate(products):
            try:
                result = await self._embedding_service.embed_product(product)
                items.append(IndexedItem.from_record(product, result.embedding, position))
            except (VectorCartError, ValidationError) as e:
                logger.error(
                    f"Error processing product {position + 1}: {e}",
                    extra={"position": position},
                )
                continue

            if (position + 1) % PROGRESS_EVERY == 0:
                logger.info(f"Processed {position + 1}/{total} products")

            if position < total - 1 and self._delay > 0:
                await asyncio.sleep(self._delay)

        logger.info(f"Generated embeddings for {len(items)} of {total} products")
        return items

    async def _store(self, items: Sequence[IndexedItem]) -> IndexStats:
        await self._vector_index.ensure_collection(len(items[0].vector))
        await self._vector_index.upsert(items)

        stats = await self._vector_index.stats()
        logger.info(
            "Index statistics",
            extra={
                "total_count": stats.total_count,
                "fullness_ratio": stats.fullness_ratio,
                "dimension": stats.dimension,
            },
        )
        return stats

    async def seed(
        self,
        products_path: str | Path,
        cache_path: str | Path | None = None,
    ) -> IndexStats | None:
        """Embed a product file and store it.

        Args:
            products_path: JSON array of product records.
            cache_path: Where to save the embedded items for later reuse.

        Returns:
            Index statistics, or None when no product could be embedded.
        """
        products = self.load_products(products_path)
        items = await self.build_items(products)

        if not items:
            logger.error("No products were successfully processed")
            return None

        if cache_path is not None:
            cache = Path(cache_path)
            cache.parent.mkdir(parents=True, exist_ok=True)
            cache.write_text(
                json.dumps(
                    [item.model_dump(by_alias=True) for item in items],
                    ensure_ascii=False,
                ),
                encoding="utf-8",
            )
            logger.info(f"Saved products with embeddings to {cache}")

        return await self._store(items)

    async def store_cached(self, cache_path: str | Path) -> IndexStats | None:
        """Store items saved by an earlier ``seed`` run without re-embedding."""
        records = _read_json_array(Path(cache_path))
        try:
            items = [IndexedItem.model_validate(record) for record in records]
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid embedding cache {cache_path}: {e.error_count()} errors",
                details={"path": str(cache_path)},
            ) from e

        logger.info(f"Found {len(items)} products with embeddings")
        if not items:
            return None
        return await self._store(items)

    async def smoke_test(
        self,
        queries: Sequence[str] = SMOKE_TEST_QUERIES,
        top_k: int = 3,
    ) -> dict[str, list[SearchHit]]:
        """Run sample searches against the seeded index."""
        orchestrator = SearchOrchestrator(self._embedding_service, self._vector_index)
        results: dict[str, list[SearchHit]] = {}

        for query in queries:
            hits = await orchestrator.semantic_search(query, top_k=top_k)
            results[query] = hits
            for rank, hit in enumerate(hits, start=1):
                logger.info(f'"{query}" {rank}. {hit.item.title} (score: {hit.score:.3f})')

        return results
