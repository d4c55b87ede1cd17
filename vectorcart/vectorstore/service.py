"""Vector index interface and Qdrant implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import Distance, PointStruct, VectorParams

from vectorcart.config import QdrantSettings, get_settings
from vectorcart.exceptions import ErrorCode, ItemNotFoundError, VectorStoreError
from vectorcart.logging_config import get_logger
from vectorcart.observability.metrics import track_vectorstore_operation
from vectorcart.vectorstore.models import (
    IndexedItem,
    IndexStats,
    ProductMetadata,
    SearchHit,
)

logger = get_logger(__name__)

# Payload key holding the caller's id; Qdrant point ids must be UUIDs
ID_FIELD = "product_id"


def point_id(item_id: str) -> str:
    """Deterministic Qdrant point id for a product id."""
    return str(uuid5(NAMESPACE_URL, f"vectorcart:product:{item_id}"))


@contextmanager
def _timed(operation: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    except Exception:
        track_vectorstore_operation(operation, time.perf_counter() - start, success=False)
        raise
    track_vectorstore_operation(operation, time.perf_counter() - start)


class VectorIndex(ABC):
    """Abstract base class for product vector indexes.

    Implementations connect lazily on first use and reuse the connection.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Establish the connection. Safe to call repeatedly."""
        ...

    @abstractmethod
    async def upsert(self, items: Sequence[IndexedItem]) -> int:
        """Insert or replace items, keyed by id.

        Args:
            items: Items to store.

        Returns:
            Number of items upserted.

        Raises:
            VectorStoreError: If a batch fails.
        """
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> list[SearchHit]:
        """Find the nearest items to a vector.

        Args:
            vector: Query vector.
            top_k: Maximum hits to return.
            include_metadata: Whether to return item metadata.

        Returns:
            Hits in descending score order.

        Raises:
            VectorStoreError: If the query fails.
        """
        ...

    @abstractmethod
    async def fetch(self, item_id: str) -> IndexedItem:
        """Fetch one item with its vector.

        Raises:
            ItemNotFoundError: If the id is not in the index.
            VectorStoreError: If the request fails.
        """
        ...

    @abstractmethod
    async def stats(self) -> IndexStats:
        """Get aggregate index statistics."""
        ...


class QdrantVectorIndex(VectorIndex):
    """Qdrant-backed product index.

    Product ids are mapped to UUID point ids; the original id travels in
    the payload under ``product_id`` and is what hits report.
    """

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector index.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._lock = asyncio.Lock()

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def initialize(self) -> None:
        if self._client is not None:
            return

        async with self._lock:
            if self._client is None:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()

                self._client = AsyncQdrantClient(
                    url=self._settings.url,
                    api_key=api_key,
                    timeout=self._settings.timeout,
                )
                logger.info(
                    f"Connected to Qdrant collection: {self.collection}",
                    extra={"url": self._settings.url},
                )

    async def _get_client(self) -> AsyncQdrantClient:
        """Get the client, connecting on first use."""
        await self.initialize()
        assert self._client is not None
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def ensure_collection(self, dimensions: int) -> bool:
        """Create the product collection if it does not exist.

        Args:
            dimensions: Vector dimensions.

        Returns:
            True if the collection was created.
        """
        client = await self._get_client()

        try:
            if await client.collection_exists(self.collection):
                return False

            await client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(
                    size=dimensions,
                    distance=Distance.COSINE,
                ),
            )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": dimensions},
        )
        return True

    async def upsert(self, items: Sequence[IndexedItem]) -> int:
        if not items:
            return 0

        client = await self._get_client()
        points = [
            PointStruct(
                id=point_id(item.id),
                vector=item.vector,
                payload={**item.metadata.to_payload(), ID_FIELD: item.id},
            )
            for item in items
        ]

        batch_size = max(1, self._settings.upsert_batch_size)
        total_batches = (len(points) + batch_size - 1) // batch_size

        for number, start in enumerate(range(0, len(points), batch_size), start=1):
            batch = points[start : start + batch_size]
            try:
                with _timed("upsert"):
                    # wait=True so batch i is applied before batch i+1 is sent
                    await client.upsert(
                        collection_name=self.collection,
                        points=batch,
                        wait=True,
                    )
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to upsert batch {number}/{total_batches}: {e}",
                    code=ErrorCode.VECTOR_STORE_ERROR,
                    details={
                        "collection": self.collection,
                        "batch": number,
                        "upserted": start,
                        "error": str(e),
                    },
                ) from e

            logger.info(
                f"Uploaded batch {number}/{total_batches}",
                extra={"collection": self.collection, "points": len(batch)},
            )

            if start + batch_size < len(points) and self._settings.upsert_batch_delay > 0:
                await asyncio.sleep(self._settings.upsert_batch_delay)

        return len(points)

    async def query(
        self,
        vector: list[float],
        top_k: int,
        include_metadata: bool = True,
    ) -> list[SearchHit]:
        client = await self._get_client()

        try:
            with _timed("query"):
                response = await client.query_points(
                    collection_name=self.collection,
                    query=vector,
                    limit=top_k,
                    with_payload=True,
                    with_vectors=False,
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to query index: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        hits: list[SearchHit] = []
        for point in response.points:
            payload: dict[str, Any] = dict(point.payload) if point.payload else {}
            hits.append(
                SearchHit(
                    id=str(payload.get(ID_FIELD, point.id)),
                    score=point.score if point.score is not None else 0.0,
                    item=(
                        ProductMetadata.from_raw(payload)
                        if include_metadata
                        else ProductMetadata()
                    ),
                )
            )
        return hits

    async def fetch(self, item_id: str) -> IndexedItem:
        client = await self._get_client()

        try:
            with _timed("fetch"):
                records = await client.retrieve(
                    collection_name=self.collection,
                    ids=[point_id(item_id)],
                    with_payload=True,
                    with_vectors=True,
                )
        except Exception as e:
            raise VectorStoreError(
                f"Failed to fetch item: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "id": item_id, "error": str(e)},
            ) from e

        if not records:
            raise ItemNotFoundError(item_id, details={"collection": self.collection})

        record = records[0]
        vector = record.vector
        if isinstance(vector, dict):
            # Named vectors: the collection only defines one
            vector = next(iter(vector.values()), None)
        if not isinstance(vector, list):
            raise VectorStoreError(
                f"Stored item has no vector: {item_id}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "id": item_id},
            )

        return IndexedItem(
            id=item_id,
            vector=vector,
            metadata=dict(record.payload or {}),
        )

    async def stats(self) -> IndexStats:
        client = await self._get_client()

        try:
            with _timed("stats"):
                exists = await client.collection_exists(self.collection)
                if not exists:
                    raise VectorStoreError(
                        f"Collection not found: {self.collection}",
                        code=ErrorCode.COLLECTION_NOT_FOUND,
                        details={"collection": self.collection},
                    )
                info = await client.get_collection(self.collection)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                f"Failed to read collection stats: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

        total = info.points_count or 0
        vectors = info.config.params.vectors
        if isinstance(vectors, dict):
            vectors = next(iter(vectors.values()), None)
        dimension = vectors.size if vectors is not None else 0

        capacity = max(1, self._settings.capacity)
        return IndexStats(
            total_count=total,
            fullness_ratio=min(1.0, total / capacity),
            dimension=dimension,
        )
