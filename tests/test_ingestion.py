"""Tests for product seeding."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from vectorcart.embeddings.models import EmbeddingResult
from vectorcart.exceptions import EmbeddingUnavailableError, InvalidInputError
from vectorcart.ingestion.seeder import SMOKE_TEST_QUERIES, ProductSeeder
from vectorcart.vectorstore.models import IndexStats, SearchHit

PRODUCTS = [
    {
        "product_id": "B07JW9H4J1",
        "product_name": "Wayona Nylon Braided USB Cable",
        "category": "Computers&Accessories|Cables",
        "discounted_price": "₹399",
        "actual_price": "₹1,099",
        "rating": "4.2",
        "rating_count": "24,269",
    },
    {
        "product_id": "B098NS6PVG",
        "product_name": "Ambrane Unbreakable Charging Cable",
        "discounted_price": "₹199",
    },
    {
        "product_name": "boAt Rockerz 255",
        "discounted_price": "₹1,299",
    },
]


def _embedding(text: str = "x") -> EmbeddingResult:
    return EmbeddingResult(
        text=text,
        embedding=[0.1, 0.2, 0.3],
        model="test-model",
        backend="test",
        dimensions=3,
    )


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestProductSeeder:
    """Tests for ProductSeeder."""

    def _create_mock_embedding_service(self) -> AsyncMock:
        """Create mock embedding service."""
        service = AsyncMock()
        service.embed_product = AsyncMock(return_value=_embedding())
        service.embed = AsyncMock(return_value=_embedding())
        return service

    def _create_mock_index(self) -> AsyncMock:
        """Create mock vector index."""
        index = AsyncMock()
        index.ensure_collection = AsyncMock(return_value=True)
        index.upsert = AsyncMock(side_effect=lambda items: len(items))
        index.stats = AsyncMock(
            return_value=IndexStats(total_count=3, fullness_ratio=0.00003, dimension=3)
        )
        index.query = AsyncMock(return_value=[SearchHit(id="p1", score=0.7)])
        return index

    def test_load_products(self, tmp_path: Path) -> None:
        """Products are read from a JSON array."""
        path = _write(tmp_path / "products.json", PRODUCTS)
        assert len(ProductSeeder.load_products(path)) == 3

    def test_load_products_missing(self, tmp_path: Path) -> None:
        """A missing file is invalid input."""
        with pytest.raises(InvalidInputError, match="File not found"):
            ProductSeeder.load_products(tmp_path / "nope.json")

    def test_load_products_not_array(self, tmp_path: Path) -> None:
        """A JSON object is rejected."""
        path = _write(tmp_path / "products.json", {"products": []})
        with pytest.raises(InvalidInputError, match="JSON array"):
            ProductSeeder.load_products(path)

    def test_load_products_invalid_json(self, tmp_path: Path) -> None:
        """Broken JSON is rejected."""
        path = tmp_path / "products.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="Invalid JSON"):
            ProductSeeder.load_products(path)

    async def test_build_items_canonicalizes(self) -> None:
        """Items carry product ids and canonical metadata."""
        seeder = ProductSeeder(
            self._create_mock_embedding_service(), self._create_mock_index(), delay=0
        )

        items = await seeder.build_items(PRODUCTS)

        assert [item.id for item in items] == ["B07JW9H4J1", "B098NS6PVG", "product_2"]
        assert items[0].metadata.price == 399.0
        assert items[0].metadata.original_price == 1099.0
        assert items[0].metadata.review_count == 24269
        assert items[0].metadata.title == "Wayona Nylon Braided USB Cable"

    async def test_build_items_skips_failures(self) -> None:
        """A product that cannot be embedded is skipped."""
        embedding_service = self._create_mock_embedding_service()
        embedding_service.embed_product.side_effect = [
            _embedding(),
            EmbeddingUnavailableError("primary down"),
            _embedding(),
        ]
        seeder = ProductSeeder(embedding_service, self._create_mock_index(), delay=0)

        items = await seeder.build_items(PRODUCTS)

        assert [item.id for item in items] == ["B07JW9H4J1", "product_2"]

    async def test_seed_writes_cache_and_upserts(self, tmp_path: Path) -> None:
        """Seeding embeds, caches, creates the collection and upserts."""
        products_path = _write(tmp_path / "products.json", PRODUCTS)
        cache_path = tmp_path / "cache" / "embedded.json"
        index = self._create_mock_index()
        seeder = ProductSeeder(self._create_mock_embedding_service(), index, delay=0)

        stats = await seeder.seed(products_path, cache_path=cache_path)

        assert stats is not None
        assert stats.total_count == 3
        index.ensure_collection.assert_called_once_with(3)
        assert len(index.upsert.call_args.args[0]) == 3

        cached = json.loads(cache_path.read_text(encoding="utf-8"))
        assert cached[0]["id"] == "B07JW9H4J1"
        assert cached[0]["metadata"]["originalPrice"] == 1099.0

    async def test_seed_nothing_embedded(self, tmp_path: Path) -> None:
        """When every product fails nothing is stored."""
        products_path = _write(tmp_path / "products.json", PRODUCTS)
        embedding_service = self._create_mock_embedding_service()
        embedding_service.embed_product.side_effect = EmbeddingUnavailableError("down")
        index = self._create_mock_index()
        seeder = ProductSeeder(embedding_service, index, delay=0)

        assert await seeder.seed(products_path) is None
        index.upsert.assert_not_called()

    async def test_store_cached_round_trip(self, tmp_path: Path) -> None:
        """Cached items are stored without re-embedding."""
        products_path = _write(tmp_path / "products.json", PRODUCTS)
        cache_path = tmp_path / "embedded.json"
        embedding_service = self._create_mock_embedding_service()
        seeder = ProductSeeder(embedding_service, self._create_mock_index(), delay=0)
        await seeder.seed(products_path, cache_path=cache_path)

        index = self._create_mock_index()
        embedding_service.embed_product.reset_mock()
        reseeder = ProductSeeder(embedding_service, index, delay=0)

        stats = await reseeder.store_cached(cache_path)

        assert stats is not None
        embedding_service.embed_product.assert_not_called()
        stored = index.upsert.call_args.args[0]
        assert stored[0].metadata.original_price == 1099.0
        assert stored[0].metadata.review_count == 24269

    async def test_store_cached_invalid(self, tmp_path: Path) -> None:
        """Cache records that are not items are rejected."""
        cache_path = _write(tmp_path / "embedded.json", [{"id": "p1"}])
        seeder = ProductSeeder(
            self._create_mock_embedding_service(), self._create_mock_index(), delay=0
        )

        with pytest.raises(InvalidInputError, match="Invalid embedding cache"):
            await seeder.store_cached(cache_path)

    async def test_smoke_test(self) -> None:
        """Sample queries run against the index."""
        embedding_service = self._create_mock_embedding_service()
        seeder = ProductSeeder(embedding_service, self._create_mock_index(), delay=0)

        results = await seeder.smoke_test()

        assert list(results) == list(SMOKE_TEST_QUERIES)
        assert embedding_service.embed.call_count == len(SMOKE_TEST_QUERIES)
