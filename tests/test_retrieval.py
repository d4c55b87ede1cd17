"""Tests for search orchestration."""

import math
from unittest.mock import AsyncMock

import pytest

from vectorcart.embeddings.models import EmbeddingResult
from vectorcart.exceptions import (
    EmbeddingUnavailableError,
    InsufficientItemsError,
    InvalidInputError,
    ItemNotFoundError,
)
from vectorcart.retrieval.orchestrator import SearchOrchestrator, popularity_score
from vectorcart.vectorstore.models import IndexedItem, ProductMetadata, SearchHit


def _hit(item_id: str, score: float, **metadata: object) -> SearchHit:
    return SearchHit(
        id=item_id,
        score=score,
        item=ProductMetadata(title=item_id, **metadata),
    )


class TestPopularityScore:
    """Tests for popularity_score."""

    def test_weights_rating_and_reviews(self) -> None:
        """Rating dominates, review volume adds a log bonus."""
        item = ProductMetadata(rating=4.0, review_count=99)
        assert popularity_score(item) == pytest.approx(4.0 * 0.7 + math.log(100) * 0.3)


class TestSearchOrchestrator:
    """Tests for SearchOrchestrator."""

    def _create_mock_embedding_service(self) -> AsyncMock:
        """Create mock embedding service."""
        service = AsyncMock()
        service.embed = AsyncMock(
            return_value=EmbeddingResult(
                text="query",
                embedding=[0.1, 0.2, 0.3],
                model="test-model",
                backend="test",
                dimensions=3,
            )
        )
        return service

    def _create_mock_index(self, hits: list[SearchHit] | None = None) -> AsyncMock:
        """Create mock vector index."""
        index = AsyncMock()
        index.query = AsyncMock(return_value=hits or [])
        return index

    async def test_semantic_search_filters_by_min_score(self) -> None:
        """Hits below min_score are dropped, order preserved."""
        hits = [_hit("a", 0.81), _hit("b", 0.52), _hit("c", 0.30)]
        embedding_service = self._create_mock_embedding_service()
        index = self._create_mock_index(hits)

        orchestrator = SearchOrchestrator(embedding_service, index)
        results = await orchestrator.semantic_search(
            "wireless bluetooth headphones",
            top_k=3,
            min_score=0.4,
        )

        embedding_service.embed.assert_called_once_with("wireless bluetooth headphones")
        index.query.assert_called_once_with([0.1, 0.2, 0.3], top_k=3)
        assert [r.id for r in results] == ["a", "b"]
        assert [r.score for r in results] == [0.81, 0.52]
        assert all(r.score >= 0.4 for r in results)
        assert results == sorted(results, key=lambda r: r.score, reverse=True)

    async def test_semantic_search_min_score_is_inclusive(self) -> None:
        """A hit scoring exactly min_score is kept."""
        index = self._create_mock_index([_hit("a", 0.45)])
        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)

        results = await orchestrator.semantic_search("q", min_score=0.45)
        assert len(results) == 1

    async def test_semantic_search_fewer_results_is_normal(self) -> None:
        """Fewer hits than top_k is not an error."""
        index = self._create_mock_index([_hit("a", 0.9)])
        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)

        results = await orchestrator.semantic_search("q", top_k=10)
        assert len(results) == 1

    async def test_semantic_search_rejects_bad_top_k(self) -> None:
        """top_k below 1 is invalid input."""
        embedding_service = self._create_mock_embedding_service()
        orchestrator = SearchOrchestrator(embedding_service, self._create_mock_index())

        with pytest.raises(InvalidInputError):
            await orchestrator.semantic_search("q", top_k=0)
        embedding_service.embed.assert_not_called()

    async def test_semantic_search_propagates_embedding_failure(self) -> None:
        """Embedding failures surface to the caller."""
        embedding_service = self._create_mock_embedding_service()
        embedding_service.embed.side_effect = EmbeddingUnavailableError("primary down")
        orchestrator = SearchOrchestrator(embedding_service, self._create_mock_index())

        with pytest.raises(EmbeddingUnavailableError):
            await orchestrator.semantic_search("q")

    async def test_recommend_similar_excludes_source(self) -> None:
        """The source product is dropped and order preserved."""
        neighbours = [
            _hit("sku-9", 0.97),
            _hit("sku-123", 0.95),
            _hit("sku-4", 0.90),
            _hit("sku-7", 0.80),
            _hit("sku-2", 0.70),
            _hit("sku-5", 0.60),
        ]
        index = self._create_mock_index(neighbours)
        index.fetch = AsyncMock(
            return_value=IndexedItem(id="sku-123", vector=[0.5, 0.5, 0.5])
        )

        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)
        results = await orchestrator.recommend_similar("sku-123", top_k=5)

        index.query.assert_called_once_with([0.5, 0.5, 0.5], top_k=6)
        assert [r.id for r in results] == ["sku-9", "sku-4", "sku-7", "sku-2", "sku-5"]
        assert "sku-123" not in [r.id for r in results]

    async def test_recommend_similar_truncates_when_source_absent(self) -> None:
        """At most top_k hits are returned even when the source is not among them."""
        neighbours = [_hit(f"sku-{i}", 0.9 - i * 0.1) for i in range(4)]
        index = self._create_mock_index(neighbours)
        index.fetch = AsyncMock(return_value=IndexedItem(id="src", vector=[1.0]))

        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)
        results = await orchestrator.recommend_similar("src", top_k=3)

        assert [r.id for r in results] == ["sku-0", "sku-1", "sku-2"]

    async def test_recommend_similar_unknown_item(self) -> None:
        """Unknown source ids propagate ItemNotFoundError."""
        index = self._create_mock_index()
        index.fetch = AsyncMock(side_effect=ItemNotFoundError("missing"))

        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)
        with pytest.raises(ItemNotFoundError):
            await orchestrator.recommend_similar("missing")
        index.query.assert_not_called()

    @pytest.mark.parametrize("ids", [["only-one"], ["a", "b", "c", "d", "e", "f"]])
    async def test_compare_items_validates_count(self, ids: list[str]) -> None:
        """Fewer than 2 or more than 5 ids fail before any lookup."""
        embedding_service = self._create_mock_embedding_service()
        orchestrator = SearchOrchestrator(embedding_service, self._create_mock_index())

        with pytest.raises(InvalidInputError):
            await orchestrator.compare_items(ids)
        embedding_service.embed.assert_not_called()

    async def test_compare_items_one_of_three_resolves(self) -> None:
        """One resolvable product is not enough to compare."""
        index = self._create_mock_index()
        index.query.side_effect = [[_hit("a", 0.9)], [], []]

        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)
        with pytest.raises(InsufficientItemsError):
            await orchestrator.compare_items(["a", "b", "c"])

    async def test_compare_items_two_of_three_resolve(self) -> None:
        """Unresolved ids are skipped when at least two resolve."""
        embedding_service = self._create_mock_embedding_service()
        embedding_service.embed.side_effect = [
            embedding_service.embed.return_value,
            EmbeddingUnavailableError("primary down"),
            embedding_service.embed.return_value,
        ]
        index = self._create_mock_index()
        index.query.side_effect = [[_hit("a", 0.9)], [_hit("c", 0.8)]]

        orchestrator = SearchOrchestrator(embedding_service, index)
        products = await orchestrator.compare_items(["a", "b", "c"])

        assert [p.title for p in products] == ["a", "c"]
        assert embedding_service.embed.call_args_list[0].args[0] == "product_id:a"

    async def test_find_product(self) -> None:
        """Lookup by id returns an exact hit."""
        index = self._create_mock_index()
        index.fetch = AsyncMock(
            return_value=IndexedItem(
                id="p1",
                vector=[0.1],
                metadata={"product_name": "Kettle"},
            )
        )

        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)
        hit = await orchestrator.find_product("p1")

        assert hit.id == "p1"
        assert hit.score == 1.0
        assert hit.item.title == "Kettle"

    async def test_trending_products_ranked_by_popularity(self) -> None:
        """Trending hits are re-ranked by rating and review volume."""
        hits = [
            _hit("low", 0.9, rating=3.0, review_count=10),
            _hit("high", 0.5, rating=4.8, review_count=5000),
            _hit("mid", 0.7, rating=4.0, review_count=100),
        ]
        embedding_service = self._create_mock_embedding_service()
        orchestrator = SearchOrchestrator(embedding_service, self._create_mock_index(hits))

        results = await orchestrator.trending_products(limit=3, category="Audio")

        embedding_service.embed.assert_called_once_with("popular trending products Audio")
        assert [r.id for r in results] == ["high", "mid", "low"]

    async def test_products_by_category(self) -> None:
        """Category and rating filters apply to twice the limit."""
        hits = [
            _hit("a", 0.9, category="Home&Kitchen|Kettles", rating=4.5),
            _hit("b", 0.8, category="Electronics|Audio", rating=4.9),
            _hit("c", 0.7, category="home&kitchen|Mixers", rating=3.0),
            _hit("d", 0.6, category="Home&Kitchen|Toasters", rating=4.1),
        ]
        index = self._create_mock_index(hits)
        orchestrator = SearchOrchestrator(self._create_mock_embedding_service(), index)

        results = await orchestrator.products_by_category(
            "Home&Kitchen",
            limit=1,
            min_rating=4.0,
        )

        index.query.assert_called_once_with([0.1, 0.2, 0.3], top_k=2)
        assert [r.id for r in results] == ["a"]

    async def test_products_by_category_requires_category(self) -> None:
        """Blank categories are invalid input."""
        orchestrator = SearchOrchestrator(
            self._create_mock_embedding_service(), self._create_mock_index()
        )
        with pytest.raises(InvalidInputError):
            await orchestrator.products_by_category("  ")
