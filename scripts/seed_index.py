#!/usr/bin/env python
"""Seed the product index.

Usage:
    python -m scripts.seed_index --products data/products.json
    python -m scripts.seed_index --index-only --cache data/products_with_embeddings.json
    python -m scripts.seed_index --test

A full run embeds every product, saves the embedded items to the cache file
and upserts them. ``--index-only`` reuses the cache without re-embedding.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from vectorcart.config import get_settings
from vectorcart.embeddings.service import FallbackEmbeddingService
from vectorcart.exceptions import VectorCartError
from vectorcart.ingestion.seeder import ProductSeeder
from vectorcart.logging_config import get_logger, setup_logging
from vectorcart.vectorstore.models import IndexStats
from vectorcart.vectorstore.service import QdrantVectorIndex

logger = get_logger(__name__)


def print_stats(stats: IndexStats) -> None:
    print("\n" + "=" * 60)
    print("INDEX STATISTICS")
    print("=" * 60)
    print(f"Total vectors: {stats.total_count}")
    print(f"Index fullness: {stats.fullness_ratio:.2%}")
    print(f"Dimension: {stats.dimension}")
    print("=" * 60)


async def run_seeding(
    products_path: Path,
    cache_path: Path,
    index_only: bool = False,
    test: bool = False,
) -> bool:
    """Run the selected seeding mode and return whether it succeeded.

    Args:
        products_path: JSON array of product records.
        cache_path: Embedded items written by a full run.
        index_only: Upsert the cache instead of embedding.
        test: Only run sample queries against the index.

    Returns:
        True on success, False otherwise.
    """
    setup_logging(level="INFO")
    settings = get_settings()

    embedding_service = FallbackEmbeddingService.from_settings(settings.embedding)
    vector_index = QdrantVectorIndex(settings=settings.qdrant)
    seeder = ProductSeeder(embedding_service, vector_index)

    try:
        if test:
            results = await seeder.smoke_test()
            for query, hits in results.items():
                print(f'\nQuery: "{query}"')
                for rank, hit in enumerate(hits, start=1):
                    print(f"  {rank}. {hit.item.title} (score: {hit.score:.3f})")
            return True

        if index_only:
            logger.info(f"Storing cached embeddings from {cache_path}")
            stats = await seeder.store_cached(cache_path)
        else:
            logger.info(f"Seeding products from {products_path}")
            stats = await seeder.seed(products_path, cache_path=cache_path)

        if stats is None:
            return False

        print_stats(stats)
        return True

    except VectorCartError as e:
        logger.error(f"Seeding failed: {e.message}", extra={"error_code": e.code.value})
        return False

    finally:
        await embedding_service.close()
        await vector_index.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the product vector index",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--products",
        type=Path,
        default=Path("data/products.json"),
        help="Path to products JSON file",
    )
    parser.add_argument(
        "--cache",
        type=Path,
        default=Path("data/products_with_embeddings.json"),
        help="Path to the embedded products cache",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--index-only",
        action="store_true",
        help="Upsert the cache without generating embeddings",
    )
    mode.add_argument(
        "--test",
        action="store_true",
        help="Run sample queries against the seeded index",
    )

    args = parser.parse_args()

    succeeded = asyncio.run(
        run_seeding(
            products_path=args.products,
            cache_path=args.cache,
            index_only=args.index_only,
            test=args.test,
        )
    )

    sys.exit(0 if succeeded else 1)


if __name__ == "__main__":
    main()
