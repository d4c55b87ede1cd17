"""Product ingestion module."""

from vectorcart.ingestion.seeder import SMOKE_TEST_QUERIES, ProductSeeder

__all__ = [
    "SMOKE_TEST_QUERIES",
    "ProductSeeder",
]
